"""JWT decode utilities and the caller identity carried through requests.

Tokens are minted by the external Users service; this service only
verifies them.  ``create_token`` exists for tooling and tests.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import IntEnum

import jwt

from app_engine.config import settings

ALGORITHM = "HS256"
TOKEN_EXPIRY_HOURS = 24


class UserPrivilege(IntEnum):
    """Global privilege tiers; lower is more powerful."""

    SUPER_ADMIN = 1
    ADMIN = 2
    REGULAR = 3


# Callers below this tier bypass every per-project check.
ELEVATED_THRESHOLD = UserPrivilege.REGULAR


@dataclass(frozen=True)
class Caller:
    """The authenticated user behind a request."""

    username: str
    privileges: int = UserPrivilege.REGULAR
    email: str = ""

    @property
    def is_admin(self) -> bool:
        return self.privileges < ELEVATED_THRESHOLD


def create_token(
    username: str,
    privileges: int = UserPrivilege.REGULAR,
    email: str = "",
) -> str:
    """Create a JWT token for the given user."""
    payload = {
        "sub": username,
        "privileges": int(privileges),
        "email": email,
        "aud": settings.JWT_AUDIENCE,
        "iss": settings.JWT_ISSUER,
        "exp": datetime.now(timezone.utc) + timedelta(hours=TOKEN_EXPIRY_HOURS),
        "iat": datetime.now(timezone.utc),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=ALGORITHM)


def decode_token(token: str) -> dict:
    """Decode and validate a JWT token. Raises jwt.PyJWTError on failure."""
    return jwt.decode(
        token,
        settings.JWT_SECRET,
        algorithms=[ALGORITHM],
        audience=settings.JWT_AUDIENCE,
        issuer=settings.JWT_ISSUER,
        options={"require": ["exp", "iat", "sub", "aud", "iss"]},
    )


def caller_from_claims(payload: dict) -> Caller:
    """Build a :class:`Caller` from decoded token claims.

    Unknown or malformed privilege values fall back to the regular tier.
    """
    try:
        privileges = int(payload.get("privileges", UserPrivilege.REGULAR))
    except (TypeError, ValueError):
        privileges = UserPrivilege.REGULAR
    if privileges < UserPrivilege.SUPER_ADMIN:
        privileges = UserPrivilege.REGULAR
    return Caller(
        username=str(payload["sub"]),
        privileges=privileges,
        email=str(payload.get("email") or ""),
    )
