"""Signature verification for events pushed by the Users service."""

import hashlib
import hmac

SIGNATURE_PREFIX = "sha256="


def sign_payload(payload: bytes, secret: str) -> str:
    """Return the ``sha256=<hex>`` signature header value for *payload*."""
    digest = hmac.new(secret.encode(), payload, hashlib.sha256).hexdigest()
    return f"{SIGNATURE_PREFIX}{digest}"


def verify_signature(payload: bytes, signature: str, secret: str) -> bool:
    """Verify the ``X-Users-Signature`` header of an event delivery.

    An empty secret never verifies, so an unconfigured deployment
    rejects every event.
    """
    if not secret or not signature.startswith(SIGNATURE_PREFIX):
        return False
    return hmac.compare_digest(sign_payload(payload, secret), signature)
