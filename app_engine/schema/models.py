"""Entity schemas: field declarations per stored record type."""

from enum import IntEnum
from typing import Any, Iterable, Mapping

from app_engine.errors import ValidationError
from app_engine.schema.fields import (
    Bool,
    Date,
    Field,
    Html,
    Id,
    IdList,
    Json,
    Num,
    NumList,
    Text,
    TextList,
)
from app_engine.schema.sanitize import DEFAULT_ALLOWED_TAGS


class Plan(IntEnum):
    """Subscription plan of a user account."""

    FREE = 1
    BRONZE = 2
    SILVER = 3
    GOLD = 4
    PLATINUM = 5
    CUSTOM = 6


class Schema:
    """An ordered set of fields describing one record type.

    Validation walks fields in declaration order and stops at the first
    failure, so the order here decides which message a client sees.
    """

    def __init__(self, entity: str, fields: Iterable[Field]) -> None:
        self.entity = entity
        self.fields: tuple[Field, ...] = tuple(fields)
        self._by_name = {f.name: f for f in self.fields}

    def __getitem__(self, name: str) -> Field:
        return self._by_name[name]

    @property
    def columns(self) -> list[str]:
        return [f.column for f in self.fields]

    def validate(self, payload: Mapping[str, Any] | None, *, partial: bool = False) -> dict:
        """Clean a client payload into ``{column: value}``.

        With ``partial`` only the supplied fields are returned (updates);
        otherwise missing optional fields take their defaults.  Readonly
        fields are never taken from the payload.
        """
        if payload is None:
            payload = {}
        if not isinstance(payload, Mapping):
            raise ValidationError("Request body must be a JSON object")

        values: dict = {}
        for field in self.fields:
            if field.readonly:
                continue
            if field.name in payload:
                values[field.column] = field.clean(payload[field.name])
            elif partial:
                continue
            elif field.required:
                raise ValidationError(f"{field.name} is required")
            else:
                values[field.column] = field.clean(field.default_value())
        return values

    def without_sensitive(self, payload: Mapping[str, Any]) -> dict:
        """Drop sensitive keys from a client payload."""
        hidden = {f.name for f in self.fields if f.sensitive}
        return {k: v for k, v in payload.items() if k not in hidden}

    def to_json(self, row: Mapping[str, Any], verbose: bool = False) -> dict:
        """Render a stored row in the wire shape."""
        doc: dict = {"_id": str(row["id"])}
        for field in self.fields:
            if field.sensitive and not verbose:
                continue
            if field.column in row:
                doc[field.name] = field.to_json(row[field.column])
        return doc

    def to_json_list(self, rows: Iterable[Mapping[str, Any]], verbose: bool = False) -> list[dict]:
        return [self.to_json(r, verbose) for r in rows]


def _owned(*fields: Field) -> list[Field]:
    """Append the owner and timestamp fields every record carries."""
    return [
        *fields,
        Text("user", min_chars=1, column="username", readonly=True),
        Date("createdOn"),
        Date("lastModified"),
    ]


def _resource(*fields: Field) -> list[Field]:
    return _owned(
        Num("shallowId", 0, integer=True, readonly=True),
        *fields,
        Id("projectId", sensitive=True, readonly=True),
    )


PROJECT_SCHEMA = Schema("projects", _owned(
    Text("name", min_chars=1, required=True),
    Html("description"),
    Text("image"),
    Num("category", 1, min_value=1, integer=True),
    Text("subCategory"),
    Bool("public", column="is_public"),
    Id("curFile", sensitive=True),
    Num("rating", 0),
    Num("score", 0),
    Num("numRaters", 0, integer=True),
    Bool("suspicious", sensitive=True),
    Bool("deleted"),
    Id("build", column="build_id", sensitive=True, readonly=True),
    Num("type", 0, column="project_type", integer=True),
    TextList("tags"),
    TextList("readPrivileges", sensitive=True),
    TextList("writePrivileges", sensitive=True),
    TextList("adminPrivileges", sensitive=True),
    IdList("plugins", min_items=1),
    TextList("files", sensitive=True),
))

BUILD_SCHEMA = Schema("builds", _owned(
    Text("name", "New Build"),
    Id("projectId", sensitive=True, readonly=True),
    Text("notes", max_chars=5000),
    Text("version", "0.0.1"),
    Html(
        "html",
        allowed_tags=DEFAULT_ALLOWED_TAGS | {"h1", "h2", "img"},
        max_chars=None,
    ),
    Bool("public", column="is_public"),
    Text("css", max_chars=None, strip_html=False),
    Text("liveHTML", max_chars=None, strip_html=False),
    Text("liveLink", max_chars=None, strip_html=False),
    Text("liveToken", max_chars=None, strip_html=False),
    Num("totalVotes", 0, integer=True),
    Num("totalVoters", 0, integer=True),
))

ASSET_SCHEMA = Schema("assets", _resource(
    Text("name", min_chars=1, required=True),
    Text("className", min_chars=1, required=True),
    Json("json", [], column="payload", container=list),
))

GROUP_SCHEMA = Schema("groups", _resource(
    Text("name", min_chars=1, required=True),
    NumList("items"),
))

CONTAINER_SCHEMA = Schema("containers", _resource(
    Text("name", min_chars=1, required=True),
    Json("json", {}, column="payload", container=dict),
))

SCRIPT_SCHEMA = Schema("scripts", _resource(
    Text("name"),
    Text("onEnter", max_chars=None, strip_html=False),
    Text("onInitialize", max_chars=None, strip_html=False),
    Text("onDispose", max_chars=None, strip_html=False),
    Text("onFrame", max_chars=None, strip_html=False),
))

# Closed set of project-scoped resource types, keyed by URL segment.
RESOURCE_SCHEMAS: dict[str, Schema] = {
    "assets": ASSET_SCHEMA,
    "groups": GROUP_SCHEMA,
    "containers": CONTAINER_SCHEMA,
    "scripts": SCRIPT_SCHEMA,
}

PLUGIN_SCHEMA = Schema("plugins", [
    Text("name", min_chars=1, required=True),
    Html("description"),
    Num("plan", Plan.FREE, min_value=Plan.FREE, max_value=Plan.CUSTOM, integer=True),
    Text("url"),
    TextList("deployables"),
    Text("image"),
    Text("author", readonly=True),
    Text("version", "0.0.1"),
    Json("versions", [], container=list),
    Bool("isPublic", column="is_public", sensitive=True),
    Date("createdOn"),
    Date("lastModified"),
])

USER_DETAILS_SCHEMA = Schema("user_details", [
    Text("user", min_chars=1, column="username", readonly=True),
    Text("bio", max_chars=2000),
    Text("image"),
    Num(
        "plan", Plan.FREE, min_value=Plan.FREE, max_value=Plan.CUSTOM,
        integer=True, sensitive=True,
    ),
    Text("website"),
    Text("customerId", sensitive=True),
    Num("maxProjects", 5, min_value=0, max_value=10_000, integer=True, sensitive=True),
    Date("createdOn"),
    Date("lastModified"),
])

FILE_SCHEMA = Schema("files", _owned(
    Text("name", min_chars=1, required=True),
    Text("bucketId"),
    Text("bucketName"),
    Text("url", max_chars=2000, sensitive=True),
    Text("extension"),
    Text("identifier"),
    Num("size", 0, min_value=0, integer=True),
    Bool("favourite"),
    Bool("global", column="is_global"),
    Bool("browsable", True),
    Id("projectId"),
    TextList("tags", sensitive=True, max_items=20),
    Text("previewUrl", max_chars=2000, sensitive=True),
))
