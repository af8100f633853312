"""Generic CRUD for project-scoped resources (assets, groups, containers, scripts)."""

import logging

from app_engine.errors import ValidationError
from app_engine.repos import resource_repo
from app_engine.schema.fields import is_valid_id
from app_engine.schema.models import RESOURCE_SCHEMAS, Schema
from app_engine.services.common import ListQuery

logger = logging.getLogger(__name__)


def parse_id_list(raw: str) -> list[str]:
    """Split a comma separated id list; any malformed id rejects the lot."""
    ids = [part.strip() for part in raw.split(",") if part.strip()]
    for resource_id in ids:
        if not is_valid_id(resource_id):
            raise ValidationError(f"ID '{resource_id}' is not a valid ID")
    return ids


class ResourceService:
    """CRUD for one resource type.  Permission checks happen at the route."""

    def __init__(self, kind: str, schema: Schema | None = None, resources=resource_repo) -> None:
        if kind not in RESOURCE_SCHEMAS:
            raise ValueError(f"Unknown resource type: {kind!r}")
        self.kind = kind
        self.schema = schema or RESOURCE_SCHEMAS[kind]
        self._resources = resources

    async def create(self, owner: str, project_id: str, payload: dict) -> dict:
        fields = self.schema.validate(payload)
        fields["username"] = owner
        fields["project_id"] = project_id
        row = await self._resources.create_resource(self.kind, fields)
        logger.debug("Created %s %s (#%s) in project %s", self.kind, row["id"], row["shallow_id"], project_id)
        return self.schema.to_json(row, verbose=True)

    async def edit(self, project_id: str, resource_id: str, payload: dict) -> int:
        if not is_valid_id(resource_id):
            raise ValidationError("Please use a valid resource ID")
        fields = self.schema.validate(payload, partial=True)
        return await self._resources.update_resource(self.kind, resource_id, project_id, fields)

    async def remove(self, owner: str, project_id: str, raw_ids: str) -> int:
        ids = parse_id_list(raw_ids)
        if not ids:
            return 0
        return await self._resources.delete_resources(
            self.kind, user=owner, project_id=project_id, ids=ids,
        )

    async def list_resources(
        self,
        project_id: str | None,
        resource_id: str | None = None,
        query: ListQuery = ListQuery(),
    ) -> tuple[int, list[dict]]:
        """List resources of a project, or of every project when project_id is None."""
        if resource_id is not None and not is_valid_id(resource_id):
            raise ValidationError("Please use a valid resource ID")
        filters = {"project_id": project_id, "resource_id": resource_id, "search": query.search}
        total = await self._resources.count_resources(self.kind, **filters)
        rows = await self._resources.find_resources(self.kind, **filters, **query.page)
        return total, self.schema.to_json_list(rows, query.verbose)
