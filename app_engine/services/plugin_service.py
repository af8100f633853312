"""Plugin catalogue."""

from app_engine.auth import Caller
from app_engine.errors import NotFoundError, ValidationError
from app_engine.repos import plugin_repo
from app_engine.schema.fields import is_valid_id
from app_engine.schema.models import PLUGIN_SCHEMA
from app_engine.services.common import ListQuery


class PluginService:
    def __init__(self, plugins=plugin_repo) -> None:
        self._plugins = plugins

    async def list_plugins(
        self,
        caller: Caller | None,
        plugin_id: str | None = None,
        query: ListQuery = ListQuery(),
    ) -> tuple[int, list[dict]]:
        """Admins see every plugin; everyone else only the public ones."""
        if plugin_id is not None and not is_valid_id(plugin_id):
            raise ValidationError("Please use a valid object ID")
        is_admin = caller is not None and caller.is_admin
        filters = {"plugin_id": plugin_id, "search": query.search, "public_only": not is_admin}
        total = await self._plugins.count_plugins(**filters)
        rows = await self._plugins.find_plugins(**filters, **query.page)
        return total, PLUGIN_SCHEMA.to_json_list(rows, query.verbose and is_admin)

    async def create_plugin(self, caller: Caller, payload: dict) -> dict:
        fields = PLUGIN_SCHEMA.validate(payload)
        fields["author"] = caller.username
        row = await self._plugins.create_plugin(fields)
        return PLUGIN_SCHEMA.to_json(row, verbose=True)

    async def update_plugin(self, plugin_id: str, payload: dict) -> int:
        if not is_valid_id(plugin_id):
            raise ValidationError("Please use a valid object ID")
        fields = PLUGIN_SCHEMA.validate(payload, partial=True)
        updated = await self._plugins.update_plugin(plugin_id, fields)
        if not updated:
            raise NotFoundError("Could not find a plugin with that ID")
        return updated

    async def remove_plugin(self, plugin_id: str) -> int:
        if not is_valid_id(plugin_id):
            raise ValidationError("Please use a valid object ID")
        removed = await self._plugins.delete_plugin(plugin_id)
        if not removed:
            raise NotFoundError("Could not find a plugin with that ID")
        return removed
