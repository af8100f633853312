"""File metadata: listing and editing files a user has uploaded."""

import logging

from app_engine.errors import ValidationError
from app_engine.repos import file_repo
from app_engine.schema.fields import is_valid_id
from app_engine.schema.models import FILE_SCHEMA
from app_engine.services.common import ListQuery, wrap_errors

logger = logging.getLogger(__name__)


class FileService:
    def __init__(self, files=file_repo) -> None:
        self._files = files

    async def list_files(
        self,
        owner: str,
        project_id: str | None = None,
        query: ListQuery = ListQuery(),
        *,
        favourite: bool | None = None,
        is_global: bool | None = None,
        bucket: str | None = None,
    ) -> tuple[int, list[dict]]:
        """Browsable files of *owner*, optionally within one project."""
        with wrap_errors("An error occurred while fetching the files"):
            if project_id is not None and not is_valid_id(project_id):
                raise ValidationError("Please use a valid project ID")
            filters = {
                "user": owner,
                "project_id": project_id,
                "search": query.search,
                "favourite": favourite,
                "is_global": is_global,
                "bucket": bucket,
            }
            total = await self._files.count_files(**filters)
            rows = await self._files.find_files(**filters, **query.page)
        return total, FILE_SCHEMA.to_json_list(rows, query.verbose)

    async def update_file(self, owner: str, file_id: str, payload: dict) -> int:
        with wrap_errors("Could not update file details", sep=": "):
            if not is_valid_id(file_id):
                raise ValidationError("Please use a valid object id")
            fields = FILE_SCHEMA.validate(payload, partial=True)
            return await self._files.update_file(file_id, owner, fields)

    async def register_upload(self, owner: str, meta: dict) -> bool:
        """Record an uploaded file. Re-delivered uploads are no-ops."""
        fields = FILE_SCHEMA.validate(meta)
        if not fields.get("identifier"):
            raise ValidationError("identifier is required")
        fields["username"] = owner
        row = await self._files.create_file(fields)
        if row is not None:
            logger.info("Registered file %s for %s", fields["identifier"], owner)
        return row is not None

    async def remove_upload(self, identifier: str) -> int:
        return await self._files.delete_by_identifier(identifier)

    async def remove_by_user(self, user: str) -> int:
        return await self._files.delete_by_user(user)
