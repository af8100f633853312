"""Service wiring.

Every service receives its collaborators explicitly; the stores default
to the asyncpg repo modules.  The application builds one registry at
startup and routes reach it through ``request.app.state.services``.
Tests build their own registry around in-memory stores.
"""

from dataclasses import dataclass

from app_engine.clients import users_client as default_users_client
from app_engine.repos import (
    build_repo,
    file_repo,
    plugin_repo,
    project_repo,
    resource_repo,
    user_details_repo,
)
from app_engine.schema.models import RESOURCE_SCHEMAS
from app_engine.services.build_service import BuildLifecycle
from app_engine.services.event_service import IdentityEventHandler
from app_engine.services.file_service import FileService
from app_engine.services.permission_service import PermissionEvaluator
from app_engine.services.plugin_service import PluginService
from app_engine.services.project_service import ProjectOrchestrator
from app_engine.services.quota_service import QuotaChecker
from app_engine.services.resource_service import ResourceService
from app_engine.services.user_details_service import UserDetailsService


@dataclass
class Services:
    permissions: PermissionEvaluator
    quota: QuotaChecker
    builds: BuildLifecycle
    projects: ProjectOrchestrator
    resources: dict[str, ResourceService]
    plugins: PluginService
    user_details: UserDetailsService
    files: FileService
    events: IdentityEventHandler


def build_services(
    *,
    project_store=project_repo,
    build_store=build_repo,
    resource_store=resource_repo,
    plugin_store=plugin_repo,
    user_details_store=user_details_repo,
    file_store=file_repo,
    users_client=default_users_client,
) -> Services:
    permissions = PermissionEvaluator(project_store)
    quota = QuotaChecker(user_details_store, project_store)
    builds = BuildLifecycle(build_store, project_store)
    projects = ProjectOrchestrator(
        builds=builds,
        permissions=permissions,
        quota=quota,
        projects=project_store,
    )
    user_details = UserDetailsService(user_details_store, users_client)
    files = FileService(file_store)
    return Services(
        permissions=permissions,
        quota=quota,
        builds=builds,
        projects=projects,
        resources={
            kind: ResourceService(kind, schema, resource_store)
            for kind, schema in RESOURCE_SCHEMAS.items()
        },
        plugins=PluginService(plugin_store),
        user_details=user_details,
        files=files,
        events=IdentityEventHandler(
            user_details=user_details,
            projects=projects,
            builds=builds,
            files=files,
        ),
    )
