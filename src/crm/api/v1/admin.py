"""Admin API endpoints (superuser only)."""

from fastapi import APIRouter, status

from src.crm.api.dependencies import DataSources, SuperUser, TenantServiceDep
from src.crm.core.logging import get_logger
from src.crm.schemas.data_source import CacheStatsRead, DataSourceMigrationRead

logger = get_logger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get(
    "/data-sources/cache",
    response_model=CacheStatsRead,
    summary="Data source cache statistics",
    responses={
        200: {
            "description": "Current cache sizes",
            "content": {
                "application/json": {
                    "example": {
                        "config_cache_size": 12,
                        "client_cache_size": 14,
                        "engine_count": 3,
                    }
                }
            },
        },
        401: {"description": "Not authenticated"},
        403: {"description": "Superuser privileges required"},
    },
)
async def get_cache_stats(manager: DataSources, _user: SuperUser) -> CacheStatsRead:
    return CacheStatsRead.model_validate(manager.get_cache_stats())


@router.delete(
    "/data-sources/cache",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Clear data source caches",
    description=(
        "Forget every cached tenant config and client. Engines no longer "
        "referenced are disposed by the next cleanup pass."
    ),
)
async def clear_cache(manager: DataSources, user: SuperUser) -> None:
    manager.clear_all_caches()
    logger.info("Data source caches cleared by admin", user_id=str(user.id))


@router.post(
    "/data-sources/migrate",
    response_model=DataSourceMigrationRead,
    summary="Migrate every data source",
    responses={
        403: {"description": "Superuser privileges required"},
        500: {"description": "The shared data source could not be migrated"},
    },
)
async def migrate_data_sources(
    service: TenantServiceDep, user: SuperUser
) -> DataSourceMigrationRead:
    """Upgrade the shared data source, then each distinct dedicated one.

    Failures on dedicated data sources are listed in the response rather than
    aborting the run.
    """
    logger.info("Data source migration requested", user_id=str(user.id))
    return await service.migrate_data_sources()
