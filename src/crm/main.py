from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from src.crm.api.middlewares import setup_middlewares
from src.crm.api.v1.router import api_router
from src.crm.core.config import get_settings
from src.crm.core.db import dispose_engine
from src.crm.core.exceptions import setup_exception_handlers
from src.crm.core.health import setup_health_endpoint, setup_metrics
from src.crm.core.logging import get_logger, setup_logging
from src.crm.core.rate_limit import limiter
from src.crm.core.redis import close_redis
from src.crm.datasources import close_data_source_manager, get_data_source_manager

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    settings = get_settings()
    setup_logging(settings.debug)
    logger.info("Starting application", app_name=settings.app_name, env=settings.app_env)

    get_data_source_manager().start_cleanup_task()

    yield

    logger.info("Closing connections...")
    await close_data_source_manager()
    await close_redis()
    await dispose_engine()
    logger.info("Shutdown complete")


OPENAPI_TAGS = [
    {"name": "auth", "description": "Login and access tokens"},
    {"name": "users", "description": "Tenant members and roles"},
    {"name": "tenants", "description": "Tenant provisioning and data source configuration"},
    {"name": "admin", "description": "Superuser maintenance endpoints"},
    {"name": "accounts", "description": "Customer organizations"},
    {"name": "contacts", "description": "People at accounts"},
    {"name": "leads", "description": "Unqualified prospects"},
    {"name": "opportunities", "description": "Sales pipeline and conversion to events"},
    {"name": "quotes", "description": "Priced proposals"},
    {"name": "contracts", "description": "Signed agreements"},
    {"name": "events", "description": "Scheduled events, dates and staff"},
    {"name": "inventory-items", "description": "Equipment and stock"},
    {"name": "invoices", "description": "Billing documents, line items and payments"},
    {"name": "payments", "description": "Payments received"},
    {"name": "communications", "description": "Calls, emails and notes"},
]


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Multi-tenant CRM and event operations API",
        version="0.1.0",
        openapi_tags=OPENAPI_TAGS,
        lifespan=lifespan,
    )

    setup_exception_handlers(app)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)  # type: ignore[arg-type]

    setup_middlewares(app, settings)

    app.include_router(api_router)
    setup_metrics(app)
    setup_health_endpoint(app)

    return app


app = create_app()
