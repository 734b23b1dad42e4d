from fastapi import APIRouter

from src.crm.api.v1 import admin, auth, events, invoices, opportunities, tenants, users
from src.crm.api.v1.entities import build_entity_routers

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(tenants.router)
api_router.include_router(admin.router)
# Before the generic routes so /opportunities/stats is not read as an id
api_router.include_router(opportunities.router)
api_router.include_router(events.router)
api_router.include_router(invoices.router)
for entity_router in build_entity_routers():
    api_router.include_router(entity_router)
