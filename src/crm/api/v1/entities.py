"""Generic tenant-scoped CRUD routes, one router per registered entity."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.exc import IntegrityError

from src.crm.api.dependencies import TenantContext, require_permission
from src.crm.core.exceptions import ConflictError, NotFoundError
from src.crm.repositories.data import TenantScopedRepository
from src.crm.schemas.pagination import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, PaginatedResponse
from src.crm.services.entities import ENTITIES, EntityConfig, WriteScope


def _repository(config: EntityConfig, ctx: TenantContext) -> TenantScopedRepository[Any]:
    return TenantScopedRepository(
        ctx.session, ctx.data_source_tenant_id, config.model, config.search_fields
    )


def _scope(ctx: TenantContext) -> WriteScope:
    return WriteScope(ctx.session, ctx.data_source_tenant_id, ctx.user_id)


def parse_filters(config: EntityConfig, request: Request) -> dict[str, Any]:
    """Equality filters from the query string, typed like their columns."""
    filters: dict[str, Any] = {}
    for param, column in config.filter_fields.items():
        raw = request.query_params.get(param)
        if not raw:
            continue
        try:
            python_type = getattr(config.model, column).type.python_type
        except NotImplementedError:
            python_type = str
        try:
            filters[column] = python_type(raw)
        except ValueError as e:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Invalid value for '{param}'",
            ) from e
    return filters


@asynccontextmanager
async def _transaction(ctx: TenantContext, config: EntityConfig) -> AsyncGenerator[None]:
    """Commit on success; roll back on any error. Constraint violations become 409."""
    try:
        yield
        await ctx.session.commit()
    except IntegrityError as e:
        await ctx.session.rollback()
        raise ConflictError(f"{config.label} conflicts with existing data") from e
    except Exception:
        await ctx.session.rollback()
        raise


def build_entity_router(config: EntityConfig) -> APIRouter:
    router = APIRouter(prefix=f"/{config.name}", tags=[config.name])
    module = config.permission_module
    CreateSchema: Any = config.create_schema
    UpdateSchema: Any = config.update_schema
    ReadSchema: Any = config.read_schema

    CanView = Annotated[TenantContext, Depends(require_permission(module, "view"))]
    CanCreate = Annotated[TenantContext, Depends(require_permission(module, "create"))]
    CanEdit = Annotated[TenantContext, Depends(require_permission(module, "edit"))]
    CanDelete = Annotated[TenantContext, Depends(require_permission(module, "delete"))]

    async def load(ctx: TenantContext, entity_id: UUID) -> Any:
        entity = await _repository(config, ctx).get(entity_id)
        if entity is None:
            raise NotFoundError(f"{config.label} not found")
        return entity

    @router.get(
        "",
        response_model=PaginatedResponse[ReadSchema],
        summary=f"List {config.name}",
        description=(
            f"Newest first. Filters: {', '.join(config.filter_fields) or 'none'}."
        ),
    )
    async def list_entities(
        request: Request,
        ctx: CanView,
        cursor: Annotated[str | None, Query(description="Cursor for pagination")] = None,
        limit: Annotated[
            int, Query(ge=1, le=MAX_PAGE_SIZE, description="Max items to return")
        ] = DEFAULT_PAGE_SIZE,
        search: Annotated[str | None, Query(max_length=200)] = None,
    ) -> Any:
        items, next_cursor, has_more = await _repository(config, ctx).list(
            cursor=cursor,
            limit=limit,
            search=search,
            filters=parse_filters(config, request),
        )
        return PaginatedResponse(
            items=[ReadSchema.model_validate(item) for item in items],
            next_cursor=next_cursor,
            has_more=has_more,
        )

    @router.get(
        "/{entity_id}",
        response_model=ReadSchema,
        summary=f"Get {config.label}",
        responses={404: {"description": f"{config.label} not found"}},
    )
    async def get_entity(entity_id: UUID, ctx: CanView) -> Any:
        return ReadSchema.model_validate(await load(ctx, entity_id))

    @router.post(
        "",
        response_model=ReadSchema,
        status_code=status.HTTP_201_CREATED,
        summary=f"Create {config.label}",
        responses={409: {"description": "Conflicts with existing data"}},
    )
    async def create_entity(body: CreateSchema, ctx: CanCreate) -> Any:
        values = {**config.defaults, **body.model_dump(exclude_none=True)}
        scope = _scope(ctx)
        async with _transaction(ctx, config):
            if config.prepare_create is not None:
                await config.prepare_create(scope, values)
            entity = _repository(config, ctx).create(values, ctx.user_id)
            await ctx.session.flush()
            if config.after_change is not None:
                await config.after_change(scope, entity, None)
        await ctx.session.refresh(entity)
        return ReadSchema.model_validate(entity)

    @router.patch(
        "/{entity_id}",
        response_model=ReadSchema,
        summary=f"Update {config.label}",
        responses={404: {"description": f"{config.label} not found"}},
    )
    async def update_entity(entity_id: UUID, body: UpdateSchema, ctx: CanEdit) -> Any:
        entity = await load(ctx, entity_id)
        previous = entity.model_dump()
        values = body.model_dump(exclude_unset=True)
        scope = _scope(ctx)
        async with _transaction(ctx, config):
            if config.prepare_update is not None:
                await config.prepare_update(scope, entity, values)
            await _repository(config, ctx).update(entity_id, values, ctx.user_id)
            await ctx.session.flush()
            if config.after_change is not None:
                await config.after_change(scope, entity, previous)
        await ctx.session.refresh(entity)
        return ReadSchema.model_validate(entity)

    @router.delete(
        "/{entity_id}",
        status_code=status.HTTP_204_NO_CONTENT,
        summary=f"Delete {config.label}",
        responses={404: {"description": f"{config.label} not found"}},
    )
    async def delete_entity(entity_id: UUID, ctx: CanDelete) -> None:
        entity = await load(ctx, entity_id)
        previous = entity.model_dump()
        async with _transaction(ctx, config):
            await ctx.session.delete(entity)
            await ctx.session.flush()
            if config.after_change is not None:
                await config.after_change(_scope(ctx), None, previous)

    return router


def build_entity_routers() -> list[APIRouter]:
    return [build_entity_router(config) for config in ENTITIES]
