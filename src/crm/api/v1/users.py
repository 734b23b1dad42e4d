"""Tenant member endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from src.crm.api.dependencies import (
    DBSession,
    MembershipRepo,
    TenantContext,
    TenantCtx,
    UserRepo,
    require_permission,
    user_service_for,
)
from src.crm.models.public import User
from src.crm.schemas.pagination import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, PaginatedResponse
from src.crm.schemas.user import CurrentUserRead, MemberCreate, MemberRead, MemberRoleUpdate

router = APIRouter(prefix="/users", tags=["users"])

CanViewUsers = Annotated[TenantContext, Depends(require_permission("users", "view"))]
CanCreateUsers = Annotated[TenantContext, Depends(require_permission("users", "create"))]
CanEditUsers = Annotated[TenantContext, Depends(require_permission("users", "edit"))]
CanDeleteUsers = Annotated[TenantContext, Depends(require_permission("users", "delete"))]


def _member(user: User, role: str) -> MemberRead:
    return MemberRead.model_validate({**user.model_dump(), "role": role})


@router.get(
    "/me",
    response_model=CurrentUserRead,
    responses={
        200: {
            "description": "Current user and their role in the tenant",
            "content": {
                "application/json": {
                    "example": {
                        "id": "550e8400-e29b-41d4-a716-446655440000",
                        "email": "user@example.com",
                        "full_name": "John Doe",
                        "is_active": True,
                        "is_superuser": False,
                        "created_at": "2024-01-15T10:30:00Z",
                        "tenant_id": "6fa459ea-ee8a-3ca4-894e-db77e160355e",
                        "role": "sales_rep",
                    }
                }
            },
        },
        401: {"description": "Not authenticated"},
    },
)
async def get_current_user(ctx: TenantCtx, session: DBSession) -> CurrentUserRead:
    """Get current authenticated user."""
    user = await session.get(User, ctx.user_id)
    return CurrentUserRead.model_validate(
        {**user.model_dump(), "tenant_id": ctx.tenant_id, "role": ctx.principal.role}  # type: ignore[union-attr]
    )


@router.get("", response_model=PaginatedResponse[MemberRead])
async def list_members(
    ctx: CanViewUsers,
    user_repo: UserRepo,
    membership_repo: MembershipRepo,
    session: DBSession,
    cursor: Annotated[str | None, Query(description="Cursor for pagination")] = None,
    limit: Annotated[
        int, Query(ge=1, le=MAX_PAGE_SIZE, description="Max items to return")
    ] = DEFAULT_PAGE_SIZE,
) -> PaginatedResponse[MemberRead]:
    service = user_service_for(ctx, user_repo, membership_repo, session)
    members, next_cursor, has_more = await service.list_members(cursor, limit)
    return PaginatedResponse(
        items=[_member(user, membership.role) for user, membership in members],
        next_cursor=next_cursor,
        has_more=has_more,
    )


@router.post(
    "",
    response_model=MemberRead,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Unknown role, or new user without password"},
        409: {"description": "Already a member"},
    },
)
async def add_member(
    data: MemberCreate,
    ctx: CanCreateUsers,
    user_repo: UserRepo,
    membership_repo: MembershipRepo,
    session: DBSession,
) -> MemberRead:
    """Add a member. An email without an account creates the user first."""
    service = user_service_for(ctx, user_repo, membership_repo, session)
    user, membership = await service.add_member(data)
    return _member(user, membership.role)


@router.patch(
    "/{user_id}/role",
    response_model=MemberRead,
    responses={400: {"description": "Unknown role"}, 404: {"description": "Member not found"}},
)
async def update_member_role(
    user_id: UUID,
    data: MemberRoleUpdate,
    ctx: CanEditUsers,
    user_repo: UserRepo,
    membership_repo: MembershipRepo,
    session: DBSession,
) -> MemberRead:
    service = user_service_for(ctx, user_repo, membership_repo, session)
    user, membership = await service.update_role(user_id, data.role)
    return _member(user, membership.role)


@router.delete(
    "/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"description": "Member not found"}},
)
async def remove_member(
    user_id: UUID,
    ctx: CanDeleteUsers,
    user_repo: UserRepo,
    membership_repo: MembershipRepo,
    session: DBSession,
) -> None:
    """Deactivate the member's membership in this tenant."""
    service = user_service_for(ctx, user_repo, membership_repo, session)
    await service.remove_member(user_id, ctx.user_id)
