"""Repository for UserTenantMembership entity."""

from uuid import UUID

from sqlmodel import select

from src.crm.models.enums import MembershipRole
from src.crm.models.public import User, UserTenantMembership
from src.crm.repositories.base import BaseRepository, Page


class MembershipRepository(BaseRepository[UserTenantMembership]):
    """Repository for user-tenant memberships in public schema."""

    model = UserTenantMembership

    async def get_membership(
        self, user_id: UUID, tenant_id: UUID
    ) -> UserTenantMembership | None:
        """Get membership for a user in a tenant, active or not."""
        result = await self.session.execute(
            select(UserTenantMembership).where(
                UserTenantMembership.user_id == user_id,
                UserTenantMembership.tenant_id == tenant_id,
            )
        )
        return result.scalar_one_or_none()

    async def get_active_membership(
        self, user_id: UUID, tenant_id: UUID
    ) -> UserTenantMembership | None:
        result = await self.session.execute(
            select(UserTenantMembership).where(
                UserTenantMembership.user_id == user_id,
                UserTenantMembership.tenant_id == tenant_id,
                UserTenantMembership.is_active == True,  # noqa: E712
            )
        )
        return result.scalar_one_or_none()

    async def user_has_active_membership(self, user_id: UUID, tenant_id: UUID) -> bool:
        membership = await self.get_active_membership(user_id, tenant_id)
        return membership is not None

    async def list_members_paginated(
        self, tenant_id: UUID, cursor: str | None, limit: int
    ) -> tuple[list[tuple[User, UserTenantMembership]], str | None, bool]:
        """Page through a tenant's active members, newest user first."""
        query = (
            select(User)
            .join(
                UserTenantMembership,
                User.id == UserTenantMembership.user_id,  # type: ignore[arg-type]
            )
            .where(
                UserTenantMembership.tenant_id == tenant_id,
                UserTenantMembership.is_active == True,  # noqa: E712
            )
        )
        users, next_cursor, has_more = await self.paginate(query, cursor, limit, User)
        if not users:
            return [], next_cursor, has_more

        result = await self.session.execute(
            select(UserTenantMembership).where(
                UserTenantMembership.tenant_id == tenant_id,
                UserTenantMembership.user_id.in_([u.id for u in users]),  # type: ignore[attr-defined]
            )
        )
        memberships = {m.user_id: m for m in result.scalars().all()}
        return [(u, memberships[u.id]) for u in users], next_cursor, has_more

    def create_membership(
        self,
        user_id: UUID,
        tenant_id: UUID,
        role: str = MembershipRole.USER.value,
    ) -> UserTenantMembership:
        """Create a new membership (add to session, no commit)."""
        membership = UserTenantMembership(
            user_id=user_id,
            tenant_id=tenant_id,
            role=role,
        )
        self.session.add(membership)
        return membership
