"""Tenant membership management."""

from collections.abc import Mapping, Sequence
from typing import Any
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.crm.core.exceptions import BusinessRuleError, ConflictError, NotFoundError
from src.crm.core.logging import get_logger
from src.crm.core.permissions import is_known_role
from src.crm.core.security import hash_password
from src.crm.models.public import User, UserTenantMembership
from src.crm.repositories import MembershipRepository, UserRepository
from src.crm.schemas.user import MemberCreate

logger = get_logger(__name__)

Member = tuple[User, UserTenantMembership]


class UserService:
    """Members of one tenant. Users themselves are shared across tenants."""

    def __init__(
        self,
        user_repo: UserRepository,
        membership_repo: MembershipRepository,
        session: AsyncSession,
        tenant_id: UUID,
        custom_roles: Sequence[Mapping[str, Any]] | None = None,
    ):
        self.user_repo = user_repo
        self.membership_repo = membership_repo
        self.session = session
        self.tenant_id = tenant_id
        self.custom_roles = custom_roles or []

    def _check_role(self, role: str) -> None:
        if not is_known_role(role, self.custom_roles):
            raise BusinessRuleError(f"Unknown role '{role}'")

    async def list_members(
        self, cursor: str | None, limit: int
    ) -> tuple[list[Member], str | None, bool]:
        return await self.membership_repo.list_members_paginated(self.tenant_id, cursor, limit)

    async def get_member(self, user_id: UUID) -> Member:
        membership = await self.membership_repo.get_active_membership(user_id, self.tenant_id)
        user = await self.user_repo.get_by_id(user_id) if membership else None
        if membership is None or user is None:
            raise NotFoundError("Member not found")
        return user, membership

    async def add_member(self, data: MemberCreate) -> Member:
        """Attach a user to the tenant, creating the user if the email is new."""
        self._check_role(data.role)

        try:
            user = await self.user_repo.get_by_email(data.email)
            if user is None:
                if not data.password or not data.full_name:
                    raise BusinessRuleError(
                        "full_name and password are required to create a new user"
                    )
                user = User(
                    email=data.email.lower(),
                    full_name=data.full_name,
                    hashed_password=hash_password(data.password),
                )
                self.user_repo.add(user)
                await self.session.flush()

            membership = await self.membership_repo.get_membership(user.id, self.tenant_id)
            if membership is not None and membership.is_active:
                raise ConflictError("User is already a member of this tenant")
            if membership is not None:
                membership.is_active = True
                membership.role = data.role
                self.session.add(membership)
            else:
                membership = self.membership_repo.create_membership(
                    user.id, self.tenant_id, data.role
                )

            await self.session.commit()
            await self.session.refresh(user)
        except IntegrityError as e:
            await self.session.rollback()
            raise ConflictError("User is already a member of this tenant") from e
        except Exception:
            await self.session.rollback()
            raise

        logger.info("Member added", user_id=str(user.id), role=data.role)
        return user, membership

    async def update_role(self, user_id: UUID, role: str) -> Member:
        self._check_role(role)
        user, membership = await self.get_member(user_id)
        try:
            membership.role = role
            self.session.add(membership)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        logger.info("Member role changed", user_id=str(user_id), role=role)
        return user, membership

    async def remove_member(self, user_id: UUID, acting_user_id: UUID) -> None:
        """Deactivate the membership. The user row stays for other tenants."""
        if user_id == acting_user_id:
            raise BusinessRuleError("You cannot remove yourself from the tenant")
        _, membership = await self.get_member(user_id)
        try:
            membership.is_active = False
            self.session.add(membership)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        logger.info("Member removed", user_id=str(user_id))
