"""Repository for User entity."""

from sqlmodel import select

from src.crm.models.public import User
from src.crm.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Repository for User entity in public schema (Lobby Pattern)."""

    model = User

    async def get_by_email(self, email: str) -> User | None:
        """Get user by email address. Emails are compared case-insensitively."""
        result = await self.session.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()

    async def exists_by_email(self, email: str) -> bool:
        user = await self.get_by_email(email)
        return user is not None
