"""Authentication service - handles login (Lobby Pattern)."""

from uuid import UUID

from src.crm.core.config import get_settings
from src.crm.core.logging import get_logger
from src.crm.core.security import (
    DUMMY_PASSWORD_HASH,
    create_access_token,
    verify_password,
)
from src.crm.repositories import MembershipRepository, UserRepository
from src.crm.schemas.auth import LoginResponse

logger = get_logger(__name__)


class AuthService:
    """Authentication service.

    Lobby Pattern: Users are centralized in the application database.
    Login validates membership in the requested tenant.
    """

    def __init__(
        self,
        user_repo: UserRepository,
        membership_repo: MembershipRepository,
        tenant_id: UUID,
    ):
        self.user_repo = user_repo
        self.membership_repo = membership_repo
        self.tenant_id = tenant_id

    async def authenticate(self, email: str, password: str) -> LoginResponse | None:
        """Authenticate user and return an access token.

        Validates:
        1. User exists
        2. Password is correct
        3. User is active
        4. User has active membership in the tenant

        Returns None if authentication fails.
        """
        user = await self.user_repo.get_by_email(email)

        # Always verify a hash so response time does not reveal whether the email exists
        password_hash = user.hashed_password if user else DUMMY_PASSWORD_HASH
        password_valid = verify_password(password, password_hash)

        if user is None or not password_valid:
            return None

        if not user.is_active:
            return None

        if not await self.membership_repo.user_has_active_membership(user.id, self.tenant_id):
            logger.info("Login rejected: no membership", user_id=str(user.id))
            return None

        settings = get_settings()
        return LoginResponse(
            access_token=create_access_token(user.id, self.tenant_id),
            expires_in=settings.access_token_expire_minutes * 60,
        )
