"""Authentication endpoints - Lobby Pattern."""

from fastapi import APIRouter, HTTPException, status
from starlette.requests import Request

from src.crm.api.dependencies import AuthServiceDep
from src.crm.core.config import get_settings
from src.crm.core.rate_limit import limiter
from src.crm.schemas.auth import LoginRequest, LoginResponse

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={
        200: {
            "description": "Successful authentication",
            "content": {
                "application/json": {
                    "example": {
                        "access_token": "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9...",
                        "token_type": "bearer",
                        "expires_in": 3600,
                    }
                }
            },
        },
        400: {"description": "X-Tenant-Slug header missing"},
        401: {"description": "Invalid credentials"},
        404: {"description": "Tenant not found"},
        503: {"description": "Tenant is still provisioning"},
    },
)
@limiter.limit(get_settings().login_rate_limit)
async def login(
    request: Request, login_data: LoginRequest, service: AuthServiceDep
) -> LoginResponse:
    """Authenticate and return an access token bound to the tenant.

    Requires X-Tenant-Slug header. User must have membership in the tenant.
    """
    result = await service.authenticate(login_data.email, login_data.password)
    if result is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials or no access to tenant",
        )
    return result
