from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
from inventory_portal.config import settings
from inventory_portal.database import get_db
from inventory_portal.exceptions import AuthenticationError
from inventory_portal.extensions import limiter
from inventory_portal.middleware.rbac import get_current_user
from inventory_portal.models.user import User
from inventory_portal.schemas.auth import LoginRequest, Token
from inventory_portal.schemas.common import dump, envelope
from inventory_portal.schemas.user import UserResponse
from inventory_portal.services.auth import authenticate_user, token_for
import logging

router = APIRouter(prefix="/api/auth", tags=["Authentication"])
logger = logging.getLogger(__name__)


def get_client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


@router.post("/login")
@limiter.limit(settings.RATE_LIMIT_LOGIN)
async def login(
    request: Request,
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    source_ip = get_client_ip(request)
    user, error = await authenticate_user(db, payload.username, payload.password)
    if not user:
        logger.warning("Login failed for %s from %s: %s", payload.username, source_ip, error)
        raise AuthenticationError(error or "Invalid credentials")

    logger.info("Login success for %s from %s", user.username, source_ip)
    token = Token(
        token=token_for(user),
        expires_in=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        user=UserResponse.model_validate(user),
    )
    return envelope(dump(token), "Login successful")


@router.get("/me")
async def get_me(current_user: User = Depends(get_current_user)):
    return envelope({"user": dump(UserResponse.model_validate(current_user))})


@router.post("/logout")
async def logout(request: Request, current_user: User = Depends(get_current_user)):
    # Tokens are stateless; the client discards its copy
    logger.info("Logout for %s from %s", current_user.username, get_client_ip(request))
    return envelope(message="Logged out successfully")
