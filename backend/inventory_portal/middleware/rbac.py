from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from inventory_portal.database import get_db
from inventory_portal.exceptions import AuthenticationError, PermissionDeniedError
from inventory_portal.models.user import User, RoleEnum
from inventory_portal.services.auth import decode_token, get_user_by_id

security = HTTPBearer(auto_error=False)

ROLE_LABELS = {
    (RoleEnum.admin.value,): "Admin",
    (RoleEnum.admin.value, RoleEnum.ojt.value): "OJT or Admin",
}


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("No token provided, authorization denied")

    token_data = decode_token(credentials.credentials)

    user = await get_user_by_id(db, token_data.user_id)
    if not user:
        raise AuthenticationError("Token is not valid - user not found")
    if not user.is_active:
        raise AuthenticationError("User account is deactivated")
    return user


def require_roles(*roles: str):
    """Dependency factory: requires user to have one of the specified roles."""
    label = ROLE_LABELS.get(tuple(roles), " or ".join(roles))

    async def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            raise PermissionDeniedError(f"Access denied. {label} privileges required.")
        return current_user
    return role_checker


def require_admin():
    return require_roles(RoleEnum.admin.value)


def require_ojt_or_admin():
    return require_roles(RoleEnum.admin.value, RoleEnum.ojt.value)
