from datetime import timedelta
from typing import Optional, Tuple
from uuid import UUID
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update
from inventory_portal.clock import utcnow
from inventory_portal.config import settings
from inventory_portal.exceptions import AuthenticationError
from inventory_portal.models.user import User
from inventory_portal.schemas.auth import TokenData
import logging

logger = logging.getLogger(__name__)

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = utcnow() + (
        expires_delta or timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode.update({"exp": expire, "type": "access"})
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def token_for(user: User) -> str:
    return create_access_token({
        "sub": str(user.id),
        "username": user.username,
        "role": user.role,
    })


def decode_token(token: str) -> TokenData:
    """Decode an access token; raises AuthenticationError with the reason."""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except ExpiredSignatureError:
        raise AuthenticationError("Token has expired")
    except JWTError:
        raise AuthenticationError("Invalid token")
    user_id = payload.get("sub")
    if user_id is None or payload.get("type") != "access":
        raise AuthenticationError("Invalid token")
    return TokenData(user_id=user_id, username=payload.get("username"), role=payload.get("role"))


async def get_user_by_username(db: AsyncSession, username: str) -> Optional[User]:
    result = await db.execute(
        select(User).where(User.username == username.lower())
    )
    return result.scalar_one_or_none()


async def get_user_by_id(db: AsyncSession, user_id: str) -> Optional[User]:
    try:
        uid = UUID(str(user_id))
    except ValueError:
        return None
    result = await db.execute(select(User).where(User.id == uid))
    return result.scalar_one_or_none()


async def authenticate_user(
    db: AsyncSession, username: str, password: str
) -> Tuple[Optional[User], str]:
    """Returns (user, error_message). error_message is empty on success."""
    user = await get_user_by_username(db, username)

    if not user:
        return None, "Invalid credentials"

    if not verify_password(password, user.password_hash):
        return None, "Invalid credentials"

    # Deactivated accounts are refused even with valid credentials
    if not user.is_active:
        return None, "User account is deactivated"

    await db.execute(
        update(User)
        .where(User.id == user.id)
        .values(last_login=utcnow())
    )
    await db.commit()
    await db.refresh(user)
    return user, ""
