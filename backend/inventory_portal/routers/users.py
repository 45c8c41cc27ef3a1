from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from uuid import UUID
from inventory_portal.database import get_db
from inventory_portal.exceptions import (
    DuplicateKeyError, InvalidQueryError, MalformedIdError, NotFoundError, conflicting_field,
)
from inventory_portal.models.user import User
from inventory_portal.services.auth import hash_password
from inventory_portal.middleware.rbac import require_admin
from inventory_portal.schemas.common import dump, envelope
from inventory_portal.schemas.user import UserCreate, UserUpdate, UserResponse
import logging

router = APIRouter(prefix="/api/users", tags=["User Management"])
logger = logging.getLogger(__name__)


def _user_payload(user: User) -> dict:
    return {"user": dump(UserResponse.model_validate(user))}


async def _load_user(db: AsyncSession, user_id: str) -> User:
    try:
        uid = UUID(user_id)
    except ValueError:
        raise MalformedIdError("user")
    result = await db.execute(select(User).where(User.id == uid))
    user = result.scalar_one_or_none()
    if not user:
        raise NotFoundError("User")
    return user


async def _commit(db: AsyncSession) -> None:
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        field = conflicting_field(str(e.orig))
        if field:
            raise DuplicateKeyError(field) from e
        raise


@router.get("", dependencies=[Depends(require_admin())])
async def list_users(db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(User).order_by(User.created_at.asc()))
    users = result.scalars().all()
    return envelope({"users": [dump(UserResponse.model_validate(u)) for u in users]})


@router.post("", status_code=201)
async def create_user(
    payload: UserCreate,
    current_user: User = Depends(require_admin()),
    db: AsyncSession = Depends(get_db),
):
    existing = await db.execute(
        select(User).where(or_(User.username == payload.username, User.email == payload.email))
    )
    clash = existing.scalars().first()
    if clash:
        raise DuplicateKeyError("username" if clash.username == payload.username else "email")

    new_user = User(
        username=payload.username,
        email=payload.email,
        password_hash=hash_password(payload.password),
        role=payload.role,
        is_active=payload.is_active,
    )
    db.add(new_user)
    await _commit(db)
    await db.refresh(new_user)

    logger.info("User %s (%s) created by %s", new_user.username, new_user.role, current_user.username)
    return envelope(_user_payload(new_user), "User created successfully")


@router.get("/{user_id}", dependencies=[Depends(require_admin())])
async def get_user(user_id: str, db: AsyncSession = Depends(get_db)):
    user = await _load_user(db, user_id)
    return envelope(_user_payload(user))


@router.put("/{user_id}")
async def update_user(
    user_id: str,
    payload: UserUpdate,
    current_user: User = Depends(require_admin()),
    db: AsyncSession = Depends(get_db),
):
    user = await _load_user(db, user_id)

    # Unknown keys (password included) are dropped by the schema
    update_data = {k: v for k, v in payload.model_dump(exclude_unset=True).items() if v is not None}
    if user.id == current_user.id:
        if update_data.get("is_active") is False:
            raise InvalidQueryError("Cannot deactivate your own account")
        if update_data.get("role", user.role) != user.role:
            raise InvalidQueryError("Cannot change your own role")
    for field in ("username", "email"):
        if field in update_data and update_data[field] != getattr(user, field):
            clash = await db.execute(
                select(User.id).where(getattr(User, field) == update_data[field], User.id != user.id)
            )
            if clash.first():
                raise DuplicateKeyError(field)

    for key, value in update_data.items():
        setattr(user, key, value)
    await _commit(db)
    await db.refresh(user)

    logger.info("User %s updated by %s: %s", user.username, current_user.username, sorted(update_data))
    return envelope(_user_payload(user), "User updated successfully")


@router.put("/{user_id}/toggle-status")
async def toggle_status(
    user_id: str,
    current_user: User = Depends(require_admin()),
    db: AsyncSession = Depends(get_db),
):
    user = await _load_user(db, user_id)
    if user.id == current_user.id:
        raise InvalidQueryError("Cannot deactivate your own account")

    user.is_active = not user.is_active
    await db.commit()
    await db.refresh(user)

    logger.info("User %s set active=%s by %s", user.username, user.is_active, current_user.username)
    return envelope(_user_payload(user), "User status toggled successfully")


@router.delete("/{user_id}")
async def delete_user(
    user_id: str,
    current_user: User = Depends(require_admin()),
    db: AsyncSession = Depends(get_db),
):
    user = await _load_user(db, user_id)
    if user.id == current_user.id:
        raise InvalidQueryError("Cannot delete your own account")

    await db.delete(user)
    await db.commit()

    logger.info("User %s deleted by %s", user.username, current_user.username)
    return envelope(message="User deleted successfully")
