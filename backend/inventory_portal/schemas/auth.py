from pydantic import BaseModel
from typing import Optional
from inventory_portal.schemas.common import CamelModel
from inventory_portal.schemas.user import UserResponse


class LoginRequest(BaseModel):
    username: str
    password: str


class Token(CamelModel):
    token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse


class TokenData(BaseModel):
    user_id: Optional[str] = None
    username: Optional[str] = None
    role: Optional[str] = None
