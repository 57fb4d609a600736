from pydantic import BaseModel, EmailStr
from typing import FrozenSet, List, Optional
from datetime import datetime

class AppUser(BaseModel):
    """Normalized requester shape consumed by access checks"""
    id: str
    roles: FrozenSet[str] = frozenset()
    is_active: Optional[bool] = None

    class Config:
        frozen = True

class LoginRequest(BaseModel):
    email: EmailStr
    password: str

class UserProfile(BaseModel):
    id: str
    name: str
    email: EmailStr
    phone: Optional[str] = None
    is_active: bool = True
    roles: List[str] = []
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class AuthResponse(BaseModel):
    access_token: str
    token_type: str
    user: UserProfile

class TokenData(BaseModel):
    user_id: Optional[str] = None
