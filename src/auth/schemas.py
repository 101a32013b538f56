from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import datetime
from enum import Enum

class Role(str, Enum):
    """Account role; also selects which auth mount accepts the account"""
    USER = "user"
    ADMIN = "admin"

class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    full_name: str = Field(..., min_length=1, max_length=255)
    phone: Optional[str] = None

class LoginRequest(BaseModel):
    email: EmailStr
    password: str

class User(BaseModel):
    id: int
    email: EmailStr
    full_name: str
    phone: Optional[str] = None
    role: Role
    created_at: datetime
    
    class Config:
        from_attributes = True

class AuthResponse(BaseModel):
    message: str
    token: str
    token_type: str = "bearer"
    user: User
