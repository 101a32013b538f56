from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from src.database import get_db
from src.auth.utils import verify_token
from src.auth.service import UserService
from src.auth.schemas import Role
from src.exceptions import Unauthorized, Forbidden

security = HTTPBearer(auto_error=False)

def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
):
    """Get current authenticated user"""
    if credentials is None:
        raise Unauthorized("Authentication required")
    
    credentials_exception = Unauthorized()
    token_data = verify_token(credentials.credentials, credentials_exception)
    
    user = UserService.get_user_by_id(db, user_id=token_data["user_id"])
    if user is None:
        raise credentials_exception
    
    return user

def require_role(role: Role):
    """Build a dependency that only lets accounts with ``role`` through"""
    def role_checker(current_user = Depends(get_current_user)):
        if current_user.role != role.value:
            raise Forbidden(f"{role.value.title()} access required")
        return current_user
    return role_checker

get_current_admin_user = require_role(Role.ADMIN)
get_current_customer = require_role(Role.USER)
