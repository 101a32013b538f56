from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from src.database import get_db
from src.auth.schemas import UserCreate, User, LoginRequest, AuthResponse, Role
from src.auth.service import UserService
from src.auth.utils import create_access_token
from src.auth.dependencies import require_role
from src.exceptions import Forbidden

def build_auth_router(role: Role) -> APIRouter:
    """Auth endpoints bound to one role; mounted once per role"""
    router = APIRouter()
    current_account = require_role(role)
    
    @router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
    def register(user: UserCreate, db: Session = Depends(get_db)):
        """Register a new account"""
        if role != Role.USER:
            raise Forbidden("Admin accounts cannot be self-registered")
        
        db_user = UserService.create_user(db=db, user=user, role=role)
        token = create_access_token(data={"sub": str(db_user.id), "role": db_user.role})
        return AuthResponse(message="User registered successfully", token=token, user=db_user)
    
    @router.post("/login", response_model=AuthResponse)
    def login(login_data: LoginRequest, db: Session = Depends(get_db)):
        """Log in with email and password"""
        user = UserService.authenticate(db, login_data, role)
        token = create_access_token(data={"sub": str(user.id), "role": user.role})
        return AuthResponse(message="Login successful", token=token, user=user)
    
    @router.get("/me", response_model=User)
    def read_current_account(current_user = Depends(current_account)):
        """Get current account profile"""
        return current_user
    
    @router.post("/logout")
    def logout(current_user = Depends(current_account)):
        """Tokens are stateless; the client discards its copy"""
        return {"message": "Logout successful"}
    
    return router

router = build_auth_router(Role.USER)
admin_router = build_auth_router(Role.ADMIN)
