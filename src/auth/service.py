import logging
import math
from datetime import datetime, timedelta
from typing import Optional
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from src.models import User
from src.auth.schemas import UserCreate, LoginRequest, Role
from src.auth.utils import get_password_hash, verify_password
from src.config import settings
from src.exceptions import ValidationError, Unauthorized, Forbidden, Locked

logger = logging.getLogger(__name__)

class UserService:
    @staticmethod
    def get_user_by_email(db: Session, email: str) -> Optional[User]:
        """Get user by email"""
        return db.query(User).filter(User.email == email).first()
    
    @staticmethod
    def get_user_by_id(db: Session, user_id: int) -> Optional[User]:
        """Get user by ID"""
        return db.query(User).filter(User.id == user_id).first()
    
    @staticmethod
    def create_user(db: Session, user: UserCreate, role: Role = Role.USER) -> User:
        """Create a new account with the given role"""
        if UserService.get_user_by_email(db, user.email):
            raise ValidationError("User with this email already exists")
        
        db_user = User(
            email=user.email,
            password=get_password_hash(user.password),
            full_name=user.full_name,
            phone=user.phone,
            role=role.value
        )
        
        try:
            db.add(db_user)
            db.commit()
            db.refresh(db_user)
        except IntegrityError:
            db.rollback()
            raise ValidationError("User with this email already exists")
        
        logger.info("Registered %s account %s", role.value, db_user.email)
        return db_user
    
    @staticmethod
    def authenticate(
        db: Session,
        login_data: LoginRequest,
        role: Role,
        now: Optional[datetime] = None
    ) -> User:
        """Check credentials, applying the lockout policy and the mount's role"""
        now = now or datetime.now()
        invalid_credentials = Unauthorized("Invalid email or password")
        
        user = UserService.get_user_by_email(db, login_data.email)
        if not user:
            raise invalid_credentials
        
        if user.is_locked(now):
            seconds_left = (user.lock_until - now).total_seconds()
            raise Locked(max(1, math.ceil(seconds_left / 60)))
        
        if not verify_password(login_data.password, user.password):
            UserService.register_failed_attempt(db, user, now)
            raise invalid_credentials
        
        UserService.reset_login_attempts(db, user)
        
        if user.role != role.value:
            raise Forbidden(f"This login is restricted to {role.value} accounts")
        
        return user
    
    @staticmethod
    def register_failed_attempt(db: Session, user: User, now: datetime):
        """Count a failed password check and lock the account past the threshold"""
        # A lapsed lock starts a fresh attempt window
        if user.lock_until is not None and user.lock_until <= now:
            user.login_attempts = 1
            user.lock_until = None
        else:
            user.login_attempts = (user.login_attempts or 0) + 1
            if user.login_attempts >= settings.MAX_LOGIN_ATTEMPTS and not user.is_locked(now):
                user.lock_until = now + timedelta(minutes=settings.LOCK_TIME_MINUTES)
                logger.warning(
                    "Locked account %s after %d failed logins",
                    user.email, user.login_attempts
                )
        db.commit()
    
    @staticmethod
    def reset_login_attempts(db: Session, user: User):
        """Clear the attempt counter after a successful password check"""
        if user.login_attempts or user.lock_until is not None:
            user.login_attempts = 0
            user.lock_until = None
            db.commit()
