from pydantic_settings import BaseSettings
from typing import List

class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite:///./bus_fleet.db"
    
    # Security
    SECRET_KEY: str = "change-me-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 7 * 24 * 60
    MAX_LOGIN_ATTEMPTS: int = 5
    LOCK_TIME_MINUTES: int = 120
    
    # Application
    PROJECT_NAME: str = "Bus Fleet Management System"
    API_PREFIX: str = "/api"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = ["*"]
    
    # Drivers
    LICENSE_WARNING_DAYS: int = 30
    DEFAULT_PROFILE_PHOTO: str = "https://i.pravatar.cc/150"
    
    # File Upload
    UPLOAD_DIR: str = "uploads"
    UPLOAD_URL_PREFIX: str = "/uploads"
    MAX_PHOTO_SIZE: int = 5 * 1024 * 1024
    ALLOWED_PHOTO_TYPES: List[str] = ["image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp"]
    
    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")
    
    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"

settings = Settings()
