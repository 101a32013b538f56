from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from src.config import settings

engine_kwargs = {
    "pool_pre_ping": True,
    "echo": settings.DEBUG
}

# SQLite connections are shared across the threadpool FastAPI runs sync routes in
if settings.is_sqlite:
    engine_kwargs["connect_args"] = {"check_same_thread": False}

engine = create_engine(settings.DATABASE_URL, **engine_kwargs)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

def get_db():
    """Database session dependency"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def init_db():
    """Create all tables that do not exist yet"""
    # Models must be imported so they register on Base.metadata
    from src import models  # noqa: F401
    Base.metadata.create_all(bind=engine)
