import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from fastapi.encoders import jsonable_encoder

from src.config import settings
from src.database import init_db
from src.exceptions import register_exception_handlers
from src.middleware import setup_middleware, configure_logging
from src.auth import router as auth_router
from src.buses import router as buses_router
from src.schedules import router as schedules_router
from src.drivers import router as drivers_router
from src.bookings import router as bookings_router
from src.public import router as public_router

configure_logging()
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("%s starting (%s)", settings.PROJECT_NAME, settings.ENVIRONMENT)
    init_db()
    yield
    logger.info("%s shutting down", settings.PROJECT_NAME)

# Create FastAPI app
app = FastAPI(
    title=settings.PROJECT_NAME,
    version="1.0.0",
    description="Bus fleet management and booking API",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

setup_middleware(app)
register_exception_handlers(app)

@app.exception_handler(RequestValidationError)
async def handle_request_validation_error(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": jsonable_encoder(exc.errors())}
    )

# Include routers
app.include_router(
    auth_router.router,
    prefix=f"{settings.API_PREFIX}/auth",
    tags=["Authentication"]
)

app.include_router(
    auth_router.admin_router,
    prefix=f"{settings.API_PREFIX}/admin/auth",
    tags=["Admin Authentication"]
)

app.include_router(
    buses_router.router,
    prefix=f"{settings.API_PREFIX}/buses",
    tags=["Buses"]
)

app.include_router(
    schedules_router,
    prefix=f"{settings.API_PREFIX}/schedules",
    tags=["Schedules"]
)

app.include_router(
    drivers_router,
    prefix=f"{settings.API_PREFIX}/drivers",
    tags=["Drivers"]
)

app.include_router(
    bookings_router,
    prefix=f"{settings.API_PREFIX}/bookings",
    tags=["Bookings"]
)

app.include_router(
    public_router,
    prefix=f"{settings.API_PREFIX}/public",
    tags=["Public"]
)

os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
app.mount(settings.UPLOAD_URL_PREFIX, StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")

@app.get("/")
def root():
    """Root endpoint"""
    return {
        "message": "Bus Management API is running!",
        "version": "1.0.0",
        "docs": "/docs"
    }

@app.get(f"{settings.API_PREFIX}/health")
def health_check():
    """Health check endpoint"""
    return {"status": "healthy"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
