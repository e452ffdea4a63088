"""FastAPI application — main entry point."""

import structlog
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import get_settings
from app.infrastructure.database import engine, Base
from app.core.logging import configure_logging
from app.core.middleware import setup_middleware
from app.core.exceptions import AppError, global_exception_handler

# Import all models so SQLAlchemy knows about them
from app.domain.models.user import User
from app.domain.models.spreadsheet_file import SpreadsheetFile, Worksheet
from app.domain.models.analytics_record import AnalyticsRecord

# Import routers
from app.interfaces.api.auth import router as auth_router
from app.interfaces.api.files import router as files_router
from app.interfaces.api.analytics import router as analytics_router

settings = get_settings()

# Configure logging immediately
configure_logging()
logger = structlog.get_logger(__name__)


def seed_default_admin() -> None:
    """Create the configured admin account if it does not exist yet."""
    from app.infrastructure.database import SessionLocal
    from app.application.services.auth_service import get_user_by_email, create_user

    db = SessionLocal()
    try:
        admin = get_user_by_email(db, settings.DEFAULT_ADMIN_EMAIL)
        if not admin:
            create_user(
                db,
                name="Admin",
                email=settings.DEFAULT_ADMIN_EMAIL,
                password=settings.DEFAULT_ADMIN_PASSWORD,
                role="admin",
            )
            logger.info("Default admin user created", email=settings.DEFAULT_ADMIN_EMAIL)
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan — startup and shutdown events."""
    logger.info("Starting Sheets Analytics API...", env=settings.ENVIRONMENT)

    # Create DB tables (dev only — use Alembic in production)
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created/verified")

    seed_default_admin()

    yield

    logger.info("Sheets Analytics API stopped")


app = FastAPI(
    title="Sheets Analytics API",
    description="Spreadsheet ingestion, worksheet data access and chart analytics",
    version="1.0.0",
    lifespan=lifespan,
)

# Setup Middleware (Correlation ID, Logging)
setup_middleware(app)

# Global Exception Handling
app.add_exception_handler(AppError, global_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)

# Added last so it wraps the logging and correlation-id middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth_router)
app.include_router(files_router)
app.include_router(analytics_router)


@app.get("/")
def root():
    return {
        "name": "Sheets Analytics API",
        "version": "1.0.0",
        "status": "running",
        "docs": "/docs",
    }


@app.get("/health")
def health():
    return {"status": "healthy"}
