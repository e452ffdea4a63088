"""
API Dependencies — repositories, storage and the ingestion orchestrator.
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from app.config import get_settings
from app.application.services.ingestion_orchestrator import IngestionOrchestrator
from app.domain.models.analytics_record import AnalyticsRecord
from app.domain.models.spreadsheet_file import SpreadsheetFile
from app.domain.repositories.analytics_repository import AnalyticsRepository
from app.domain.repositories.spreadsheet_repository import SpreadsheetFileRepository
from app.infrastructure.database import get_db
from app.infrastructure.repositories.analytics_repository import SQLAlchemyAnalyticsRepository
from app.infrastructure.repositories.spreadsheet_repository import SQLAlchemySpreadsheetFileRepository
from app.infrastructure.storage import FileStorage, LocalFileStorage

settings = get_settings()


def get_storage() -> FileStorage:
    """Binary storage for uploaded workbooks."""
    return LocalFileStorage(settings.UPLOAD_DIR)


def get_file_repository(db: Session = Depends(get_db)) -> SpreadsheetFileRepository:
    return SQLAlchemySpreadsheetFileRepository(db, SpreadsheetFile)


def get_analytics_repository(db: Session = Depends(get_db)) -> AnalyticsRepository:
    return SQLAlchemyAnalyticsRepository(db, AnalyticsRecord)


def get_orchestrator(
    files: SpreadsheetFileRepository = Depends(get_file_repository),
    analytics: AnalyticsRepository = Depends(get_analytics_repository),
    storage: FileStorage = Depends(get_storage),
) -> IngestionOrchestrator:
    return IngestionOrchestrator(files=files, analytics=analytics, storage=storage)
