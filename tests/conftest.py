"""Shared fixtures: in-memory SQLite, temp storage, workbook builders."""

import os

# Must be set before any app module reads settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ.setdefault("ENVIRONMENT", "test")

from io import BytesIO
from pathlib import Path
from typing import Optional

import openpyxl
import pytest

from app.infrastructure.database import Base, SessionLocal, engine
from app.domain.models.user import User
from app.domain.models.spreadsheet_file import SpreadsheetFile
from app.domain.models.analytics_record import AnalyticsRecord
from app.domain.schemas.auth import Identity
from app.infrastructure.storage import LocalFileStorage
from app.infrastructure.repositories.analytics_repository import SQLAlchemyAnalyticsRepository
from app.infrastructure.repositories.spreadsheet_repository import SQLAlchemySpreadsheetFileRepository
from app.application.services.ingestion_orchestrator import IngestionOrchestrator


def build_workbook(sheets: dict, creator: Optional[str] = None) -> bytes:
    """Serialize {sheet name: rows} into .xlsx bytes, sheets in dict order."""
    workbook = openpyxl.Workbook()
    workbook.remove(workbook.active)
    for name, rows in sheets.items():
        sheet = workbook.create_sheet(title=name)
        for row in rows:
            sheet.append(list(row))
    if creator is not None:
        workbook.properties.creator = creator
    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


SALES_ROWS = [
    ["Region", "Sales"],
    ["East", 100],
    ["West", 200],
    ["East", 50],
]

# Legacy BIFF8 workbook holding SALES_ROWS on a sheet named "Sales"
SALES_XLS = Path(__file__).parent / "fixtures" / "sales.xls"


@pytest.fixture
def sales_workbook() -> bytes:
    return build_workbook({"Sales": SALES_ROWS})


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


def _make_user(db, email: str, role: str = "user") -> User:
    # Tests do not log in through these accounts, so skip bcrypt
    user = User(name=email.split("@")[0], email=email, password_hash="not-a-hash", role=role)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def owner(db) -> User:
    return _make_user(db, "owner@example.com")


@pytest.fixture
def other_user(db) -> User:
    return _make_user(db, "other@example.com")


@pytest.fixture
def admin_user(db) -> User:
    return _make_user(db, "root@example.com", role="admin")


@pytest.fixture
def owner_identity(owner) -> Identity:
    return Identity.model_validate(owner)


@pytest.fixture
def other_identity(other_user) -> Identity:
    return Identity.model_validate(other_user)


@pytest.fixture
def admin_identity(admin_user) -> Identity:
    return Identity.model_validate(admin_user)


@pytest.fixture
def storage(tmp_path) -> LocalFileStorage:
    return LocalFileStorage(tmp_path / "uploads")


@pytest.fixture
def file_repo(db):
    return SQLAlchemySpreadsheetFileRepository(db, SpreadsheetFile)


@pytest.fixture
def analytics_repo(db):
    return SQLAlchemyAnalyticsRepository(db, AnalyticsRecord)


@pytest.fixture
def orchestrator(file_repo, analytics_repo, storage) -> IngestionOrchestrator:
    return IngestionOrchestrator(files=file_repo, analytics=analytics_repo, storage=storage)
