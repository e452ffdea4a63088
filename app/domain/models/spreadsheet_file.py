"""Uploaded spreadsheet — maps to the 'spreadsheet_files' and 'worksheets' tables."""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.infrastructure.database import Base

XLS_MIME = "application/vnd.ms-excel"
XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
SPREADSHEET_MIME_TYPES = (XLS_MIME, XLSX_MIME)


class FileStatus:
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


class SpreadsheetFile(Base):
    __tablename__ = "spreadsheet_files"

    id = Column(Integer, primary_key=True, autoincrement=True)
    filename = Column(String(500), nullable=False)
    original_name = Column(String(500), nullable=False)
    storage_path = Column(String(1000), nullable=False)
    file_size = Column(Integer, nullable=False)
    mime_type = Column(String(100), nullable=False)
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    status = Column(String(50), nullable=False, default=FileStatus.PROCESSING, index=True)
    processing_error = Column(String(1000), nullable=True)

    # Aggregate metadata, populated only on successful ingestion
    total_rows = Column(Integer, nullable=True)
    total_columns = Column(Integer, nullable=True)
    worksheet_count = Column(Integer, nullable=True)
    source_created_at = Column(DateTime(timezone=True), nullable=True)
    source_modified_at = Column(DateTime(timezone=True), nullable=True)
    author = Column(String(255), nullable=True)

    tags = Column(JSON, nullable=False, default=list)
    description = Column(String(500), nullable=True)
    is_public = Column(Boolean, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    owner = relationship("User", back_populates="files")
    worksheets = relationship(
        "Worksheet",
        back_populates="file",
        order_by="Worksheet.position",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def file_metadata(self) -> dict | None:
        if self.worksheet_count is None:
            return None
        return {
            "total_rows": self.total_rows,
            "total_columns": self.total_columns,
            "worksheet_count": self.worksheet_count,
            "created_date": self.source_created_at,
            "modified_date": self.source_modified_at,
            "author": self.author,
        }

    def __repr__(self):
        return f"<SpreadsheetFile {self.original_name} ({self.status})>"


class Worksheet(Base):
    __tablename__ = "worksheets"
    __table_args__ = (UniqueConstraint("file_id", "name", name="uq_worksheet_file_name"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    file_id = Column(Integer, ForeignKey("spreadsheet_files.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    name = Column(String(255), nullable=False)
    row_count = Column(Integer, nullable=False)
    column_count = Column(Integer, nullable=False)
    columns = Column(JSON, nullable=False, default=list)  # header strings

    file = relationship("SpreadsheetFile", back_populates="worksheets")

    def __repr__(self):
        return f"<Worksheet {self.name} {self.row_count}x{self.column_count}>"
