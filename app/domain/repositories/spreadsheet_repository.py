"""
Spreadsheet File Repository Interface.
"""

from typing import List, Optional

from app.domain.repositories.base import BaseRepository
from app.domain.models.spreadsheet_file import SpreadsheetFile
from app.domain.schemas.spreadsheet import WorksheetSummary


class SpreadsheetFileRepository(BaseRepository[SpreadsheetFile]):
    """Interface for uploaded-spreadsheet persistence."""

    def list_by_owner(self, owner_id: int, status: Optional[str] = None, limit: int = 50) -> List[SpreadsheetFile]:
        """Owner's files, newest first, optionally filtered by status."""
        ...

    def list_all(self, status: Optional[str] = None, limit: int = 50) -> List[SpreadsheetFile]:
        """All files, newest first, optionally filtered by status."""
        ...

    def mark_completed(self, file: SpreadsheetFile, worksheets: List[WorksheetSummary], metadata: dict) -> SpreadsheetFile:
        """Store worksheet summaries and metadata; status becomes 'completed'."""
        ...

    def mark_error(self, file: SpreadsheetFile, message: str) -> SpreadsheetFile:
        """Record a terminal processing error; status becomes 'error'."""
        ...
