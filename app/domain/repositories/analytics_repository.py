"""
Analytics Record Repository Interface.
"""

from typing import List, Optional

from app.domain.repositories.base import BaseRepository
from app.domain.models.analytics_record import AnalyticsRecord


class AnalyticsRepository(BaseRepository[AnalyticsRecord]):
    """Interface for saved-chart persistence."""

    def list_by_owner(
        self,
        owner_id: int,
        file_id: Optional[int] = None,
        chart_type: Optional[str] = None,
        limit: int = 50,
    ) -> List[AnalyticsRecord]:
        """Owner's analytics records, newest first."""
        ...

    def list_public(self, limit: int = 50) -> List[AnalyticsRecord]:
        """Publicly shared records, most viewed first."""
        ...

    def increment_views(self, record: AnalyticsRecord) -> AnalyticsRecord:
        """Bump the view counter (read-modify-write, last write wins)."""
        ...
