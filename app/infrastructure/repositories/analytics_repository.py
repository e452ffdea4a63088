"""
SQLAlchemy Implementation of the Analytics Record Repository.
"""

from typing import List, Optional

from app.domain.models.analytics_record import AnalyticsRecord
from app.domain.repositories.analytics_repository import AnalyticsRepository
from app.infrastructure.repositories.base_repository import SQLAlchemyRepository


class SQLAlchemyAnalyticsRepository(SQLAlchemyRepository[AnalyticsRecord], AnalyticsRepository):
    """Analytics record repository implementation using SQLAlchemy."""

    def list_by_owner(
        self,
        owner_id: int,
        file_id: Optional[int] = None,
        chart_type: Optional[str] = None,
        limit: int = 50,
    ) -> List[AnalyticsRecord]:
        query = self.db.query(AnalyticsRecord).filter(AnalyticsRecord.owner_id == owner_id)
        if file_id is not None:
            query = query.filter(AnalyticsRecord.file_id == file_id)
        if chart_type:
            query = query.filter(AnalyticsRecord.chart_type == chart_type)
        return query.order_by(AnalyticsRecord.created_at.desc(), AnalyticsRecord.id.desc()).limit(limit).all()

    def list_public(self, limit: int = 50) -> List[AnalyticsRecord]:
        return (
            self.db.query(AnalyticsRecord)
            .filter(AnalyticsRecord.is_public.is_(True))
            .order_by(
                AnalyticsRecord.view_count.desc(),
                AnalyticsRecord.created_at.desc(),
                AnalyticsRecord.id.desc(),
            )
            .limit(limit)
            .all()
        )

    def increment_views(self, record: AnalyticsRecord) -> AnalyticsRecord:
        record.view_count = (record.view_count or 0) + 1
        self.db.commit()
        self.db.refresh(record)
        return record
