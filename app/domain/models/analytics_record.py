"""Saved chart + insights — maps to the 'analytics_records' table."""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.infrastructure.database import Base


class AnalyticsRecord(Base):
    __tablename__ = "analytics_records"

    id = Column(Integer, primary_key=True, autoincrement=True)
    # The chart outlives its source file
    file_id = Column(Integer, ForeignKey("spreadsheet_files.id", ondelete="SET NULL"), nullable=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    worksheet_name = Column(String(255), nullable=False)
    chart_type = Column(String(50), nullable=False, index=True)

    chart_config = Column(JSON, nullable=False)  # axes, title, colors, custom options
    chart_data = Column(JSON, nullable=False)    # labels + datasets
    insights = Column(JSON, nullable=False)

    is_bookmarked = Column(Boolean, default=False)
    is_public = Column(Boolean, default=False, index=True)
    shared_with = Column(JSON, nullable=False, default=list)  # [{"user_id", "permission"}]
    view_count = Column(Integer, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    owner = relationship("User", back_populates="analytics")
    file = relationship("SpreadsheetFile")

    @property
    def share_settings(self) -> dict:
        return {"is_public": bool(self.is_public), "shared_with": list(self.shared_with or [])}

    def permission_for(self, user_id: int) -> str | None:
        """Permission ('view' or 'edit') granted to a user through share settings."""
        for grant in self.shared_with or []:
            if grant.get("user_id") == user_id:
                return grant.get("permission", "view")
        return None

    def __repr__(self):
        return f"<AnalyticsRecord {self.id} {self.chart_type}>"
