"""Analytics API routes — create charts from worksheets, read, edit, share."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from app.application.services import analytics_service
from app.application.services.ingestion_orchestrator import IngestionOrchestrator
from app.domain.repositories.analytics_repository import AnalyticsRepository
from app.domain.schemas.analytics import AnalyticsRead, AnalyticsSummaryRead, AnalyticsUpdate, ChartSpec, ChartType
from app.domain.schemas.auth import Identity
from app.interfaces.api.deps import get_current_user
from app.interfaces.deps import get_analytics_repository, get_orchestrator

router = APIRouter(prefix="/api/analytics", tags=["Analytics"])


@router.post("/create", response_model=AnalyticsRead, status_code=status.HTTP_201_CREATED)
def create_analytics(
    body: ChartSpec,
    orchestrator: IngestionOrchestrator = Depends(get_orchestrator),
    user: Identity = Depends(get_current_user),
):
    record = orchestrator.create_chart(body, user)
    return AnalyticsRead.model_validate(record)


@router.get("", response_model=List[AnalyticsSummaryRead])
def list_analytics(
    file_id: Optional[int] = Query(None),
    chart_type: Optional[ChartType] = Query(None),
    limit: int = Query(50, ge=1, le=500),
    repo: AnalyticsRepository = Depends(get_analytics_repository),
    user: Identity = Depends(get_current_user),
):
    records = analytics_service.list_analytics(
        repo,
        user,
        file_id=file_id,
        chart_type=chart_type.value if chart_type else None,
        limit=limit,
    )
    return [AnalyticsSummaryRead.model_validate(r) for r in records]


# Declared before /{analytics_id} so "public" is not parsed as an id
@router.get("/public/shared", response_model=List[AnalyticsSummaryRead])
def list_public_analytics(
    limit: int = Query(50, ge=1, le=500),
    repo: AnalyticsRepository = Depends(get_analytics_repository),
):
    """Public charts, readable without a token."""
    records = analytics_service.list_public_analytics(repo, limit=limit)
    return [AnalyticsSummaryRead.model_validate(r) for r in records]


@router.get("/{analytics_id}", response_model=AnalyticsRead)
def get_analytics(
    analytics_id: int,
    repo: AnalyticsRepository = Depends(get_analytics_repository),
    user: Identity = Depends(get_current_user),
):
    return AnalyticsRead.model_validate(analytics_service.get_analytics(repo, analytics_id, user))


@router.put("/{analytics_id}", response_model=AnalyticsRead)
def update_analytics(
    analytics_id: int,
    body: AnalyticsUpdate,
    repo: AnalyticsRepository = Depends(get_analytics_repository),
    user: Identity = Depends(get_current_user),
):
    record = analytics_service.update_analytics(repo, analytics_id, body, user)
    return AnalyticsRead.model_validate(record)


@router.delete("/{analytics_id}")
def delete_analytics(
    analytics_id: int,
    repo: AnalyticsRepository = Depends(get_analytics_repository),
    user: Identity = Depends(get_current_user),
):
    analytics_service.delete_analytics(repo, analytics_id, user)
    return {"message": "Analytics deleted successfully", "analytics_id": analytics_id}
