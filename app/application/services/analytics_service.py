"""Analytics service — access-checked reads and edits of saved charts."""

from typing import List, Optional

import structlog

from app.core.exceptions import AccessDeniedException, EntityNotFoundException
from app.domain.models.analytics_record import AnalyticsRecord
from app.domain.repositories.analytics_repository import AnalyticsRepository
from app.domain.schemas.analytics import AnalyticsUpdate
from app.domain.schemas.auth import Identity

logger = structlog.get_logger(__name__)


def _get_or_404(repo: AnalyticsRepository, record_id: int) -> AnalyticsRecord:
    record = repo.get_by_id(record_id)
    if record is None:
        raise EntityNotFoundException("Analytics not found", {"analytics_id": record_id})
    return record


def can_view(record: AnalyticsRecord, caller: Identity) -> bool:
    return (
        record.owner_id == caller.id
        or bool(record.is_public)
        or caller.is_admin
        or record.permission_for(caller.id) is not None
    )


def can_edit(record: AnalyticsRecord, caller: Identity) -> bool:
    return record.owner_id == caller.id or caller.is_admin or record.permission_for(caller.id) == "edit"


def get_analytics(repo: AnalyticsRepository, record_id: int, caller: Identity) -> AnalyticsRecord:
    """Fetch a saved chart and count the view."""
    record = _get_or_404(repo, record_id)
    if not can_view(record, caller):
        raise AccessDeniedException(details={"analytics_id": record_id})
    return repo.increment_views(record)


def list_analytics(
    repo: AnalyticsRepository,
    caller: Identity,
    file_id: Optional[int] = None,
    chart_type: Optional[str] = None,
    limit: int = 50,
) -> List[AnalyticsRecord]:
    return repo.list_by_owner(caller.id, file_id=file_id, chart_type=chart_type, limit=limit)


def list_public_analytics(repo: AnalyticsRepository, limit: int = 50) -> List[AnalyticsRecord]:
    return repo.list_public(limit=limit)


def update_analytics(
    repo: AnalyticsRepository,
    record_id: int,
    changes: AnalyticsUpdate,
    caller: Identity,
) -> AnalyticsRecord:
    """Only title, colors, bookmark and share settings are editable."""
    record = _get_or_404(repo, record_id)
    if not can_edit(record, caller):
        raise AccessDeniedException(details={"analytics_id": record_id})

    update: dict = {}
    config = dict(record.chart_config)
    if changes.title:
        config["title"] = changes.title
    if changes.colors:
        config["colors"] = list(changes.colors)
    if config != record.chart_config:
        update["chart_config"] = config

    if changes.is_bookmarked is not None:
        update["is_bookmarked"] = changes.is_bookmarked

    if changes.share_settings is not None:
        share = changes.share_settings.model_dump(exclude_unset=True)
        if "is_public" in share:
            update["is_public"] = share["is_public"]
        if "shared_with" in share:
            update["shared_with"] = [grant.model_dump() for grant in changes.share_settings.shared_with]

    if not update:
        return record
    record = repo.update(record, update)
    logger.info("Analytics updated", analytics_id=record_id, fields=sorted(update), updated_by=caller.id)
    return record


def delete_analytics(repo: AnalyticsRepository, record_id: int, caller: Identity) -> None:
    record = _get_or_404(repo, record_id)
    if record.owner_id != caller.id and not caller.is_admin:
        raise AccessDeniedException(details={"analytics_id": record_id})
    repo.delete(record.id)
    logger.info("Analytics deleted", analytics_id=record_id, deleted_by=caller.id)
