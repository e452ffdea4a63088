import pytest

from app.application.services import analytics_service
from app.core.exceptions import AccessDeniedException, EntityNotFoundException
from app.domain.schemas.analytics import AnalyticsUpdate, ChartSpec


@pytest.fixture
def chart(orchestrator, owner_identity, sales_workbook):
    file = orchestrator.ingest(sales_workbook, "sales.xlsx", owner_identity)
    spec = ChartSpec.model_validate(
        {
            "file_id": file.id,
            "chart_type": "bar",
            "x_axis": {"column": "Region"},
            "y_axis": {"column": "Sales"},
        }
    )
    return orchestrator.create_chart(spec, owner_identity)


def test_get_counts_views(analytics_repo, chart, owner_identity):
    analytics_service.get_analytics(analytics_repo, chart.id, owner_identity)
    record = analytics_service.get_analytics(analytics_repo, chart.id, owner_identity)

    assert record.view_count == 2


def test_get_missing_record(analytics_repo, owner_identity):
    with pytest.raises(EntityNotFoundException):
        analytics_service.get_analytics(analytics_repo, 404, owner_identity)


def test_private_record_denied_to_others(analytics_repo, chart, other_identity, admin_identity):
    with pytest.raises(AccessDeniedException):
        analytics_service.get_analytics(analytics_repo, chart.id, other_identity)
    assert analytics_service.get_analytics(analytics_repo, chart.id, admin_identity).id == chart.id


def test_update_title_colors_and_bookmark(analytics_repo, chart, owner_identity):
    record = analytics_service.update_analytics(
        analytics_repo,
        chart.id,
        AnalyticsUpdate(title="Revenue by region", colors=["#000000"], is_bookmarked=True),
        owner_identity,
    )

    assert record.chart_config["title"] == "Revenue by region"
    assert record.chart_config["colors"] == ["#000000"]
    assert record.chart_config["x_axis"]["column"] == "Region"
    assert record.is_bookmarked is True


def test_sharing_publicly_lists_record(analytics_repo, chart, owner_identity, other_identity):
    analytics_service.update_analytics(
        analytics_repo,
        chart.id,
        AnalyticsUpdate.model_validate({"share_settings": {"is_public": True}}),
        owner_identity,
    )

    public = analytics_service.list_public_analytics(analytics_repo)
    assert [r.id for r in public] == [chart.id]
    assert analytics_service.get_analytics(analytics_repo, chart.id, other_identity).id == chart.id


def test_edit_grant_allows_update(analytics_repo, chart, owner_identity, other_identity):
    analytics_service.update_analytics(
        analytics_repo,
        chart.id,
        AnalyticsUpdate.model_validate(
            {"share_settings": {"shared_with": [{"user_id": other_identity.id, "permission": "edit"}]}}
        ),
        owner_identity,
    )

    record = analytics_service.update_analytics(
        analytics_repo, chart.id, AnalyticsUpdate(title="Shared edit"), other_identity
    )

    assert record.chart_config["title"] == "Shared edit"
    assert record.share_settings["is_public"] is False


def test_view_grant_does_not_allow_update(analytics_repo, chart, owner_identity, other_identity):
    analytics_service.update_analytics(
        analytics_repo,
        chart.id,
        AnalyticsUpdate.model_validate({"share_settings": {"shared_with": [{"user_id": other_identity.id}]}}),
        owner_identity,
    )

    assert analytics_service.get_analytics(analytics_repo, chart.id, other_identity).id == chart.id
    with pytest.raises(AccessDeniedException):
        analytics_service.update_analytics(analytics_repo, chart.id, AnalyticsUpdate(title="x"), other_identity)


def test_list_filters_by_chart_type(analytics_repo, chart, owner_identity, other_identity):
    assert [r.id for r in analytics_service.list_analytics(analytics_repo, owner_identity, chart_type="bar")] == [chart.id]
    assert analytics_service.list_analytics(analytics_repo, owner_identity, chart_type="pie") == []
    assert analytics_service.list_analytics(analytics_repo, other_identity) == []


def test_delete_is_owner_or_admin(analytics_repo, chart, owner_identity, other_identity):
    with pytest.raises(AccessDeniedException):
        analytics_service.delete_analytics(analytics_repo, chart.id, other_identity)

    analytics_service.delete_analytics(analytics_repo, chart.id, owner_identity)

    assert analytics_repo.get_by_id(chart.id) is None
