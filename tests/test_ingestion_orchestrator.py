from pathlib import Path

import pytest

from app.core.exceptions import (
    AccessDeniedException,
    ColumnNotFoundException,
    EmptyDatasetException,
    EntityNotFoundException,
    FileNotReadyException,
    FileTooLargeException,
    UnsupportedFileTypeException,
    WorksheetNotFoundException,
)
from app.domain.models.analytics_record import AnalyticsRecord
from app.domain.models.spreadsheet_file import FileStatus, SpreadsheetFile, XLS_MIME, XLSX_MIME
from app.domain.models.user import User
from app.domain.schemas.analytics import AxisSelection, ChartSpec
from app.application.services import analytics_service
from app.application.services.auth_service import delete_user
from app.application.services.chart_transformer import transform_chart_data
from app.application.services.ingestion_orchestrator import IngestionOrchestrator
from tests.conftest import SALES_ROWS, SALES_XLS, build_workbook


def _spec(file_id, chart_type="pie", **overrides):
    data = {
        "file_id": file_id,
        "worksheet_name": "Sales",
        "chart_type": chart_type,
        "x_axis": {"column": "Region"},
        "y_axis": {"column": "Sales"},
    }
    data.update(overrides)
    return ChartSpec.model_validate(data)


def test_ingest_completes_with_worksheets_and_metadata(orchestrator, owner_identity, sales_workbook, storage):
    file = orchestrator.ingest(
        sales_workbook,
        "sales.xlsx",
        owner_identity,
        description="Q1",
        tags=["finance", " ", "q1 "],
    )

    assert file.status == FileStatus.COMPLETED
    assert file.processing_error is None
    assert file.mime_type == XLSX_MIME
    assert file.file_size == len(sales_workbook)
    assert file.original_name == "sales.xlsx"
    assert file.tags == ["finance", "q1"]
    assert [ws.name for ws in file.worksheets] == ["Sales"]
    assert file.worksheets[0].columns == ["Region", "Sales"]
    assert file.file_metadata["total_rows"] == 4
    assert file.file_metadata["worksheet_count"] == 1
    assert storage.read(file.storage_path) == sales_workbook


def test_ingest_legacy_xls_workbook(orchestrator, owner_identity):
    content = SALES_XLS.read_bytes()

    file = orchestrator.ingest(content, "sales.xls", owner_identity)

    assert file.status == FileStatus.COMPLETED
    assert file.mime_type == XLS_MIME
    assert [ws.name for ws in file.worksheets] == ["Sales"]
    assert file.worksheets[0].columns == ["Region", "Sales"]
    assert orchestrator.read_worksheet(file.id, "Sales", owner_identity).records[2] == {"Region": "East", "Sales": 50}


def test_ingest_malformed_workbook_is_recorded_as_error(orchestrator, owner_identity):
    file = orchestrator.ingest(b"PK\x03\x04 broken zip", "broken.xlsx", owner_identity)

    assert file.status == FileStatus.ERROR
    assert file.processing_error
    assert file.worksheets == []
    assert file.file_metadata is None


def test_ingest_rejects_other_extensions(orchestrator, owner_identity):
    with pytest.raises(UnsupportedFileTypeException):
        orchestrator.ingest(b"a,b\n1,2", "data.csv", owner_identity)


def test_ingest_rejects_oversized_upload(file_repo, analytics_repo, storage, owner_identity, sales_workbook):
    orchestrator = IngestionOrchestrator(file_repo, analytics_repo, storage, max_upload_bytes=10)

    with pytest.raises(FileTooLargeException):
        orchestrator.ingest(sales_workbook, "sales.xlsx", owner_identity)
    assert file_repo.list_by_owner(owner_identity.id) == []


def test_read_worksheet_round_trip(orchestrator, owner_identity, sales_workbook):
    file = orchestrator.ingest(sales_workbook, "sales.xlsx", owner_identity)

    data = orchestrator.read_worksheet(file.id, "Sales", owner_identity)

    assert data.row_count == 3
    assert data.records[1] == {"Region": "West", "Sales": 200}


def test_read_unknown_worksheet(orchestrator, owner_identity, sales_workbook):
    file = orchestrator.ingest(sales_workbook, "sales.xlsx", owner_identity)

    with pytest.raises(WorksheetNotFoundException):
        orchestrator.read_worksheet(file.id, "Missing", owner_identity)


def test_private_file_hidden_from_other_users(orchestrator, owner_identity, other_identity, admin_identity, sales_workbook):
    file = orchestrator.ingest(sales_workbook, "sales.xlsx", owner_identity)

    with pytest.raises(AccessDeniedException):
        orchestrator.get_file(file.id, other_identity)
    assert orchestrator.get_file(file.id, admin_identity).id == file.id


def test_public_file_visible_to_other_users(orchestrator, owner_identity, other_identity, sales_workbook):
    file = orchestrator.ingest(sales_workbook, "sales.xlsx", owner_identity, is_public=True)

    data = orchestrator.read_worksheet(file.id, "Sales", other_identity)

    assert data.row_count == 3


def test_missing_file(orchestrator, owner_identity):
    with pytest.raises(EntityNotFoundException):
        orchestrator.get_file(999, owner_identity)


def test_create_pie_chart_aggregates_by_region(orchestrator, owner_identity, sales_workbook, analytics_repo):
    file = orchestrator.ingest(sales_workbook, "sales.xlsx", owner_identity)

    record = orchestrator.create_chart(_spec(file.id), owner_identity)

    assert record.chart_data["labels"] == ["East", "West"]
    assert record.chart_data["datasets"][0]["data"] == [150.0, 200.0]
    assert record.chart_config["title"] == "pie Chart"
    assert record.worksheet_name == "Sales"
    assert record.insights["summary"].startswith("Dataset contains 3 records.")
    assert analytics_repo.get_by_id(record.id) is not None


def test_saved_chart_matches_fresh_transform_of_worksheet(orchestrator, owner_identity, sales_workbook, analytics_repo):
    file = orchestrator.ingest(sales_workbook, "sales.xlsx", owner_identity)
    spec = _spec(file.id, chart_type="bar", x_axis={"column": "Region", "label": "Area"})
    created = orchestrator.create_chart(spec, owner_identity)

    record = analytics_service.get_analytics(analytics_repo, created.id, owner_identity)

    assert record.chart_config["x_axis"] == spec.x_axis.model_dump(mode="json")
    assert record.chart_config["y_axis"] == spec.y_axis.model_dump(mode="json")
    records = orchestrator.read_worksheet(file.id, "Sales", owner_identity).records
    expected = transform_chart_data(records, "bar", spec.x_axis, spec.y_axis)
    assert record.chart_data == expected.model_dump(mode="json")


def test_create_chart_defaults_to_first_worksheet(orchestrator, owner_identity):
    content = build_workbook({"Sales": SALES_ROWS, "Other": [["a"], [1]]})
    file = orchestrator.ingest(content, "sales.xlsx", owner_identity)

    record = orchestrator.create_chart(_spec(file.id, "bar", worksheet_name=None, title="Regions"), owner_identity)

    assert record.worksheet_name == "Sales"
    assert record.chart_config["title"] == "Regions"
    assert record.chart_data["labels"] == ["East", "West", "East"]


def test_create_chart_unknown_column(orchestrator, owner_identity, sales_workbook):
    file = orchestrator.ingest(sales_workbook, "sales.xlsx", owner_identity)

    with pytest.raises(ColumnNotFoundException) as exc_info:
        orchestrator.create_chart(_spec(file.id, y_axis={"column": "Profit"}), owner_identity)
    assert exc_info.value.column == "Profit"
    assert exc_info.value.message == "Column Profit not found"


def test_create_chart_checks_z_axis(orchestrator, owner_identity, sales_workbook):
    file = orchestrator.ingest(sales_workbook, "sales.xlsx", owner_identity)

    with pytest.raises(ColumnNotFoundException):
        orchestrator.create_chart(_spec(file.id, "3d-bar", z_axis={"column": "Units"}), owner_identity)


def test_create_chart_on_header_only_sheet(orchestrator, owner_identity):
    file = orchestrator.ingest(build_workbook({"Sales": [["Region", "Sales"]]}), "s.xlsx", owner_identity)

    with pytest.raises(EmptyDatasetException):
        orchestrator.create_chart(_spec(file.id), owner_identity)


def test_create_chart_on_failed_file(orchestrator, owner_identity):
    file = orchestrator.ingest(b"garbage", "broken.xls", owner_identity)

    with pytest.raises(FileNotReadyException):
        orchestrator.create_chart(_spec(file.id), owner_identity)


def test_create_chart_denied_for_private_file(orchestrator, owner_identity, other_identity, sales_workbook):
    file = orchestrator.ingest(sales_workbook, "sales.xlsx", owner_identity)

    with pytest.raises(AccessDeniedException):
        orchestrator.create_chart(_spec(file.id), other_identity)


def test_delete_file_removes_binary_and_keeps_charts(orchestrator, owner_identity, sales_workbook, storage, db):
    file = orchestrator.ingest(sales_workbook, "sales.xlsx", owner_identity)
    record = orchestrator.create_chart(_spec(file.id), owner_identity)
    binary = Path(storage._root_dir) / file.storage_path

    orchestrator.delete_file(file.id, owner_identity)

    assert not binary.exists()
    assert db.get(SpreadsheetFile, file.id) is None
    db.expire_all()
    assert db.get(AnalyticsRecord, record.id).file_id is None


def test_delete_file_requires_owner_or_admin(orchestrator, owner_identity, other_identity, sales_workbook):
    file = orchestrator.ingest(sales_workbook, "sales.xlsx", owner_identity, is_public=True)

    with pytest.raises(AccessDeniedException):
        orchestrator.delete_file(file.id, other_identity)


def test_list_files_filters_by_status(orchestrator, owner_identity, sales_workbook):
    orchestrator.ingest(sales_workbook, "sales.xlsx", owner_identity)
    orchestrator.ingest(b"garbage", "broken.xlsx", owner_identity)

    assert len(orchestrator.list_files(owner_identity)) == 2
    failed = orchestrator.list_files(owner_identity, status=FileStatus.ERROR)
    assert [f.original_name for f in failed] == ["broken.xlsx"]


def test_list_all_files_is_admin_only(orchestrator, owner_identity, admin_identity, sales_workbook):
    orchestrator.ingest(sales_workbook, "sales.xlsx", owner_identity)

    assert len(orchestrator.list_all_files(admin_identity)) == 1
    with pytest.raises(AccessDeniedException):
        orchestrator.list_all_files(owner_identity)


def test_deleting_user_removes_files_and_charts(orchestrator, owner, owner_identity, sales_workbook, storage, db):
    file = orchestrator.ingest(sales_workbook, "sales.xlsx", owner_identity)
    record = orchestrator.create_chart(_spec(file.id), owner_identity)
    file_id, record_id = file.id, record.id

    delete_user(db, db.get(User, owner.id), storage=storage)
    db.expire_all()

    assert db.get(SpreadsheetFile, file_id) is None
    assert db.get(AnalyticsRecord, record_id) is None
