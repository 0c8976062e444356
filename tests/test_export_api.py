"""
Tests for the download endpoint and health checks.

Covers:
  - GET /api/download-excel returns xlsx with Content-Disposition + no-cache
  - 404 ERR_NO_DATA when both tables are empty (template never opened)
  - 500 ERR_TEMPLATE_MALFORMED when a sheet is missing
  - 500 ERR_EXPORT_FAILED with failing row/sheet in details
  - 500 ERR_UPSTREAM when a DynamoDB scan fails
  - health endpoints (ready / live / legacy)
"""

import io

from botocore.exceptions import ClientError
from openpyxl import load_workbook

from conftest import SHEET_1, SHEET_2, build_template


def _fill(dynamo_tables):
    dynamo_tables["UserSelectedDocuments"].extend([
        {"ISMSID": "1.1.1", "Content": "정보보호 정책 수립", "full_path": "정책/정보보호 정책.docx"},
        {"ISMSID": "2.1", "Content": "None", "full_path": "지침/접근통제 지침.docx"},
    ])
    dynamo_tables["Evidence_Metadata"].append(
        {"ISMSItem": "2.1", "FileName": "접근권한 검토.xlsx", "reason1": "분기별 검토"},
    )


# ── Download ────────────────────────────────────────────────────────────────


def test_download_returns_xlsx(client, dynamo_tables):
    _fill(dynamo_tables)

    res = client.get("/api/download-excel")

    assert res.status_code == 200
    assert "spreadsheetml" in res.content_type
    assert res.headers["Content-Disposition"] == (
        "attachment; filename=ISMS_Status.xlsx; filename*=UTF-8''ISMS_Status.xlsx"
    )
    assert res.headers["Cache-Control"] == "no-cache"

    wb = load_workbook(io.BytesIO(res.data))
    assert wb[SHEET_1]["I3"].value == "정보보호 정책 수립"
    assert wb[SHEET_2]["J3"].value == "지침/접근통제 지침.docx"
    assert wb[SHEET_2]["K3"].value == "접근권한 검토.xlsx"


def test_download_sets_request_headers(client, dynamo_tables):
    _fill(dynamo_tables)
    res = client.get("/api/download-excel", headers={"X-Request-ID": "req-42"})
    assert res.headers["X-Request-ID"] == "req-42"
    assert "X-Request-Duration-Ms" in res.headers


def test_download_no_data_returns_404(app, client, tmp_path):
    app.config["TEMPLATE_PATH"] = str(tmp_path / "missing.xlsx")

    res = client.get("/api/download-excel")

    assert res.status_code == 404
    data = res.get_json()
    assert data["code"] == "ERR_NO_DATA"
    assert data["error"] == "데이터가 없습니다."


def test_download_missing_sheet_returns_500(app, client, dynamo_tables, tmp_path):
    _fill(dynamo_tables)
    app.config["TEMPLATE_PATH"] = str(
        build_template(tmp_path / "one-sheet.xlsx", sheets=((SHEET_1, ["1.1.1"]),))
    )

    res = client.get("/api/download-excel")

    assert res.status_code == 500
    data = res.get_json()
    assert data["code"] == "ERR_TEMPLATE_MALFORMED"
    assert data["details"]["sheet"] == SHEET_2
    assert "stack" not in data["details"]


def test_download_row_failure_reports_row(client, dynamo_tables, monkeypatch):
    import isms_export.services.template_mapper as tm

    _fill(dynamo_tables)
    original = tm.compose_content_value

    def _explode(item):
        if item.isms_id == "2.1":
            raise KeyError("font")
        return original(item)

    monkeypatch.setattr(tm, "compose_content_value", _explode)

    res = client.get("/api/download-excel")

    assert res.status_code == 500
    data = res.get_json()
    assert data["code"] == "ERR_EXPORT_FAILED"
    assert data["details"] == {"sheet": SHEET_2, "row": 3}


def test_download_upstream_failure(client, dynamo_client):
    dynamo_client.scan.side_effect = ClientError(
        {"Error": {"Code": "AccessDeniedException", "Message": "denied"}}, "Scan",
    )

    res = client.get("/api/download-excel")

    assert res.status_code == 500
    data = res.get_json()
    assert data["code"] == "ERR_UPSTREAM"
    assert data["details"]["table"] in ("UserSelectedDocuments", "Evidence_Metadata")


def test_download_stack_only_in_debug(app, client, dynamo_client):
    dynamo_client.scan.side_effect = RuntimeError("unexpected")
    app.debug = True

    res = client.get("/api/download-excel")

    data = res.get_json()
    assert res.status_code == 500
    assert data["code"] == "ERR_INTERNAL"
    assert "RuntimeError" in data["details"]["stack"]


# ── Health ──────────────────────────────────────────────────────────────────


def test_health_basic(client):
    res = client.get("/api/v1/health")
    assert res.status_code == 200
    assert res.get_json()["status"] == "ok"


def test_health_ready(client):
    res = client.get("/api/v1/health/ready")
    assert res.status_code == 200


def test_health_live_healthy(client):
    res = client.get("/api/v1/health/live")
    assert res.status_code == 200
    data = res.get_json()
    assert data["status"] == "healthy"
    assert data["checks"]["template"]["status"] == "ok"
    assert data["checks"]["dynamodb"]["status"] == "ok"


def test_health_live_degraded_without_template(app, client, tmp_path):
    app.config["TEMPLATE_PATH"] = str(tmp_path / "gone.xlsx")
    res = client.get("/api/v1/health/live")
    assert res.status_code == 503
    assert res.get_json()["status"] == "degraded"


def test_unknown_api_path_is_json_404(client):
    res = client.get("/api/nope")
    assert res.status_code == 404
    assert res.get_json()["code"] == "ERR_NOT_FOUND"
