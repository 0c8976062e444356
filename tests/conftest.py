"""
Shared pytest fixtures for the ISMS Status Export test suite.

Provides:
    - template_path: generated status template (.xlsx) with both target sheets
    - dynamo_tables: table name → list of plain items served by the stub client
    - dynamo_client: MagicMock DynamoDB client answering Scan/DescribeTable
    - app: Flask application wired to the template and stub client
    - client: Flask test client
"""

from unittest.mock import MagicMock

import pytest
from openpyxl import Workbook

from isms_export import create_app
from isms_export.integrations.record_gateway import RecordGateway

SHEET_1 = "1.관리체계 수립 및 운영"
SHEET_2 = "2.보호대책 요구사항"

# Column F identifiers from row 3; None leaves a blank separator row
SHEET_1_IDS = ["1.1.1", "1.1.2", None, "1.2.1", "1.2.10"]
SHEET_2_IDS = ["2.1", "2.3", "2.10.1"]


def build_template(path, sheets=((SHEET_1, SHEET_1_IDS), (SHEET_2, SHEET_2_IDS))):
    """Write a minimal status template: two header rows, ids in column F."""
    wb = Workbook()
    wb.remove(wb.active)
    for title, ids in sheets:
        ws = wb.create_sheet(title)
        ws["A1"] = "ISMS-P 인증기준 운영명세서"
        ws["F2"] = "항목"
        ws["I2"] = "운영현황"
        ws["J2"] = "관련 문서"
        ws["K2"] = "기록(증적자료)"
        for offset, isms_id in enumerate(ids):
            row = 3 + offset
            ws[f"A{row}"] = "•"
            if isms_id is not None:
                ws[f"F{row}"] = isms_id
    wb.save(path)
    return path


def to_wire(item: dict) -> dict:
    """Plain item → DynamoDB attribute-value format."""
    wire = {}
    for key, value in item.items():
        if isinstance(value, (int, float)):
            wire[key] = {"N": str(value)}
        else:
            wire[key] = {"S": value}
    return wire


@pytest.fixture()
def template_path(tmp_path):
    return build_template(tmp_path / "PIM template.xlsx")


@pytest.fixture()
def dynamo_tables():
    return {"UserSelectedDocuments": [], "Evidence_Metadata": []}


@pytest.fixture()
def dynamo_client(dynamo_tables):
    client = MagicMock()

    def _scan(TableName, ConsistentRead=False, **kwargs):
        assert ConsistentRead is True
        return {"Items": [to_wire(i) for i in dynamo_tables[TableName]]}

    client.scan.side_effect = _scan
    client.describe_table.return_value = {"Table": {"TableStatus": "ACTIVE"}}
    return client


@pytest.fixture()
def app(template_path, dynamo_client):
    application = create_app("testing")
    application.config["TEMPLATE_PATH"] = str(template_path)
    application.extensions["record_gateway"] = RecordGateway.from_config(
        application.config, client=dynamo_client,
    )
    return application


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()
