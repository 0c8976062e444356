"""
ISMS status workbook export.

Fills the ISMS status template with aggregated policy/evidence data and
returns the finished workbook as bytes. Records are fetched by the caller
(see ``isms_export.integrations.record_gateway``); this module only loads
the template, runs the mapping and serializes the result.

No temp files: the workbook is saved into an in-memory buffer, so a failure
anywhere in the pipeline happens before the first response byte is sent.
"""

import io
import logging
import os
from concurrent.futures import ThreadPoolExecutor
from urllib.parse import quote

from openpyxl import load_workbook

from isms_export.core.exceptions import EmptyInputError, MissingTemplateSheetError
from isms_export.services.aggregator import AggregateItem, aggregate
from isms_export.services.template_mapper import map_to_rows

logger = logging.getLogger(__name__)

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
EXPORT_FILENAME = "ISMS_Status.xlsx"

# Controls under "2." (protection requirements) live on the second sheet.
SECOND_SHEET_PREFIX = "2."

DEFAULT_SHEET_NAMES = ("1.관리체계 수립 및 운영", "2.보호대책 요구사항")


def split_by_sheet(items: list[AggregateItem]) -> tuple[list[AggregateItem], list[AggregateItem]]:
    """Partition items into (first sheet, second sheet) by identifier prefix."""
    first: list[AggregateItem] = []
    second: list[AggregateItem] = []
    for item in items:
        (second if item.isms_id.startswith(SECOND_SHEET_PREFIX) else first).append(item)
    return first, second


def load_template(template_path):
    """Load the status template, keeping rich-text cells intact."""
    return load_workbook(template_path, rich_text=True)


def get_required_sheets(wb, sheet_names=DEFAULT_SHEET_NAMES) -> list:
    """Return the worksheets named ``sheet_names`` in order.

    Raises:
        MissingTemplateSheetError: for the first name the workbook lacks.
    """
    sheets = []
    for name in sheet_names:
        if name not in wb.sheetnames:
            raise MissingTemplateSheetError(name, available=list(wb.sheetnames))
        sheets.append(wb[name])
    return sheets


def check_template(template_path, sheet_names=DEFAULT_SHEET_NAMES) -> dict:
    """Report whether the template exists and carries both target sheets.

    Used by health checks and startup diagnostics. Never raises.
    """
    if not os.path.isfile(template_path):
        return {"status": "error", "detail": f"template not found: {template_path}"}
    try:
        wb = load_workbook(template_path, read_only=True)
        present = list(wb.sheetnames)
        wb.close()
    except Exception as exc:
        return {"status": "error", "detail": f"template unreadable: {exc}"}
    missing = [name for name in sheet_names if name not in present]
    if missing:
        return {"status": "error", "detail": "missing sheets", "missing": missing}
    return {"status": "ok", "sheets": list(sheet_names)}


def _activate_first_sheet(wb) -> None:
    wb.active = 0
    for ws in wb.worksheets:
        ws.sheet_view.tabSelected = ws is wb.worksheets[0]


def generate_isms_status_excel(
    policy_items: list[dict] | None,
    evidence_items: list[dict] | None,
    *,
    template_path,
    sheet_names=DEFAULT_SHEET_NAMES,
) -> bytes:
    """Produce the filled ISMS status workbook.

    Args:
        policy_items: Raw items from the policy-selection table.
        evidence_items: Raw items from the evidence-metadata table.
        template_path: Path (or file-like object) of the status template.
        sheet_names: Titles of the (first, second) target worksheets.

    Returns:
        bytes: Raw .xlsx content.

    Raises:
        EmptyInputError: both item lists are empty; the template is not read.
        MissingTemplateSheetError: a target worksheet is missing.
        RowProcessingError: mapping failed on a specific row.
    """
    if not policy_items and not evidence_items:
        raise EmptyInputError()

    wb = load_template(template_path)
    first_sheet, second_sheet = get_required_sheets(wb, sheet_names)
    _activate_first_sheet(wb)

    items = aggregate(policy_items, evidence_items)
    first_items, second_items = split_by_sheet(items)
    logger.info(
        "Aggregated %d ISMS items (%d policy, %d evidence records): %d → %r, %d → %r",
        len(items), len(policy_items or ()), len(evidence_items or ()),
        len(first_items), first_sheet.title, len(second_items), second_sheet.title,
    )

    # Sheets are disjoint and the items are immutable, so both passes can run at once.
    with ThreadPoolExecutor(max_workers=2) as pool:
        futures = [
            pool.submit(map_to_rows, first_sheet, first_items),
            pool.submit(map_to_rows, second_sheet, second_items),
        ]
        for future in futures:
            future.result()

    buf = io.BytesIO()
    wb.save(buf)
    buf.seek(0)
    return buf.getvalue()


def build_content_disposition(filename: str = EXPORT_FILENAME) -> str:
    """Attachment header with both a plain and an RFC 5987 UTF-8 filename."""
    encoded = quote(filename, safe="!#$&+-.^_`|~")
    return f"attachment; filename={encoded}; filename*=UTF-8''{encoded}"
