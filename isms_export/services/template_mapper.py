"""
ISMS status template mapping.

Writes aggregated ISMS items into the rows of a pre-built status template.
Each template sheet lists one control per row; the mapper fills three
columns next to the control's identifier and resizes the row so the
wrapped text stays visible:

    F  ISMS id (read)
    I  operating status: policy excerpts + evidence reasons (rich text)
    J  related policies
    K  related evidence files

No I/O happens here: the caller loads the workbook and saves it.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from openpyxl.cell.rich_text import CellRichText, TextBlock
from openpyxl.cell.text import InlineFont
from openpyxl.styles import Alignment, Border, Font, Side

from isms_export.core.exceptions import RowProcessingError
from isms_export.services.aggregator import AggregateItem
from isms_export.services.isms_id import filter_entries, isms_sort_key, normalize_text

logger = logging.getLogger(__name__)

# ── Template layout ────────────────────────────────────────────────────────
MIN_ROW = 3                  # rows 1-2 are the template header
ID_COLUMN = "F"
CONTENT_COLUMN = "I"
POLICY_COLUMN = "J"
EVIDENCE_COLUMN = "K"

# ── Row height estimation ──────────────────────────────────────────────────
CHARS_PER_LINE = 50          # average characters per wrapped visual line
DEFAULT_ROW_HEIGHT = 50
MIN_CONTENT_HEIGHT = 70
MAX_ROW_HEIGHT = 1000
HEIGHT_PER_LINE = 15

# ── Cell styling ───────────────────────────────────────────────────────────
FONT_NAME = "맑은 고딕"
FONT_SIZE = 9
CELL_FONT = Font(name=FONT_NAME, size=FONT_SIZE)
CELL_ALIGNMENT = Alignment(vertical="center", horizontal="left", wrap_text=True)
THIN_BORDER = Border(
    left=Side(style="thin"),
    right=Side(style="thin"),
    top=Side(style="thin"),
    bottom=Side(style="thin"),
)
BOLD_FONT = InlineFont(rFont=FONT_NAME, sz=FONT_SIZE, b=True)


@dataclass(frozen=True)
class MappingSummary:
    sheet_title: str
    rows_scanned: int
    rows_matched: int


# ═════════════════════════════════════════════════════════════════════════════
# Text composition
# ═════════════════════════════════════════════════════════════════════════════


def join_entries(values) -> str:
    """Filter, normalize and newline-join a column's entries."""
    return "\n".join(filter_entries(values))


def reason_blocks(item: AggregateItem) -> list[tuple[str, str]]:
    """Return ``(heading, body)`` pairs, one per evidence file with reasons.

    Files whose reasons are all empty/"none" produce no block.
    """
    blocks: list[tuple[str, str]] = []
    for file_name, reasons in item.reasons:
        valid = filter_entries(reasons)
        if not valid:
            continue
        heading = f"  {normalize_text(file_name)}:\n"
        body = "\n".join(f"    - {reason}" for reason in valid)
        blocks.append((heading, body))
    return blocks


def compose_content_value(item: AggregateItem) -> CellRichText | str:
    """Build the value of the operating-status column.

    Policy excerpts come first as a plain paragraph, followed by one block
    per evidence file: the file name in bold, then its reasons as an
    indented bullet list. Blocks are separated by a blank line. Without any
    reason block the value is plain text.
    """
    content_text = join_entries(item.contents)
    blocks = reason_blocks(item)
    if not blocks:
        return content_text

    segments: list[str | TextBlock] = []
    if content_text:
        segments.append(content_text + "\n")
    last = len(blocks) - 1
    for index, (heading, body) in enumerate(blocks):
        segments.append(TextBlock(BOLD_FONT, heading))
        segments.append(body + ("\n\n" if index < last else ""))
    return CellRichText(segments)


def plain_text(value: CellRichText | str | None) -> str:
    """Concatenate the text of every rich-text segment."""
    if value is None:
        return ""
    if isinstance(value, CellRichText):
        return "".join(
            segment.text if isinstance(segment, TextBlock) else str(segment)
            for segment in value
        )
    return str(value)


# ═════════════════════════════════════════════════════════════════════════════
# Row height
# ═════════════════════════════════════════════════════════════════════════════


def estimate_line_count(text: str | None) -> int:
    """Estimate wrapped visual lines: sum of ceil(len / 50) per line."""
    if not text:
        return 0
    return sum(math.ceil(len(line) / CHARS_PER_LINE) for line in text.split("\n"))


def compute_row_height(line_count: int) -> float:
    if line_count <= 0:
        return DEFAULT_ROW_HEIGHT
    return min(max(MIN_CONTENT_HEIGHT, line_count * HEIGHT_PER_LINE), MAX_ROW_HEIGHT)


def apply_cell_style(cell) -> None:
    cell.alignment = CELL_ALIGNMENT
    cell.font = CELL_FONT
    cell.border = THIN_BORDER


# ═════════════════════════════════════════════════════════════════════════════
# Sheet mapping
# ═════════════════════════════════════════════════════════════════════════════


def _read_isms_id(cell) -> str:
    if cell.value is None:
        return ""
    return str(cell.value).strip()


def _fill_row(sheet, row: int, item: AggregateItem) -> float:
    content_value = compose_content_value(item)
    policy_text = join_entries(item.policies)
    evidence_text = join_entries(item.evidences)

    for column, value in (
        (CONTENT_COLUMN, content_value),
        (POLICY_COLUMN, policy_text),
        (EVIDENCE_COLUMN, evidence_text),
    ):
        cell = sheet[f"{column}{row}"]
        cell.value = value
        apply_cell_style(cell)

    max_lines = max(
        estimate_line_count(plain_text(content_value)),
        estimate_line_count(policy_text),
        estimate_line_count(evidence_text),
    )
    return compute_row_height(max_lines)


def map_to_rows(sheet, items: list[AggregateItem], *, min_row: int = MIN_ROW) -> MappingSummary:
    """Write ``items`` into the matching rows of ``sheet``.

    Rows are matched on the identifier column using the hierarchical
    comparison, so a template cell "2.1" matches the item "2.1.0". Rows
    without an identifier or without a matching item get the default
    height and keep their cells untouched.

    Raises:
        RowProcessingError: the first row that fails; earlier rows stay written.
    """
    index: dict[tuple[int, ...], AggregateItem] = {}
    for item in items:
        index.setdefault(isms_sort_key(item.isms_id), item)

    scanned = matched = 0
    row = min_row
    while row <= sheet.max_row:
        try:
            height = DEFAULT_ROW_HEIGHT
            isms_id = _read_isms_id(sheet[f"{ID_COLUMN}{row}"])
            item = index.get(isms_sort_key(isms_id)) if isms_id else None
            if item is not None:
                height = _fill_row(sheet, row, item)
                matched += 1
            sheet.row_dimensions[row].height = height
        except Exception as exc:
            logger.error("Mapping failed on sheet %r at row %d: %s", sheet.title, row, exc)
            raise RowProcessingError(sheet.title, row, exc) from exc
        scanned += 1
        row += 1

    logger.info(
        "Mapped sheet %r: %d rows scanned, %d matched, %d items available",
        sheet.title, scanned, matched, len(items),
    )
    return MappingSummary(sheet_title=sheet.title, rows_scanned=scanned, rows_matched=matched)
