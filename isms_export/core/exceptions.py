"""
Export exception hierarchy.

Every failure the export pipeline can signal is one of these types, so the
export blueprint can map them to HTTP responses in one place instead of
inspecting messages.

Usage:
    from isms_export.core.exceptions import EmptyInputError, RowProcessingError

    raise EmptyInputError()
    raise RowProcessingError(sheet="2.보호대책 요구사항", row=17, cause=exc)
"""


class ExportError(Exception):
    """Base class for all export pipeline failures."""


class EmptyInputError(ExportError):
    """Raised when both record sources returned no items.

    Non-fatal: the caller reports "no data to export" instead of an error.
    """

    def __init__(self) -> None:
        super().__init__("No policy or evidence records to export")


class MissingTemplateSheetError(ExportError):
    """Raised when a required worksheet is absent from the template workbook.

    Args:
        sheet_name: The worksheet title that was looked up.
        available: Sheet titles actually present. Logged, not sent to clients.
    """

    def __init__(self, sheet_name: str, available: list[str] | None = None) -> None:
        self.sheet_name = sheet_name
        self.available = available or []
        super().__init__(f"Required worksheet {sheet_name!r} not found in template")


class RowProcessingError(ExportError):
    """Raised when mapping a single worksheet row fails.

    The whole mapping pass is aborted; rows written before ``row`` are not
    rolled back.

    Args:
        sheet: Title of the worksheet being mapped.
        row: 1-based row index that failed.
        cause: The original exception (also chained via ``__cause__``).
    """

    def __init__(self, sheet: str, row: int, cause: Exception) -> None:
        self.sheet = sheet
        self.row = row
        self.cause = cause
        super().__init__(f"Failed to map row {row} of sheet {sheet!r}: {cause}")


class UpstreamFetchError(ExportError):
    """Raised when a record source (DynamoDB table scan) fails.

    Args:
        table: Table that was being scanned.
        cause: The boto3/botocore exception.
    """

    def __init__(self, table: str, cause: Exception) -> None:
        self.table = table
        self.cause = cause
        super().__init__(f"Scan of table {table!r} failed: {cause}")
