"""
ISMS status report download.

    GET /api/download-excel
        200  ISMS_Status.xlsx (template filled with policy + evidence data)
        404  both DynamoDB tables are empty (ERR_NO_DATA)
        500  template malformed / row mapping failed / DynamoDB failed

The workbook is built completely in memory before the response is created,
so every failure is still reported as a JSON error body.
"""

import logging
import traceback

from flask import Blueprint, Response, current_app

from isms_export.core.exceptions import (
    EmptyInputError,
    MissingTemplateSheetError,
    RowProcessingError,
    UpstreamFetchError,
)
from isms_export.integrations.record_gateway import RecordGateway
from isms_export.services.export_service import (
    XLSX_MIMETYPE,
    build_content_disposition,
    generate_isms_status_excel,
)
from isms_export.utils.errors import E, api_error

logger = logging.getLogger(__name__)

export_bp = Blueprint("export", __name__)

_NO_DATA = "데이터가 없습니다."
_FAILED = "파일 생성 중 오류가 발생했습니다."


def get_record_gateway() -> RecordGateway:
    """Return the app's gateway, creating one from config on first use."""
    gateway = current_app.extensions.get("record_gateway")
    if gateway is None:
        gateway = RecordGateway.from_config(current_app.config)
        current_app.extensions["record_gateway"] = gateway
    return gateway


def _details(exc: Exception, **fields) -> dict:
    """Failure context for the response; stack trace only in debug mode."""
    details = {k: v for k, v in fields.items() if v is not None}
    if current_app.debug:
        details["stack"] = "".join(traceback.format_exception(exc))
    return details


@export_bp.route("/api/download-excel", methods=["GET"])
def download_excel():
    """Build and download the ISMS status workbook.

    Returns:
        Binary xlsx download with a UTF-8 aware Content-Disposition.
    """
    cfg = current_app.config
    try:
        policy_items, evidence_items = get_record_gateway().fetch_all()
        content = generate_isms_status_excel(
            policy_items,
            evidence_items,
            template_path=cfg["TEMPLATE_PATH"],
            sheet_names=cfg["SHEET_NAMES"],
        )

    except EmptyInputError:
        logger.info("Export skipped: no policy or evidence records")
        return api_error(
            E.NO_DATA,
            "DynamoDB 테이블에서 데이터를 찾을 수 없습니다.",
            error=_NO_DATA,
        )

    except MissingTemplateSheetError as exc:
        logger.exception(
            "Template %s is missing sheet %r (has %s)",
            cfg["TEMPLATE_PATH"], exc.sheet_name, exc.available,
        )
        return api_error(
            E.TEMPLATE_MALFORMED, str(exc), error=_FAILED,
            details=_details(exc, sheet=exc.sheet_name),
        )

    except RowProcessingError as exc:
        logger.exception(
            "Export failed on sheet %r row %d", exc.sheet, exc.row,
            extra={"sheet": exc.sheet, "row": exc.row},
        )
        return api_error(
            E.EXPORT_FAILED, str(exc), error=_FAILED,
            details=_details(exc, sheet=exc.sheet, row=exc.row),
        )

    except UpstreamFetchError as exc:
        logger.exception("Export failed reading %s", exc.table, extra={"table": exc.table})
        return api_error(
            E.UPSTREAM, str(exc), error=_FAILED,
            details=_details(exc, table=exc.table),
        )

    except Exception as exc:
        logger.exception("Export failed")
        return api_error(E.INTERNAL, str(exc), error=_FAILED, details=_details(exc))

    return Response(
        content,
        mimetype=XLSX_MIMETYPE,
        headers={
            "Content-Disposition": build_content_disposition(cfg["EXPORT_FILENAME"]),
            "Cache-Control": "no-cache",
        },
    )
