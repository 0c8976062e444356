"""Standardised API error responses.

Usage
-----
    from isms_export.utils.errors import api_error, E

    return api_error(E.NO_DATA, "데이터가 없습니다.")
    return api_error(E.EXPORT_FAILED, "Row mapping failed", details={"row": 17})
"""

from __future__ import annotations

from flask import jsonify


# ── Error code constants ──────────────────────────────────────────────
class E:
    """Machine-readable error code constants (``ERR_`` prefix)."""

    # Nothing to export – HTTP 404
    NO_DATA = "ERR_NO_DATA"
    NOT_FOUND = "ERR_NOT_FOUND"

    # Server – HTTP 500
    TEMPLATE_MALFORMED = "ERR_TEMPLATE_MALFORMED"
    EXPORT_FAILED = "ERR_EXPORT_FAILED"
    UPSTREAM = "ERR_UPSTREAM"
    INTERNAL = "ERR_INTERNAL"

    METHOD_NOT_ALLOWED = "ERR_METHOD_NOT_ALLOWED"


# ── Default HTTP status mapping ───────────────────────────────────────
_DEFAULT_STATUS: dict[str, int] = {
    E.NO_DATA: 404,
    E.NOT_FOUND: 404,
    E.TEMPLATE_MALFORMED: 500,
    E.EXPORT_FAILED: 500,
    E.UPSTREAM: 500,
    E.INTERNAL: 500,
    E.METHOD_NOT_ALLOWED: 405,
}


def api_error(
    code: str,
    message: str,
    *,
    error: str | None = None,
    status: int | None = None,
    details: dict | None = None,
):
    """Return a standard JSON error response.

    Parameters
    ----------
    code : str
        Machine-readable error code (use ``E.*`` constants).
    message : str
        Explanation for developers / UI.
    error : str, optional
        Short user-facing summary. Defaults to ``message``.
    status : int, optional
        HTTP status override.  Falls back to ``_DEFAULT_STATUS[code]``,
        then to ``500``.
    details : dict, optional
        Extra structured payload (failing row, sheet, stack trace).

    Returns
    -------
    tuple[Response, int]
        ``(jsonify(body), http_status)`` – drop-in for Flask views.
    """

    http_status = status or _DEFAULT_STATUS.get(code, 500)

    body: dict = {
        "error": error or message,
        "message": message,
        "code": code,
    }
    if details:
        body["details"] = details

    return jsonify(body), http_status
