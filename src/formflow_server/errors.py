"""Global exception handlers — map SDK exceptions to HTTP status codes.

The SDK raises ``ValueError`` for caller errors (session not found,
duplicate session, operating on a completed session) and ``KeyError`` for
unknown forms.  Rather than catching these in every route, one set of
handlers inspects the message and picks the status code.
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

# --- Keyword patterns in ValueError messages and their HTTP status codes ---
# Checked in order; first match wins.
_VALUE_ERROR_PATTERNS: list[tuple[str, int]] = [
    # Unique constraint on (form_id, session_id)
    ("already exists", 409),
    ("not found", 404),
    # advance/retreat on a submitted session
    ("cannot", 409),
]


# --- Client-safe messages keyed by HTTP status code ---
# Identifiers and phase names stay in the server log.
_SAFE_MESSAGES: dict[int, str] = {
    404: "Resource not found",
    409: "Conflict with current session state",
    400: "Invalid request",
}


async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    """Map SDK ``ValueError`` to 404, 409 or 400 based on its message.

    The raw message is logged server-side but never sent to the client.
    """
    msg = str(exc)
    status = 400
    for pattern, code in _VALUE_ERROR_PATTERNS:
        if pattern in msg.lower():
            status = code
            break

    logger.warning("ValueError [%d] at %s: %s", status, request.url, msg)
    safe_detail = _SAFE_MESSAGES.get(status, "Invalid request")
    return JSONResponse(status_code=status, content={"detail": safe_detail})


async def key_error_handler(request: Request, exc: KeyError) -> JSONResponse:
    """Map ``KeyError`` (unknown form id) to 404."""
    logger.warning("KeyError at %s: %s", request.url, exc)
    return JSONResponse(status_code=404, content={"detail": "Resource not found"})


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unhandled exceptions — log full traceback, return 500."""
    logger.exception("Unhandled exception at %s", request.url)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )
