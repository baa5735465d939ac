"""Helpers for building JSON error bodies."""

from fastapi.responses import JSONResponse

from opsdash_server.errors import OpsDashError
from opsdash_server.models.common import ErrorResponse


def error_response(message: str, status_code: int) -> JSONResponse:
    """Build a {"success": false, "error": ...} response."""
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message).model_dump(),
    )


def from_exception(error: OpsDashError) -> JSONResponse:
    """Build an error response with the status code of an OpsDashError."""
    return error_response(str(error), error.status_code)
