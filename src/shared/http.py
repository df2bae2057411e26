"""Rendering of failed ``Result`` values as HTTP responses."""

from fastapi.responses import JSONResponse

from shared.result import Result


def error_response(result: Result) -> JSONResponse:
    """``{"error": {kind, message, details}, "compensation": {...}}`` with the kind's status."""
    error = result.error
    return JSONResponse(
        status_code=error.kind.http_status,
        content={"error": error.to_dict(), "compensation": result.compensation.to_dict()},
    )


def services_of(request):
    return request.app.state.services
