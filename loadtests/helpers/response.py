"""Response error extraction for load test observability.

Parses Poster Parlor API error responses into human-readable messages.
Handles two response shapes:

- Pydantic validation (422): {"detail": [{"loc": [...], "msg": "...", "type": "..."}]}
- Service errors: {"error": {"kind": "...", "message": "...", "details": {...}}, "compensation": {...}}
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from requests import Response


def extract_error_detail(response: Response) -> str:
    """Extract a human-readable error message from an API error response.

    Returns a compact string suitable for Locust failure messages and log lines.
    """
    try:
        body = response.json()
    except ValueError:
        text = getattr(response, "text", "") or ""
        return text[:300] or "(empty response body)"

    if "detail" in body and isinstance(body["detail"], list):
        parts = []
        for err in body["detail"]:
            loc = ".".join(str(p) for p in err.get("loc", []))
            msg = err.get("msg", str(err))
            parts.append(f"{loc}: {msg}" if loc else msg)
        return " | ".join(parts)

    if "error" in body:
        error = body["error"]
        if isinstance(error, dict):
            summary = f"{error.get('kind')}: {error.get('message')}"
            failed = (body.get("compensation") or {}).get("failed")
            if failed:
                summary += f" (cleanup failed for {len(failed)})"
            return summary
        return str(error)

    return str(body)[:300]


def error_kind(response: Response) -> str | None:
    """The service error kind, e.g. ``InsufficientStock``, if the body has one."""
    try:
        error = response.json().get("error")
    except ValueError:
        return None
    return error.get("kind") if isinstance(error, dict) else None
