"""Response error extraction for load test observability.

Turns Dispatch API error bodies into one-line messages. Three shapes occur:

- Pydantic validation (422): {"detail": [{"loc": [...], "msg": "..."}]}
- Gateway-level rejections (400): {"detail": "Unknown actor role: ..."}
- Domain errors (400/403/404): {"error": {"field": ["msg", ...]}}
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from requests import Response


def _flatten(value) -> str:
    if isinstance(value, list):
        return "; ".join(str(item) for item in value)
    return str(value)


def extract_error_detail(response: Response) -> str:
    """Compact error string for Locust failure messages and log lines."""
    try:
        body = response.json()
    except ValueError:
        text = getattr(response, "text", "") or ""
        return text[:300] or "(empty response body)"

    if not isinstance(body, dict):
        return str(body)[:300]

    detail = body.get("detail")
    if isinstance(detail, list):
        parts = []
        for err in detail:
            loc = ".".join(str(p) for p in err.get("loc", []))
            msg = err.get("msg", str(err))
            parts.append(f"{loc}: {msg}" if loc else msg)
        return " | ".join(parts)
    if isinstance(detail, str):
        return detail

    error = body.get("error")
    if isinstance(error, dict):
        return " | ".join(f"{field}: {_flatten(messages)}" for field, messages in error.items())
    if error is not None:
        return _flatten(error)

    return str(body)[:300]
