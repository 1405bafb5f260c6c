"""Response error extraction for load test observability.

Handles the three error shapes the Storefront API produces:

- Pydantic validation (422): {"detail": [{"loc": [...], "msg": "...", "type": "..."}]}
- HTTPException (403/404): {"detail": "msg"}
- Checkout errors (400/409/502/503/500): {"error": {"kind": "...", "message": "..."}}
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from requests import Response


def extract_error_detail(response: Response) -> str:
    """Extract a compact, human-readable error message from an API error response."""
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
    if detail is not None:
        return str(detail)

    error = body.get("error")
    if isinstance(error, dict) and "kind" in error:
        return f"{error['kind']}: {error.get('message', '')}"
    if isinstance(error, dict):
        return " | ".join(f"{k}: {v}" for k, v in error.items())
    if error is not None:
        return str(error)

    return str(body)[:300]
