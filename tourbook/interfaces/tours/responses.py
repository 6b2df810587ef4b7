"""
Success envelopes shared by the API routers.

``{status: "success", data: {...}}``; listings also carry ``results``
and ``requestedAt``.
"""

from datetime import datetime, timezone
from typing import Any


def envelope(**data: Any) -> dict:
    return {"status": "success", "data": data}


def listing(docs: list[dict]) -> dict:
    return {
        "status": "success",
        "requestedAt": datetime.now(timezone.utc).isoformat(),
        "results": len(docs),
        "data": {"data": docs},
    }
