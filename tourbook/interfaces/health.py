"""
Health check router.

Readiness probe: reports the application version and whether the
database answers a trivial query. A database failure turns the response
into a 503 so orchestrators stop routing traffic to the instance.
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from tourbook.core.config import Settings
from tourbook.interfaces.tours.dependencies import get_settings
from tourbook.interfaces.tours.schemas import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


def database_reachable(request: Request) -> bool:
    try:
        with request.app.state.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.exception("Database health check failed")
        return False
    return True


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Application version and database reachability.",
    responses={503: {"model": HealthResponse}},
)
def health_check(
    settings: Settings = Depends(get_settings),
    database_ok: bool = Depends(database_reachable),
):
    if database_ok:
        return HealthResponse(status="ok", version=settings.version, database="ok")
    body = HealthResponse(status="degraded", version=settings.version, database="unreachable")
    return JSONResponse(status_code=503, content=body.model_dump())
