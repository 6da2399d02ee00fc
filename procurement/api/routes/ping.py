from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

router = APIRouter(prefix="/ping", tags=["health"])

logger = logging.getLogger(__name__)


@router.get("", summary="Liveness and database reachability probe")
async def ping(request: Request) -> dict[str, str]:
    engine = getattr(request.app.state, "db_engine", None)
    if engine is None:
        return {"status": "ok", "database": "unconfigured"}

    try:
        async with engine.connect() as connection:
            await connection.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.exception("Database health check failed")
        return {"status": "degraded", "database": "unreachable"}
    return {"status": "ok", "database": "ok"}
