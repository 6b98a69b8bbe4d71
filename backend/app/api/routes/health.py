from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text

from app.db.bootstrap import SchemaGaps, inspect_schema
from app.db.session import engine

router = APIRouter()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/health")
def health() -> dict:
    return {"status": "ok"}


@router.get("/health/live")
def health_live() -> dict:
    return {"status": "ok", "timestamp": _now()}


@router.get("/health/ready")
def health_ready() -> JSONResponse:
    """Readiness: the database answers and carries every table and column the schedule API reads.

    Missing booking indexes are reported but do not fail readiness; the
    write path still checks clashes before inserting.
    """
    gaps = SchemaGaps()
    db_error: str | None = None
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
            gaps = inspect_schema(connection)
    except Exception as exc:  # pragma: no cover - environment dependent
        db_error = str(exc)

    db_ok = db_error is None
    ready = db_ok and gaps.schema_ok
    payload = {
        "status": "ok" if ready else "degraded",
        "timestamp": _now(),
        "database": {
            "ok": db_ok,
            "schema_ok": db_ok and gaps.schema_ok,
            "missing_tables": gaps.missing_tables,
            "missing_columns": gaps.missing_columns,
            "missing_indexes": gaps.missing_indexes,
            "error": db_error,
        },
    }
    return JSONResponse(status_code=200 if ready else 503, content=payload)
