"""FastAPI application entrypoint for the activity ingestion API."""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from sqlalchemy.orm import Session

from . import schemas
from .config import get_projects_path, load_projects_config, load_settings
from .database import SessionLocal, engine, session_scope
from .errors import ConfigError, DuplicateIDError, NotFoundError, StoreError, ValidationError
from .events import normalize
from .models import Base
from .stats import MODE_JSON, build_stats
from .store import insert_event, migrate_schema_v2

logger = logging.getLogger(__name__)

MAX_BODY_BYTES = 1 << 20
MARKDOWN_MEDIA_TYPE = "text/markdown; charset=utf-8"


def init_store() -> None:
    """Create the schema and finish any pending migration before serving."""
    Base.metadata.create_all(bind=engine)
    with session_scope() as db:
        migrate_schema_v2(db)


init_store()
settings = load_settings()

app = FastAPI(
    title="Devlog Activity API",
    description="API for collecting terminal and browser activity and reporting daily time usage.",
    version="0.1.0",
)


def get_db() -> Session:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def record_event(db: Session, body: bytes) -> schemas.EventAck:
    if len(body) > MAX_BODY_BYTES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="request body too large")
    try:
        event = normalize(body)
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    try:
        insert_event(db, event, body.decode("utf-8"))
    except DuplicateIDError as exc:
        logger.warning("Rejected duplicate event %s", event.event_id)
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except StoreError as exc:
        logger.exception("Failed to persist event %s", event.event_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="failed to persist event"
        ) from exc

    logger.info("Stored %s event %s", event.type, event.event_id)
    return schemas.EventAck(event_id=event.event_id)


@app.post("/events", response_model=schemas.EventAck)
async def ingest_event(request: Request, db: Session = Depends(get_db)) -> schemas.EventAck:
    body = await request.body()
    return await run_in_threadpool(record_event, db, body)


@app.get("/stats")
def get_stats(
    date: Optional[str] = Query(None, description="Calendar day, YYYY-MM-DD"),
    project: Optional[str] = Query(None, description="Drill down into one project"),
    mode: Optional[str] = Query(None, description="json or md (default)"),
    db: Session = Depends(get_db),
) -> Response:
    try:
        projects = load_projects_config(get_projects_path())
        report = build_stats(db, date, settings, projects=projects, project=project, mode=mode)
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except ConfigError as exc:
        logger.error("Invalid projects config: %s", exc)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="invalid projects config") from exc
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="not found") from exc
    except StoreError as exc:
        logger.exception("Failed to compute stats for %s", date)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="failed to compute stats"
        ) from exc

    if report.mode == MODE_JSON:
        return JSONResponse(report.body)
    return PlainTextResponse(report.body, media_type=MARKDOWN_MEDIA_TYPE)


@app.get("/healthz")
def healthz() -> dict:
    return {"status": "ok"}
