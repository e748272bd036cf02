"""
Event log RESTful API.

One route, `POST /api/v1/event`, stores a device submission as a JSON
document. Every other path or method answers 404 with
`{"url": "<url> not found"}`.

HOW TO RUN:
    pip install -e .
    python backend/scripts/create_event_log_table.py
    eventlog            # or: python backend/main.py
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict

import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from db import close_pool, create_pool, open_pool
from repo_events import ConnectivityError, EventLogRepo
from request_body import BodyParseError, read_body
from service_events import EventLogService, EventValidationError
from settings import settings

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # The pool opens in the background; an unreachable store only fails inserts.
    pool = create_pool()
    open_pool(pool)
    app.state.repo = EventLogRepo(pool, timeout=settings.pool_timeout)
    logger.info(f"event log RESTful API server started on: {settings.port}")
    yield
    close_pool(pool)


app = FastAPI(
    title="Event Log API",
    lifespan=lifespan,
    docs_url=None,
    redoc_url=None,
    openapi_url=None,
)


def get_repo(request: Request) -> EventLogRepo:
    return request.app.state.repo


def get_service(repo: EventLogRepo = Depends(get_repo)) -> EventLogService:
    return EventLogService(repo, derive_air_metrics=settings.derive_air_metrics)


def _error_response(body: Dict[str, Any], status_code: int) -> JSONResponse:
    if settings.legacy_error_status:
        status_code = 200
    return JSONResponse(status_code=status_code, content=body)


def _original_url(request: Request) -> str:
    url = request.url.path
    if request.url.query:
        url += "?" + request.url.query
    return url


@app.exception_handler(StarletteHTTPException)
async def not_found(request: Request, exc: StarletteHTTPException):
    """Unknown paths and wrong methods on known paths both answer 404."""

    if exc.status_code in (404, 405):
        return JSONResponse(status_code=404, content={"url": f"{_original_url(request)} not found"})
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.exception_handler(BodyParseError)
async def bad_body(request: Request, exc: BodyParseError):
    return JSONResponse(status_code=400, content=exc.to_dict())


@app.post("/api/v1/event")
def log_event(
    body: Dict[str, Any] = Depends(read_body),
    svc: EventLogService = Depends(get_service),
):
    try:
        return svc.log_event(body)
    except EventValidationError as e:
        return _error_response(e.to_dict(), 400)
    except ConnectivityError as e:
        return _error_response(e.to_dict(), 503)


def run() -> None:
    """Console entry point: serve the app on `settings.host:settings.port`."""

    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
