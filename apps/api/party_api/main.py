from __future__ import annotations

import uuid
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from party_api.core.config import auto_migrate_enabled, get_app_version, get_database_url
from party_api.core.db import db_health, run_migrations
from party_api.core.observability import emit
from party_api.modules.changes.router import router as changes_router
from party_api.modules.clues.router import router as clues_router
from party_api.modules.players.router import router as players_router
from party_api.modules.sessions.router import router as sessions_router
from party_api.modules.stories.router import router as stories_router
from party_api.modules.votes.router import router as votes_router

_last_error: Dict[str, Any] = {}


@asynccontextmanager
async def _lifespan(app: FastAPI):
    if auto_migrate_enabled():
        emit("info", "db.migrate", "alembic upgrade head", None, __name__, database_url=get_database_url())
        run_migrations()
    yield


app = FastAPI(title="Mystery Party API", version=get_app_version(), lifespan=_lifespan)

# === OBSERVABILITY FOUNDATIONS ===
# Contract locks:
# - /health keys: status, version, db, last_error_summary
# - X-Request-Id in/out (missing -> generated; always echoed back; also on errors)
# - Error envelope keys: error, message, request_id, details


def _err_envelope(error: str, message: str, request_id: Optional[str], details: Any, status_code: int):
    headers = {}
    if request_id:
        headers["X-Request-Id"] = request_id
    if status_code >= 500:
        _last_error.update({"error": error, "message": message, "request_id": request_id})
    return JSONResponse(
        status_code=status_code,
        content={
            "error": error,
            "message": message,
            "request_id": request_id,
            "details": details,
        },
        headers=headers,
    )


@app.middleware("http")
async def _request_id_mw(request: Request, call_next):
    rid = request.headers.get("X-Request-Id") or uuid.uuid4().hex.upper()
    request.state.request_id = rid
    emit("info", "http.request.start", f"{request.method} {request.url.path}", rid, __name__)
    try:
        resp = await call_next(request)
    except Exception as e:
        emit("error", "http.request.exception", str(e), rid, __name__)
        raise
    resp.headers["X-Request-Id"] = rid
    emit("info", "http.request.end", f"{request.method} {request.url.path} -> {getattr(resp, 'status_code', None)}", rid, __name__)
    return resp


@app.exception_handler(StarletteHTTPException)
async def _http_exc_handler(request: Request, exc: StarletteHTTPException):
    rid = getattr(request.state, "request_id", None)
    detail = exc.detail
    # game errors carry the envelope body in detail
    if isinstance(detail, dict) and "error" in detail:
        return _err_envelope(
            str(detail["error"]),
            str(detail.get("message") or ""),
            rid,
            detail.get("details") or {},
            exc.status_code,
        )
    return _err_envelope("http_error", str(detail), rid, {"status_code": exc.status_code}, exc.status_code)


@app.exception_handler(RequestValidationError)
async def _validation_exc_handler(request: Request, exc: RequestValidationError):
    rid = getattr(request.state, "request_id", None)
    return _err_envelope("validation_error", "request validation failed", rid, jsonable_encoder(exc.errors()), 422)


@app.exception_handler(Exception)
async def _unhandled_exc_handler(request: Request, exc: Exception):
    rid = getattr(request.state, "request_id", None)
    emit("error", "http.request.unhandled", str(exc), rid, __name__, type=type(exc).__name__)
    return _err_envelope("internal_error", "internal server error", rid, {"type": type(exc).__name__}, 500)
# === END OBSERVABILITY FOUNDATIONS ===


@app.get("/health")
def health():
    db = db_health()
    return {
        "status": "ok" if db.get("status") == "ok" else "degraded",
        "version": get_app_version(),
        "db": db,
        "last_error_summary": dict(_last_error) or None,
    }


app.include_router(stories_router)
app.include_router(sessions_router)
app.include_router(players_router)
app.include_router(clues_router)
app.include_router(votes_router)
app.include_router(changes_router)
