"""
DB utilities (sqlite default).

Defaults:
- DATABASE_URL: sqlite:///./data/app.db

Game services talk to sqlite3 directly through `connect()` / `transaction()`;
SQLAlchemy is used for the engine (content seeding, health) and alembic.
"""
from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, Optional

from fastapi import HTTPException
from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine

from .config import get_busy_timeout, get_database_url
from .errors import InternalError, from_integrity_error


def _repo_root() -> Path:
    # apps/api/party_api/core/db.py -> repo root = parents[4]
    return Path(__file__).resolve().parents[4]


def _api_dir() -> Path:
    return Path(__file__).resolve().parents[2]


def resolve_sqlite_path(database_url: str) -> Optional[Path]:
    if not database_url.startswith("sqlite:///"):
        return None
    p = database_url[len("sqlite:///") :]

    # absolute unix
    if p.startswith("/"):
        return Path(p)

    # absolute windows drive, both C:/ and C:\ forms
    if len(p) >= 3 and p[1] == ":" and (p[2] == "/" or p[2] == "\\"):
        return Path(p)

    # relative -> repo root
    return (_repo_root() / p).resolve()


def _sqlite_file(url: str) -> Path:
    sp = resolve_sqlite_path(url)
    if sp is None:
        raise ValueError(f"Only sqlite supported for now, got DATABASE_URL={url!r}")
    sp.parent.mkdir(parents=True, exist_ok=True)
    return sp


_engines: Dict[str, Engine] = {}


def _sqlite_foreign_keys(dbapi_conn, _record) -> None:
    # per-connection pragma; same setting connect() applies to raw sqlite3
    cur = dbapi_conn.cursor()
    cur.execute("PRAGMA foreign_keys=ON;")
    cur.close()


def get_engine() -> Engine:
    url = get_database_url()
    eng = _engines.get(url)
    if eng is not None:
        return eng

    connect_args = {}
    if url.startswith("sqlite:///"):
        connect_args = {"check_same_thread": False, "timeout": get_busy_timeout()}
        url_resolved = "sqlite:///" + _sqlite_file(url).as_posix()
    else:
        url_resolved = url

    eng = create_engine(url_resolved, future=True, connect_args=connect_args)
    if url.startswith("sqlite:///"):
        event.listen(eng, "connect", _sqlite_foreign_keys)
    _engines[url] = eng
    return eng


def db_health() -> Dict[str, Any]:
    url = get_database_url()
    kind = "sqlite" if url.startswith("sqlite") else "unknown"
    sp = resolve_sqlite_path(url)
    path = str(sp.as_posix()) if sp is not None else url

    try:
        eng = get_engine()
        with eng.connect() as conn:
            conn.execute(text("SELECT 1"))
        return {"status": "ok", "kind": kind, "path": path}
    except Exception as e:
        return {"status": "error", "kind": kind, "path": path, "error": str(e)}


def run_migrations(database_url: Optional[str] = None) -> None:
    """alembic upgrade head against DATABASE_URL (or the given url)."""
    from alembic import command
    from alembic.config import Config

    url = database_url or get_database_url()
    cfg = Config()
    cfg.set_main_option("script_location", str(_api_dir() / "migrations"))
    cfg.set_main_option("sqlalchemy.url", url)
    command.upgrade(cfg, "head")


def connect() -> sqlite3.Connection:
    path = _sqlite_file(get_database_url())
    conn = sqlite3.connect(str(path), timeout=get_busy_timeout(), check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys=ON;")
    return conn


@contextmanager
def transaction() -> Iterator[sqlite3.Connection]:
    """
    Serialized read-validate-write.

    BEGIN IMMEDIATE takes the write lock up front, so the rows read inside the
    block cannot change under us before COMMIT.
    """
    conn = connect()
    try:
        conn.execute("BEGIN IMMEDIATE;")
        yield conn
        conn.commit()
    except HTTPException:
        conn.rollback()
        raise
    except sqlite3.IntegrityError as e:
        conn.rollback()
        raise from_integrity_error(e)
    except Exception as e:
        conn.rollback()
        raise InternalError(details={"type": type(e).__name__}) from e
    finally:
        conn.close()


@contextmanager
def reader() -> Iterator[sqlite3.Connection]:
    conn = connect()
    try:
        yield conn
    finally:
        conn.close()
