"""
Structured stdout logging.

Contract:
- one JSON object per line
- keys: ts, level, message, request_id, event, module (+ extra)
- audit events use level "audit" and are capturable in uvicorn log redirection
"""
from __future__ import annotations

import datetime
import json
import logging
import os
from typing import Any, Dict, Optional

_log = logging.getLogger("party_api")
if not _log.handlers:
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))


def _now_iso() -> str:
    return datetime.datetime.now(datetime.timezone.utc).isoformat()


def emit(level: str, event: str, message: str, request_id: Optional[str], module: str, **extra: Any) -> None:
    payload: Dict[str, Any] = {
        "ts": _now_iso(),
        "level": level.lower(),
        "message": message,
        "request_id": request_id,
        "event": event,
        "module": module,
    }
    payload.update(extra)
    print(json.dumps(payload, ensure_ascii=False), flush=True)


def audit(event: str, request_id: Optional[str], module: str, **extra: Any) -> Dict[str, Any]:
    emit("audit", event, event, request_id, module, **extra)
    return {"event": event, "request_id": request_id, **extra}
