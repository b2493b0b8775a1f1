from __future__ import annotations

from typing import Optional

from fastapi import Header, Request

from .errors import Unauthorized


def current_user_id(x_user_id: Optional[str] = Header(None)) -> str:
    # identity is issued by the external auth provider; we only carry it
    uid = (x_user_id or "").strip()
    if not uid:
        raise Unauthorized("missing X-User-Id")
    return uid


def request_id_of(request: Request) -> Optional[str]:
    rid = getattr(getattr(request, "state", None), "request_id", None)
    if rid:
        return str(rid)
    return request.headers.get("X-Request-Id")
