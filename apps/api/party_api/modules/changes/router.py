from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from party_api.core.identity import current_user_id

from .schemas import ChangesListOut
from .service import list_changes

router = APIRouter(tags=["changes"])

LIMIT_DEFAULT = 100
LIMIT_MAX = 500


def _clamp_limit(raw: int | None) -> int:
    if raw is None:
        return LIMIT_DEFAULT
    if raw < 1:
        return 1
    if raw > LIMIT_MAX:
        return LIMIT_MAX
    return raw


@router.get("/sessions/{session_id}/changes", response_model=ChangesListOut)
def api_list_changes(
    session_id: str,
    after: int = Query(0, ge=0),
    entity: str | None = Query(None, description="game_sessions|game_players|votes"),
    limit: int | None = Query(None),
    user_id: str = Depends(current_user_id),
) -> ChangesListOut:
    out = list_changes(session_id, user_id, after=after, entity=entity, limit=_clamp_limit(limit))
    return ChangesListOut(**out)
