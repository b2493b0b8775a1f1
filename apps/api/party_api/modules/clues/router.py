from __future__ import annotations

from fastapi import APIRouter, Depends

from party_api.core.identity import current_user_id

from .schemas import VisibleCluesOut
from .service import get_visible_clues

router = APIRouter(tags=["clues"])


@router.get("/sessions/{session_id}/clues", response_model=VisibleCluesOut)
def api_visible_clues(session_id: str, user_id: str = Depends(current_user_id)) -> VisibleCluesOut:
    return VisibleCluesOut(**get_visible_clues(session_id, user_id))
