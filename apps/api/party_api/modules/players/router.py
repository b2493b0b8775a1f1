from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from party_api.core.identity import current_user_id, request_id_of
from party_api.modules.sessions.schemas import MembershipOut

from .schemas import JoinIn, LeaveOut, PlayersListOut
from .service import join_session, leave_session, list_players

router = APIRouter(tags=["players"])


@router.post("/sessions/join", response_model=MembershipOut)
def api_join_session(body: JoinIn, request: Request, user_id: str = Depends(current_user_id)) -> MembershipOut:
    out = join_session(
        session_code=body.session_code,
        password=body.password,
        user_id=user_id,
        display_name=body.display_name,
        request_id=request_id_of(request),
    )
    return MembershipOut(**out)


@router.delete("/sessions/{session_id}/players/me", response_model=LeaveOut)
def api_leave_session(session_id: str, request: Request, user_id: str = Depends(current_user_id)) -> LeaveOut:
    return LeaveOut(**leave_session(session_id, user_id, request_id=request_id_of(request)))


@router.get("/sessions/{session_id}/players", response_model=PlayersListOut)
def api_list_players(session_id: str, user_id: str = Depends(current_user_id)) -> PlayersListOut:
    return PlayersListOut(items=list_players(session_id, user_id))
