from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from party_api.core.identity import current_user_id, request_id_of

from .schemas import MembershipOut, SessionCreateIn, SessionOut
from .service import (
    advance_round,
    create_session,
    end_voting,
    get_active_session,
    get_session,
    start_session,
)

router = APIRouter(tags=["sessions"])


@router.post("/sessions", response_model=MembershipOut)
def api_create_session(
    body: SessionCreateIn, request: Request, user_id: str = Depends(current_user_id)
) -> MembershipOut:
    out = create_session(
        story_id=body.story_id,
        host_id=user_id,
        password=body.password or None,
        display_name=body.display_name,
        request_id=request_id_of(request),
    )
    return MembershipOut(**out)


@router.get("/me/session", response_model=MembershipOut)
def api_active_session(user_id: str = Depends(current_user_id)) -> MembershipOut:
    return MembershipOut(**get_active_session(user_id))


@router.get("/sessions/{session_id}", response_model=SessionOut)
def api_get_session(session_id: str, user_id: str = Depends(current_user_id)) -> SessionOut:
    return SessionOut(**get_session(session_id, user_id))


@router.post("/sessions/{session_id}/start", response_model=SessionOut)
def api_start_session(session_id: str, request: Request, user_id: str = Depends(current_user_id)) -> SessionOut:
    return SessionOut(**start_session(session_id, user_id, request_id=request_id_of(request)))


@router.post("/sessions/{session_id}/rounds/advance", response_model=SessionOut)
def api_advance_round(session_id: str, request: Request, user_id: str = Depends(current_user_id)) -> SessionOut:
    return SessionOut(**advance_round(session_id, user_id, request_id=request_id_of(request)))


@router.post("/sessions/{session_id}/voting/end", response_model=SessionOut)
def api_end_voting(session_id: str, request: Request, user_id: str = Depends(current_user_id)) -> SessionOut:
    return SessionOut(**end_voting(session_id, user_id, request_id=request_id_of(request)))
