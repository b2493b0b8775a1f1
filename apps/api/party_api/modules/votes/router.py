from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from party_api.core.identity import current_user_id, request_id_of

from .schemas import ResultsOut, TallyOut, VoteCreateIn, VoteOut
from .service import cast_vote, get_results, get_tally

router = APIRouter(tags=["votes"])


@router.post("/sessions/{session_id}/votes", response_model=VoteOut)
def api_cast_vote(
    session_id: str, body: VoteCreateIn, request: Request, user_id: str = Depends(current_user_id)
) -> VoteOut:
    return VoteOut(**cast_vote(session_id, user_id, body.accused_id, request_id=request_id_of(request)))


@router.get("/sessions/{session_id}/votes/tally", response_model=TallyOut)
def api_tally(session_id: str, user_id: str = Depends(current_user_id)) -> TallyOut:
    return TallyOut(**get_tally(session_id, user_id))


@router.get("/sessions/{session_id}/results", response_model=ResultsOut)
def api_results(session_id: str, user_id: str = Depends(current_user_id)) -> ResultsOut:
    return ResultsOut(**get_results(session_id, user_id))
