from __future__ import annotations

from fastapi import APIRouter, Path, Request

from party_api.core.identity import request_id_of

from .schemas import StoriesListOut, StoryCreateIn, StoryDetailOut
from .service import create_story, get_story, list_stories

router = APIRouter(tags=["stories"])


@router.get("/stories", response_model=StoriesListOut)
def api_list_stories() -> StoriesListOut:
    return StoriesListOut(items=list_stories())


@router.get("/stories/{story_id}", response_model=StoryDetailOut)
def api_get_story(story_id: str = Path(...)) -> StoryDetailOut:
    return StoryDetailOut(**get_story(story_id))


@router.post("/stories", response_model=StoryDetailOut)
def api_create_story(body: StoryCreateIn, request: Request) -> StoryDetailOut:
    return StoryDetailOut(**create_story(body.model_dump(), request_id=request_id_of(request)))
