"""
Search API Routes

Search events and athletes across catalog races.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from livescore.features.races.schemas import SearchResponse
from livescore.features.races.service import (
    LiveRaceService,
    get_live_service,
    parse_race_ids,
)

router = APIRouter()


@router.get("", response_model=SearchResponse)
async def search(
    q: str = Query(default=""),
    ids: Optional[str] = Query(default=None, description="Extra race IDs, comma-separated"),
    service: LiveRaceService = Depends(get_live_service),
):
    """Search events (title/ID) and athletes (name/team/bib).

    Race IDs typed into the query are searched too.
    """
    if not q.strip():
        return SearchResponse()
    results = await service.search(q, parse_race_ids(ids))
    return SearchResponse.model_validate(results)
