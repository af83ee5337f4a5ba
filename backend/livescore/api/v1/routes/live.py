"""
Live Race API Routes

Scored snapshot of a single race feed.
"""

from fastapi import APIRouter, Depends, HTTPException

from livescore.features.races.feed import FeedFetchError
from livescore.features.races.schemas import ScoredRaceSchema
from livescore.features.races.service import LiveRaceService, get_live_service

router = APIRouter()


@router.get("/{race_id}", response_model=ScoredRaceSchema)
async def get_live_race(
    race_id: str,
    service: LiveRaceService = Depends(get_live_service),
):
    """Fetch, parse and score a race feed."""
    try:
        scored = await service.get_scored(race_id)
    except FeedFetchError as e:
        raise HTTPException(
            status_code=502,
            detail={"error": "Unable to parse live timing feed", "detail": str(e)},
        )
    return ScoredRaceSchema.model_validate(scored)
