"""
Athlete API Routes

Results history of one athlete across races.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from livescore.features.races.schemas import AthleteHistoryResponse, AthleteRaceEntrySchema
from livescore.features.races.service import (
    LiveRaceService,
    get_live_service,
    parse_race_ids,
)

router = APIRouter()


@router.get("", response_model=AthleteHistoryResponse)
async def athlete_history(
    name: str = Query(default=""),
    ids: Optional[str] = Query(default=None, description="Extra race IDs, comma-separated"),
    service: LiveRaceService = Depends(get_live_service),
):
    """Get every result of an athlete (exact name match), newest race first."""
    if not name.strip():
        return AthleteHistoryResponse()
    athlete, results = await service.athlete_history(name.strip(), parse_race_ids(ids))
    return AthleteHistoryResponse(
        athlete=athlete,
        results=[AthleteRaceEntrySchema.model_validate(r) for r in results],
    )
