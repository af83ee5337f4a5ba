"""
Events API Routes

Directory of catalog events with live athlete/team counts.
"""

from fastapi import APIRouter, Depends

from livescore.features.races.schemas import EventListResponse, EventSummarySchema
from livescore.features.races.service import LiveRaceService, get_live_service

router = APIRouter()


@router.get("", response_model=EventListResponse)
async def list_events(service: LiveRaceService = Depends(get_live_service)):
    """Get all catalog events, newest first."""
    summaries = await service.list_events()
    return EventListResponse(
        events=[EventSummarySchema.model_validate(s) for s in summaries]
    )
