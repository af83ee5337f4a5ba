"""
Live race schemas.

Pydantic schemas for API response serialization. Built directly from the
feature dataclasses via from_attributes.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict

from .models import Gender, ResultStatus


class _FromAttributes(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class AthleteResultSchema(_FromAttributes):
    """Single athlete result."""
    athlete_id: str
    bib: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    full_name: str
    team: str
    team_code: Optional[str] = None
    gender: Gender
    is_varsity: bool
    place: Optional[int] = None
    time_raw: Optional[str] = None
    time_ms: Optional[int] = None
    status: ResultStatus
    source: Dict[str, Any] = {}


class ParsedRaceSchema(_FromAttributes):
    """Race snapshot."""
    race_id: str
    title: str
    venue: Optional[str] = None
    date: Optional[str] = None
    updated_at: str
    participants: List[AthleteResultSchema] = []
    source_format: str
    notes: List[str] = []


class TeamAthleteScoreSchema(_FromAttributes):
    athlete_id: str
    full_name: str
    team: str
    place: int
    points: int
    gender: Gender
    time_raw: Optional[str] = None


class TeamScoreRowSchema(_FromAttributes):
    """Team standing. total_points is null when the team did not score."""
    team: str
    gender: Gender
    total_points: Optional[int] = None
    scorers: List[TeamAthleteScoreSchema] = []
    displacers: List[TeamAthleteScoreSchema] = []
    complete_team: bool


class ScoredRaceSchema(_FromAttributes):
    """Scored race: snapshot, team standings and individual order."""
    race: ParsedRaceSchema
    team_scores: List[TeamScoreRowSchema] = []
    individuals: List[AthleteResultSchema] = []


class EventSummarySchema(_FromAttributes):
    race_id: str
    label: str
    date: Optional[str] = None
    updated_at: Optional[str] = None
    athletes: int
    teams: int


class EventListResponse(BaseModel):
    events: List[EventSummarySchema] = []


class AthleteRaceEntrySchema(_FromAttributes):
    race_id: str
    race_title: str
    race_date: Optional[str] = None
    athlete_id: str
    athlete: str
    team: str
    gender: Gender
    place: Optional[int] = None
    run1: Optional[str] = None
    run2: Optional[str] = None
    total: Optional[str] = None
    status: ResultStatus


class EventMatchSchema(_FromAttributes):
    race_id: str
    title: str


class SearchResponse(_FromAttributes):
    events: List[EventMatchSchema] = []
    athletes: List[AthleteRaceEntrySchema] = []


class AthleteHistoryResponse(BaseModel):
    athlete: Optional[str] = None
    results: List[AthleteRaceEntrySchema] = []
