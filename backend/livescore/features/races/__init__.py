"""Races feature module — live feed parsing, placing and team scoring."""

from .models import (
    AthleteResult,
    ExtractionResult,
    Gender,
    GenderRuleMode,
    ParsedRace,
    RaceGenderRule,
    ResultStatus,
    ScoredRace,
    TeamAthleteScore,
    TeamScoreRow,
    TeamScoringConfig,
)
from .extractors import extract_rows
from .normalizers import gender_of, normalize_record, status_of, time_to_ms, varsity_of
from .parser import parse_feed
from .placing import apply_gender_rule, apply_title_hint, assign_places
from .scoring import score_race

__all__ = [
    "AthleteResult",
    "ExtractionResult",
    "Gender",
    "GenderRuleMode",
    "ParsedRace",
    "RaceGenderRule",
    "ResultStatus",
    "ScoredRace",
    "TeamAthleteScore",
    "TeamScoreRow",
    "TeamScoringConfig",
    "extract_rows",
    "gender_of",
    "normalize_record",
    "status_of",
    "time_to_ms",
    "varsity_of",
    "parse_feed",
    "apply_gender_rule",
    "apply_title_hint",
    "assign_places",
    "score_race",
]
