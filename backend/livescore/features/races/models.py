"""Data models for live race results (dataclasses, no DB dependency)."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# One raw athlete row from a feed: arbitrary keys, scalar values.
RawRecord = dict[str, Any]


class Gender(str, Enum):
    """Scoring group of an athlete."""

    BOYS = "boys"
    GIRLS = "girls"
    UNKNOWN = "unknown"


class ResultStatus(str, Enum):
    """Result status of an athlete."""

    OK = "ok"
    DNF = "dnf"
    DQ = "dq"
    DNS = "dns"
    UNKNOWN = "unknown"


class GenderRuleMode(str, Enum):
    """How a per-race gender override resolves unknown athletes."""

    NONE = "none"
    BIB_THRESHOLD = "bib-threshold"


@dataclass
class AthleteResult:
    """Canonical result of one athlete in one race."""

    athlete_id: str  # "1042" (feed ID, bib, or "Reed-Alex")
    full_name: str  # "Alex Reed"
    team: str  # "North" / "Unassigned"
    gender: Gender
    is_varsity: bool
    status: ResultStatus
    source: RawRecord = field(default_factory=dict)  # original feed row
    bib: str | None = None  # "101"
    first_name: str | None = None
    last_name: str | None = None
    team_code: str | None = None
    place: int | float | None = None  # 1-based, computed per gender (feed value before that)
    time_raw: str | None = None  # "43.20 R"
    time_ms: int | None = None  # 43200


@dataclass
class ParsedRace:
    """Normalized snapshot of one race feed."""

    race_id: str  # "302794"
    title: str  # "Demo Alpine Invite"
    updated_at: str  # ISO-8601 UTC
    source_format: str  # "pipe-live-timing" / "json" / "csv" / ...
    participants: list[AthleteResult] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)
    venue: str | None = None
    date: str | None = None


@dataclass
class TeamScoringConfig:
    """Team scoring rules."""

    counting_finishers: int = 4
    enforce_team_size_cap: bool = False
    max_team_roster: int = 6


@dataclass
class RaceGenderRule:
    """Per-race override for feeds that carry no gender codes."""

    mode: GenderRuleMode = GenderRuleMode.NONE
    bib_threshold: int = 100
    high_bib_gender: Gender = Gender.GIRLS


@dataclass
class TeamAthleteScore:
    """Points earned by one pooled finisher."""

    athlete_id: str
    full_name: str
    team: str
    place: int
    points: int
    gender: Gender
    time_raw: str | None = None


@dataclass
class TeamScoreRow:
    """Standing of one team within one gender group."""

    team: str
    gender: Gender
    total_points: int | None  # None = did not score (always sorts last)
    scorers: list[TeamAthleteScore] = field(default_factory=list)
    displacers: list[TeamAthleteScore] = field(default_factory=list)
    complete_team: bool = False


@dataclass
class ScoredRace:
    """Race snapshot with team standings and individual order."""

    race: ParsedRace
    team_scores: list[TeamScoreRow] = field(default_factory=list)
    individuals: list[AthleteResult] = field(default_factory=list)


@dataclass
class ExtractionResult:
    """Raw rows produced by one feed format extractor."""

    rows: list[RawRecord]
    source_format: str
    metadata: dict[str, str] = field(default_factory=dict)  # pipe header: hN, hR, hST
    notes: list[str] = field(default_factory=list)


@dataclass
class EventReference:
    """A known event listed in the catalog."""

    race_id: str
    label: str
    event_date: str | None = None


@dataclass
class EventSummary:
    """Directory entry for one event."""

    race_id: str
    label: str
    date: str | None
    updated_at: str | None  # None when the feed could not be loaded
    athletes: int
    teams: int
