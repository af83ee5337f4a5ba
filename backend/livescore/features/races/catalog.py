"""Event catalog loader — reads events.yaml and fallback fixtures."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import yaml

from .models import (
    AthleteResult,
    EventReference,
    Gender,
    GenderRuleMode,
    ParsedRace,
    RaceGenderRule,
    ResultStatus,
)

logger = logging.getLogger(__name__)


class EventCatalog:
    """Known events, per-race gender rules and fallback snapshots.

    Layout under content_dir:
        races/events.yaml              events + gender_rules
        races/fixtures/<race_id>.json  snapshot used when the live feed is down
    """

    def __init__(self, content_dir: Path):
        self.content_dir = content_dir
        self._events: list[EventReference] | None = None
        self._gender_rules: dict[str, RaceGenderRule] | None = None

    def load(self) -> list[EventReference]:
        """Load catalog from events.yaml."""
        self._events = []
        self._gender_rules = {}

        yaml_path = self.content_dir / "races" / "events.yaml"
        if not yaml_path.exists():
            logger.warning(f"Event catalog not found: {yaml_path}")
            return self._events

        with open(yaml_path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        self._events = [
            EventReference(
                race_id=str(e["race_id"]),
                label=e.get("label") or f"Race {e['race_id']}",
                # Unquoted YAML dates load as datetime.date
                event_date=str(e["event_date"]) if e.get("event_date") is not None else None,
            )
            for e in data.get("events", [])
        ]
        self._gender_rules = {
            str(race_id): RaceGenderRule(
                mode=GenderRuleMode(rule.get("mode", "none")),
                bib_threshold=int(rule.get("bib_threshold", 100)),
                high_bib_gender=Gender(rule.get("high_bib_gender", "girls")),
            )
            for race_id, rule in (data.get("gender_rules") or {}).items()
        }
        return self._events

    @property
    def events(self) -> list[EventReference]:
        if self._events is None:
            self.load()
        return self._events or []

    @property
    def gender_rules(self) -> dict[str, RaceGenderRule]:
        if self._gender_rules is None:
            self.load()
        return self._gender_rules or {}

    @property
    def race_ids(self) -> list[str]:
        return [e.race_id for e in self.events]

    def get_event(self, race_id: str) -> EventReference | None:
        return next((e for e in self.events if e.race_id == race_id), None)

    def get_fixture_path(self, race_id: str) -> Path | None:
        """Full path to the fallback snapshot for a race."""
        path = self.content_dir / "races" / "fixtures" / f"{race_id}.json"
        return path if path.exists() else None

    def load_fixture(self, race_id: str) -> ParsedRace | None:
        """Load the fallback snapshot for a race, if one exists."""
        path = self.get_fixture_path(race_id)
        if not path:
            return None
        return _load_fixture_json(path)


def _load_fixture_json(path: Path) -> ParsedRace:
    """Load ParsedRace from a fixture JSON file."""
    raw = json.loads(path.read_text(encoding="utf-8"))

    participants = [
        AthleteResult(
            athlete_id=str(p["athlete_id"]),
            full_name=p["full_name"],
            team=p.get("team") or "Unassigned",
            gender=Gender(p.get("gender", "unknown")),
            is_varsity=p.get("is_varsity", True),
            status=ResultStatus(p.get("status", "unknown")),
            source=p.get("source") or {},
            bib=p.get("bib"),
            first_name=p.get("first_name"),
            last_name=p.get("last_name"),
            team_code=p.get("team_code"),
            place=p.get("place"),
            time_raw=p.get("time_raw"),
            time_ms=p.get("time_ms"),
        )
        for p in raw.get("participants", [])
    ]

    return ParsedRace(
        race_id=str(raw["race_id"]),
        title=raw["title"],
        updated_at=raw.get("updated_at", ""),
        source_format=raw.get("source_format", "fixture"),
        participants=participants,
        notes=list(raw.get("notes", [])),
        venue=raw.get("venue"),
        date=raw.get("date"),
    )
