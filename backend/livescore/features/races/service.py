"""LiveRaceService — fetch, parse and score live feeds; event directory and athlete lookup."""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable

from livescore.config import settings

from .catalog import EventCatalog
from .feed import FeedFetchError, LiveTimingClient
from .models import AthleteResult, EventSummary, ScoredRace, TeamScoringConfig
from .normalizers import split_runs
from .parser import parse_date, parse_feed, utc_now_iso
from .scoring import score_race

logger = logging.getLogger(__name__)

_RACE_ID = re.compile(r"^\d{5,8}$")
_RACE_ID_IN_TEXT = re.compile(r"\d{5,8}")

MAX_ATHLETES_PER_RACE = 30
MAX_ATHLETES = 100


@dataclass
class AthleteRaceEntry:
    """One athlete's result in one race, flattened for lookups."""

    race_id: str
    race_title: str
    race_date: str | None
    athlete_id: str
    athlete: str
    team: str
    gender: str
    place: int | None
    run1: str | None
    run2: str | None
    total: str | None
    status: str


@dataclass
class EventMatch:
    race_id: str
    title: str


@dataclass
class SearchResults:
    events: list[EventMatch] = field(default_factory=list)
    athletes: list[AthleteRaceEntry] = field(default_factory=list)


def normalize_name(value: str) -> str:
    """Case- and whitespace-insensitive form of a name."""
    return " ".join(value.split()).lower()


def parse_race_ids(value: str | None) -> list[str]:
    """Race IDs from a comma-separated parameter (5-8 digits each, others dropped)."""
    if not value:
        return []
    return [part.strip() for part in value.split(",") if _RACE_ID.match(part.strip())]


def matches_query(haystack: str, query: str) -> bool:
    """Every whitespace-separated query token appears in the haystack."""
    text = haystack.lower()
    return all(token in text for token in query.lower().split())


def _date_sort_value(value: str | None) -> float:
    iso = parse_date(value)
    if not iso:
        return 0.0
    return datetime.fromisoformat(iso).timestamp()


def _race_entry(race: ScoredRace, athlete: AthleteResult) -> AthleteRaceEntry:
    run0 = split_runs(athlete.source.get("run0"))
    run1 = split_runs(athlete.source.get("run1"))
    return AthleteRaceEntry(
        race_id=race.race.race_id,
        race_title=race.race.title,
        race_date=race.race.date,
        athlete_id=athlete.athlete_id,
        athlete=athlete.full_name,
        team=athlete.team,
        gender=athlete.gender.value,
        place=athlete.place,
        run1=run0[0] if run0 else None,
        run2=run1[0] if run1 else None,
        total=athlete.time_raw,
        status=athlete.status.value,
    )


class LiveRaceService:
    """Fetches raw feeds and turns them into scored races.

    Each race is fetched and scored independently: a failing feed never
    affects the others in listings and lookups.
    """

    def __init__(
        self,
        catalog: EventCatalog,
        client: LiveTimingClient,
        scoring_config: TeamScoringConfig | None = None,
    ):
        self.catalog = catalog
        self.client = client
        self.scoring_config = scoring_config or TeamScoringConfig()

    async def get_scored(self, race_id: str) -> ScoredRace:
        """Fetch, parse and score one race.

        Falls back to the catalog fixture when the feed is unreachable.

        Raises:
            FeedFetchError: Feed unreachable and no fixture for this race
        """
        try:
            raw = await self.client.fetch_raw(race_id)
        except FeedFetchError as e:
            fixture = self.catalog.load_fixture(race_id)
            if fixture is None:
                raise
            logger.warning(f"Race {race_id}: serving fallback fixture ({e})")
            fixture.updated_at = utc_now_iso()
            scored = score_race(fixture, self.scoring_config)
            scored.race.notes.append(f"Live fetch failed: {e}")
            return scored

        parsed = parse_feed(raw, race_id, self.catalog.gender_rules)
        return score_race(parsed, self.scoring_config)

    async def _get_scored_or_none(self, race_id: str) -> ScoredRace | None:
        try:
            return await self.get_scored(race_id)
        except FeedFetchError as e:
            logger.warning(f"Race {race_id} skipped: {e}")
            return None
        except Exception as e:
            logger.error(f"Race {race_id} skipped, feed could not be processed: {e}")
            return None

    async def get_many(self, race_ids: Iterable[str]) -> list[ScoredRace]:
        """Score several races concurrently, skipping unavailable ones."""
        races = await asyncio.gather(*(self._get_scored_or_none(r) for r in race_ids))
        return [race for race in races if race is not None]

    def _race_ids(self, *extra: Iterable[str]) -> list[str]:
        ids = list(self.catalog.race_ids)
        for group in extra:
            ids.extend(group)
        return list(dict.fromkeys(ids))

    # === Event directory ===

    async def list_events(self) -> list[EventSummary]:
        """Summaries of all catalog events, newest first."""
        events = self.catalog.events
        races = await asyncio.gather(*(self._get_scored_or_none(e.race_id) for e in events))

        summaries = []
        for event, scored in zip(events, races):
            if scored is None:
                summaries.append(
                    EventSummary(
                        race_id=event.race_id,
                        label=event.label,
                        date=event.event_date,
                        updated_at=None,
                        athletes=0,
                        teams=0,
                    )
                )
                continue
            participants = scored.race.participants
            summaries.append(
                EventSummary(
                    race_id=event.race_id,
                    label=scored.race.title or event.label,
                    date=scored.race.date,
                    updated_at=scored.race.updated_at,
                    athletes=len(participants),
                    teams=len({(p.gender, p.team) for p in participants}),
                )
            )

        summaries.sort(key=lambda s: _date_sort_value(s.date), reverse=True)
        return summaries

    # === Athlete lookup ===

    async def athlete_history(
        self, name: str, extra_ids: Iterable[str] = ()
    ) -> tuple[str, list[AthleteRaceEntry]]:
        """All results of one athlete (exact normalized name) across races."""
        target = normalize_name(name)
        races = await self.get_many(self._race_ids(extra_ids))

        results = [
            _race_entry(race, athlete)
            for race in races
            for athlete in race.individuals
            if normalize_name(athlete.full_name) == target
        ]
        results.sort(key=lambda r: _date_sort_value(r.race_date), reverse=True)
        athlete = results[0].athlete if results else name
        return athlete, results

    async def search(self, query: str, extra_ids: Iterable[str] = ()) -> SearchResults:
        """Events and athletes matching every token of the query."""
        query = query.strip().lower()
        direct_ids = list(dict.fromkeys(_RACE_ID_IN_TEXT.findall(query)))
        races = await self.get_many(self._race_ids(extra_ids, direct_ids))

        events = [
            EventMatch(race_id=race.race.race_id, title=race.race.title)
            for race in races
            if matches_query(f"{race.race.title} {race.race.race_id}", query)
        ]

        athletes: list[AthleteRaceEntry] = []
        for race in races:
            matched = [
                a
                for a in race.individuals
                if matches_query(
                    " ".join(
                        [a.full_name, a.team, a.bib or "", race.race.title, race.race.race_id]
                    ),
                    query,
                )
            ]
            athletes.extend(_race_entry(race, a) for a in matched[:MAX_ATHLETES_PER_RACE])

        return SearchResults(events=events, athletes=athletes[:MAX_ATHLETES])


# Singleton service (catalog loaded once, cached)
_service: LiveRaceService | None = None


def scoring_config_from_settings() -> TeamScoringConfig:
    return TeamScoringConfig(
        counting_finishers=settings.counting_finishers,
        enforce_team_size_cap=settings.enforce_team_size_cap,
        max_team_roster=settings.max_team_roster,
    )


def get_live_service() -> LiveRaceService:
    """FastAPI dependency: shared LiveRaceService."""
    global _service
    if _service is None:
        _service = LiveRaceService(
            catalog=EventCatalog(settings.content_dir),
            client=LiveTimingClient(),
            scoring_config=scoring_config_from_settings(),
        )
    return _service
