"""
Tests for LiveRaceService and the event catalog.

The timing provider is replaced by an in-memory client; the catalog is
written to a temporary content directory.
"""

import asyncio
import json

import pytest

from livescore.features.races.catalog import EventCatalog
from livescore.features.races.feed import FeedFetchError
from livescore.features.races.models import Gender, GenderRuleMode, ResultStatus
from livescore.features.races.service import (
    LiveRaceService,
    matches_query,
    normalize_name,
    parse_race_ids,
)


# =============================================================================
# Test Data
# =============================================================================

EVENTS_YAML = """
events:
  - race_id: "100001"
    label: "Boys Slalom"
    event_date: "2026-01-10"
  - race_id: "100002"
    label: "Girls Slalom"
    event_date: "2026-02-10"
  - race_id: "100003"
    label: "Broken Feed"

gender_rules:
  "100002":
    mode: bib-threshold
    bib_threshold: 100
    high_bib_gender: girls
"""

BOYS_FEED = (
    "*=CD|hN=Boys Slalom|hST=2026-01-10T10:00:00|"
    "*=C|I=1|b=11|n=Alex Reed|t=North|c=M|"
    "I=2|b=12|n=Sam Lee|t=South|c=M|endC|"
    "*=R|I=1|r=0=43.20|r=1=44.02|f=1:27.22|"
    "I=2|r=0=45.10|r=1=45.90|f=1:31.00|endR"
)

GIRLS_FEED = (
    "*=CD|hN=Girls Slalom|hST=2026-02-10T10:00:00|"
    "*=C|I=7|b=107|n=Eve Lane|t=North|c=V|endC|"
    "*=R|I=7|r=0=47.01|f=47.01|endR"
)

# Alex Reed also raced in a race that is not in the catalog
EXTRA_FEED = (
    "*=CD|hN=Boys GS|hST=2026-03-01T10:00:00|"
    "*=C|I=1|b=11|n=alex  REED|t=North|c=M|endC|"
    "*=R|I=1|f=55.00|endR"
)

FIXTURE = {
    "race_id": "100003",
    "title": "Fixture Race",
    "updated_at": "2026-01-01T00:00:00+00:00",
    "source_format": "fixture",
    "date": "2026-01-05",
    "notes": ["Static snapshot."],
    "participants": [
        {
            "athlete_id": "9",
            "full_name": "Nora Kay",
            "team": "East",
            "gender": "girls",
            "status": "ok",
            "place": 1,
            "time_raw": "49.00",
            "time_ms": 49000,
        }
    ],
}


class FakeClient:
    """In-memory stand-in for LiveTimingClient."""

    def __init__(self, feeds: dict[str, str], errors: dict[str, Exception] | None = None):
        self.feeds = feeds
        self.errors = errors or {}
        self.requested: list[str] = []

    async def fetch_raw(self, race_id: str) -> str:
        self.requested.append(race_id)
        if race_id in self.errors:
            raise self.errors[race_id]
        if race_id not in self.feeds:
            raise FeedFetchError(race_id, "Live feed request failed (503)")
        return self.feeds[race_id]


@pytest.fixture
def catalog(tmp_path):
    races_dir = tmp_path / "races"
    (races_dir / "fixtures").mkdir(parents=True)
    (races_dir / "events.yaml").write_text(EVENTS_YAML, encoding="utf-8")
    return EventCatalog(tmp_path)


@pytest.fixture
def service(catalog):
    client = FakeClient(
        {"100001": BOYS_FEED, "100002": GIRLS_FEED, "200001": EXTRA_FEED}
    )
    return LiveRaceService(catalog, client)


def write_fixture(catalog: EventCatalog, data: dict) -> None:
    path = catalog.content_dir / "races" / "fixtures" / f"{data['race_id']}.json"
    path.write_text(json.dumps(data), encoding="utf-8")


# =============================================================================
# Helpers
# =============================================================================

class TestHelpers:
    """Tests for query helpers."""

    def test_normalize_name(self):
        assert normalize_name("  Alex   REED ") == "alex reed"

    def test_parse_race_ids(self):
        assert parse_race_ids("302794, 1234,abc,123456789,  288086") == ["302794", "288086"]
        assert parse_race_ids(None) == []
        assert parse_race_ids("") == []

    def test_matches_query(self):
        assert matches_query("Alex Reed North", "reed north")
        assert not matches_query("Alex Reed North", "reed south")


# =============================================================================
# Catalog
# =============================================================================

class TestEventCatalog:
    """Tests for EventCatalog."""

    def test_events(self, catalog):
        assert catalog.race_ids == ["100001", "100002", "100003"]
        assert catalog.get_event("100002").event_date == "2026-02-10"
        assert catalog.get_event("999999") is None

    def test_gender_rules(self, catalog):
        rule = catalog.gender_rules["100002"]
        assert rule.mode == GenderRuleMode.BIB_THRESHOLD
        assert rule.bib_threshold == 100
        assert rule.high_bib_gender == Gender.GIRLS

    def test_missing_catalog(self, tmp_path):
        empty = EventCatalog(tmp_path / "nowhere")
        assert empty.events == []
        assert empty.gender_rules == {}

    def test_fixture(self, catalog):
        assert catalog.load_fixture("100003") is None
        write_fixture(catalog, FIXTURE)

        race = catalog.load_fixture("100003")
        assert race.title == "Fixture Race"
        assert race.participants[0].gender == Gender.GIRLS
        assert race.participants[0].status == ResultStatus.OK
        assert race.participants[0].is_varsity is True


# =============================================================================
# Scored races
# =============================================================================

class TestGetScored:
    """Tests for LiveRaceService.get_scored."""

    def test_live_feed(self, service):
        scored = asyncio.run(service.get_scored("100001"))
        assert scored.race.title == "Boys Slalom"
        assert [a.full_name for a in scored.individuals] == ["Alex Reed", "Sam Lee"]
        assert [r.team for r in scored.team_scores] == ["North", "South"]

    def test_gender_rule_from_catalog(self, service):
        """Class code V carries no gender; bib 107 resolves to girls."""
        scored = asyncio.run(service.get_scored("100002"))
        assert scored.individuals[0].gender == Gender.GIRLS

    def test_fixture_fallback(self, service, catalog):
        write_fixture(catalog, FIXTURE)

        scored = asyncio.run(service.get_scored("100003"))

        assert scored.race.title == "Fixture Race"
        assert scored.race.updated_at != FIXTURE["updated_at"]
        assert scored.race.notes == [
            "Static snapshot.",
            "Live fetch failed: Live feed request failed (503)",
        ]
        assert [a.full_name for a in scored.individuals] == ["Nora Kay"]

    def test_no_fixture_raises(self, service):
        with pytest.raises(FeedFetchError) as exc:
            asyncio.run(service.get_scored("100003"))
        assert exc.value.race_id == "100003"


# =============================================================================
# Event directory
# =============================================================================

class TestListEvents:
    """Tests for LiveRaceService.list_events."""

    def test_newest_first_and_failures_isolated(self, service):
        events = asyncio.run(service.list_events())

        assert [e.race_id for e in events] == ["100002", "100001", "100003"]

        girls, boys, broken = events
        assert (boys.athletes, boys.teams) == (2, 2)
        assert (girls.athletes, girls.teams) == (1, 1)
        assert boys.date == "2026-01-10T10:00:00+00:00"

        assert broken.label == "Broken Feed"
        assert broken.updated_at is None
        assert (broken.athletes, broken.teams) == (0, 0)

    def test_overlong_time_in_sibling_feed(self, catalog):
        bad_csv = "name,team,time\nAlex Reed,North," + "9" * 400 + "\n"
        service = LiveRaceService(
            catalog, FakeClient({"100001": BOYS_FEED, "100002": bad_csv})
        )
        events = {e.race_id: e for e in asyncio.run(service.list_events())}

        assert events["100001"].athletes == 2
        assert events["100002"].athletes == 1

    def test_unexpected_error_isolated(self, catalog):
        """Any per-race failure only drops that race."""
        service = LiveRaceService(
            catalog,
            FakeClient({"100001": BOYS_FEED}, errors={"100002": RuntimeError("boom")}),
        )
        events = {e.race_id: e for e in asyncio.run(service.list_events())}
        assert events["100001"].athletes == 2
        assert events["100002"].updated_at is None

        found = asyncio.run(service.search("reed"))
        assert [a.athlete for a in found.athletes] == ["Alex Reed"]

        athlete, results = asyncio.run(service.athlete_history("Alex Reed"))
        assert [r.race_id for r in results] == ["100001"]

    def test_unquoted_yaml_dates(self, tmp_path):
        races_dir = tmp_path / "races"
        races_dir.mkdir()
        (races_dir / "events.yaml").write_text(
            "events:\n"
            "  - race_id: 100001\n"
            "    event_date: 2026-01-10\n"
            "  - race_id: 100002\n"
            "    event_date: 2026-02-10\n",
            encoding="utf-8",
        )
        service = LiveRaceService(EventCatalog(tmp_path), FakeClient({}))

        events = asyncio.run(service.list_events())

        assert [(e.race_id, e.date) for e in events] == [
            ("100002", "2026-02-10"),
            ("100001", "2026-01-10"),
        ]


# =============================================================================
# Athlete lookup
# =============================================================================

class TestAthleteLookup:
    """Tests for athlete_history and search."""

    def test_history(self, service):
        athlete, results = asyncio.run(service.athlete_history("alex reed", ["200001"]))

        assert athlete == "alex  REED"
        assert [r.race_id for r in results] == ["200001", "100001"]
        boys_slalom = results[1]
        assert boys_slalom.place == 1
        assert boys_slalom.run1 == "43.20"
        assert boys_slalom.run2 == "44.02"
        assert boys_slalom.total == "1:27.22"
        assert boys_slalom.status == "ok"
        assert boys_slalom.gender == "boys"

    def test_history_not_found(self, service):
        athlete, results = asyncio.run(service.athlete_history("Nobody Here"))
        assert athlete == "Nobody Here"
        assert results == []

    def test_search_athletes(self, service):
        found = asyncio.run(service.search("reed"))
        assert [(a.race_id, a.athlete) for a in found.athletes] == [("100001", "Alex Reed")]
        assert found.events == []

    def test_search_events(self, service):
        found = asyncio.run(service.search("slalom"))
        assert [e.race_id for e in found.events] == ["100001", "100002"]
        assert len(found.athletes) == 3

    def test_search_race_id_in_query(self, service):
        found = asyncio.run(service.search("200001"))
        assert [e.title for e in found.events] == ["Boys GS"]
        assert [a.athlete for a in found.athletes] == ["alex  REED"]

    def test_search_skips_broken_feeds(self, service):
        service.client.requested.clear()
        found = asyncio.run(service.search("north"))
        assert "100003" in service.client.requested
        assert {a.team for a in found.athletes} == {"North"}
