"""
Tests for the HTTP API.

The live service is swapped for one backed by an in-memory feed client
via FastAPI dependency overrides.
"""

import pytest
from fastapi.testclient import TestClient

from livescore.features.races.catalog import EventCatalog
from livescore.features.races.feed import FeedFetchError
from livescore.features.races.service import LiveRaceService, get_live_service
from livescore.main import app


EVENTS_YAML = """
events:
  - race_id: "100001"
    label: "Boys Slalom"
  - race_id: "100009"
    label: "Offline Race"
"""

BOYS_FEED = (
    "*=CD|hN=C3=Boys Slalom|hR=Demo Hill|hST=2026-01-10T10:00:00|"
    "*=C|I=1|b=11|n=Alex Reed|t=North|c=VM|"
    "I=2|b=12|n=Sam Lee|t=South|c=VM|endC|"
    "*=R|I=1|r=0=43.20|r=1=44.02|f=1:27.22|"
    "I=2|r=0=45.10|r=1=DNF|endR"
)


class StaticFeedClient:
    def __init__(self, feeds: dict[str, str]):
        self.feeds = feeds

    async def fetch_raw(self, race_id: str) -> str:
        if race_id not in self.feeds:
            raise FeedFetchError(race_id, "Live feed request failed (504)")
        return self.feeds[race_id]


@pytest.fixture
def client(tmp_path):
    races_dir = tmp_path / "races"
    races_dir.mkdir()
    (races_dir / "events.yaml").write_text(EVENTS_YAML, encoding="utf-8")

    service = LiveRaceService(EventCatalog(tmp_path), StaticFeedClient({"100001": BOYS_FEED}))
    app.dependency_overrides[get_live_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


# =============================================================================
# Health / live
# =============================================================================

def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


class TestLiveRoute:
    """Tests for GET /api/v1/live/{race_id}."""

    def test_scored_race(self, client):
        response = client.get("/api/v1/live/100001")
        assert response.status_code == 200

        data = response.json()
        assert data["race"]["title"] == "Boys Slalom"
        assert data["race"]["venue"] == "Demo Hill"
        assert data["race"]["source_format"] == "pipe-live-timing"
        assert [a["full_name"] for a in data["individuals"]] == ["Alex Reed", "Sam Lee"]
        assert data["individuals"][0]["gender"] == "boys"
        assert data["individuals"][1]["status"] == "dnf"

        north = data["team_scores"][0]
        assert north["team"] == "North"
        assert north["total_points"] is None
        assert north["complete_team"] is False
        assert [s["points"] for s in north["scorers"]] == [2]

    def test_unreachable_feed(self, client):
        response = client.get("/api/v1/live/100009")
        assert response.status_code == 502
        assert response.json()["detail"] == {
            "error": "Unable to parse live timing feed",
            "detail": "Live feed request failed (504)",
        }


# =============================================================================
# Directory / lookup
# =============================================================================

class TestDirectoryRoutes:
    """Tests for events, search and athlete routes."""

    def test_events(self, client):
        events = client.get("/api/v1/events").json()["events"]
        assert [(e["race_id"], e["athletes"]) for e in events] == [
            ("100001", 2),
            ("100009", 0),
        ]
        assert events[1]["updated_at"] is None

    def test_search(self, client):
        data = client.get("/api/v1/search", params={"q": "reed"}).json()
        assert data["events"] == []
        assert [a["athlete"] for a in data["athletes"]] == ["Alex Reed"]
        assert data["athletes"][0]["run1"] == "43.20"

    def test_empty_search(self, client):
        assert client.get("/api/v1/search").json() == {"events": [], "athletes": []}

    def test_athlete(self, client):
        data = client.get("/api/v1/athlete", params={"name": "sam lee"}).json()
        assert data["athlete"] == "Sam Lee"
        assert [(r["race_id"], r["status"], r["place"]) for r in data["results"]] == [
            ("100001", "dnf", None)
        ]

    def test_athlete_without_name(self, client):
        assert client.get("/api/v1/athlete").json() == {"athlete": None, "results": []}
