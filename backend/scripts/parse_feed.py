#!/usr/bin/env python3
"""CLI script for parsing live timing feeds and viewing team scores.

Usage:
    # Fetch a live feed, print team standings
    python backend/scripts/parse_feed.py --race-id 302794 --teams

    # Parse a saved raw feed and save the scored result to JSON
    python backend/scripts/parse_feed.py \
        --file feeds/302794.txt --race-id 302794 \
        --save content/races/scored/302794.json

    # Search by name
    python backend/scripts/parse_feed.py --file feeds/302794.txt --search "Reed"
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from livescore.config import settings
from livescore.features.races.catalog import EventCatalog
from livescore.features.races.feed import FeedFetchError, LiveTimingClient
from livescore.features.races.models import ScoredRace
from livescore.features.races.parser import parse_feed
from livescore.features.races.schemas import ScoredRaceSchema
from livescore.features.races.scoring import score_race
from livescore.features.races.service import normalize_name, scoring_config_from_settings


def save_to_json(scored: ScoredRace, path: Path) -> None:
    """Save ScoredRace to JSON."""
    output = ScoredRaceSchema.model_validate(scored).model_dump(mode="json")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(output, ensure_ascii=False, indent=2), encoding="utf-8")
    print(f"Saved to {path} ({len(scored.individuals)} athletes)")


def print_summary(scored: ScoredRace) -> None:
    race = scored.race
    print(f"\n=== {race.title} ({race.race_id}) ===")
    if race.venue or race.date:
        print(" · ".join(v for v in (race.venue, race.date) if v))
    print(f"Format:   {race.source_format}")
    print(f"Athletes: {len(race.participants)}")
    for note in race.notes:
        print(f"  note: {note}")


def print_teams(scored: ScoredRace) -> None:
    """Print team standings per gender."""
    current_gender = None
    for rank, row in enumerate(scored.team_scores, start=1):
        if row.gender != current_gender:
            current_gender = row.gender
            print(f"\n--- {current_gender.value} ---")
        total = row.total_points if row.total_points is not None else "-"
        places = ", ".join(str(s.place) for s in row.scorers)
        extra = ""
        if row.displacers:
            extra = f"  (+{', '.join(str(d.place) for d in row.displacers)})"
        flag = "" if row.complete_team else "  incomplete"
        print(f"  {row.team:<24s} {total:>5}  [{places}]{extra}{flag}")


def print_search(scored: ScoredRace, query: str) -> None:
    """Print individuals whose name contains the query."""
    print(f'\nSearch "{query}":')
    target = normalize_name(query)
    found = [a for a in scored.individuals if target in normalize_name(a.full_name)]
    for a in found:
        place = f"#{a.place}" if a.place else a.status.value.upper()
        print(f"  {place:>5}  {a.full_name}  {a.team}  {a.time_raw or ''}  ({a.gender.value})")
    if not found:
        print(f'  No results for "{query}"')


def main() -> None:
    parser = argparse.ArgumentParser(description="Parse and score live timing feeds")
    parser.add_argument("--race-id", help="Race ID (fetched live unless --file is given)")
    parser.add_argument("--file", help="Parse a saved raw feed file")
    parser.add_argument("--save", help="Save scored race to JSON file")
    parser.add_argument("--teams", action="store_true", help="Show team standings")
    parser.add_argument("--search", help="Search for athlete by name")

    args = parser.parse_args()

    if not args.race_id and not args.file:
        parser.error("Either --race-id or --file is required")

    catalog = EventCatalog(settings.content_dir)
    race_id = args.race_id or Path(args.file).stem

    # Load raw feed
    if args.file:
        path = Path(args.file)
        if not path.exists():
            print(f"File not found: {path}")
            sys.exit(1)
        raw = path.read_text(encoding="utf-8-sig")
    else:
        print(f"Fetching race {race_id}...")
        try:
            raw = asyncio.run(LiveTimingClient().fetch_raw(race_id))
        except FeedFetchError as e:
            print(f"Fetch failed: {e}")
            sys.exit(1)

    parsed = parse_feed(raw, race_id, catalog.gender_rules)
    scored = score_race(parsed, scoring_config_from_settings())
    print_summary(scored)

    if args.save:
        save_to_json(scored, Path(args.save))

    if args.teams or not (args.save or args.search):
        print_teams(scored)

    if args.search:
        print_search(scored, args.search)


if __name__ == "__main__":
    main()
