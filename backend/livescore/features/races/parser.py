"""Live timing feed → ParsedRace pipeline.

raw text → extractor cascade → raw rows → normalized results
→ gender rule / title hint → places.

Never raises for data problems: an unusable feed yields an empty
participant list with notes explaining why.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Mapping

from .extractors import extract_rows
from .models import ParsedRace, RaceGenderRule, RawRecord
from .normalizers import first_text, normalize_records
from .placing import apply_gender_rule, apply_title_hint, assign_places

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Live Timing Event"
NO_PARTICIPANTS_NOTE = (
    "No participants recognized; feed mapping may need adjustment for this race format."
)

_TITLE_PREFIX = re.compile(r"^C\d+=", re.IGNORECASE)

# Start-time formats seen in feed headers besides ISO-8601
_DATE_FORMATS = (
    "%m/%d/%Y %I:%M %p",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y",
    "%b %d, %Y",
    "%B %d, %Y",
)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def parse_date(value: str | None) -> str | None:
    """Parse a feed date to ISO-8601 (UTC when no offset is given)."""
    if not value:
        return None
    text = value.strip()
    parsed: datetime | None = None
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        for fmt in _DATE_FORMATS:
            try:
                parsed = datetime.strptime(text, fmt)
                break
            except ValueError:
                continue
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc).isoformat()


def sanitize_title(value: str) -> str:
    """Drop the course prefix some feeds put on titles ("C12=Boys GS" → "Boys GS")."""
    return _TITLE_PREFIX.sub("", value).strip()


def derive_metadata(
    rows: list[RawRecord], header: Mapping[str, str] | None = None
) -> tuple[str, str | None, str | None]:
    """Title, venue and date from the pipe header or the first row."""
    header = header or {}
    first = rows[0] if rows else {}

    title = (
        header.get("hN")
        or first_text(first, ("event", "race", "raceName"))
        or DEFAULT_TITLE
    )
    venue = (header.get("hR") or "").strip() or first_text(first, ("venue", "location"))
    date = parse_date(header.get("hST")) or first_text(first, ("date", "raceDate"))
    return sanitize_title(title), venue, date


def parse_feed(
    raw: str,
    race_id: str,
    gender_rules: Mapping[str, RaceGenderRule] | None = None,
) -> ParsedRace:
    """Parse a raw feed body into a normalized, placed race snapshot.

    Args:
        raw: Feed body as returned by the timing provider.
        race_id: Provider race identifier.
        gender_rules: Per-race gender overrides, keyed by race_id.
    """
    extraction = extract_rows(raw)
    notes = list(extraction.notes)

    title, venue, date = derive_metadata(extraction.rows, extraction.metadata)

    results = normalize_records(extraction.rows)
    rule = (gender_rules or {}).get(race_id)
    results = apply_gender_rule(results, rule)
    results = apply_title_hint(results, title)
    participants = assign_places(results)

    if not participants:
        logger.info(
            f"Race {race_id}: no participants recognized (format={extraction.source_format})"
        )
        notes.append(NO_PARTICIPANTS_NOTE)

    return ParsedRace(
        race_id=race_id,
        title=title,
        updated_at=utc_now_iso(),
        source_format=extraction.source_format,
        participants=participants,
        notes=notes,
        venue=venue,
        date=date,
    )
