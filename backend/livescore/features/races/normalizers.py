"""Normalization of heterogeneous feed rows into AthleteResult.

Feeds from different timing vendors disagree on field names and on how
gender, status and time are encoded. Every attribute is read through an
ordered alias list; the first key that is present (value not None) wins,
even when its value is an empty string.
"""

from __future__ import annotations

import math
import re
from typing import Any, Iterable, Sequence

from .models import AthleteResult, Gender, RawRecord, ResultStatus

UNKNOWN_ATHLETE = "Unknown Athlete"
UNASSIGNED_TEAM = "Unassigned"

# Alias lists, in lookup order
TEAM_KEYS = ("team", "teamName", "school", "club", "t")
TEAM_CODE_KEYS = ("teamCode", "schoolCode", "team_code")
TIME_KEYS = ("time", "timeRaw", "total", "runTotal", "f")
STATUS_KEYS = ("status", "resultStatus")
PLACE_KEYS = ("place", "rank", "position", "order")
GENDER_KEYS = ("gender", "sex", "group", "c", "class", "L")
VARSITY_KEYS = ("isVarsity", "varsity", "rosterType", "teamLevel", "c", "class", "L")
BIB_KEYS = ("bib", "BIB", "b")
FIRST_NAME_KEYS = ("firstName", "first_name", "fname")
LAST_NAME_KEYS = ("lastName", "last_name", "lname")
FULL_NAME_KEYS = ("name", "fullName", "full_name", "n")
ID_KEYS = (
    "athleteId",
    "athlete_id",
    "competitorId",
    "competitor_id",
    "I",
    "bib",
    "BIB",
    "b",
    "id",
)

_STATUS_PATTERN = re.compile(
    r"dnf|dsq|dq|dns|did not finish|did not start|disqualified", re.IGNORECASE
)
_DNS_PATTERN = re.compile(r"dns|did not start", re.IGNORECASE)
_DQ_PATTERN = re.compile(r"dq|dsq|disqualified", re.IGNORECASE)

_BOYS_CODES = {"mjv", "jvm", "vm", "m", "male", "men", "boys", "r", "red"}
_GIRLS_CODES = {"fjv", "jvf", "vf", "f", "female", "women", "girls", "l", "lady"}

_SIDE_MARKER = re.compile(r"\b[RL]\b")
_NOT_TIME_CHARS = re.compile(r"[^0-9:.]")


# =============================================================================
# Field access
# =============================================================================


def as_text(value: Any) -> str:
    """Render a scalar feed value as text ("" for None).

    Integral floats lose their ".0" and booleans are lowercase, so IDs and
    bibs read the same whether the feed sent them as numbers or strings.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def first_present(record: RawRecord, keys: Iterable[str]) -> Any:
    """Value of the first key in `keys` whose value is not None."""
    for key in keys:
        value = record.get(key)
        if value is not None:
            return value
    return None


def first_text(record: RawRecord, keys: Iterable[str]) -> str | None:
    """Trimmed text of the first present key, or None when blank."""
    return as_text(first_present(record, keys)).strip() or None


def split_runs(value: Any) -> list[str]:
    """Split a comma-joined run field into its non-empty entries."""
    return [part.strip() for part in as_text(value).split(",") if part.strip()]


# =============================================================================
# Time / status
# =============================================================================


def time_to_ms(value: Any) -> int | None:
    """Parse a race time into milliseconds.

    "43.20"     → 43200
    "1:02.50 R" → 62500
    "DNF"       → None
    """
    text = as_text(value).strip()
    if not text:
        return None

    clean = _NOT_TIME_CHARS.sub("", _SIDE_MARKER.sub("", text))
    if not clean:
        return None

    groups = clean.split(":")
    if len(groups) > 2:
        return None

    seconds_part = groups[-1]
    minutes_part = groups[-2] if len(groups) == 2 else ""
    if not seconds_part:
        return None

    try:
        seconds = float(seconds_part)
        minutes = float(minutes_part) if minutes_part else 0.0
    except ValueError:
        return None
    if not math.isfinite(seconds) or not math.isfinite(minutes):
        return None

    return math.floor((minutes * 60 + seconds) * 1000 + 0.5)


def status_of(status_field: Any, time_field: Any = None) -> ResultStatus:
    """Classify a status/time pair.

    DNS outranks DQ, which outranks DNF, when the text carries several.
    """
    text = as_text(status_field).strip().lower()
    time_text = as_text(time_field).strip()

    if text in ("ok", "finished", "valid"):
        return ResultStatus.OK
    if text == "dnf":
        return ResultStatus.DNF
    if text in ("dq", "dsq", "disqualified"):
        return ResultStatus.DQ
    if text == "dns":
        return ResultStatus.DNS
    if not text and not time_text:
        return ResultStatus.UNKNOWN

    if _STATUS_PATTERN.search(text) or _STATUS_PATTERN.search(time_text):
        if _DNS_PATTERN.search(text) or _DNS_PATTERN.search(time_text):
            return ResultStatus.DNS
        if _DQ_PATTERN.search(text) or _DQ_PATTERN.search(time_text):
            return ResultStatus.DQ
        return ResultStatus.DNF
    return ResultStatus.OK


# =============================================================================
# Gender / varsity
# =============================================================================


def gender_of(value: Any, time_field: str | None = None) -> Gender:
    """Map a role/class code to a gender.

    Falls back to the course-side marker in the time string
    ("44.10 R" → boys, "45.02 L" → girls).
    """
    text = as_text(value).strip().lower()
    if text in _BOYS_CODES:
        return Gender.BOYS
    if text in _GIRLS_CODES:
        return Gender.GIRLS

    if time_field:
        if re.search(r"\bR\b", time_field):
            return Gender.BOYS
        if re.search(r"\bL\b", time_field):
            return Gender.GIRLS

    return Gender.UNKNOWN


def varsity_of(value: Any) -> bool | None:
    """Map a roster marker to a varsity flag (None when undeterminable)."""
    if isinstance(value, bool):
        return value
    text = as_text(value).strip().lower()
    if text in ("mjv", "fjv"):
        return False
    if text in ("vm", "vf", "varsity", "v"):
        return True
    if text in ("jvm", "jvf", "jv", "junior varsity"):
        return False
    if text in ("1", "true", "yes", "y"):
        return True
    if text in ("0", "false", "no", "n"):
        return False
    return None


# =============================================================================
# Record normalizer
# =============================================================================


def _read_place(record: RawRecord) -> int | float | None:
    """Positive place reported by the feed, kept as reported ("2.5" → 2.5)."""
    value = first_present(record, PLACE_KEYS)
    if isinstance(value, bool) or value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number) or number <= 0:
        return None
    return int(number) if number.is_integer() else number


def _read_name(record: RawRecord) -> tuple[str | None, str | None, str]:
    first_name = first_text(record, FIRST_NAME_KEYS)
    last_name = first_text(record, LAST_NAME_KEYS)
    full_name = (
        first_text(record, FULL_NAME_KEYS)
        or " ".join(part for part in (first_name, last_name) if part)
        or UNKNOWN_ATHLETE
    )
    return first_name, last_name, full_name


def athlete_id_of(record: RawRecord) -> str:
    """Identity: explicit ID field, then bib, then "lastName-firstName"."""
    value = first_present(record, ID_KEYS)
    if value is None:
        value = f"{as_text(record.get('lastName'))}-{as_text(record.get('firstName'))}"
    return as_text(value).strip()


def normalize_record(record: RawRecord) -> AthleteResult | None:
    """Build an AthleteResult from one raw row, or None if it has no identity/name."""
    run0 = split_runs(record.get("run0"))
    run1 = split_runs(record.get("run1"))
    time_value = first_present(record, TIME_KEYS)
    if time_value is None:
        time_value = run0[0] if run0 else (run1[0] if run1 else None)
    time_raw = as_text(time_value).strip() or None

    first_name, last_name, full_name = _read_name(record)
    athlete_id = athlete_id_of(record)
    if not athlete_id or full_name == UNKNOWN_ATHLETE:
        return None

    varsity = varsity_of(first_present(record, VARSITY_KEYS))

    return AthleteResult(
        athlete_id=athlete_id,
        full_name=full_name,
        team=first_text(record, TEAM_KEYS) or UNASSIGNED_TEAM,
        gender=gender_of(first_present(record, GENDER_KEYS), time_raw),
        is_varsity=True if varsity is None else varsity,
        status=status_of(first_present(record, STATUS_KEYS), time_raw),
        source=record,
        bib=first_text(record, BIB_KEYS),
        first_name=first_name,
        last_name=last_name,
        team_code=first_text(record, TEAM_CODE_KEYS),
        place=_read_place(record),
        time_raw=time_raw,
        time_ms=time_to_ms(time_raw),
    )


def dedupe(results: Sequence[AthleteResult]) -> list[AthleteResult]:
    """Keep the first result per (athlete_id, time_raw, status), in order."""
    seen: set[tuple[str, str | None, ResultStatus]] = set()
    unique: list[AthleteResult] = []
    for result in results:
        key = (result.athlete_id, result.time_raw, result.status)
        if key in seen:
            continue
        seen.add(key)
        unique.append(result)
    return unique


def normalize_records(rows: Iterable[RawRecord]) -> list[AthleteResult]:
    """Normalize every row, drop unusable ones, and dedupe."""
    results = [r for r in (normalize_record(row) for row in rows) if r is not None]
    return dedupe(results)
