"""Gender resolution for unlabeled athletes and per-gender place assignment."""

from __future__ import annotations

import re
from dataclasses import replace
from typing import Sequence

from .models import AthleteResult, Gender, GenderRuleMode, RaceGenderRule, ResultStatus

_LEADING_DIGITS = re.compile(r"^(\d+)")
_BOYS_TITLE = re.compile(r"\b(men|boys|male)\b")
_GIRLS_TITLE = re.compile(r"\b(women|girls|female|ladies)\b")


def parse_bib_number(bib: str | None) -> int | None:
    """Leading digit run of a bib ("112A" → 112, "A12" → None)."""
    if not bib:
        return None
    match = _LEADING_DIGITS.match(bib)
    return int(match.group(1)) if match else None


def apply_gender_rule(
    results: Sequence[AthleteResult], rule: RaceGenderRule | None
) -> list[AthleteResult]:
    """Resolve unknown genders from bib ranges.

    Used for feeds whose class codes are VARSITY/JV only and whose bibs are
    split by gender (e.g. boys 1-99, girls 100+).
    """
    if rule is None or rule.mode != GenderRuleMode.BIB_THRESHOLD:
        return list(results)

    high = rule.high_bib_gender
    low = Gender.BOYS if high == Gender.GIRLS else Gender.GIRLS

    resolved = []
    for result in results:
        bib_number = parse_bib_number(result.bib)
        if result.gender != Gender.UNKNOWN or bib_number is None:
            resolved.append(result)
            continue
        gender = high if bib_number >= rule.bib_threshold else low
        resolved.append(replace(result, gender=gender))
    return resolved


def gender_from_title(title: str) -> Gender | None:
    """Gender implied by a race title ("Boys Slalom" → boys), if unambiguous."""
    lower = title.lower()
    has_boys = bool(_BOYS_TITLE.search(lower))
    has_girls = bool(_GIRLS_TITLE.search(lower))
    if has_boys and not has_girls:
        return Gender.BOYS
    if has_girls and not has_boys:
        return Gender.GIRLS
    return None


def apply_title_hint(results: Sequence[AthleteResult], title: str) -> list[AthleteResult]:
    hint = gender_from_title(title)
    if hint is None:
        return list(results)
    return [
        replace(r, gender=hint) if r.gender == Gender.UNKNOWN else r for r in results
    ]


def assign_places(results: Sequence[AthleteResult]) -> list[AthleteResult]:
    """Rank finishers by time within each gender.

    Only status=ok results with a parsed time get a place; everyone else
    ends up without one. Input order is preserved.
    """
    placed = [replace(r, place=None) for r in results]

    groups: dict[Gender, list[AthleteResult]] = {}
    for result in placed:
        groups.setdefault(result.gender, []).append(result)

    for group in groups.values():
        finishers = [
            r for r in group if r.status == ResultStatus.OK and r.time_ms is not None
        ]
        finishers.sort(key=lambda r: r.time_ms)
        for place, result in enumerate(finishers, start=1):
            result.place = place

    return placed
