"""Team scoring for placed race results.

Scoring is done per gender group. Pooled finishers earn
`started - rank` points (never negative), the first `counting_finishers`
of each team score, the rest are displacers used for tie-breaks.
"""

from __future__ import annotations

import sys
from dataclasses import replace
from typing import Sequence

from .models import (
    AthleteResult,
    Gender,
    ParsedRace,
    ResultStatus,
    ScoredRace,
    TeamAthleteScore,
    TeamScoreRow,
    TeamScoringConfig,
)
from .normalizers import as_text, first_present

_VARSITY_CODES = {"jv", "jvm", "jvf", "v", "vm", "vf", "varsity", "junior varsity"}
_MAX = sys.maxsize


def finish_key(result: AthleteResult) -> tuple[int, int]:
    """Sort key: place, then time; missing values last."""
    place = result.place if result.place is not None else _MAX
    time_ms = result.time_ms if result.time_ms is not None else _MAX
    return place, time_ms


def is_eligible_finisher(result: AthleteResult) -> bool:
    return result.status == ResultStatus.OK and (result.place or 0) > 0


def has_varsity_designation(result: AthleteResult) -> bool:
    """True if the feed marked this athlete's roster level explicitly."""
    source = result.source
    # A present key counts even when its value is null
    if any(key in source for key in ("varsity", "isVarsity", "rosterType")):
        return True
    code = as_text(first_present(source, ("c", "class", "L"))).strip().lower()
    return code in _VARSITY_CODES


def varsity_only(group: Sequence[AthleteResult]) -> list[AthleteResult]:
    """Keep varsity athletes when the feed designates rosters, else everyone."""
    if any(has_varsity_designation(r) for r in group):
        return [r for r in group if r.is_varsity]
    return [replace(r, is_varsity=True) for r in group]


def has_started(result: AthleteResult) -> bool:
    if result.status == ResultStatus.DNS:
        return False
    runs = (as_text(result.source.get(key)).strip() for key in ("run0", "run1", "runRaw"))
    return bool(result.time_raw) or any(runs)


def split_by_gender(results: Sequence[AthleteResult]) -> list[list[AthleteResult]]:
    """Gender groups to score.

    Unknown-gender athletes form their own group; when nobody has a gender
    the whole field is that group.
    """
    boys = [r for r in results if r.gender == Gender.BOYS]
    girls = [r for r in results if r.gender == Gender.GIRLS]
    unknown = [r for r in results if r.gender == Gender.UNKNOWN]

    if not boys and not girls:
        return [unknown]
    return [group for group in (boys, girls, unknown) if group]


def _row_sort_key(row: TeamScoreRow) -> tuple:
    total = row.total_points if row.total_points is not None else float("-inf")
    fifth = row.displacers[0].points if row.displacers else float("-inf")
    return (not row.complete_team, -total, -fifth, row.team.casefold(), row.team)


def score_gender_group(
    group: Sequence[AthleteResult], config: TeamScoringConfig
) -> list[TeamScoreRow]:
    """Team standings for a single gender group."""
    varsity = varsity_only(group)
    finishers = sorted((r for r in varsity if is_eligible_finisher(r)), key=finish_key)
    if not finishers:
        return []
    started_count = sum(1 for r in varsity if has_started(r))

    # Roster cap: only the first N finishers of each team enter the pool
    by_team: dict[str, list[AthleteResult]] = {}
    for athlete in finishers:
        by_team.setdefault(athlete.team, []).append(athlete)

    max_roster = config.max_team_roster if config.enforce_team_size_cap else _MAX
    pool: set[tuple[str, str]] = set()
    for team, athletes in by_team.items():
        for athlete in athletes[:max_roster]:
            pool.add((team, athlete.athlete_id))

    pooled = [a for a in finishers if (a.team, a.athlete_id) in pool]
    scores = [
        TeamAthleteScore(
            athlete_id=athlete.athlete_id,
            full_name=athlete.full_name,
            team=athlete.team,
            place=athlete.place if athlete.place is not None else index + 1,
            points=max(started_count - index, 0),
            gender=athlete.gender,
            time_raw=athlete.time_raw,
        )
        for index, athlete in enumerate(pooled)
    ]

    rows: dict[str, TeamScoreRow] = {}
    for entry in scores:
        row = rows.get(entry.team)
        if row is None:
            row = rows[entry.team] = TeamScoreRow(
                team=entry.team, gender=entry.gender, total_points=None
            )
        if len(row.scorers) < config.counting_finishers:
            row.scorers.append(entry)
        else:
            row.displacers.append(entry)

    for row in rows.values():
        row.complete_team = len(row.scorers) == config.counting_finishers
        row.total_points = (
            sum(s.points for s in row.scorers) if row.complete_team else None
        )

    return sorted(rows.values(), key=_row_sort_key)


def score_race(race: ParsedRace, config: TeamScoringConfig | None = None) -> ScoredRace:
    """Score every gender group and order individuals by place then time."""
    config = config or TeamScoringConfig()
    team_scores = [
        row
        for group in split_by_gender(race.participants)
        for row in score_gender_group(group, config)
    ]
    return ScoredRace(
        race=race,
        team_scores=team_scores,
        individuals=sorted(race.participants, key=finish_key),
    )
