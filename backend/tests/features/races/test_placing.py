"""
Tests for gender resolution and per-gender place assignment.
"""

from livescore.features.races.models import (
    AthleteResult,
    Gender,
    GenderRuleMode,
    RaceGenderRule,
    ResultStatus,
)
from livescore.features.races.placing import (
    apply_gender_rule,
    apply_title_hint,
    assign_places,
    gender_from_title,
    parse_bib_number,
)


def make_result(
    athlete_id: str,
    gender: Gender = Gender.UNKNOWN,
    time_ms: int | None = None,
    status: ResultStatus = ResultStatus.OK,
    bib: str | None = None,
    place: int | None = None,
) -> AthleteResult:
    return AthleteResult(
        athlete_id=athlete_id,
        full_name=f"Athlete {athlete_id}",
        team="North",
        gender=gender,
        is_varsity=True,
        status=status,
        bib=bib,
        place=place,
        time_ms=time_ms,
    )


BIB_RULE = RaceGenderRule(mode=GenderRuleMode.BIB_THRESHOLD, bib_threshold=100)


# =============================================================================
# Gender rule
# =============================================================================

class TestGenderRule:
    """Tests for bib-threshold gender resolution."""

    def test_parse_bib_number(self):
        assert parse_bib_number("112A") == 112
        assert parse_bib_number("7") == 7
        assert parse_bib_number("A12") is None
        assert parse_bib_number(None) is None

    def test_threshold(self):
        results = apply_gender_rule(
            [make_result("1", bib="150"), make_result("2", bib="99"), make_result("3", bib="100")],
            BIB_RULE,
        )
        assert [r.gender for r in results] == [Gender.GIRLS, Gender.BOYS, Gender.GIRLS]

    def test_known_gender_untouched(self):
        results = apply_gender_rule([make_result("1", gender=Gender.BOYS, bib="150")], BIB_RULE)
        assert results[0].gender == Gender.BOYS

    def test_non_numeric_bib_untouched(self):
        results = apply_gender_rule([make_result("1", bib="X9")], BIB_RULE)
        assert results[0].gender == Gender.UNKNOWN

    def test_high_bibs_boys(self):
        rule = RaceGenderRule(
            mode=GenderRuleMode.BIB_THRESHOLD, bib_threshold=200, high_bib_gender=Gender.BOYS
        )
        results = apply_gender_rule([make_result("1", bib="250"), make_result("2", bib="20")], rule)
        assert [r.gender for r in results] == [Gender.BOYS, Gender.GIRLS]

    def test_no_rule(self):
        original = [make_result("1", bib="150")]
        assert apply_gender_rule(original, None)[0].gender == Gender.UNKNOWN
        assert apply_gender_rule(original, RaceGenderRule())[0].gender == Gender.UNKNOWN


class TestTitleHint:
    """Tests for gender hints from race titles."""

    def test_gender_from_title(self):
        assert gender_from_title("Boys Slalom") == Gender.BOYS
        assert gender_from_title("Women's GS Run 2") == Gender.GIRLS
        assert gender_from_title("Ladies Invitational") == Gender.GIRLS
        assert gender_from_title("Men and Women Combined") is None
        assert gender_from_title("Slalom") is None

    def test_only_unknown_overridden(self):
        results = apply_title_hint(
            [make_result("1"), make_result("2", gender=Gender.BOYS)], "Girls Slalom"
        )
        assert [r.gender for r in results] == [Gender.GIRLS, Gender.BOYS]


# =============================================================================
# Places
# =============================================================================

class TestAssignPlaces:
    """Tests for assign_places."""

    def test_ranked_per_gender(self):
        results = assign_places(
            [
                make_result("b1", Gender.BOYS, 45000),
                make_result("g1", Gender.GIRLS, 50000),
                make_result("b2", Gender.BOYS, 43000),
                make_result("g2", Gender.GIRLS, 47000),
            ]
        )
        assert [(r.athlete_id, r.place) for r in results] == [
            ("b1", 2),
            ("g1", 2),
            ("b2", 1),
            ("g2", 1),
        ]

    def test_non_finishers_unplaced(self):
        results = assign_places(
            [
                make_result("1", Gender.BOYS, 45000, status=ResultStatus.DNF),
                make_result("2", Gender.BOYS, None),
                make_result("3", Gender.BOYS, 47000),
            ]
        )
        assert [r.place for r in results] == [None, None, 1]

    def test_feed_places_replaced(self):
        results = assign_places(
            [
                make_result("1", Gender.GIRLS, 46000, place=9),
                make_result("2", Gender.GIRLS, None, status=ResultStatus.DNF, place=3),
            ]
        )
        assert [r.place for r in results] == [1, None]

    def test_equal_times_keep_input_order(self):
        results = assign_places(
            [make_result("a", Gender.BOYS, 44000), make_result("b", Gender.BOYS, 44000)]
        )
        assert [r.place for r in results] == [1, 2]

    def test_unknown_gender_ranked_together(self):
        results = assign_places([make_result("1", time_ms=50000), make_result("2", time_ms=49000)])
        assert [r.place for r in results] == [2, 1]

    def test_input_not_mutated(self):
        original = make_result("1", Gender.BOYS, 44000, place=7)
        assign_places([original])
        assert original.place == 7
