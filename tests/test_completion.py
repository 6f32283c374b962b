"""
Tests for the Completion Scorer

Verifies:
1. Point values for required and bonus fields
2. Bounds and rounding
3. Presence rules per value type
4. Legacy truthy mode
"""

import pytest
from datetime import date, time

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from intake.completion import CompletionScorer, PresenceMode, is_present
from intake.field_registry import TriState, YesNoChecking, YesNoMaybe


ALL_REQUIRED = {
    "firstName": "Jane",
    "lastName": "Doe",
    "entity": "East Division",
    "dateOfInjury": date(2024, 3, 14),
    "timeOfInjury": time(9, 30),
    "accidentDescription": "Slipped on a wet floor near the loading dock.",
    "injuryType": "strain_sprain",
    "submitterName": "Sam Supervisor",
    "submitterEmail": "sam@example.com",
}

ALL_BONUS = {
    "bodyParts": {"Back"},
    "hasVideo": YesNoChecking.CHECKING,
    "witnessName": "Pat Witness",
    "rootCause": "Leaking roof drain",
    "contributingFactors": {"Housekeeping"},
    "proceduresInPlace": TriState.YES,
    "correctiveAction": "Drain repaired, mats added",
    "investigatorName": "Lee Investigator",
    "validityConcerns": TriState.NO,
    "thirdPartyInvolved": YesNoMaybe.MAYBE,
}


@pytest.fixture
def scorer(registry):
    return CompletionScorer(registry)


# =============================================================================
# SCORE TESTS
# =============================================================================

class TestScore:
    """Score arithmetic."""

    def test_empty_form_scores_zero(self, store, scorer):
        assert scorer.score(store.state) == 0

    def test_complete_form_scores_hundred(self, store, scorer):
        store.update({**ALL_REQUIRED, **ALL_BONUS})
        assert scorer.score(store.state) == 100

    def test_names_score_fourteen(self, store, scorer):
        store.set("firstName", "Jane")
        store.set("lastName", "Doe")
        assert scorer.score(store.state) == 14

    def test_all_required_scores_sixty_three(self, store, scorer):
        store.update(ALL_REQUIRED)
        assert scorer.score(store.state) == 63

    def test_all_bonus_scores_thirty_seven(self, store, scorer):
        store.update(ALL_BONUS)
        assert scorer.score(store.state) == 37

    def test_one_bonus_rounds_up(self, store, scorer):
        """3.7 rounds to 4."""
        store.set("witnessName", "Pat")
        assert scorer.score(store.state) == 4

    def test_half_rounds_up(self, store, scorer):
        """Five bonus fields give 18.5, which rounds to 19."""
        store.update({
            "witnessName": "Pat",
            "rootCause": "Wet floor",
            "correctiveAction": "Mats",
            "investigatorName": "Lee",
            "bodyParts": {"Knee"},
        })
        assert scorer.score(store.state) == 19

    def test_plain_fields_do_not_score(self, store, scorer):
        store.update({"phone": "555-0100", "occupation": "Welder"})
        assert scorer.score(store.state) == 0

    def test_hidden_answers_still_count(self, store, scorer):
        """Scoring ignores visibility."""
        store.set("witnessName", "Pat")
        store.set("hasVideo", YesNoChecking.NO)
        assert scorer.score(store.state) == 7

    def test_score_stays_in_bounds_through_edits(self, store, scorer):
        edits = list({**ALL_REQUIRED, **ALL_BONUS}.items())
        for field_id, value in edits:
            store.set(field_id, value)
            assert 0 <= scorer.score(store.state) <= 100
        for field_id, _ in edits:
            store.set(field_id, store.registry.lookup(field_id).default())
            assert 0 <= scorer.score(store.state) <= 100
        assert scorer.score(store.state) == 0


# =============================================================================
# PRESENCE TESTS
# =============================================================================

class TestPresence:
    """What counts as filled in."""

    def test_whitespace_text_counts(self, store, scorer):
        """Any non-empty string is an answer, blanks included."""
        store.set("firstName", "   ")
        store.set("lastName", "Doe")
        assert scorer.score(store.state) == 14

    def test_empty_set_absent(self, store, scorer):
        store.toggle_member("bodyParts", "Head")
        store.toggle_member("bodyParts", "Head")
        assert scorer.score(store.state) == 0

    def test_tristate_no_counts_by_default(self, store, scorer):
        store.set("validityConcerns", TriState.NO)
        assert scorer.score(store.state) == 4

    def test_tristate_unset_absent(self, registry):
        assert not is_present(registry.lookup("proceduresInPlace"), TriState.UNSET)

    def test_date_present(self, registry):
        assert is_present(registry.lookup("dateOfInjury"), date(2024, 1, 1))
        assert not is_present(registry.lookup("dateOfInjury"), None)


class TestTruthyMode:
    """Legacy mode: NO answers do not count."""

    def test_no_does_not_count(self, store, registry):
        scorer = CompletionScorer(registry, PresenceMode.TRUTHY)
        store.set("validityConcerns", TriState.NO)
        store.set("hasVideo", YesNoChecking.NO)
        assert scorer.score(store.state) == 0

    def test_non_no_answers_count(self, store, registry):
        scorer = CompletionScorer(registry, "truthy")
        store.set("hasVideo", YesNoChecking.CHECKING)
        store.set("thirdPartyInvolved", YesNoMaybe.MAYBE)
        assert scorer.score(store.state) == 7


# =============================================================================
# BREAKDOWN TESTS
# =============================================================================

class TestBreakdown:
    """Per-field breakdown."""

    def test_breakdown_lists(self, store, scorer):
        store.set("firstName", "Jane")
        store.set("witnessName", "Pat")
        result = scorer.breakdown(store.state)
        assert result.present_required == ["firstName"]
        assert "lastName" in result.missing_required
        assert result.present_bonus == ["witnessName"]
        assert len(result.missing_bonus) == 9
        assert not result.is_required_complete

    def test_required_complete(self, store, scorer):
        store.update(ALL_REQUIRED)
        assert scorer.breakdown(store.state).is_required_complete

    def test_to_dict(self, store, scorer):
        data = scorer.breakdown(store.state).to_dict()
        assert data["score"] == 0
        assert len(data["missing_required"]) == 9
