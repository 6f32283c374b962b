"""
Tests for the FROI Field Registry

Verifies:
1. Required and bonus field sets
2. Step assignment
3. Defaults per value type
4. Lookup errors
5. Schema validation on construction
"""

import pytest

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from intake.errors import UnknownFieldError
from intake.field_registry import (
    FROI_FIELDS,
    REFUSAL_FORM_REMINDER,
    FieldClass,
    FieldDef,
    FieldRegistry,
    FieldType,
    TriState,
    YesNoChecking,
    YesNoMaybe,
    get_field_registry,
)


REQUIRED_IDS = {
    "firstName", "lastName", "entity", "dateOfInjury", "timeOfInjury",
    "accidentDescription", "injuryType", "submitterName", "submitterEmail",
}

BONUS_IDS = {
    "bodyParts", "hasVideo", "witnessName", "rootCause", "contributingFactors",
    "proceduresInPlace", "correctiveAction", "investigatorName",
    "validityConcerns", "thirdPartyInvolved",
}


# =============================================================================
# CLASSIFICATION TESTS
# =============================================================================

class TestClassification:
    """Required and bonus membership."""

    def test_required_fields(self, registry):
        """Exactly nine required fields."""
        required = {f.id for f in registry.fields_by_classification(FieldClass.REQUIRED)}
        assert required == REQUIRED_IDS

    def test_bonus_fields(self, registry):
        """Exactly ten bonus fields."""
        bonus = {f.id for f in registry.fields_by_classification(FieldClass.BONUS)}
        assert bonus == BONUS_IDS

    def test_classification_accepts_string(self, registry):
        """Classification lookups accept the enum's string value."""
        assert len(registry.fields_by_classification("required")) == 9

    def test_required_and_bonus_disjoint(self, registry):
        for definition in registry:
            assert not (definition.is_required and definition.is_bonus)

    def test_bonus_choice_enumerations(self, registry):
        """Bonus tristates use their own answer sets."""
        assert registry.lookup("hasVideo").choices is YesNoChecking
        assert registry.lookup("thirdPartyInvolved").choices is YesNoMaybe
        assert registry.lookup("proceduresInPlace").choices is TriState


# =============================================================================
# STEP TESTS
# =============================================================================

class TestSteps:
    """Every field belongs to exactly one of nine steps."""

    def test_step_count(self, registry):
        assert registry.step_count == 9

    def test_every_step_has_fields(self, registry):
        for step in range(9):
            assert registry.fields_for_step(step), f"step {step} is empty"

    @pytest.mark.parametrize("field_id,step", [
        ("firstName", 0),
        ("entity", 1),
        ("timeOfInjury", 1),
        ("injuryType", 2),
        ("bodyParts", 2),
        ("soughtMedicalTreatment", 3),
        ("facilityName", 3),
        ("hasVideo", 4),
        ("losingTime", 5),
        ("proceduresInPlace", 6),
        ("validityConcerns", 7),
        ("submitterEmail", 8),
    ])
    def test_field_step(self, registry, field_id, step):
        assert registry.lookup(field_id).step == step

    def test_declaration_order_preserved(self, registry):
        ids = registry.field_ids
        assert ids.index("firstName") < ids.index("lastName") < ids.index("submitterEmail")


# =============================================================================
# DEFAULT TESTS
# =============================================================================

class TestDefaults:
    """Fresh forms start at typed defaults."""

    def test_text_default_empty(self, registry):
        assert registry.lookup("firstName").default() == ""

    def test_tristate_default_unset(self, registry):
        assert registry.lookup("soughtMedicalTreatment").default() is TriState.UNSET
        assert registry.lookup("hasVideo").default() is YesNoChecking.UNSET

    def test_set_default_empty(self, registry):
        assert registry.lookup("bodyParts").default() == frozenset()

    def test_date_and_time_default_none(self, registry):
        assert registry.lookup("dateOfInjury").default() is None
        assert registry.lookup("timeOfInjury").default() is None

    def test_defaults_cover_every_field(self, registry):
        defaults = registry.defaults()
        assert set(defaults) == set(registry.field_ids)

    def test_defaults_are_fresh_copies(self, registry):
        first = registry.defaults()
        first["firstName"] = "changed"
        assert registry.defaults()["firstName"] == ""


# =============================================================================
# CHOICE TESTS
# =============================================================================

class TestChoices:
    """Closed answer enumerations."""

    def test_unset_is_not_answered(self):
        assert not TriState.UNSET.is_answered
        assert TriState.NO.is_answered

    def test_affirmative(self):
        assert TriState.YES.is_affirmative
        assert not TriState.NO.is_affirmative
        assert YesNoMaybe.MAYBE.is_affirmative
        assert YesNoChecking.CHECKING.is_affirmative

    def test_labels(self):
        assert TriState.YES.label == "Yes"
        assert TriState.UNSET.label == ""


# =============================================================================
# LOOKUP TESTS
# =============================================================================

class TestLookup:
    """Lookup and membership."""

    def test_lookup_unknown_raises(self, registry):
        with pytest.raises(UnknownFieldError) as exc_info:
            registry.lookup("favoriteColor")
        assert exc_info.value.field_id == "favoriteColor"

    def test_unknown_field_is_key_error(self, registry):
        """Callers catching KeyError still work."""
        with pytest.raises(KeyError):
            registry.lookup("favoriteColor")

    def test_contains(self, registry):
        assert "firstName" in registry
        assert "favoriteColor" not in registry

    def test_notice_is_not_a_field(self, registry):
        assert REFUSAL_FORM_REMINDER not in registry
        assert registry.is_notice(REFUSAL_FORM_REMINDER)

    def test_len_matches_declared_fields(self, registry):
        assert len(registry) == len(FROI_FIELDS)

    def test_singleton(self):
        assert get_field_registry() is get_field_registry()


# =============================================================================
# VALIDATION TESTS
# =============================================================================

class TestValidation:
    """Schemas are checked when the registry is built."""

    def test_duplicate_id_rejected(self):
        fields = (
            FieldDef("a", "A", FieldType.TEXT, 0),
            FieldDef("a", "A again", FieldType.TEXT, 0),
        )
        with pytest.raises(ValueError, match="Duplicate"):
            FieldRegistry(fields, frozenset())

    def test_tristate_without_choices_rejected(self):
        fields = (FieldDef("q", "Q", FieldType.TRISTATE, 0),)
        with pytest.raises(ValueError, match="choice"):
            FieldRegistry(fields, frozenset())

    def test_enum_without_options_rejected(self):
        fields = (FieldDef("e", "E", FieldType.ENUM, 0),)
        with pytest.raises(ValueError, match="options"):
            FieldRegistry(fields, frozenset())

    def test_notice_colliding_with_field_rejected(self):
        fields = (FieldDef("a", "A", FieldType.TEXT, 0),)
        with pytest.raises(ValueError, match="collide"):
            FieldRegistry(fields, frozenset({"a"}))
