"""Field Registry.

Static schema for the First Report of Injury wizard: every field's id,
value type, classification (required / bonus / plain) and the wizard step
that presents it. The registry is immutable once constructed.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterator, Optional, Tuple, Type

from intake.errors import UnknownFieldError


class FieldType(str, Enum):
    """Value types a field can hold."""
    TEXT = "text"
    DATE = "date"
    TIME = "time"
    TRISTATE = "tristate"
    ENUM = "enum"
    STRING_SET = "set-of-string"


class FieldClass(str, Enum):
    """Scoring classification of a field."""
    REQUIRED = "required"   # gates submission, 7 points
    BONUS = "bonus"         # investigative thoroughness, 3.7 points
    PLAIN = "plain"         # not scored


class Choice(str, Enum):
    """
    Base for the closed answer enumerations.

    Every enumeration has an explicit UNSET member so an unanswered
    question is never represented by None or an empty string.
    """

    @property
    def is_answered(self) -> bool:
        """Anything other than UNSET."""
        return self.value != "unset"

    @property
    def is_affirmative(self) -> bool:
        """Answered with something other than NO."""
        return self.value not in ("unset", "no")

    @property
    def label(self) -> str:
        return "" if self.value == "unset" else self.value.capitalize()


class TriState(Choice):
    YES = "yes"
    NO = "no"
    UNSET = "unset"


class YesNoMaybe(Choice):
    YES = "yes"
    NO = "no"
    MAYBE = "maybe"
    UNSET = "unset"


class YesNoChecking(Choice):
    YES = "yes"
    NO = "no"
    CHECKING = "checking"
    UNSET = "unset"


US_STATES: Tuple[str, ...] = (
    "AL", "AK", "AZ", "AR", "CA", "CO", "CT", "DE", "FL", "GA", "HI", "ID", "IL",
    "IN", "IA", "KS", "KY", "LA", "ME", "MD", "MA", "MI", "MN", "MS", "MO", "MT",
    "NE", "NV", "NH", "NJ", "NM", "NY", "NC", "ND", "OH", "OK", "OR", "PA", "RI",
    "SC", "SD", "TN", "TX", "UT", "VT", "VA", "WA", "WV", "WI", "WY",
)

INJURY_TYPES: Tuple[str, ...] = (
    "strain_sprain", "laceration", "contusion", "fracture", "burn",
    "puncture", "crush", "amputation", "occupational_illness", "other",
)


@dataclass(frozen=True)
class FieldDef:
    """A single field in the report schema."""
    id: str
    label: str
    value_type: FieldType
    step: int
    classification: FieldClass = FieldClass.PLAIN
    # Allowed values for ENUM fields
    options: Tuple[str, ...] = ()
    # Answer enumeration for TRISTATE fields
    choices: Optional[Type[Choice]] = None

    @property
    def is_required(self) -> bool:
        return self.classification is FieldClass.REQUIRED

    @property
    def is_bonus(self) -> bool:
        return self.classification is FieldClass.BONUS

    def default(self) -> Any:
        """Initial value for a fresh form."""
        if self.value_type is FieldType.TRISTATE:
            return self.choices.UNSET
        if self.value_type is FieldType.STRING_SET:
            return frozenset()
        if self.value_type in (FieldType.DATE, FieldType.TIME):
            return None
        return ""


def _text(field_id: str, label: str, step: int, classification: FieldClass = FieldClass.PLAIN) -> FieldDef:
    return FieldDef(field_id, label, FieldType.TEXT, step, classification)


def _date(field_id: str, label: str, step: int, classification: FieldClass = FieldClass.PLAIN) -> FieldDef:
    return FieldDef(field_id, label, FieldType.DATE, step, classification)


def _enum(field_id: str, label: str, step: int, options: Tuple[str, ...],
          classification: FieldClass = FieldClass.PLAIN) -> FieldDef:
    return FieldDef(field_id, label, FieldType.ENUM, step, classification, options=options)


def _choice(field_id: str, label: str, step: int, choices: Type[Choice] = TriState,
            classification: FieldClass = FieldClass.PLAIN) -> FieldDef:
    return FieldDef(field_id, label, FieldType.TRISTATE, step, classification, choices=choices)


def _multi(field_id: str, label: str, step: int, options: Tuple[str, ...] = (),
           classification: FieldClass = FieldClass.PLAIN) -> FieldDef:
    return FieldDef(field_id, label, FieldType.STRING_SET, step, classification, options=options)


REQUIRED = FieldClass.REQUIRED
BONUS = FieldClass.BONUS

# Informational blocks revealed by visibility rules; they hold no value.
REFUSAL_FORM_REMINDER = "refusalFormReminder"
NOTICES: FrozenSet[str] = frozenset({REFUSAL_FORM_REMINDER})


FROI_FIELDS: Tuple[FieldDef, ...] = (
    # Step 0: Employee
    _text("firstName", "First Name", 0, REQUIRED),
    _text("lastName", "Last Name", 0, REQUIRED),
    _text("mailingAddress", "Mailing Address", 0),
    _text("city", "City", 0),
    _enum("state", "State", 0, US_STATES),
    _text("zipCode", "Zip Code", 0),
    _text("phone", "Phone Number", 0),
    _date("dateOfBirth", "Date of Birth", 0),
    _date("dateOfHire", "Date of Hire", 0),
    _enum("gender", "Gender", 0, ("male", "female", "unknown")),
    _text("ssn", "Social Security Number", 0),
    _text("occupation", "Occupation", 0),
    _text("preferredLanguage", "Preferred Language", 0),

    # Step 1: Claim
    _text("entity", "Employing Entity", 1, REQUIRED),
    _date("dateOfInjury", "Date of Injury", 1, REQUIRED),
    FieldDef("timeOfInjury", "Time of Injury", FieldType.TIME, 1, REQUIRED),
    _date("dateReported", "Date Reported", 1),
    _text("weeklyWage", "Estimated Weekly Wage", 1),
    _text("daysPerWeek", "Days Per Week", 1),
    _enum("workWeekType", "Work Week Type", 1, ("standard", "fixed", "varied")),
    _enum("employeeWorkType", "Employee Work Type", 1, ("fulltime", "parttime", "perdiem")),
    _choice("isContractEmployee", "Contract/Agency Employee?", 1),

    # Step 2: Incident
    _enum("injuryType", "Nature of Injury", 2, INJURY_TYPES, REQUIRED),
    _multi("bodyParts", "Body Parts Injured", 2, (
        "Head", "Face", "Eyes", "Neck", "Shoulder", "Arm", "Elbow", "Wrist",
        "Hand", "Fingers", "Chest", "Back", "Abdomen", "Hip", "Leg", "Knee",
        "Ankle", "Foot", "Toes", "Multiple",
    ), BONUS),
    _text("causeOfInjury", "Cause of Injury", 2),
    _text("accidentDescription", "Accident Description", 2, REQUIRED),
    _text("accidentStreet", "Accident Street", 2),
    _text("accidentCity", "Accident City", 2),
    _enum("accidentState", "Accident State", 2, US_STATES),
    _text("accidentZip", "Accident Zip", 2),
    _choice("resultedInDeath", "Did injury result in death?", 2),

    # Step 3: Medical
    _choice("soughtMedicalTreatment", "Did the employee seek medical treatment?", 3),
    _text("facilityName", "Treatment Facility Name", 3),
    _text("facilityAddress", "Facility Address", 3),
    _text("facilityCity", "Facility City", 3),
    _enum("facilityState", "Facility State", 3, US_STATES),
    _text("facilityZip", "Facility Zip", 3),
    _date("treatmentDate", "Treatment Date", 3),
    _choice("refusedTreatment", "Did the employee refuse treatment?", 3),

    # Step 4: Evidence
    _choice("hasVideo", "Is there video of the incident?", 4, YesNoChecking, BONUS),
    _text("videoLocation", "Where is the video stored?", 4),
    _text("witnessName", "Witness Name", 4, BONUS),
    _text("witnessPhone", "Witness Phone", 4),
    _text("witness2Name", "Second Witness Name", 4),
    _text("witness2Phone", "Second Witness Phone", 4),
    _text("witness3Name", "Third Witness Name", 4),
    _text("witness3Phone", "Third Witness Phone", 4),

    # Step 5: Work Status
    _choice("losingTime", "Is employee losing time from work?", 5),
    _date("dateBeganLosingTime", "Date Began Losing Time", 5),
    _date("dateLastWorked", "Date Last Worked", 5),
    _enum("returnStatus", "Released to return to work?", 5, ("no", "fullduty", "restrictions")),
    _date("returnDate", "Return to Work Date", 5),
    _choice("paidInFull", "Was employee paid in full on date of injury?", 5),
    _choice("stillBeingPaid", "Is employee still being paid?", 5),

    # Step 6: Root Cause
    _text("rootCause", "Root Cause", 6, BONUS),
    _multi("contributingFactors", "Contributing Factors", 6, (
        "Equipment", "Environment", "Housekeeping", "Lighting", "PPE",
        "Rushing", "Fatigue", "Distraction", "Training", "Staffing",
    ), BONUS),
    _choice("proceduresInPlace", "Were safety procedures in place?", 6, TriState, BONUS),
    _choice("proceduresFollowed", "Were the procedures followed?", 6),
    _choice("trainingProvided", "Was training on the procedures provided?", 6),
    _text("trainingFrequency", "Training Frequency", 6),
    _date("lastTrainingDate", "Last Training Date", 6),
    _choice("disciplinePolicy", "Is there a discipline policy for violations?", 6),
    _choice("disciplineApplied", "Was discipline applied?", 6),
    _text("correctiveAction", "Corrective Action", 6, BONUS),

    # Step 7: Investigation
    _text("investigatorName", "Investigator Name", 7, BONUS),
    _choice("validityConcerns", "Any concerns about claim validity?", 7, TriState, BONUS),
    _text("concernDetails", "Concern Details", 7),
    _choice("thirdPartyInvolved", "Was a third party involved?", 7, YesNoMaybe, BONUS),
    _text("thirdPartyDetails", "Third Party Details", 7),
    _text("priorInjuries", "Red Flags / Prior Injuries", 7),

    # Step 8: Submit
    _text("submitterName", "Your Name", 8, REQUIRED),
    _text("submitterPhone", "Your Phone", 8),
    _text("submitterEmail", "Your Email", 8, REQUIRED),
    _text("additionalComments", "Additional Comments", 8),
)


class FieldRegistry:
    """
    Immutable lookup over a field schema.

    Fields keep their declaration order, which is also the order used for
    display and serialization.
    """

    def __init__(self, fields: Tuple[FieldDef, ...] = FROI_FIELDS, notices: FrozenSet[str] = NOTICES):
        by_id: Dict[str, FieldDef] = {}
        for f in fields:
            if f.id in by_id:
                raise ValueError(f"Duplicate field id: {f.id}")
            if f.value_type is FieldType.TRISTATE and f.choices is None:
                raise ValueError(f"Tristate field {f.id} has no choice enumeration")
            if f.value_type is FieldType.ENUM and not f.options:
                raise ValueError(f"Enum field {f.id} has no options")
            by_id[f.id] = f
        overlap = set(notices) & set(by_id)
        if overlap:
            raise ValueError(f"Notice ids collide with fields: {sorted(overlap)}")

        self._fields: Tuple[FieldDef, ...] = tuple(fields)
        self._by_id = by_id
        self._notices = frozenset(notices)

    def lookup(self, field_id: str) -> FieldDef:
        """Get a field definition, raising UnknownFieldError if absent."""
        try:
            return self._by_id[field_id]
        except KeyError:
            raise UnknownFieldError(field_id) from None

    def fields_by_classification(self, kind: FieldClass) -> Tuple[FieldDef, ...]:
        """All fields of one classification, in schema order."""
        kind = FieldClass(kind)
        return tuple(f for f in self._fields if f.classification is kind)

    def fields_for_step(self, step: int) -> Tuple[FieldDef, ...]:
        return tuple(f for f in self._fields if f.step == step)

    @property
    def field_ids(self) -> Tuple[str, ...]:
        return tuple(f.id for f in self._fields)

    @property
    def notices(self) -> FrozenSet[str]:
        return self._notices

    @property
    def step_count(self) -> int:
        return max(f.step for f in self._fields) + 1 if self._fields else 0

    def is_notice(self, item_id: str) -> bool:
        return item_id in self._notices

    def defaults(self) -> Dict[str, Any]:
        """Fresh value mapping with every field at its default."""
        return {f.id: f.default() for f in self._fields}

    def __contains__(self, field_id: object) -> bool:
        return field_id in self._by_id

    def __iter__(self) -> Iterator[FieldDef]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)


_registry_instance: Optional[FieldRegistry] = None


def get_field_registry() -> FieldRegistry:
    """
    Get the FROI field registry singleton.

    Returns:
        FieldRegistry: The shared, immutable registry.
    """
    global _registry_instance
    if _registry_instance is None:
        _registry_instance = FieldRegistry()
    return _registry_instance
