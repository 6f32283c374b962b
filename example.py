#!/usr/bin/env python3
"""
Example script showing how to drive the FROI intake wizard programmatically
"""
import sys
import os
from datetime import date, time

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), 'src'))

from intake.field_registry import TriState, YesNoChecking
from intake.session import IntakeSession
from services.logging_config import configure_from_settings
from submission.attachments import AttachmentCategory
from submission.email_provider import NullEmailProvider
from submission.service import ClaimSubmissionService


def print_view(view):
    print(f"  step {view.step_index} ({view.step_key}) | score {view.score}% | "
          f"{len(view.visible_fields)} visible fields")


def example_minimal_claim():
    """Example: Only the required answers"""
    print("Example 1: Minimal Claim")
    print("=" * 60)

    session = IntakeSession()
    session.subscribe(print_view)

    session.update({
        "firstName": "Maria",
        "lastName": "Lopez",
    })
    session.next()
    session.update({
        "entity": "Titanium Defense Group - Plant 2",
        "dateOfInjury": date(2024, 3, 14),
        "timeOfInjury": time(9, 30),
    })
    session.next()
    session.update({
        "injuryType": "laceration",
        "accidentDescription": "Cut left hand on sheet metal while unloading a pallet.",
    })
    session.jump_to(8)
    session.update({
        "submitterName": "Sam Ortiz",
        "submitterPhone": "555-0100",
        "submitterEmail": "sam.ortiz@example.com",
    })

    provider = NullEmailProvider()
    result = session.submit(ClaimSubmissionService(provider=provider))
    print(f"Submitted: {result.success} ({result.reference_number})")
    for message in provider.sent_messages:
        print(f"  -> {message.to}: {message.subject}")
    print()


def example_investigated_claim():
    """Example: Conditional sections and supporting documents"""
    print("Example 2: Investigated Claim")
    print("=" * 60)

    session = IntakeSession()
    session.update({
        "firstName": "Dev",
        "lastName": "Patel",
        "entity": "Titanium Defense Group - East",
        "dateOfInjury": date(2024, 5, 2),
        "timeOfInjury": time(15, 45),
        "injuryType": "strain_sprain",
        "accidentDescription": "Strained lower back lifting a crate without assistance.",
    })
    session.toggle_member("bodyParts", "Back")

    session.jump_to(3)
    session.set("soughtMedicalTreatment", TriState.YES)
    print(f"Medical step shows: {', '.join(session.visible_step_fields())}")

    session.jump_to(4)
    session.set("hasVideo", YesNoChecking.YES)
    session.set("videoLocation", "Dock camera 2")
    session.set("witnessName", "Alex Kim")

    session.jump_to(6)
    session.set("proceduresInPlace", TriState.YES)
    session.set("proceduresFollowed", TriState.NO)
    print(f"Root cause step shows: {', '.join(session.visible_step_fields())}")

    session.attach(AttachmentCategory.PHOTOS, "crate.jpg", b"\xff\xd8\xff")

    breakdown = session.breakdown()
    print(f"Score: {breakdown.score}%")
    print(f"Still missing: {', '.join(breakdown.missing_required)}")
    print()


if __name__ == "__main__":
    configure_from_settings()
    example_minimal_claim()
    example_investigated_claim()

    print("=" * 60)
    print("All examples completed!")
    print("=" * 60)
