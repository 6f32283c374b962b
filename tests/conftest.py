"""Pytest configuration and fixtures for test suite."""

import os
import sys
from pathlib import Path

import pytest

# Set test environment BEFORE any other imports
# so no test ever reaches a real mail server
os.environ.setdefault("APP_ENVIRONMENT", "test")
os.environ["SMTP_HOST"] = ""
os.environ.setdefault("CLAIMS_INBOX_EMAIL", "claims@test.example.com")

# Add src to path for imports
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))


@pytest.fixture(autouse=True)
def reset_settings_cache():
    """Reload settings from the environment for every test."""
    from config.settings import get_settings
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# =============================================================================
# ENGINE FIXTURES
# =============================================================================

@pytest.fixture
def registry():
    """The FROI field registry."""
    from intake.field_registry import get_field_registry
    return get_field_registry()


@pytest.fixture
def store(registry):
    """An empty form store on the FROI schema."""
    from intake.form_state import FormStateStore
    return FormStateStore(registry)


@pytest.fixture
def resolver():
    """Visibility resolver for the FROI rule table."""
    from intake.visibility import get_visibility_resolver
    return get_visibility_resolver()


@pytest.fixture
def session():
    """A fresh intake session."""
    from intake.session import IntakeSession
    return IntakeSession(session_id="test-session")


# =============================================================================
# SUBMISSION FIXTURES
# =============================================================================

@pytest.fixture
def email_provider():
    """Recording e-mail provider; sent messages land in ``sent_messages``."""
    from submission.email_provider import NullEmailProvider
    return NullEmailProvider()


@pytest.fixture
def submission_service(email_provider):
    """Claim submission service wired to the recording provider."""
    from submission.service import ClaimSubmissionService
    return ClaimSubmissionService(provider=email_provider)


@pytest.fixture
def minimal_claim():
    """Smallest set of answers that passes the submitter-contact check."""
    from datetime import date, time
    return {
        "firstName": "Jane",
        "lastName": "Doe",
        "entity": "Titanium Defense Group - East",
        "dateOfInjury": date(2024, 3, 14),
        "timeOfInjury": time(9, 30),
        "injuryType": "laceration",
        "accidentDescription": "Cut hand on sheet metal while unloading a pallet.",
        "submitterName": "Sam Supervisor",
        "submitterPhone": "555-0100",
        "submitterEmail": "sam@example.com",
    }
