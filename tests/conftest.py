"""Shared test fixtures for symtrack tests."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

# ---------------------------------------------------------------------------
# Test hermeticity
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _force_hermetic_test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENCRYPTION_KEY", "")
    monkeypatch.setenv("RULES_PATH", "")
    monkeypatch.setenv("QUESTIONNAIRE_PATH", "")
    monkeypatch.setenv("DB_PATH", ":memory:")

# Allow running tests without `pip install -e .` by making `src/` importable.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_SRC_DIR = _PROJECT_ROOT / "src"
if str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

from symtrack.core.rules.catalog import RuleCatalog  # noqa: E402
from symtrack.core.rules.engine import SuggestionEngine  # noqa: E402


# ---------------------------------------------------------------------------
# Rule engine fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def catalog() -> RuleCatalog:
    """A catalog holding the built-in rules."""
    return RuleCatalog()


@pytest.fixture
def engine(catalog: RuleCatalog) -> SuggestionEngine:
    """A suggestion engine over the built-in rules."""
    return SuggestionEngine(catalog)


# ---------------------------------------------------------------------------
# In-memory storage fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def symptom_db():
    """Create an in-memory SymptomDatabase for testing."""
    from symtrack.core.storage.database import SymptomDatabase

    db = SymptomDatabase(":memory:")
    db.initialize()
    yield db
    db.close()


@pytest.fixture
def field_encryptor():
    """Create a FieldEncryptor with a test key."""
    from cryptography.fernet import Fernet

    from symtrack.core.storage.encryption import FieldEncryptor

    return FieldEncryptor(Fernet.generate_key().decode())


@pytest.fixture
def symptom_repository(symptom_db, field_encryptor):
    """Create a SymptomRepository backed by in-memory SQLite."""
    from symtrack.core.storage.repository import SymptomRepository

    return SymptomRepository(symptom_db, field_encryptor)


@pytest.fixture
def audit_logger(symptom_db):
    """Create an AuditLogger backed by in-memory SQLite."""
    from symtrack.core.audit.logger import AuditLogger

    return AuditLogger(symptom_db)
