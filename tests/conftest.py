"""Shared test fixtures for endotrack tests."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

# ---------------------------------------------------------------------------
# Test hermeticity
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _force_hermetic_test_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("ENCRYPTION_KEY", "")
    monkeypatch.setenv("DB_PATH", ":memory:")
    monkeypatch.setenv("EXPORT_DIR", str(tmp_path / "exports"))
    monkeypatch.setenv("TOP_SYMPTOM_LIMIT", "5")

# Allow running tests without `pip install -e .` by making `src/` importable.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_SRC_DIR = _PROJECT_ROOT / "src"
if str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

from endotrack.domains.symptoms.domain_logic.metrics import DEFAULT_CATALOG  # noqa: E402


@pytest.fixture
def catalog():
    return DEFAULT_CATALOG


# ---------------------------------------------------------------------------
# In-memory storage fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def symptom_db():
    """Create an in-memory SymptomDatabase for testing."""
    from endotrack.core.storage.database import SymptomDatabase

    db = SymptomDatabase(":memory:")
    db.initialize()
    yield db
    db.close()


@pytest.fixture
def field_encryptor():
    """Create a FieldEncryptor with a test key."""
    from cryptography.fernet import Fernet

    from endotrack.core.storage.encryption import FieldEncryptor

    return FieldEncryptor(Fernet.generate_key().decode())


@pytest.fixture
def symptom_repository(symptom_db, field_encryptor):
    """Create a SymptomLogRepository backed by in-memory SQLite."""
    from endotrack.core.storage.repository import SymptomLogRepository

    return SymptomLogRepository(symptom_db, field_encryptor, user_id="test-user")
