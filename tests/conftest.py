"""Pytest fixtures shared across MFM tests."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import pytest
from django.contrib.auth import get_user_model

FIXTURES_DIR = Path(__file__).resolve().parent / "fixtures"
BULLETIN_NAME = "RAW_MFM_3_2_Aug25"


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the directory holding fixture bulletins and structured files."""

    return FIXTURES_DIR


@pytest.fixture
def bulletin_path() -> Path:
    return FIXTURES_DIR / f"{BULLETIN_NAME}.txt"


@pytest.fixture
def bulletin_text(bulletin_path) -> str:
    """Return the fixture bulletin (MFM 3.2) as text."""

    return bulletin_path.read_text(encoding="utf-8")


@pytest.fixture
def structured_dir() -> Path:
    return FIXTURES_DIR / "mfm"


@pytest.fixture
def mfm_settings(settings, tmp_path):
    """Point MFM file and report directories at fixture/temporary locations."""

    settings.MFM_FILES_DIR = FIXTURES_DIR
    settings.MFM_REPORTS_DIR = tmp_path / "logs"
    settings.MFM_MIGRATION_DIRECTORY = FIXTURES_DIR / "mfm"
    settings.MFM_MIGRATION_ENABLED = True
    settings.MFM_MIGRATION_OVERWRITE_EXISTING = False
    settings.MFM_GENERATE_FEEDBACK = False
    settings.MFM_IMPORT_FILES = []
    settings.MFM_VERIFY_FILES = []
    return settings


@pytest.fixture
def staff_user(db):
    """Return a staff User allowed to call the admin and raw-parser endpoints."""

    user_model = get_user_model()
    return user_model.objects.create_user(username="admin", password="password", is_staff=True)


@pytest.fixture
def staff_client(client, staff_user):
    """Return a Django test client authenticated as a staff user."""

    client.force_login(staff_user)
    return client


def pytest_collection_modifyitems(items: Sequence[pytest.Item]) -> None:
    """Enforce that every test has exactly one speed marker.

    - `unit`: pure, fast tests with no database access.
    - `integration`: tests touching Django, database, views, commands, or IO.
    """

    invalid: list[str] = []
    for item in items:
        has_unit = item.get_closest_marker("unit") is not None
        has_integration = item.get_closest_marker("integration") is not None
        if has_unit == has_integration:
            markers = []
            if has_unit:
                markers.append("unit")
            if has_integration:
                markers.append("integration")
            invalid.append(f"{item.nodeid} (markers={markers or 'none'})")

    if invalid:
        joined = "\n".join(f"- {nodeid}" for nodeid in invalid)
        raise pytest.UsageError(
            "Each test must have exactly one speed marker: `@pytest.mark.unit` or "
            "`@pytest.mark.integration`.\n"
            f"Offending tests:\n{joined}"
        )
