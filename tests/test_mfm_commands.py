"""Integration tests for the MFM management commands."""

from __future__ import annotations

from io import StringIO

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError

from mfm.models import MfmUnit, MfmVersion
from mfm.persistence import parse_and_store_mfm_file

pytestmark = [pytest.mark.integration, pytest.mark.django_db]


def _run(*args, **options) -> str:
    stdout = StringIO()
    call_command(*args, stdout=stdout, stderr=StringIO(), **options)
    return stdout.getvalue()


def test_parse_mfm_file(bulletin_path) -> None:
    output = _run("parse_mfm_file", str(bulletin_path))

    assert "Stored MFM 3.2: units=9 enhancements=2 factions=5 detachments=8" in output
    assert MfmUnit.objects.count() == 8


def test_parse_mfm_file_again_needs_overwrite(bulletin_path) -> None:
    _run("parse_mfm_file", str(bulletin_path))

    skipped = _run("parse_mfm_file", str(bulletin_path))
    rebuilt = _run("parse_mfm_file", str(bulletin_path), overwrite=True)

    assert "MFM 3.2 is already stored; nothing written" in skipped
    assert "Stored MFM 3.2: units=9" in rebuilt
    assert MfmUnit.objects.count() == 8


def test_parse_mfm_file_missing_path(tmp_path) -> None:
    with pytest.raises(CommandError, match="File not found"):
        _run("parse_mfm_file", str(tmp_path / "missing.txt"))


def test_migrate_mfm_uses_directory_option(mfm_settings, structured_dir) -> None:
    mfm_settings.MFM_MIGRATION_ENABLED = False
    mfm_settings.MFM_MIGRATION_DIRECTORY = "/nonexistent"

    output = _run("migrate_mfm", directory=str(structured_dir))

    assert "processed=2 skipped=0 failed=0 latest=3.2" in output
    assert MfmVersion.objects.get().version == "3.2"


def test_migrate_mfm_overwrite(mfm_settings) -> None:
    _run("migrate_mfm")

    skipped = _run("migrate_mfm")
    overwritten = _run("migrate_mfm", overwrite=True)

    assert "processed=0 skipped=2" in skipped
    assert "processed=2 skipped=0" in overwritten


def test_validate_mfm_prints_and_saves_report(mfm_settings, bulletin_path) -> None:
    parse_and_store_mfm_file(bulletin_path)

    output = _run("validate_mfm", "3.2", str(bulletin_path), report="check.txt")

    assert output.startswith("Report saved to ")
    assert "MFM Validation Report" in output
    assert (mfm_settings.MFM_REPORTS_DIR / "check.txt").is_file()


def test_validate_mfm_unknown_version(bulletin_path) -> None:
    with pytest.raises(CommandError, match="MFM version not found: 9.9"):
        _run("validate_mfm", "9.9", str(bulletin_path))


def test_regenerate_mfm_to_stdout_and_file(bulletin_path, tmp_path) -> None:
    parse_and_store_mfm_file(bulletin_path)
    target = tmp_path / "out" / "regenerated.txt"

    printed = _run("regenerate_mfm", "3.2")
    _run("regenerate_mfm", "3.2", output=str(target))

    assert printed.startswith("MUNITORUM\n")
    assert target.read_text(encoding="utf-8") == printed


def test_mfm_versions_changes_state_and_prints_summary() -> None:
    MfmVersion.objects.create(version="3.1", date="Test")
    MfmVersion.objects.create(version="3.2", date="Test", is_latest=True)

    output = _run("mfm_versions", deactivate="3.1")

    assert "3.1: INACTIVE" in output
    assert "3.2: ACTIVE (LATEST)" in output
    _run("mfm_versions", delete="3.1")
    assert list(MfmVersion.objects.values_list("version", flat=True)) == ["3.2"]


def test_mfm_versions_unknown_version() -> None:
    with pytest.raises(CommandError, match="MFM version not found: 4.0"):
        _run("mfm_versions", activate="4.0")


def test_run_mfm_startup(mfm_settings) -> None:
    output = _run("run_mfm_startup", import_files=["RAW_MFM_3_2_Aug25"], verify_files=["RAW_MFM_3_2_Aug25"])

    assert "imported RAW_MFM_3_2_Aug25: version=3.2 units=9" in output
    assert "verified RAW_MFM_3_2_Aug25:" in output
