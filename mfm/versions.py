"""MFM version lifecycle: latest/active flags and ordered version deletion."""

from __future__ import annotations

import logging
import re
from typing import Iterable

from django.db import transaction

from mfm.exceptions import MfmVersionNotFound
from mfm.models import MfmDetachment, MfmEnhancement, MfmFaction, MfmUnit, MfmUnitVariant, MfmVersion

logger = logging.getLogger(__name__)

_VERSION_PART_RE = re.compile(r"(\d+)")


def natural_version_key(version: str) -> tuple[tuple[int, int | str], ...]:
    """Return a sort key comparing numeric version parts as integers.

    Args:
        version: Version string such as "3.2" or "3.10".

    Returns:
        A tuple key where "3.10" sorts after "3.9".
    """

    parts: list[tuple[int, int | str]] = []
    for token in _VERSION_PART_RE.split(version):
        if not token:
            continue
        if token.isdigit():
            parts.append((0, int(token)))
        else:
            parts.append((1, token))
    return tuple(parts)


def all_versions() -> list[MfmVersion]:
    """Return every stored version in natural order."""

    return sorted(MfmVersion.objects.all(), key=lambda row: natural_version_key(row.version))


def active_versions() -> list[MfmVersion]:
    """Return active versions in natural order."""

    return [row for row in all_versions() if row.is_active]


def get_version(version: str) -> MfmVersion:
    """Return the stored version row or raise MfmVersionNotFound."""

    try:
        return MfmVersion.objects.get(version=version)
    except MfmVersion.DoesNotExist as exc:
        raise MfmVersionNotFound(version) from exc


def latest_version() -> MfmVersion | None:
    """Return the version flagged latest, if any."""

    return MfmVersion.objects.filter(is_latest=True).order_by("-id").first()


def latest_active_version() -> MfmVersion | None:
    """Return the version flagged both latest and active, if any."""

    return MfmVersion.objects.filter(is_latest=True, is_active=True).order_by("-id").first()


def is_version_active(version: str) -> bool:
    return MfmVersion.objects.filter(version=version, is_active=True).exists()


def set_version_active(version: str, *, active: bool) -> bool:
    """Activate or deactivate a version.

    Returns:
        True when the version exists and was updated, otherwise False.
    """

    updated = MfmVersion.objects.filter(version=version).update(is_active=active)
    if not updated:
        logger.warning("MFM version not found: %s", version)
        return False
    logger.info("%s MFM version: %s", "Activated" if active else "Deactivated", version)
    return True


def activate_version(version: str) -> bool:
    return set_version_active(version, active=True)


def deactivate_version(version: str) -> bool:
    return set_version_active(version, active=False)


def deactivate_all_except(keep_active_version: str) -> int:
    """Deactivate every version other than `keep_active_version`.

    Returns:
        Number of versions deactivated.
    """

    count = MfmVersion.objects.exclude(version=keep_active_version).filter(is_active=True).update(is_active=False)
    logger.info("Deactivated %d MFM versions, keeping %s active", count, keep_active_version)
    return count


def mark_latest(version_row: MfmVersion) -> None:
    """Flag `version_row` as the only latest version."""

    MfmVersion.objects.exclude(pk=version_row.pk).filter(is_latest=True).update(is_latest=False)
    if not version_row.is_latest:
        version_row.is_latest = True
        version_row.save(update_fields=["is_latest", "updated_at"])


def update_latest_flags(versions: Iterable[MfmVersion]) -> MfmVersion | None:
    """Flag the natural-order maximum of `versions` as latest.

    Args:
        versions: Candidate versions (typically those processed in one run).

    Returns:
        The version now flagged latest, or None when `versions` is empty (flags
        are left untouched in that case).
    """

    candidates = list(versions)
    if not candidates:
        return None
    newest = max(candidates, key=lambda row: natural_version_key(row.version))
    mark_latest(newest)
    logger.info("Set latest MFM version to: %s", newest.version)
    return newest


@transaction.atomic
def delete_version_graph(version_row: MfmVersion) -> None:
    """Delete a version and its whole graph, children before parents."""

    logger.info("Deleting MFM version %s and all of its data", version_row.version)
    MfmEnhancement.objects.filter(detachment__faction__mfm_version=version_row).delete()
    MfmUnitVariant.objects.filter(unit__faction__mfm_version=version_row).delete()
    MfmDetachment.objects.filter(faction__mfm_version=version_row).delete()
    MfmUnit.objects.filter(faction__mfm_version=version_row).delete()
    MfmFaction.objects.filter(mfm_version=version_row).delete()
    version_row.delete()


def delete_version(version: str) -> bool:
    """Delete a version by its version string.

    Returns:
        True when a version was deleted, False when it did not exist.
    """

    row = MfmVersion.objects.filter(version=version).first()
    if row is None:
        logger.warning("MFM version not found: %s", version)
        return False
    delete_version_graph(row)
    return True


def version_status_summary() -> str:
    """Render a plain-text status line per version."""

    lines = ["MFM Version Status Summary:", "=========================="]
    for row in all_versions():
        status = "ACTIVE" if row.is_active else "INACTIVE"
        latest = " (LATEST)" if row.is_latest else ""
        lines.append(f"{row.version}: {status}{latest}")
    return "\n".join(lines) + "\n"
