"""Read-only MFM lookups and their JSON serializers.

Every lookup takes a version string; the literal "latest" selects the version
currently flagged latest. Names are matched exactly.
"""

from __future__ import annotations

from django.db.models import Prefetch, QuerySet

from mfm.models import MfmDetachment, MfmEnhancement, MfmFaction, MfmUnit, MfmUnitVariant, MfmVersion
from mfm.versions import all_versions, get_version, latest_version

LATEST = "latest"


def _version_lookup(path: str, version: str) -> dict[str, object]:
    """Return ORM filter kwargs selecting `version` through the relation `path`."""

    if version == LATEST:
        return {f"{path}is_latest": True}
    return {f"{path}version": version}


def list_versions() -> list[MfmVersion]:
    return all_versions()


def find_version(version: str) -> MfmVersion | None:
    if version == LATEST:
        return latest_version()
    return MfmVersion.objects.filter(version=version).first()


def factions_for(version: str = LATEST) -> QuerySet[MfmFaction]:
    return (
        MfmFaction.objects.filter(**_version_lookup("mfm_version__", version))
        .select_related("mfm_version")
        .order_by("name")
    )


def find_faction(name: str, version: str = LATEST) -> MfmFaction | None:
    return factions_for(version).filter(name=name).first()


def _units(faction: str, version: str) -> QuerySet[MfmUnit]:
    variants = Prefetch("variants", queryset=MfmUnitVariant.objects.order_by("model_count", "id"))
    return (
        MfmUnit.objects.filter(faction__name=faction, **_version_lookup("faction__mfm_version__", version))
        .select_related("faction__mfm_version")
        .prefetch_related(variants)
    )


def units_for(faction: str, version: str = LATEST) -> QuerySet[MfmUnit]:
    return _units(faction, version).order_by("name", "id")


def find_unit(name: str, faction: str, version: str = LATEST) -> MfmUnit | None:
    return _units(faction, version).filter(name=name).order_by("id").first()


def _variants(unit: str, faction: str, version: str) -> QuerySet[MfmUnitVariant]:
    return MfmUnitVariant.objects.filter(
        unit__name=unit,
        unit__faction__name=faction,
        **_version_lookup("unit__faction__mfm_version__", version),
    )


def model_counts_for(unit: str, faction: str, version: str = LATEST) -> list[int]:
    """Return the distinct purchasable squad sizes of a unit, ascending."""

    return sorted(set(_variants(unit, faction, version).values_list("model_count", flat=True)))


def unit_points(unit: str, faction: str, model_count: int, version: str = LATEST) -> int | None:
    return (
        _variants(unit, faction, version)
        .filter(model_count=model_count)
        .order_by("id")
        .values_list("points", flat=True)
        .first()
    )


def _detachments(faction: str, version: str) -> QuerySet[MfmDetachment]:
    enhancements = Prefetch("enhancements", queryset=MfmEnhancement.objects.order_by("id"))
    return (
        MfmDetachment.objects.filter(faction__name=faction, **_version_lookup("faction__mfm_version__", version))
        .select_related("faction__mfm_version")
        .prefetch_related(enhancements)
    )


def detachments_for(faction: str, version: str = LATEST) -> QuerySet[MfmDetachment]:
    return _detachments(faction, version).order_by("name", "id")


def find_detachment(name: str, faction: str, version: str = LATEST) -> MfmDetachment | None:
    return _detachments(faction, version).filter(name=name).order_by("id").first()


def enhancements_for(detachment: str, faction: str, version: str = LATEST) -> QuerySet[MfmEnhancement]:
    return (
        MfmEnhancement.objects.filter(
            detachment__name=detachment,
            detachment__faction__name=faction,
            **_version_lookup("detachment__faction__mfm_version__", version),
        )
        .select_related("detachment__faction__mfm_version")
        .order_by("name", "id")
    )


def enhancement_points(name: str, detachment: str, faction: str, version: str = LATEST) -> int | None:
    return enhancements_for(detachment, faction, version).filter(name=name).values_list("points", flat=True).first()


def version_stats(version: str) -> dict[str, object]:
    """Return row counts for a stored version.

    Raises:
        MfmVersionNotFound: If the version is not stored.
    """

    row = get_version(version)
    return {
        "version": row.version,
        "date": row.date,
        "isLatest": row.is_latest,
        "isActive": row.is_active,
        "factions": MfmFaction.objects.filter(mfm_version=row).count(),
        "units": MfmUnit.objects.filter(faction__mfm_version=row).count(),
        "unitVariants": MfmUnitVariant.objects.filter(unit__faction__mfm_version=row).count(),
        "detachments": MfmDetachment.objects.filter(faction__mfm_version=row).count(),
        "enhancements": MfmEnhancement.objects.filter(detachment__faction__mfm_version=row).count(),
    }


def serialize_version(row: MfmVersion) -> dict[str, object]:
    return {
        "id": row.id,
        "version": row.version,
        "date": row.date,
        "isLatest": row.is_latest,
        "isActive": row.is_active,
    }


def serialize_faction(row: MfmFaction) -> dict[str, object]:
    return {
        "id": row.id,
        "name": row.name,
        "supergroup": row.supergroup,
        "allyTo": row.ally_to,
        "mfmVersion": row.mfm_version.version,
    }


def serialize_variant(row: MfmUnitVariant, unit: MfmUnit) -> dict[str, object]:
    return {
        "id": row.id,
        "modelCount": row.model_count,
        "points": row.points,
        "unitName": unit.name,
        "factionName": unit.faction.name,
        "mfmVersion": unit.faction.mfm_version.version,
    }


def serialize_unit(row: MfmUnit) -> dict[str, object]:
    return {
        "id": row.id,
        "name": row.name,
        "unitType": row.unit_type,
        "factionName": row.faction.name,
        "mfmVersion": row.faction.mfm_version.version,
        "variants": [serialize_variant(variant, row) for variant in row.variants.all()],
    }


def serialize_enhancement(row: MfmEnhancement, detachment: MfmDetachment | None = None) -> dict[str, object]:
    detachment = detachment or row.detachment
    return {
        "id": row.id,
        "name": row.name,
        "points": row.points,
        "detachmentName": detachment.name,
        "factionName": detachment.faction.name,
        "mfmVersion": detachment.faction.mfm_version.version,
    }


def serialize_detachment(row: MfmDetachment) -> dict[str, object]:
    return {
        "id": row.id,
        "name": row.name,
        "factionName": row.faction.name,
        "mfmVersion": row.faction.mfm_version.version,
        "enhancements": [serialize_enhancement(enhancement, row) for enhancement in row.enhancements.all()],
    }
