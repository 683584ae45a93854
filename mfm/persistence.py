"""Persist parsed bulletin records as the normalized MFM entity graph.

Services here coordinate Django persistence (ORM, transactions) with the pure
parsers in `mfm.parsers`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from django.db import transaction

from mfm.exceptions import MfmParseError
from mfm.models import MfmDetachment, MfmEnhancement, MfmFaction, MfmUnit, MfmUnitVariant, MfmVersion
from mfm.parsers.patterns import extract_date_from_filename, extract_version
from mfm.parsers.raw_text import ParsedMfm, parse_mfm_text
from mfm.versions import delete_version_graph, mark_latest

logger = logging.getLogger(__name__)

_IMPERIUM_MARKERS = (
    "IMPERIUM",
    "SPACE MARINES",
    "ADEPTA SORORITAS",
    "ADEPTUS CUSTODES",
    "ADEPTUS MECHANICUS",
    "ASTRA MILITARUM",
    "GREY KNIGHTS",
    "DEATHWATCH",
    "IMPERIAL KNIGHTS",
    "ADEPTUS TITANICUS",
)
_CHAOS_MARKERS = ("CHAOS", "DEATH GUARD", "THOUSAND SONS", "WORLD EATERS", "EMPEROR'S CHILDREN")
_ALLY_FACTIONS = (
    "CHAOS DAEMONS",
    "CHAOS KNIGHTS",
    "ADEPTUS TITANICUS",
    "IMPERIAL KNIGHTS",
    "IMPERIAL AGENTS (ALLIES)",
)


@dataclass(frozen=True, slots=True)
class MfmParseResult:
    """Counts reported after parsing and storing one bulletin.

    Attributes:
        version: MFM version declared by the bulletin.
        units_count: Unit records parsed (one per squad-size line).
        enhancements_count: Enhancement records parsed.
        factions_count: Distinct factions seen.
        detachments_count: Distinct (faction, detachment) pairs seen.
        stored: False when the version was already stored and left untouched.
    """

    version: str
    units_count: int
    enhancements_count: int
    factions_count: int
    detachments_count: int
    stored: bool = True

    def as_json(self) -> dict[str, object]:
        """Return the camelCase payload used by the HTTP layer."""

        return {
            "version": self.version,
            "unitsCount": self.units_count,
            "enhancementsCount": self.enhancements_count,
            "factionsCount": self.factions_count,
            "detachmentsCount": self.detachments_count,
            "stored": self.stored,
        }


@dataclass(frozen=True, slots=True)
class StoreSummary:
    """Rows written by `store_parsed_mfm`.

    Factions, detachments and units count rows used by the bulletin, whether
    reused or created. Variants and enhancements count inserted rows.
    """

    factions: int
    detachments: int
    units: int
    variants: int
    enhancements: int
    skipped_enhancements: int


def determine_supergroup(faction_name: str) -> str:
    """Infer the faction supergroup from its name.

    Args:
        faction_name: Upper-case faction name as printed in the bulletin.

    Returns:
        "Imperium", "Chaos" or "Xenos" (the fallback for every other name).
    """

    if any(marker in faction_name for marker in _IMPERIUM_MARKERS):
        return MfmFaction.Supergroup.IMPERIUM.value
    if any(marker in faction_name for marker in _CHAOS_MARKERS):
        return MfmFaction.Supergroup.CHAOS.value
    return MfmFaction.Supergroup.XENOS.value


def determine_ally_to(faction_name: str) -> str | None:
    """Return the supergroup an allied faction can join, if any."""

    if not any(marker in faction_name for marker in _ALLY_FACTIONS):
        return None
    return MfmFaction.Supergroup.CHAOS.value if "CHAOS" in faction_name else MfmFaction.Supergroup.IMPERIUM.value


def get_or_create_version(version: str, date: str) -> tuple[MfmVersion, bool]:
    """Return the stored version, creating it as the latest when missing."""

    existing = MfmVersion.objects.filter(version=version).first()
    if existing is not None:
        return existing, False
    created = MfmVersion.objects.create(version=version, date=date, is_latest=True)
    mark_latest(created)
    return created, True


def get_or_create_faction(
    name: str, mfm_version: MfmVersion, *, supergroup: str | None = None, ally_to: str | None = None
) -> MfmFaction:
    """Return the faction for `(mfm_version, name)`, creating it when missing.

    When `supergroup` is given (metadata from a structured base file) both it
    and `ally_to` are stored as given; otherwise both are inferred from the name.
    """

    faction, _ = MfmFaction.objects.get_or_create(
        mfm_version=mfm_version,
        name=name,
        defaults={
            "supergroup": supergroup if supergroup is not None else determine_supergroup(name),
            "ally_to": ally_to if supergroup is not None else determine_ally_to(name),
        },
    )
    return faction


def get_or_create_detachment(name: str, faction: MfmFaction) -> MfmDetachment:
    detachment = MfmDetachment.objects.filter(faction=faction, name=name).first()
    if detachment is None:
        detachment = MfmDetachment.objects.create(faction=faction, name=name)
    return detachment


def get_or_create_unit(name: str, faction: MfmFaction, unit_type: str | None) -> MfmUnit:
    unit = MfmUnit.objects.filter(faction=faction, name=name).first()
    if unit is None:
        unit = MfmUnit.objects.create(faction=faction, name=name, unit_type=unit_type)
    return unit


def store_parsed_mfm(parsed: ParsedMfm, mfm_version: MfmVersion) -> StoreSummary:
    """Write parsed records under `mfm_version`.

    Factions, detachments and units are reused when already present; every unit
    record adds one variant and every enhancement with a known detachment adds
    one enhancement row.
    """

    factions = {name: get_or_create_faction(name, mfm_version) for name in parsed.factions}

    detachments = {
        (faction_name, name): get_or_create_detachment(name, factions[faction_name])
        for faction_name, name in parsed.detachments
    }

    unit_ids: set[int] = set()
    for record in parsed.units:
        unit = get_or_create_unit(record.name, factions[record.faction], record.unit_type)
        unit_ids.add(unit.pk)
        MfmUnitVariant.objects.create(unit=unit, model_count=record.model_count, points=record.points)

    enhancements = 0
    for record in parsed.enhancements:
        detachment = detachments.get((record.faction, record.detachment))
        if detachment is None:
            logger.debug("Skipping enhancement %s on line %d: no detachment", record.name, record.line_number)
            continue
        MfmEnhancement.objects.create(detachment=detachment, name=record.name, points=record.points)
        enhancements += 1

    return StoreSummary(
        factions=len(factions),
        detachments=len(detachments),
        units=len(unit_ids),
        variants=len(parsed.units),
        enhancements=enhancements,
        skipped_enhancements=len(parsed.enhancements) - enhancements,
    )


def parse_and_store_mfm_text(text: str, *, source_name: str, overwrite: bool = False) -> MfmParseResult:
    """Parse bulletin text and store it.

    A version that is already stored is left untouched unless `overwrite` is
    set, in which case its graph is deleted and rebuilt in the same transaction.

    Args:
        text: Raw bulletin text.
        source_name: File name used to derive the release date label.
        overwrite: Rebuild an already stored version instead of skipping it.

    Returns:
        MfmParseResult with record counts; `stored` is False when skipped.

    Raises:
        MfmParseError: If the text does not declare a `VERSION x.y`.
    """

    version = extract_version(text)
    if version is None:
        raise MfmParseError("Could not extract version from MFM file")

    parsed = parse_mfm_text(text)
    stored = True
    with transaction.atomic():
        existing = MfmVersion.objects.filter(version=version).first()
        if existing is not None and not overwrite:
            logger.info("MFM version %s already exists, skipping %s", version, source_name)
            stored = False
        else:
            if existing is not None:
                logger.info("Overwriting existing MFM version: %s", version)
                delete_version_graph(existing)
            mfm_version, _ = get_or_create_version(version, extract_date_from_filename(source_name))
            store_parsed_mfm(parsed, mfm_version)

    result = MfmParseResult(
        version=version,
        units_count=len(parsed.units),
        enhancements_count=len(parsed.enhancements),
        factions_count=len(parsed.factions),
        detachments_count=len(parsed.detachments),
        stored=stored,
    )
    if stored:
        logger.info(
            "Stored MFM %s from %s: %d units, %d enhancements, %d factions, %d detachments",
            version,
            source_name,
            result.units_count,
            result.enhancements_count,
            result.factions_count,
            result.detachments_count,
        )
    return result


def parse_and_store_mfm_file(path: str | Path, *, overwrite: bool = False) -> MfmParseResult:
    """Read a bulletin file from disk, then parse and store it."""

    file_path = Path(path)
    logger.info("Parsing raw MFM file: %s", file_path)
    text = file_path.read_text(encoding="utf-8")
    return parse_and_store_mfm_text(text, source_name=file_path.name, overwrite=overwrite)
