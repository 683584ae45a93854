"""Database models for Munitorum Field Manual reference data.

Each MFM version owns a complete, duplicated graph:

    MfmVersion -> MfmFaction -> MfmUnit -> MfmUnitVariant
                             -> MfmDetachment -> MfmEnhancement

Rows are written only by ingestion (raw bulletin parsing or structured file
migration). Afterwards only the `is_latest`/`is_active` flags change, or the
whole version is deleted and rebuilt. Deletion is performed children-first by
`mfm.versions.delete_version_graph` rather than relying on cascades.
"""

from __future__ import annotations

from django.db import models


class MfmVersion(models.Model):
    """A single Munitorum Field Manual revision (ex: "3.2")."""

    version = models.CharField(max_length=20, unique=True)
    date = models.CharField(max_length=20, blank=True, default="")
    is_latest = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "MFM Version"
        verbose_name_plural = "MFM Versions"
        ordering = ["version"]

    def __str__(self) -> str:
        """Return a concise display string for admin/debug usage."""

        flags = " (latest)" if self.is_latest else ""
        return f"MFM {self.version}{flags}"


class MfmFaction(models.Model):
    """A faction listed in one MFM version."""

    class Supergroup(models.TextChoices):
        """Top-level faction groupings."""

        IMPERIUM = "Imperium", "Imperium"
        CHAOS = "Chaos", "Chaos"
        XENOS = "Xenos", "Xenos"

    mfm_version = models.ForeignKey(MfmVersion, on_delete=models.PROTECT, related_name="factions")
    name = models.CharField(max_length=100)
    supergroup = models.CharField(max_length=50, blank=True, default="", choices=Supergroup.choices)
    ally_to = models.CharField(max_length=50, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "MFM Faction"
        verbose_name_plural = "MFM Factions"
        constraints = [
            models.UniqueConstraint(fields=["mfm_version", "name"], name="uniq_mfm_faction_per_version"),
        ]

    def __str__(self) -> str:
        """Return a concise display string for admin/debug usage."""

        return f"{self.name} (MFM {self.mfm_version.version})"


class MfmUnit(models.Model):
    """A datasheet listed under a faction."""

    faction = models.ForeignKey(MfmFaction, on_delete=models.PROTECT, related_name="units")
    name = models.CharField(max_length=200)
    unit_type = models.CharField(max_length=50, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "MFM Unit"
        verbose_name_plural = "MFM Units"
        indexes = [models.Index(fields=["faction", "name"], name="mfm_unit_faction_name_idx")]

    def __str__(self) -> str:
        """Return a concise display string for admin/debug usage."""

        return self.name


class MfmUnitVariant(models.Model):
    """A purchasable squad size and its points cost."""

    unit = models.ForeignKey(MfmUnit, on_delete=models.PROTECT, related_name="variants")
    model_count = models.PositiveIntegerField()
    points = models.PositiveIntegerField()
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "MFM Unit Variant"
        verbose_name_plural = "MFM Unit Variants"

    def __str__(self) -> str:
        """Return a concise display string for admin/debug usage."""

        return f"{self.unit.name}: {self.model_count} models / {self.points} pts"


class MfmDetachment(models.Model):
    """A faction detachment that grants enhancements."""

    faction = models.ForeignKey(MfmFaction, on_delete=models.PROTECT, related_name="detachments")
    name = models.CharField(max_length=200)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "MFM Detachment"
        verbose_name_plural = "MFM Detachments"
        indexes = [models.Index(fields=["faction", "name"], name="mfm_detach_faction_name_idx")]

    def __str__(self) -> str:
        """Return a concise display string for admin/debug usage."""

        return self.name


class MfmEnhancement(models.Model):
    """A named detachment upgrade and its points cost."""

    detachment = models.ForeignKey(MfmDetachment, on_delete=models.PROTECT, related_name="enhancements")
    name = models.CharField(max_length=200)
    points = models.PositiveIntegerField()
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "MFM Enhancement"
        verbose_name_plural = "MFM Enhancements"

    def __str__(self) -> str:
        """Return a concise display string for admin/debug usage."""

        return f"{self.name} ({self.points} pts)"
