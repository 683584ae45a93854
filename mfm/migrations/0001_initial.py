"""Create the Munitorum Field Manual reference tables.

Every version owns its own faction/unit/detachment graph; foreign keys are
PROTECT so a version can only be removed by the ordered, children-first delete
in `mfm.versions`.
"""

from __future__ import annotations

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):
    """Initial schema for the MFM app."""

    initial = True

    dependencies: list[tuple[str, str]] = []

    operations = [
        migrations.CreateModel(
            name="MfmVersion",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("version", models.CharField(max_length=20, unique=True)),
                ("date", models.CharField(blank=True, default="", max_length=20)),
                ("is_latest", models.BooleanField(default=False)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "MFM Version",
                "verbose_name_plural": "MFM Versions",
                "ordering": ["version"],
            },
        ),
        migrations.CreateModel(
            name="MfmFaction",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=100)),
                (
                    "supergroup",
                    models.CharField(
                        blank=True,
                        choices=[("Imperium", "Imperium"), ("Chaos", "Chaos"), ("Xenos", "Xenos")],
                        default="",
                        max_length=50,
                    ),
                ),
                ("ally_to", models.CharField(blank=True, max_length=50, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "mfm_version",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="factions",
                        to="mfm.mfmversion",
                    ),
                ),
            ],
            options={
                "verbose_name": "MFM Faction",
                "verbose_name_plural": "MFM Factions",
            },
        ),
        migrations.AddConstraint(
            model_name="mfmfaction",
            constraint=models.UniqueConstraint(fields=("mfm_version", "name"), name="uniq_mfm_faction_per_version"),
        ),
        migrations.CreateModel(
            name="MfmUnit",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200)),
                ("unit_type", models.CharField(blank=True, max_length=50, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "faction",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="units",
                        to="mfm.mfmfaction",
                    ),
                ),
            ],
            options={
                "verbose_name": "MFM Unit",
                "verbose_name_plural": "MFM Units",
                "indexes": [models.Index(fields=["faction", "name"], name="mfm_unit_faction_name_idx")],
            },
        ),
        migrations.CreateModel(
            name="MfmUnitVariant",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("model_count", models.PositiveIntegerField()),
                ("points", models.PositiveIntegerField()),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "unit",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="variants",
                        to="mfm.mfmunit",
                    ),
                ),
            ],
            options={
                "verbose_name": "MFM Unit Variant",
                "verbose_name_plural": "MFM Unit Variants",
            },
        ),
        migrations.CreateModel(
            name="MfmDetachment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "faction",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="detachments",
                        to="mfm.mfmfaction",
                    ),
                ),
            ],
            options={
                "verbose_name": "MFM Detachment",
                "verbose_name_plural": "MFM Detachments",
                "indexes": [models.Index(fields=["faction", "name"], name="mfm_detach_faction_name_idx")],
            },
        ),
        migrations.CreateModel(
            name="MfmEnhancement",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200)),
                ("points", models.PositiveIntegerField()),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "detachment",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="enhancements",
                        to="mfm.mfmdetachment",
                    ),
                ),
            ],
            options={
                "verbose_name": "MFM Enhancement",
                "verbose_name_plural": "MFM Enhancements",
            },
        ),
    ]
