"""Admin registrations for MFM reference data."""

from __future__ import annotations

from django.contrib import admin

from mfm.models import MfmDetachment, MfmEnhancement, MfmFaction, MfmUnit, MfmUnitVariant, MfmVersion
from mfm.versions import delete_version_graph


@admin.register(MfmVersion)
class MfmVersionAdmin(admin.ModelAdmin):
    """Admin configuration for MfmVersion.

    Deleting a version removes its whole graph children-first, since every
    foreign key in the graph is PROTECT.
    """

    list_display = ("version", "date", "is_latest", "is_active", "updated_at")
    list_filter = ("is_latest", "is_active")
    search_fields = ("version",)
    actions = ("activate_versions", "deactivate_versions")

    @admin.action(description="Activate selected versions")
    def activate_versions(self, request, queryset) -> None:
        updated = queryset.update(is_active=True)
        self.message_user(request, f"Activated {updated} MFM version(s).")

    @admin.action(description="Deactivate selected versions")
    def deactivate_versions(self, request, queryset) -> None:
        updated = queryset.update(is_active=False)
        self.message_user(request, f"Deactivated {updated} MFM version(s).")

    def delete_model(self, request, obj: MfmVersion) -> None:
        delete_version_graph(obj)

    def delete_queryset(self, request, queryset) -> None:
        for row in queryset:
            delete_version_graph(row)


@admin.register(MfmFaction)
class MfmFactionAdmin(admin.ModelAdmin):
    """Admin configuration for MfmFaction."""

    list_display = ("name", "mfm_version", "supergroup", "ally_to")
    list_filter = ("mfm_version", "supergroup")
    search_fields = ("name",)


@admin.register(MfmUnit)
class MfmUnitAdmin(admin.ModelAdmin):
    """Admin configuration for MfmUnit."""

    list_display = ("name", "faction", "unit_type")
    list_filter = ("unit_type", "faction__mfm_version")
    search_fields = ("name", "faction__name")


@admin.register(MfmUnitVariant)
class MfmUnitVariantAdmin(admin.ModelAdmin):
    list_display = ("unit", "model_count", "points")
    search_fields = ("unit__name",)


@admin.register(MfmDetachment)
class MfmDetachmentAdmin(admin.ModelAdmin):
    """Admin configuration for MfmDetachment."""

    list_display = ("name", "faction")
    list_filter = ("faction__mfm_version",)
    search_fields = ("name", "faction__name")


@admin.register(MfmEnhancement)
class MfmEnhancementAdmin(admin.ModelAdmin):
    list_display = ("name", "detachment", "points")
    search_fields = ("name", "detachment__name")
