"""URL configuration for the MFM JSON API."""

from __future__ import annotations

from django.urls import path

from mfm import views

app_name = "mfm"

urlpatterns = [
    path("api/mfm/raw-parser/parse", views.parse_upload, name="raw_parse"),
    path("api/mfm/raw-parser/parse-file", views.parse_file, name="raw_parse_file"),
    path("api/mfm/raw-parser/validate", views.validate, name="raw_validate"),
    path("api/mfm/raw-parser/regenerate/<str:version>", views.regenerate, name="raw_regenerate"),
    path("api/mfm/raw-parser/validation-report", views.validation_report, name="raw_validation_report"),
    path("api/mfm/raw-parser/stats/<str:version>", views.stats, name="raw_stats"),
    path("api/admin/mfm/migrate", views.admin_migrate, name="admin_migrate"),
    path("api/admin/mfm/status", views.admin_status, name="admin_status"),
    path("api/mfm/versions", views.versions, name="versions"),
    path("api/mfm/versions/latest", views.version_detail, {"version": "latest"}, name="version_latest"),
    path("api/mfm/versions/<str:version>", views.version_detail, name="version_detail"),
    path("api/mfm/factions", views.factions, name="factions"),
    path("api/mfm/factions/<str:name>", views.faction_detail, name="faction_detail"),
    path("api/mfm/units", views.units, name="units"),
    path("api/mfm/units/<str:name>", views.unit_detail, name="unit_detail"),
    path("api/mfm/units/<str:name>/model-counts", views.unit_model_counts, name="unit_model_counts"),
    path("api/mfm/units/<str:name>/points", views.unit_points, name="unit_points"),
    path("api/mfm/detachments", views.detachments, name="detachments"),
    path("api/mfm/detachments/<str:name>", views.detachment_detail, name="detachment_detail"),
    path("api/mfm/enhancements", views.enhancements, name="enhancements"),
    path("api/mfm/enhancements/<str:name>/points", views.enhancement_points, name="enhancement_points"),
]
