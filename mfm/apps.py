"""Django app configuration for MFM reference data."""

from __future__ import annotations

from django.apps import AppConfig


class MfmConfig(AppConfig):
    """AppConfig for Munitorum Field Manual data."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "mfm"
    verbose_name = "Munitorum Field Manual"

    def ready(self) -> None:
        """Register MFM signal handlers."""

        from mfm import signals  # noqa: F401
