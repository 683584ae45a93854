"""Signals running MFM ingestion once the schema is migrated."""

from __future__ import annotations

import logging

from django.conf import settings
from django.db.models.signals import post_migrate
from django.dispatch import receiver

from mfm.migration import run_migration
from mfm.startup import run_startup_ingestion

logger = logging.getLogger(__name__)


@receiver(post_migrate)
def ingest_mfm_after_migrate(sender, **kwargs) -> None:
    """Run the structured-file migration, then startup imports and checks.

    Only the `mfm` app's own `post_migrate` triggers ingestion, and nothing
    runs when `MFM_RUN_ON_MIGRATE` is off.
    """

    if getattr(sender, "name", None) != "mfm":
        return
    if not settings.MFM_RUN_ON_MIGRATE:
        return

    logger.info("Running MFM ingestion after migrate")
    run_migration()
    run_startup_ingestion()
