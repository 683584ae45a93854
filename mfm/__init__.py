"""Munitorum Field Manual ingestion, validation and lookups."""
