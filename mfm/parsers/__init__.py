"""Pure (ORM-free) parsers for MFM bulletin text and structured data files."""
