"""Run the configured startup bulletin imports and verifications."""

from __future__ import annotations

from django.core.management.base import BaseCommand

from mfm.startup import run_startup_ingestion


class Command(BaseCommand):
    """Import and verify bulletins named in settings or on the command line."""

    help = "Import MFM_IMPORT_FILES and verify MFM_VERIFY_FILES (names resolve under MFM_FILES_DIR)."

    def add_arguments(self, parser) -> None:
        """Add command arguments."""

        parser.add_argument("--import", dest="import_files", nargs="*", default=None, help="Bulletin names to import.")
        parser.add_argument("--verify", dest="verify_files", nargs="*", default=None, help="Bulletin names to verify.")

    def handle(self, *args, **options) -> str | None:
        """Run the command."""

        summary = run_startup_ingestion(options["import_files"], options["verify_files"])
        for name, result in summary.imported.items():
            self.stdout.write(f"imported {name}: version={result.version} units={result.units_count}")
        for name, result in summary.verified.items():
            self.stdout.write(f"verified {name}: {result.match_percentage:.1f}% match")
        for name in summary.skipped:
            self.stdout.write(f"skipped {name}")
        for name in summary.failed:
            self.stderr.write(f"failed {name}")
        return None
