"""Parse a raw MFM bulletin and store it."""

from __future__ import annotations

from django.core.management.base import BaseCommand, CommandError

from mfm.exceptions import MfmError
from mfm.persistence import parse_and_store_mfm_file


class Command(BaseCommand):
    """Parse a bulletin text file into the MFM tables."""

    help = "Parse a raw Munitorum Field Manual text file and store its units and enhancements."

    def add_arguments(self, parser) -> None:
        """Add command arguments."""

        parser.add_argument("path", help="Path to the bulletin text file.")
        parser.add_argument(
            "--overwrite",
            action="store_true",
            help="Delete and rebuild the version if it is already stored.",
        )

    def handle(self, *args, **options) -> str | None:
        """Run the command."""

        path: str = options["path"]
        try:
            result = parse_and_store_mfm_file(path, overwrite=options["overwrite"])
        except FileNotFoundError as exc:
            raise CommandError(f"File not found: {path}") from exc
        except MfmError as exc:
            raise CommandError(str(exc)) from exc

        if not result.stored:
            self.stdout.write(f"MFM {result.version} is already stored; nothing written (use --overwrite to rebuild)")
            return None

        self.stdout.write(
            f"Stored MFM {result.version}: units={result.units_count} enhancements={result.enhancements_count} "
            f"factions={result.factions_count} detachments={result.detachments_count}"
        )
        return None
