"""Validate stored MFM data against the original bulletin."""

from __future__ import annotations

from django.core.management.base import BaseCommand, CommandError

from mfm.exceptions import MfmError
from mfm.validation import render_validation_report, save_validation_report, validate_mfm_data


class Command(BaseCommand):
    """Regenerate a version and diff it against its source bulletin."""

    help = "Compare regenerated MFM text for a version with the original bulletin file."

    def add_arguments(self, parser) -> None:
        """Add command arguments."""

        parser.add_argument("version", help="MFM version, e.g. 3.2.")
        parser.add_argument("path", help="Path to the original bulletin text file.")
        parser.add_argument(
            "--report",
            default=None,
            help="Also save the report under MFM_REPORTS_DIR with this file name.",
        )

    def handle(self, *args, **options) -> str | None:
        """Run the command."""

        version: str = options["version"]
        path: str = options["path"]
        try:
            result = validate_mfm_data(version, path)
            if options["report"]:
                saved = save_validation_report(result, options["report"])
                self.stdout.write(f"Report saved to {saved}")
        except FileNotFoundError as exc:
            raise CommandError(f"File not found: {path}") from exc
        except MfmError as exc:
            raise CommandError(str(exc)) from exc

        self.stdout.write(render_validation_report(result), ending="")
        return None
