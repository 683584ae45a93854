"""Print or save bulletin text regenerated from the database."""

from __future__ import annotations

from pathlib import Path

from django.core.management.base import BaseCommand, CommandError

from mfm.exceptions import MfmVersionNotFound
from mfm.validation import regenerate_mfm_text


class Command(BaseCommand):
    """Regenerate bulletin text for one MFM version."""

    help = "Render a stored MFM version as bulletin-like text."

    def add_arguments(self, parser) -> None:
        """Add command arguments."""

        parser.add_argument("version", help="MFM version, e.g. 3.2.")
        parser.add_argument("--output", default=None, help="Write to this file instead of stdout.")

    def handle(self, *args, **options) -> str | None:
        """Run the command."""

        try:
            content = regenerate_mfm_text(options["version"])
        except MfmVersionNotFound as exc:
            raise CommandError(str(exc)) from exc

        output: str | None = options["output"]
        if output is None:
            self.stdout.write(content, ending="")
            return None

        path = Path(output)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        self.stdout.write(f"Wrote {path}")
        return None
