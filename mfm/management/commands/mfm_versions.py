"""Inspect and manage stored MFM versions."""

from __future__ import annotations

from django.core.management.base import BaseCommand, CommandError

from mfm.versions import activate_version, deactivate_version, delete_version, version_status_summary


class Command(BaseCommand):
    """List versions, or change one version's state."""

    help = "Show MFM version status; optionally activate, deactivate or delete a version."

    def add_arguments(self, parser) -> None:
        """Add command arguments."""

        group = parser.add_mutually_exclusive_group()
        group.add_argument("--activate", metavar="VERSION", help="Mark a version active.")
        group.add_argument("--deactivate", metavar="VERSION", help="Mark a version inactive.")
        group.add_argument("--delete", metavar="VERSION", help="Delete a version and all of its data.")

    def handle(self, *args, **options) -> str | None:
        """Run the command."""

        actions = (
            ("activate", activate_version),
            ("deactivate", deactivate_version),
            ("delete", delete_version),
        )
        for option, action in actions:
            version = options[option]
            if version is None:
                continue
            if not action(version):
                raise CommandError(f"MFM version not found: {version}")
            self.stdout.write(f"{option}: {version}")

        self.stdout.write(version_status_summary(), ending="")
        return None
