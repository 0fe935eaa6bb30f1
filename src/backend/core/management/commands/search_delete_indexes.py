"""Management command to delete the search indexes."""

import sys

from django.core.management.base import BaseCommand

from core.search import KINDS, get_search_gateway


class Command(BaseCommand):
    """Delete one or all Elasticsearch indexes."""

    help = "Delete the search indexes"

    def add_arguments(self, parser):
        """Add command arguments."""
        parser.add_argument(
            "--kind",
            choices=KINDS,
            help="Only delete the index of this document kind",
        )
        parser.add_argument(
            "--force",
            action="store_true",
            help="Force deletion without confirmation",
        )

    def handle(self, *args, **options):
        """Execute the command."""
        target = options["kind"] or "all search"
        if not options["force"]:
            confirm = input(
                f"Are you sure you want to delete the {target} index? "
                "This cannot be undone. [y/N] "
            )
            if confirm.lower() != "y":
                self.stdout.write(self.style.WARNING("Operation cancelled"))
                return

        self.stdout.write(f"Deleting {target} index...")

        deleted = get_search_gateway().delete_indexes(options["kind"])
        if deleted:
            self.stdout.write(
                self.style.SUCCESS(f"Deleted indexes: {', '.join(deleted)}")
            )
        else:
            self.stdout.write(
                self.style.WARNING("Search indexes not found or already deleted")
            )
            sys.exit(1)
