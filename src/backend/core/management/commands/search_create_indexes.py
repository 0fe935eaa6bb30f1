"""Management command to create the search indexes."""

import sys

from django.core.management.base import BaseCommand

from core.search import get_search_gateway


class Command(BaseCommand):
    """Create the Elasticsearch indexes that don't exist yet."""

    help = "Create the messages, users and conversations indexes if they don't exist"

    def handle(self, *args, **options):
        """Execute the command."""
        self.stdout.write("Creating Elasticsearch indexes...")

        result = get_search_gateway().setup(force=True)
        if result:
            self.stdout.write(
                self.style.SUCCESS("Elasticsearch indexes created or already exist")
            )
        else:
            self.stdout.write(self.style.ERROR("Failed to create Elasticsearch indexes"))
            sys.exit(1)
