"""Management command to reindex content in Elasticsearch."""

import uuid

from django.core.management.base import BaseCommand, CommandError

from core import models
from core.search import KINDS, get_indexing_service, get_search_gateway
from core.tasks import _bulk_reindex_base, bulk_reindex_task


class Command(BaseCommand):
    """Reindex content in Elasticsearch."""

    help = "Reindex messages, users and conversations in Elasticsearch"

    def add_arguments(self, parser):
        """Add command arguments."""
        # Define a mutually exclusive group for the reindex scope
        group = parser.add_mutually_exclusive_group(required=True)
        group.add_argument(
            "--all",
            action="store_true",
            help="Reindex every message, user and conversation",
        )
        group.add_argument(
            "--kind",
            choices=KINDS,
            help="Reindex every document of one kind",
        )
        group.add_argument(
            "--message",
            type=str,
            help="Reindex a specific message by ID",
        )

        parser.add_argument(
            "--batch-size",
            type=int,
            default=None,
            help="Number of documents sent per bulk request",
        )
        parser.add_argument(
            "--from-offset",
            type=int,
            default=0,
            dest="start_offset",
            help="Resume a bulk reindex from this offset",
        )

        # Async option
        parser.add_argument(
            "--async",
            action="store_true",
            help="Run task asynchronously",
            dest="async_mode",
        )

        # Whether to recreate the indexes
        parser.add_argument(
            "--recreate-index",
            action="store_true",
            help="Delete and recreate the indexes before reindexing",
        )

    def handle(self, *args, **options):
        """Execute the command."""
        gateway = get_search_gateway()
        if options["recreate_index"]:
            self.stdout.write("Recreating Elasticsearch indexes...")
            gateway.delete_indexes()

        # Ensure indexes exist
        self.stdout.write("Ensuring Elasticsearch indexes exist...")
        gateway.setup(force=True)

        if options["message"]:
            self._reindex_message(options["message"])
            return

        kinds = KINDS if options["all"] else [options["kind"]]
        for kind in kinds:
            self._reindex_kind(
                kind,
                options["batch_size"],
                options["start_offset"],
                options["async_mode"],
            )

    def _reindex_kind(self, kind, batch_size, start_offset, async_mode):
        """Reindex every document of one kind."""
        self.stdout.write(f"Reindexing {kind}...")

        if async_mode:
            task = bulk_reindex_task.delay(kind, batch_size, start_offset)
            self.stdout.write(
                self.style.SUCCESS(f"Reindexing task scheduled (ID: {task.id})")
            )
            return

        def update_progress(indexed, offset):
            """Update progress in the console."""
            self.stdout.write(f"Progress: {indexed} {kind} indexed (offset {offset})")

        result = _bulk_reindex_base(kind, batch_size, start_offset, update_progress)
        self.stdout.write(
            self.style.SUCCESS(
                f"Reindexing {kind} completed: {result['indexed']} documents "
                f"in {result['batches']} batches"
            )
        )

    def _reindex_message(self, message_id):
        """Reindex a specific message."""
        try:
            message_uuid = uuid.UUID(message_id)
        except ValueError as e:
            raise CommandError(f"Invalid message ID: {message_id}") from e
        if not models.Message.objects.filter(id=message_uuid).exists():
            raise CommandError(f"Message with ID {message_id} does not exist")

        self.stdout.write(f"Reindexing message {message_id}...")
        if get_indexing_service().index_message(message_uuid):
            self.stdout.write(
                self.style.SUCCESS(f"Message {message_id} indexed successfully")
            )
        else:
            self.stdout.write(
                self.style.WARNING(f"Message {message_id} is deleted, not indexed")
            )
