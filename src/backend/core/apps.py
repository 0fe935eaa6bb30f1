"""Chat search core application"""

from django.apps import AppConfig
from django.utils.translation import gettext_lazy as _


class CoreConfig(AppConfig):
    """Configuration class for the chat core app."""

    name = "core"
    app_label = "core"
    verbose_name = _("chat core application")

    def ready(self):
        """Connect the search indexing signal handlers."""
        # pylint: disable=import-outside-toplevel, unused-import
        from core import signals  # noqa: F401
