"""
Django settings for the chat search project.

Every value can be overridden from the environment so the same module serves
development, tests and deployments.
"""

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent


def _env_bool(name, default=False):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_list(name, default):
    value = os.environ.get(name)
    if not value:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]


SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "insecure-development-key")
DEBUG = _env_bool("DJANGO_DEBUG", False)
ALLOWED_HOSTS = _env_list("DJANGO_ALLOWED_HOSTS", ["localhost", "127.0.0.1"])

INSTALLED_APPS = [
    "core",
]

DATABASES = {
    "default": {
        "ENGINE": os.environ.get("DB_ENGINE", "django.db.backends.sqlite3"),
        "NAME": os.environ.get("DB_NAME", str(BASE_DIR / "db.sqlite3")),
        "USER": os.environ.get("DB_USER", ""),
        "PASSWORD": os.environ.get("DB_PASSWORD", ""),
        "HOST": os.environ.get("DB_HOST", ""),
        "PORT": os.environ.get("DB_PORT", ""),
    }
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

# Search engine
ELASTICSEARCH_HOSTS = _env_list("ELASTICSEARCH_HOSTS", ["http://elasticsearch:9200"])
SEARCH_INDEX_PREFIX = os.environ.get("SEARCH_INDEX_PREFIX", "")
# Signal driven indexing, disabled unless explicitly turned on
SEARCH_INDEXING_ENABLED = _env_bool("SEARCH_INDEXING_ENABLED", False)
SEARCH_SLOW_QUERY_MS = int(os.environ.get("SEARCH_SLOW_QUERY_MS", "300"))
SEARCH_BULK_BATCH_SIZE = int(os.environ.get("SEARCH_BULK_BATCH_SIZE", "1000"))
SEARCH_SUGGESTION_SCAN_LIMIT = int(
    os.environ.get("SEARCH_SUGGESTION_SCAN_LIMIT", "50")
)
SEARCH_CROP_LENGTH = int(os.environ.get("SEARCH_CROP_LENGTH", "200"))

# Celery
CELERY_BROKER_URL = os.environ.get("CELERY_BROKER_URL", "redis://redis:6379/0")
CELERY_RESULT_BACKEND = os.environ.get("CELERY_RESULT_BACKEND", None)
CELERY_TASK_ALWAYS_EAGER = _env_bool("CELERY_TASK_ALWAYS_EAGER", False)
CELERY_TASK_SERIALIZER = "json"
CELERY_ACCEPT_CONTENT = ["json"]

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {
            "format": "{asctime} {levelname} {name} {message}",
            "style": "{",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "simple",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": os.environ.get("LOGGING_LEVEL_ROOT", "INFO"),
    },
    "loggers": {
        "core": {
            "handlers": ["console"],
            "level": os.environ.get("LOGGING_LEVEL_CORE", "INFO"),
            "propagate": False,
        },
        "elastic_transport": {
            "handlers": ["console"],
            "level": "WARNING",
            "propagate": False,
        },
    },
}
