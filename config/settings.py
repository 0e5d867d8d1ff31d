"""
GLC - Django Settings (Infrastructure Only)
===========================================
Django serves as the framework container for the ledger: settings,
the ORM behind core.ledger_store, and logging configuration.
The ledger engine does not depend on Django to run in memory.
"""

import os
from pathlib import Path

# ── Paths ─────────────────────────────────────────────────────
BASE_DIR = Path(__file__).resolve().parent.parent

# ── Security ──────────────────────────────────────────────────
SECRET_KEY = os.environ.get("GLC_SECRET_KEY", "glc-dev-key-replace-before-deployment")

DEBUG = os.environ.get("GLC_DEBUG", "1") == "1"

ALLOWED_HOSTS = []

# ── Installed Apps ────────────────────────────────────────────
INSTALLED_APPS = [
    "django.contrib.contenttypes",
    # ── GLC Modules ───────────────────────────────────────
    "core.ledger_store",
    "core.bootstrap",
]

MIDDLEWARE = []

# ── Database ──────────────────────────────────────────────────
# SQLite for development. Production DB configured separately.
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.environ.get("GLC_DB_PATH", BASE_DIR / "db.sqlite3"),
    }
}

# ── Internationalization ──────────────────────────────────────
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = False
USE_TZ = True

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# ── Ledger ────────────────────────────────────────────────────
# Read by core.config.ledger.load_ledger_config().
GATED_LEDGER = {
    "NAME": "Gated Ledger Token",
    "SYMBOL": "GLT",
    "DECIMALS": 18,
    "WHITELIST_BATCH_LIMIT": 200,
}

# ── Logging ───────────────────────────────────────────────────
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "plain": {
            "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "plain",
        },
    },
    "loggers": {
        "glc": {
            "handlers": ["console"],
            "level": os.environ.get("GLC_LOG_LEVEL", "INFO"),
            "propagate": True,
        },
    },
}
