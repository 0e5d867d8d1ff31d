"""
GLC Bootstrap - App Configuration
=================================
Runs the ledger self-check once Django has loaded the apps.

The check is skipped for the management commands this project
uses to create, inspect or reset the ledger tables, and under
pytest. A failing check raises SystemBootstrapError and the
process does not start.
"""

import logging
import os
import sys

from django.apps import AppConfig

logger = logging.getLogger("glc.bootstrap")

# Ledger tables may be missing or mid-migration while these run.
SKIP_COMMANDS = frozenset({
    "migrate",
    "makemigrations",
    "showmigrations",
    "sqlmigrate",
    "flush",
    "shell",
    "dbshell",
    "inspectdb",
    "test",
    "check",
})


def _skipped_command(argv=None):
    argv = sys.argv if argv is None else argv
    if len(argv) < 2:
        return None
    command = argv[1]
    return command if command in SKIP_COMMANDS else None


def _under_pytest() -> bool:
    return "PYTEST_CURRENT_TEST" in os.environ or "pytest" in sys.modules


class BootstrapConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "core.bootstrap"
    label = "bootstrap"
    verbose_name = "GLC Bootstrap"

    def ready(self):
        command = _skipped_command()
        if command is not None:
            logger.info(f"Ledger self-check skipped for '{command}'.")
            return
        if _under_pytest():
            logger.info("Ledger self-check skipped under pytest.")
            return

        from core.bootstrap.self_check import run_bootstrap_checks
        run_bootstrap_checks()
