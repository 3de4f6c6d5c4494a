# ledger/apps.py
"""Ledger app configuration."""

from django.apps import AppConfig


class LedgerConfig(AppConfig):
    """Configuration for the member ledger app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "ledger"
    verbose_name = "Member Ledger"
