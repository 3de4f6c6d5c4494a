# uploads/apps.py
"""Bulk upload app configuration."""

from django.apps import AppConfig


class UploadsConfig(AppConfig):
    """Configuration for the bulk upload pipeline."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "uploads"
    verbose_name = "Bulk Uploads"

    def ready(self):
        """Register upload event payload schemas."""
        from uploads import event_types

        event_types.register()
