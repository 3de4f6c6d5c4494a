# events/admin.py
"""Events are read-only in admin (they're immutable)."""

import json

from django.contrib import admin
from django.utils.html import format_html

from .models import BusinessEvent


@admin.register(BusinessEvent)
class BusinessEventAdmin(admin.ModelAdmin):
    list_display = ["id_short", "event_type", "aggregate_display", "caused_by", "occurred_at"]
    list_filter = ["event_type", "aggregate_type", "occurred_at"]
    search_fields = ["event_type", "aggregate_id", "caused_by"]
    date_hierarchy = "occurred_at"
    ordering = ["-occurred_at"]
    readonly_fields = [
        "id", "event_type", "aggregate_type", "aggregate_id", "sequence",
        "data_formatted", "payload_hash", "caused_by", "occurred_at",
    ]
    exclude = ["data", "metadata"]

    @admin.display(description="ID")
    def id_short(self, obj):
        return str(obj.id)[:8] + "..."

    @admin.display(description="Aggregate")
    def aggregate_display(self, obj):
        return f"{obj.aggregate_type}#{obj.aggregate_id}"

    @admin.display(description="Data")
    def data_formatted(self, obj):
        return format_html(
            "<pre style='white-space: pre-wrap; max-width: 600px;'>{}</pre>",
            json.dumps(obj.data, indent=2, default=str),
        )

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
