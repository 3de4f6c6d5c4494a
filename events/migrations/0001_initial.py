import uuid

import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="BusinessEvent",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("event_type", models.CharField(db_index=True, help_text="Event type name (e.g., 'upload_batch.approved')", max_length=100)),
                ("aggregate_type", models.CharField(db_index=True, help_text="Entity type (e.g., 'UploadBatch')", max_length=50)),
                ("aggregate_id", models.CharField(db_index=True, max_length=64)),
                ("idempotency_key", models.CharField(editable=False, max_length=255, unique=True)),
                ("sequence", models.PositiveIntegerField(default=0, editable=False, help_text="Auto-incremented per aggregate")),
                ("data", models.JSONField(default=dict, help_text="Event data payload")),
                ("metadata", models.JSONField(blank=True, default=dict)),
                ("payload_hash", models.CharField(blank=True, default="", help_text="SHA-256 of the canonical JSON payload", max_length=64)),
                ("caused_by", models.CharField(help_text="Identity of the authenticated principal", max_length=150)),
                ("recorded_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("occurred_at", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
            ],
            options={
                "ordering": ["recorded_at"],
                "indexes": [
                    models.Index(fields=["aggregate_type", "aggregate_id", "sequence"], name="event_aggregate_seq_idx"),
                    models.Index(fields=["event_type", "occurred_at"], name="event_type_occurred_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("aggregate_type", "aggregate_id", "sequence"), name="uniq_event_aggregate_sequence"),
                ],
            },
        ),
    ]
