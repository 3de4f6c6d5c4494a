import uuid

import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models

DOMAIN_KIND_CHOICES = [
    ("Member", "Member"),
    ("Loan", "Loan"),
    ("Contribution", "Contribution"),
    ("Transaction", "Transaction"),
]

VALIDATION_STATUS_CHOICES = [("Pending", "Pending"), ("Valid", "Valid"), ("Invalid", "Invalid")]


def staged_row_fields():
    return [
        ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
        ("row_number", models.PositiveIntegerField(help_text="1-based row number in the sheet")),
        ("raw_payload", models.JSONField(default=dict, help_text="Cell values as read from the sheet")),
        ("validation_status", models.CharField(choices=VALIDATION_STATUS_CHOICES, default="Pending", max_length=10)),
        ("validation_errors", models.JSONField(blank=True, default=list)),
        ("created_at", models.DateTimeField(auto_now_add=True)),
    ]


def batch_fk(related_name):
    return (
        "batch",
        models.ForeignKey(
            on_delete=django.db.models.deletion.CASCADE,
            related_name=related_name,
            to="uploads.uploadbatch",
        ),
    )


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="UploadBatch",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("public_id", models.UUIDField(default=uuid.uuid4, editable=False, unique=True)),
                ("domain_kind", models.CharField(choices=DOMAIN_KIND_CHOICES, max_length=20)),
                ("status", models.CharField(
                    choices=[
                        ("Pending", "Pending"),
                        ("Validated", "Validated"),
                        ("PendingValidation", "Pending Validation"),
                        ("Processed", "Processed"),
                        ("Rejected", "Rejected"),
                    ],
                    default="Pending",
                    max_length=20,
                )),
                ("original_filename", models.CharField(blank=True, default="", max_length=255)),
                ("file_checksum", models.CharField(blank=True, default="", max_length=64)),
                ("file_size_bytes", models.PositiveIntegerField(default=0)),
                ("total_rows", models.PositiveIntegerField(default=0)),
                ("valid_rows", models.PositiveIntegerField(default=0)),
                ("invalid_rows", models.PositiveIntegerField(default=0)),
                ("processed_rows", models.PositiveIntegerField(blank=True, null=True)),
                ("deleted_rows", models.PositiveIntegerField(blank=True, null=True)),
                ("uploaded_by", models.CharField(max_length=150)),
                ("uploaded_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("reviewed_by", models.CharField(blank=True, max_length=150, null=True)),
                ("reviewed_at", models.DateTimeField(blank=True, null=True)),
                ("rejection_reason", models.TextField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["-uploaded_at", "-id"],
                "permissions": [
                    ("approve_uploadbatch", "Can approve upload batches"),
                    ("reject_uploadbatch", "Can reject upload batches"),
                ],
                "indexes": [
                    models.Index(fields=["domain_kind", "status"], name="upload_batch_kind_status_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(total_rows=models.F("valid_rows") + models.F("invalid_rows")),
                        name="upload_batch_counts_add_up",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="StagedMember",
            fields=staged_row_fields() + [
                ("staff_no", models.CharField(blank=True, max_length=255, null=True)),
                ("reg_no", models.CharField(blank=True, max_length=255, null=True)),
                ("surname", models.CharField(blank=True, max_length=255, null=True)),
                ("firstname", models.CharField(blank=True, max_length=255, null=True)),
                ("email", models.CharField(blank=True, max_length=255, null=True)),
                ("gender", models.CharField(blank=True, max_length=255, null=True)),
                ("dob", models.DateField(blank=True, null=True)),
                ("date_of_appoint", models.DateField(blank=True, null=True)),
                ("retirement_date", models.DateField(blank=True, null=True)),
                ("mobile_no", models.CharField(blank=True, max_length=255, null=True)),
                ("state_of_origin", models.CharField(blank=True, max_length=255, null=True)),
                ("rank_grade", models.CharField(blank=True, max_length=255, null=True)),
                ("bank_name", models.CharField(blank=True, max_length=255, null=True)),
                ("acct_no", models.CharField(blank=True, max_length=255, null=True)),
                ("member_status", models.CharField(blank=True, max_length=255, null=True)),
                batch_fk("stagedmember_rows"),
            ],
            options={
                "ordering": ["row_number", "id"],
                "abstract": False,
            },
        ),
        migrations.CreateModel(
            name="StagedLoan",
            fields=staged_row_fields() + [
                ("ref_no", models.CharField(blank=True, max_length=255, null=True)),
                ("staff_no", models.CharField(blank=True, max_length=255, null=True)),
                ("reg_no", models.CharField(blank=True, max_length=255, null=True)),
                ("loan_type", models.CharField(blank=True, max_length=255, null=True)),
                ("amount_requested", models.DecimalField(blank=True, decimal_places=2, max_digits=15, null=True)),
                ("monthly_repayment", models.DecimalField(blank=True, decimal_places=2, max_digits=15, null=True)),
                ("repayment_period", models.PositiveIntegerField(blank=True, null=True)),
                ("interest_rate", models.DecimalField(blank=True, decimal_places=2, max_digits=5, null=True)),
                ("purpose", models.TextField(blank=True, null=True)),
                ("date_applied", models.DateField(blank=True, null=True)),
                batch_fk("stagedloan_rows"),
            ],
            options={
                "ordering": ["row_number", "id"],
                "abstract": False,
            },
        ),
        migrations.CreateModel(
            name="StagedContribution",
            fields=staged_row_fields() + [
                ("reg_no", models.CharField(blank=True, max_length=255, null=True)),
                ("staff_no", models.CharField(blank=True, max_length=255, null=True)),
                ("contribution_type", models.CharField(blank=True, max_length=255, null=True)),
                ("contribution_date", models.DateField(blank=True, null=True)),
                ("amount", models.DecimalField(blank=True, decimal_places=2, max_digits=15, null=True)),
                batch_fk("stagedcontribution_rows"),
            ],
            options={
                "ordering": ["row_number", "id"],
                "abstract": False,
            },
        ),
        migrations.CreateModel(
            name="StagedTransaction",
            fields=staged_row_fields() + [
                ("reg_no", models.CharField(blank=True, max_length=255, null=True)),
                ("staff_no", models.CharField(blank=True, max_length=255, null=True)),
                ("transaction_type_name", models.CharField(blank=True, max_length=255, null=True)),
                ("transaction_date", models.DateField(blank=True, null=True)),
                ("transaction_mode", models.CharField(blank=True, max_length=255, null=True)),
                ("amount", models.DecimalField(blank=True, decimal_places=2, max_digits=15, null=True)),
                ("description", models.TextField(blank=True, null=True)),
                batch_fk("stagedtransaction_rows"),
            ],
            options={
                "ordering": ["row_number", "id"],
                "abstract": False,
            },
        ),
    ]
