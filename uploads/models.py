# uploads/models.py
"""
Staging models for bulk uploads.

An UploadBatch is the header for one uploaded spreadsheet; each data row
is staged in the model for the batch's domain kind. Staged rows are
deleted when the batch reaches a terminal state (Processed or Rejected),
so every row still present is pending an operator decision.

Mutations go through uploads.lifecycle; direct saves outside
command_writes_allowed() raise RuntimeError.
"""

import uuid
from dataclasses import fields as dataclass_fields

from django.db import models
from django.utils import timezone

from core.write_barrier import ensure_write_allowed
from uploads.records import (
    ContributionRecord,
    DomainKind,
    LoanRecord,
    MemberRecord,
    TransactionRecord,
    ValidationStatus,
)

STAGING_WRITE_CONTEXTS = {"command", "bootstrap"}


class UploadBatch(models.Model):
    """
    One uploaded spreadsheet awaiting (or past) review.

    Lifecycle: Pending -> Validated | PendingValidation -> Processed | Rejected
    """

    class Status(models.TextChoices):
        PENDING = "Pending", "Pending"
        VALIDATED = "Validated", "Validated"
        PENDING_VALIDATION = "PendingValidation", "Pending Validation"
        PROCESSED = "Processed", "Processed"
        REJECTED = "Rejected", "Rejected"

    REVIEWABLE_STATUSES = (Status.VALIDATED, Status.PENDING_VALIDATION)
    REJECTABLE_STATUSES = (Status.PENDING, Status.VALIDATED, Status.PENDING_VALIDATION)
    TERMINAL_STATUSES = (Status.PROCESSED, Status.REJECTED)

    public_id = models.UUIDField(default=uuid.uuid4, editable=False, unique=True)
    domain_kind = models.CharField(max_length=20, choices=DomainKind.choices)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)

    original_filename = models.CharField(max_length=255, blank=True, default="")
    file_checksum = models.CharField(max_length=64, blank=True, default="")
    file_size_bytes = models.PositiveIntegerField(default=0)

    total_rows = models.PositiveIntegerField(default=0)
    valid_rows = models.PositiveIntegerField(default=0)
    invalid_rows = models.PositiveIntegerField(default=0)
    processed_rows = models.PositiveIntegerField(null=True, blank=True)
    deleted_rows = models.PositiveIntegerField(null=True, blank=True)

    uploaded_by = models.CharField(max_length=150)
    uploaded_at = models.DateTimeField(default=timezone.now)

    # Approver or rejecter, and when the terminal transition happened.
    reviewed_by = models.CharField(max_length=150, null=True, blank=True)
    reviewed_at = models.DateTimeField(null=True, blank=True)
    rejection_reason = models.TextField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-uploaded_at", "-id"]
        permissions = [
            ("approve_uploadbatch", "Can approve upload batches"),
            ("reject_uploadbatch", "Can reject upload batches"),
        ]
        indexes = [
            models.Index(fields=["domain_kind", "status"], name="upload_batch_kind_status_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(total_rows=models.F("valid_rows") + models.F("invalid_rows")),
                name="upload_batch_counts_add_up",
            ),
        ]

    def __str__(self):
        return f"{self.domain_kind} batch {self.public_id} ({self.status})"

    @property
    def is_terminal(self) -> bool:
        return self.status in self.TERMINAL_STATUSES

    def save(self, *args, **kwargs):
        ensure_write_allowed("UploadBatch", STAGING_WRITE_CONTEXTS)
        super().save(*args, **kwargs)


class StagedRow(models.Model):
    """Fields shared by every staged row model."""

    record_class = None

    batch = models.ForeignKey(
        UploadBatch,
        on_delete=models.CASCADE,
        related_name="%(class)s_rows",
    )
    row_number = models.PositiveIntegerField(help_text="1-based row number in the sheet")
    raw_payload = models.JSONField(default=dict, help_text="Cell values as read from the sheet")
    validation_status = models.CharField(
        max_length=10,
        choices=ValidationStatus.choices,
        default=ValidationStatus.PENDING,
    )
    validation_errors = models.JSONField(default=list, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        abstract = True
        ordering = ["row_number", "id"]

    def __str__(self):
        return f"Row {self.row_number} of {self.batch_id} ({self.validation_status})"

    @classmethod
    def record_field_names(cls):
        return [f.name for f in dataclass_fields(cls.record_class)]

    def to_record(self):
        return self.record_class(**{name: getattr(self, name) for name in self.record_field_names()})

    def save(self, *args, **kwargs):
        ensure_write_allowed(type(self).__name__, STAGING_WRITE_CONTEXTS)
        super().save(*args, **kwargs)


class StagedMember(StagedRow):
    record_class = MemberRecord

    staff_no = models.CharField(max_length=255, null=True, blank=True)
    reg_no = models.CharField(max_length=255, null=True, blank=True)
    surname = models.CharField(max_length=255, null=True, blank=True)
    firstname = models.CharField(max_length=255, null=True, blank=True)
    email = models.CharField(max_length=255, null=True, blank=True)
    gender = models.CharField(max_length=255, null=True, blank=True)
    dob = models.DateField(null=True, blank=True)
    date_of_appoint = models.DateField(null=True, blank=True)
    retirement_date = models.DateField(null=True, blank=True)
    mobile_no = models.CharField(max_length=255, null=True, blank=True)
    state_of_origin = models.CharField(max_length=255, null=True, blank=True)
    rank_grade = models.CharField(max_length=255, null=True, blank=True)
    bank_name = models.CharField(max_length=255, null=True, blank=True)
    acct_no = models.CharField(max_length=255, null=True, blank=True)
    member_status = models.CharField(max_length=255, null=True, blank=True)

    class Meta(StagedRow.Meta):
        pass


class StagedLoan(StagedRow):
    record_class = LoanRecord

    ref_no = models.CharField(max_length=255, null=True, blank=True)
    staff_no = models.CharField(max_length=255, null=True, blank=True)
    reg_no = models.CharField(max_length=255, null=True, blank=True)
    loan_type = models.CharField(max_length=255, null=True, blank=True)
    amount_requested = models.DecimalField(max_digits=15, decimal_places=2, null=True, blank=True)
    monthly_repayment = models.DecimalField(max_digits=15, decimal_places=2, null=True, blank=True)
    repayment_period = models.PositiveIntegerField(null=True, blank=True)
    interest_rate = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)
    purpose = models.TextField(null=True, blank=True)
    date_applied = models.DateField(null=True, blank=True)

    class Meta(StagedRow.Meta):
        pass


class StagedContribution(StagedRow):
    record_class = ContributionRecord

    reg_no = models.CharField(max_length=255, null=True, blank=True)
    staff_no = models.CharField(max_length=255, null=True, blank=True)
    contribution_type = models.CharField(max_length=255, null=True, blank=True)
    contribution_date = models.DateField(null=True, blank=True)
    amount = models.DecimalField(max_digits=15, decimal_places=2, null=True, blank=True)

    class Meta(StagedRow.Meta):
        pass


class StagedTransaction(StagedRow):
    record_class = TransactionRecord

    reg_no = models.CharField(max_length=255, null=True, blank=True)
    staff_no = models.CharField(max_length=255, null=True, blank=True)
    transaction_type_name = models.CharField(max_length=255, null=True, blank=True)
    transaction_date = models.DateField(null=True, blank=True)
    transaction_mode = models.CharField(max_length=255, null=True, blank=True)
    amount = models.DecimalField(max_digits=15, decimal_places=2, null=True, blank=True)
    description = models.TextField(null=True, blank=True)

    class Meta(StagedRow.Meta):
        pass


STAGED_MODELS = {
    DomainKind.MEMBER: StagedMember,
    DomainKind.LOAN: StagedLoan,
    DomainKind.CONTRIBUTION: StagedContribution,
    DomainKind.TRANSACTION: StagedTransaction,
}
