# ledger/models.py
"""
Permanent member ledger.

Rows in these tables are created only by approving an upload batch
(ledger/posting.py), or by bootstrap scripts for reference data such as
transaction types. Direct saves outside command_writes_allowed() or
bootstrap_writes_allowed() raise RuntimeError.

Models:
- TransactionType: category lookup (name -> id + credit/debit polarity)
- Member: member register
- Loan: loan register
- LedgerTransaction: immutable ledger entry
- MemberBalance: running total per (reg_no, transaction type)
"""

import uuid
from decimal import Decimal

from django.db import models

from core.write_barrier import ensure_write_allowed

LEDGER_WRITE_CONTEXTS = {"command", "bootstrap"}


class LedgerWriteGuardMixin:
    """Reject saves outside an explicit write context."""

    def save(self, *args, **kwargs):
        ensure_write_allowed(type(self).__name__, LEDGER_WRITE_CONTEXTS)
        super().save(*args, **kwargs)


class Polarity(models.TextChoices):
    CREDIT = "CREDIT", "Credit"
    DEBIT = "DEBIT", "Debit"


class TransactionType(LedgerWriteGuardMixin, models.Model):
    """
    Category lookup.

    Maps a human-readable name (e.g. "Savings", "Personal Loan") to a stable
    identifier and the direction its postings move a member balance.
    """

    public_id = models.UUIDField(default=uuid.uuid4, editable=False, unique=True)
    name = models.CharField(max_length=100, unique=True)
    polarity = models.CharField(max_length=10, choices=Polarity.choices)
    description = models.CharField(max_length=255, blank=True, default="")
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return f"{self.name} ({self.polarity})"


class Member(LedgerWriteGuardMixin, models.Model):
    """A cooperative member, keyed by staff number and registration number."""

    class Gender(models.TextChoices):
        MALE = "Male", "Male"
        FEMALE = "Female", "Female"

    class Status(models.TextChoices):
        ACTIVE = "Active", "Active"
        INACTIVE = "Inactive", "Inactive"
        RETIRED = "Retired", "Retired"
        SUSPENDED = "Suspended", "Suspended"
        TERMINATED = "Terminated", "Terminated"

    public_id = models.UUIDField(default=uuid.uuid4, editable=False, unique=True)
    staff_no = models.CharField(max_length=50, unique=True)
    reg_no = models.CharField(max_length=50, unique=True)
    surname = models.CharField(max_length=100, blank=True, default="")
    firstname = models.CharField(max_length=150)
    email = models.EmailField(blank=True, default="")
    gender = models.CharField(max_length=10, choices=Gender.choices, blank=True, default="")
    dob = models.DateField(null=True, blank=True)
    date_of_appoint = models.DateField(null=True, blank=True)
    retirement_date = models.DateField(null=True, blank=True)
    mobile_no = models.CharField(max_length=30, blank=True, default="")
    state_of_origin = models.CharField(max_length=100, blank=True, default="")
    rank_grade = models.CharField(max_length=100, blank=True, default="")
    bank_name = models.CharField(max_length=100, blank=True, default="")
    acct_no = models.CharField(max_length=30, blank=True, default="")
    member_status = models.CharField(max_length=20, choices=Status.choices, default=Status.ACTIVE)
    upload_batch_id = models.UUIDField(null=True, blank=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["staff_no"]

    def __str__(self):
        return f"{self.staff_no} {self.surname}, {self.firstname}".strip()


class Loan(LedgerWriteGuardMixin, models.Model):
    """An approved loan application."""

    class Status(models.TextChoices):
        APPROVED = "Approved", "Approved"
        DISBURSED = "Disbursed", "Disbursed"
        REPAID = "Repaid", "Repaid"

    public_id = models.UUIDField(default=uuid.uuid4, editable=False, unique=True)
    ref_no = models.CharField(max_length=64, unique=True)
    staff_no = models.CharField(max_length=50, db_index=True)
    reg_no = models.CharField(max_length=50, db_index=True)
    transaction_type = models.ForeignKey(
        TransactionType, on_delete=models.PROTECT, related_name="loans",
    )
    amount_requested = models.DecimalField(max_digits=15, decimal_places=2)
    monthly_repayment = models.DecimalField(max_digits=15, decimal_places=2, null=True, blank=True)
    repayment_period = models.PositiveIntegerField(null=True, blank=True)
    interest_rate = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)
    purpose = models.TextField(blank=True, default="")
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.APPROVED)
    date_applied = models.DateField(null=True, blank=True)
    date_approved = models.DateTimeField()
    remaining_balance = models.DecimalField(max_digits=15, decimal_places=2)
    upload_batch_id = models.UUIDField(null=True, blank=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-date_approved", "ref_no"]

    def __str__(self):
        return f"Loan {self.ref_no} ({self.reg_no})"


class LedgerTransaction(LedgerWriteGuardMixin, models.Model):
    """
    Permanent ledger entry.

    Immutable once created; only ``status`` may be corrected afterwards,
    via ``save(update_fields=["status"])``.
    """

    class Status(models.TextChoices):
        COMPLETED = "Completed", "Completed"
        REVERSED = "Reversed", "Reversed"

    public_id = models.UUIDField(default=uuid.uuid4, editable=False, unique=True)
    reg_no = models.CharField(max_length=50, db_index=True)
    staff_no = models.CharField(max_length=50, blank=True, default="")
    transaction_type = models.ForeignKey(
        TransactionType, on_delete=models.PROTECT, related_name="transactions",
    )
    transaction_date = models.DateField()
    transaction_mode = models.CharField(max_length=50)
    amount = models.DecimalField(max_digits=15, decimal_places=2)
    effect = models.CharField(max_length=10, choices=Polarity.choices)
    description = models.CharField(max_length=255, blank=True, default="")
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.COMPLETED)
    upload_batch_id = models.UUIDField(db_index=True)
    source_row_number = models.PositiveIntegerField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-transaction_date", "id"]
        indexes = [
            models.Index(fields=["reg_no", "transaction_type"], name="ledger_txn_reg_type_idx"),
        ]

    def __str__(self):
        return f"{self.effect} {self.amount} {self.reg_no} [{self.transaction_type_id}]"

    @property
    def signed_amount(self) -> Decimal:
        return self.amount if self.effect == Polarity.CREDIT else -self.amount

    def save(self, *args, **kwargs):
        if not self._state.adding:
            update_fields = kwargs.get("update_fields")
            if not update_fields or set(update_fields) != {"status"}:
                raise ValueError("Ledger entries are immutable; only status can be corrected.")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError("Ledger entries are immutable and cannot be deleted.")


class MemberBalance(LedgerWriteGuardMixin, models.Model):
    """
    Running total per (reg_no, transaction type).

    Only ever changed by an atomic increment (see LedgerPoster.adjust_balance).
    """

    reg_no = models.CharField(max_length=50)
    transaction_type = models.ForeignKey(
        TransactionType, on_delete=models.PROTECT, related_name="balances",
    )
    current_balance = models.DecimalField(
        max_digits=18,
        decimal_places=2,
        default=Decimal("0.00"),
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["reg_no", "transaction_type"],
                name="uniq_member_balance_reg_type",
            ),
        ]

    def __str__(self):
        return f"{self.reg_no} / {self.transaction_type_id}: {self.current_balance}"
