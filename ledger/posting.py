# ledger/posting.py
"""
Ledger poster: turns validated upload rows into permanent ledger rows.

For every row it writes exactly one ledger entry (loans also get a loan
register row) and applies exactly one balance adjustment; member rows
only create the member register entry. Category names are resolved once
per batch before any row is posted.

Must be called inside the caller's transaction and write context: the
poster never commits on its own, so a failure anywhere rolls back every
row of the batch.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable
from uuid import UUID

from django.db import DEFAULT_DB_ALIAS, IntegrityError, transaction
from django.db.models import F, Q
from django.db.models.functions import Lower
from django.utils import timezone

from ledger.models import (
    LedgerTransaction,
    Loan,
    Member,
    MemberBalance,
    Polarity,
    TransactionType,
)
from uploads.exceptions import DuplicateRecordError, TransientError, UnresolvedCategoryError
from uploads.records import ContributionRecord, LoanRecord, MemberRecord, TransactionRecord

logger = logging.getLogger(__name__)

UPLOAD_MODE = "Upload"
BALANCE_UPSERT_ATTEMPTS = 3


@dataclass(frozen=True)
class ResolvedCategory:
    id: int
    name: str
    polarity: str

    def signed(self, amount: Decimal) -> Decimal:
        """+amount for credit categories, -amount for debit categories."""
        return amount if self.polarity == Polarity.CREDIT else -amount


class LedgerPoster:
    def __init__(self, using: str = DEFAULT_DB_ALIAS):
        self.using = using

    def resolve_categories(self, names: Iterable[str]) -> Dict[str, ResolvedCategory]:
        """
        Resolve category names to transaction types in a single query.

        Matching is case-insensitive and ignores inactive types.

        Returns:
            Mapping of each requested name (as given) to its ResolvedCategory

        Raises:
            UnresolvedCategoryError: If any name has no active transaction type
        """
        wanted = {name for name in names if name}
        if not wanted:
            return {}

        found = {
            row.lname: ResolvedCategory(id=row.id, name=row.name, polarity=row.polarity)
            for row in TransactionType.objects.using(self.using)
            .annotate(lname=Lower("name"))
            .filter(is_active=True, lname__in={name.lower() for name in wanted})
        }

        missing = [name for name in wanted if name.lower() not in found]
        if missing:
            raise UnresolvedCategoryError(missing)
        return {name: found[name.lower()] for name in wanted}

    def post(self, record, *, batch_id: UUID, row_number: int,
             categories: Dict[str, ResolvedCategory]) -> None:
        """Post one validated record; dispatches on the record type."""
        if isinstance(record, MemberRecord):
            self.post_member(record, batch_id=batch_id, row_number=row_number)
            return

        category = categories.get(record.category_name)
        if category is None:
            raise UnresolvedCategoryError([record.category_name])

        if isinstance(record, ContributionRecord):
            self.post_contribution(record, category, batch_id=batch_id, row_number=row_number)
        elif isinstance(record, TransactionRecord):
            self.post_transaction(record, category, batch_id=batch_id, row_number=row_number)
        elif isinstance(record, LoanRecord):
            self.post_loan(record, category, batch_id=batch_id, row_number=row_number)
        else:
            raise TypeError(f"Cannot post record of type {type(record).__name__}")

    # -------------------------------------------------------------------------
    # Per-kind posting
    # -------------------------------------------------------------------------

    def post_contribution(self, record: ContributionRecord, category: ResolvedCategory,
                          *, batch_id: UUID, row_number: int) -> LedgerTransaction:
        return self._post_entry(
            reg_no=record.reg_no,
            staff_no=record.staff_no,
            category=category,
            entry_date=record.contribution_date,
            mode=UPLOAD_MODE,
            amount=record.amount,
            description=f"Batch Upload Contribution - {category.name}",
            batch_id=batch_id,
            row_number=row_number,
        )

    def post_transaction(self, record: TransactionRecord, category: ResolvedCategory,
                         *, batch_id: UUID, row_number: int) -> LedgerTransaction:
        return self._post_entry(
            reg_no=record.reg_no,
            staff_no=record.staff_no,
            category=category,
            entry_date=record.transaction_date,
            mode=record.transaction_mode,
            amount=record.amount,
            description=record.description or f"Batch Upload - {category.name}",
            batch_id=batch_id,
            row_number=row_number,
        )

    def _loan_exists(self, ref_no: str) -> bool:
        return Loan.objects.using(self.using).filter(ref_no=ref_no).exists()

    def post_loan(self, record: LoanRecord, category: ResolvedCategory,
                  *, batch_id: UUID, row_number: int) -> Loan:
        ref_no = record.ref_no or f"{batch_id}-{row_number}"
        if self._loan_exists(ref_no):
            raise DuplicateRecordError("Loan", "ref_no", ref_no, row_number)

        try:
            with transaction.atomic(using=self.using):
                loan = Loan.objects.using(self.using).create(
                    ref_no=ref_no,
                    staff_no=record.staff_no,
                    reg_no=record.reg_no,
                    transaction_type_id=category.id,
                    amount_requested=record.amount_requested,
                    monthly_repayment=record.monthly_repayment,
                    repayment_period=record.repayment_period,
                    interest_rate=record.interest_rate,
                    purpose=record.purpose or "",
                    status=Loan.Status.APPROVED,
                    date_applied=record.date_applied,
                    date_approved=timezone.now(),
                    remaining_balance=record.amount_requested,
                    upload_batch_id=batch_id,
                )
        except IntegrityError:
            # Registered by a concurrent approval after the check above.
            raise DuplicateRecordError("Loan", "ref_no", ref_no, row_number)
        self._post_entry(
            reg_no=record.reg_no,
            staff_no=record.staff_no,
            category=category,
            entry_date=record.date_applied or timezone.localdate(),
            mode=UPLOAD_MODE,
            amount=record.amount_requested,
            description=f"Batch Upload Loan - {category.name} ({ref_no})",
            batch_id=batch_id,
            row_number=row_number,
        )
        return loan

    def _member_clash(self, record: MemberRecord):
        """Return (field, value) of the key an existing member already holds, or None."""
        clash = (
            Member.objects.using(self.using)
            .filter(Q(staff_no=record.staff_no) | Q(reg_no=record.reg_no))
            .values_list("staff_no", "reg_no")
            .first()
        )
        if not clash:
            return None
        if clash[0] == record.staff_no:
            return "staff_no", record.staff_no
        return "reg_no", record.reg_no

    def post_member(self, record: MemberRecord, *, batch_id: UUID, row_number: int) -> Member:
        clash = self._member_clash(record)
        if clash:
            raise DuplicateRecordError("Member", *clash, row_number)

        try:
            with transaction.atomic(using=self.using):
                return Member.objects.using(self.using).create(
                    staff_no=record.staff_no,
                    reg_no=record.reg_no,
                    surname=record.surname or "",
                    firstname=record.firstname,
                    email=record.email or "",
                    gender=record.gender or "",
                    dob=record.dob,
                    date_of_appoint=record.date_of_appoint,
                    retirement_date=record.retirement_date,
                    mobile_no=record.mobile_no or "",
                    state_of_origin=record.state_of_origin or "",
                    rank_grade=record.rank_grade or "",
                    bank_name=record.bank_name or "",
                    acct_no=record.acct_no or "",
                    member_status=record.member_status or Member.Status.ACTIVE,
                    upload_batch_id=batch_id,
                )
        except IntegrityError:
            # Registered by a concurrent approval after the check above.
            field, value = self._member_clash(record) or ("staff_no", record.staff_no)
            raise DuplicateRecordError("Member", field, value, row_number)

    # -------------------------------------------------------------------------
    # Ledger entry + balance
    # -------------------------------------------------------------------------

    def _post_entry(self, *, reg_no, staff_no, category: ResolvedCategory, entry_date,
                    mode, amount: Decimal, description, batch_id, row_number) -> LedgerTransaction:
        entry = LedgerTransaction.objects.using(self.using).create(
            reg_no=reg_no,
            staff_no=staff_no or "",
            transaction_type_id=category.id,
            transaction_date=entry_date,
            transaction_mode=mode,
            amount=amount,
            effect=category.polarity,
            description=description[:255],
            status=LedgerTransaction.Status.COMPLETED,
            upload_batch_id=batch_id,
            source_row_number=row_number,
        )
        self.adjust_balance(reg_no, category, amount)
        return entry

    def adjust_balance(self, reg_no: str, category: ResolvedCategory, amount: Decimal) -> None:
        """
        Add ``category.signed(amount)`` to the (reg_no, category) balance.

        The increment happens in SQL (``current_balance + x``), never as a
        read-modify-write. The first posting for a pair inserts the row inside
        a savepoint; if a concurrent poster inserted it first, the unique
        constraint fails and the increment is retried.
        """
        delta = category.signed(amount)
        balances = MemberBalance.objects.using(self.using)

        for attempt in range(BALANCE_UPSERT_ATTEMPTS):
            updated = balances.filter(reg_no=reg_no, transaction_type_id=category.id).update(
                current_balance=F("current_balance") + delta,
                updated_at=timezone.now(),
            )
            if updated:
                return
            try:
                with transaction.atomic(using=self.using):
                    balances.create(
                        reg_no=reg_no,
                        transaction_type_id=category.id,
                        current_balance=delta,
                    )
                return
            except IntegrityError:
                logger.info(
                    "Balance row created concurrently, retrying increment",
                    extra={"reg_no": reg_no, "transaction_type_id": category.id, "attempt": attempt + 1},
                )

        raise TransientError(
            f"Could not update balance for {reg_no} / {category.name} after {BALANCE_UPSERT_ATTEMPTS} attempts."
        )
