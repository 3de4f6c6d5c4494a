# uploads/records.py
"""
Normalized row records, one fixed dataclass per domain kind.

Every field is optional so an invalid row can keep whatever parsed
cleanly; a record attached to a Valid row has all required fields set.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

from django.db import models


class DomainKind(models.TextChoices):
    MEMBER = "Member", "Member"
    LOAN = "Loan", "Loan"
    CONTRIBUTION = "Contribution", "Contribution"
    TRANSACTION = "Transaction", "Transaction"


class ValidationStatus(models.TextChoices):
    PENDING = "Pending", "Pending"
    VALID = "Valid", "Valid"
    INVALID = "Invalid", "Invalid"


@dataclass(frozen=True)
class MemberRecord:
    kind = DomainKind.MEMBER

    staff_no: Optional[str] = None
    reg_no: Optional[str] = None
    surname: Optional[str] = None
    firstname: Optional[str] = None
    email: Optional[str] = None
    gender: Optional[str] = None
    dob: Optional[date] = None
    date_of_appoint: Optional[date] = None
    retirement_date: Optional[date] = None
    mobile_no: Optional[str] = None
    state_of_origin: Optional[str] = None
    rank_grade: Optional[str] = None
    bank_name: Optional[str] = None
    acct_no: Optional[str] = None
    member_status: Optional[str] = None

    @property
    def category_name(self) -> Optional[str]:
        return None


@dataclass(frozen=True)
class LoanRecord:
    kind = DomainKind.LOAN

    ref_no: Optional[str] = None
    staff_no: Optional[str] = None
    reg_no: Optional[str] = None
    loan_type: Optional[str] = None
    amount_requested: Optional[Decimal] = None
    monthly_repayment: Optional[Decimal] = None
    repayment_period: Optional[int] = None
    interest_rate: Optional[Decimal] = None
    purpose: Optional[str] = None
    date_applied: Optional[date] = None

    @property
    def category_name(self) -> Optional[str]:
        return self.loan_type


@dataclass(frozen=True)
class ContributionRecord:
    kind = DomainKind.CONTRIBUTION

    reg_no: Optional[str] = None
    staff_no: Optional[str] = None
    contribution_type: Optional[str] = None
    contribution_date: Optional[date] = None
    amount: Optional[Decimal] = None

    @property
    def category_name(self) -> Optional[str]:
        return self.contribution_type


@dataclass(frozen=True)
class TransactionRecord:
    kind = DomainKind.TRANSACTION

    reg_no: Optional[str] = None
    staff_no: Optional[str] = None
    transaction_type_name: Optional[str] = None
    transaction_date: Optional[date] = None
    transaction_mode: Optional[str] = None
    amount: Optional[Decimal] = None
    description: Optional[str] = None

    @property
    def category_name(self) -> Optional[str]:
        return self.transaction_type_name


RECORD_CLASSES = {
    DomainKind.MEMBER: MemberRecord,
    DomainKind.LOAN: LoanRecord,
    DomainKind.CONTRIBUTION: ContributionRecord,
    DomainKind.TRANSACTION: TransactionRecord,
}
