# uploads/validators.py
"""
Row validation for bulk uploads.

Each domain validator takes one RawRow and returns a RowValidation
``(record, status, errors)``. Every failing rule is recorded; validation
never stops at the first problem. An invalid row still carries whatever
values parsed cleanly so an operator can review it.

Validators are pure: no database access and no settings lookups. The
allowed transaction modes are passed in by the caller.
"""

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Callable, Dict, Iterable, List, NamedTuple, Optional, Tuple

from django.core.exceptions import ValidationError
from django.core.validators import validate_email

from uploads.exceptions import FieldValidationError
from uploads.parsers import MAX_EXCEL_SERIAL, RawRow, excel_serial_to_date
from uploads.records import (
    ContributionRecord,
    DomainKind,
    LoanRecord,
    MemberRecord,
    TransactionRecord,
    ValidationStatus,
)

CENT = Decimal("0.01")
# DecimalField(max_digits=15, decimal_places=2)
MAX_AMOUNT = Decimal("10000000000000")
MAX_REPAYMENT_PERIOD = 1200

DATE_FORMATS = ("%d/%m/%Y", "%m/%d/%Y", "%Y/%m/%d", "%d-%m-%Y", "%d-%b-%Y", "%d %b %Y")

GENDERS = ("Male", "Female")
MEMBER_STATUSES = ("Active", "Inactive", "Retired", "Suspended", "Terminated")
DEFAULT_MEMBER_STATUS = "Active"
DEFAULT_TRANSACTION_MODES = ("Cash", "Bank Transfer", "Cheque", "Payroll Deduction", "Online", "Upload")

# Longest value each text field may hold once posted.
FIELD_MAX_LENGTHS = {
    "staff_no": 50,
    "reg_no": 50,
    "ref_no": 64,
    "surname": 100,
    "firstname": 150,
    "mobile_no": 30,
    "state_of_origin": 100,
    "rank_grade": 100,
    "bank_name": 100,
    "acct_no": 30,
    "loan_type": 100,
    "contribution_type": 100,
    "transaction_type_name": 100,
    "transaction_mode": 50,
    "description": 255,
}


class RowValidation(NamedTuple):
    record: Any
    status: str
    errors: List[str]

    @property
    def is_valid(self) -> bool:
        return self.status == ValidationStatus.VALID


# =============================================================================
# Field helpers
# =============================================================================

def as_text(value: Any) -> Optional[str]:
    """Render a raw scalar as text: ints without a decimal point, strings trimmed."""
    if value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    return text or None


def validate_date(value: Any) -> Tuple[bool, Optional[date]]:
    """
    Parse a date from a cell value.

    Accepts date objects, ISO strings, Excel serial numbers and common
    day-first formats (``DATE_FORMATS``).

    Returns:
        Tuple of (is_valid, parsed_date)
    """
    if isinstance(value, datetime):
        return True, value.date()
    if isinstance(value, date):
        return True, value
    if isinstance(value, bool):
        return False, None
    if isinstance(value, (int, float)):
        if 0 < value <= MAX_EXCEL_SERIAL:
            return True, excel_serial_to_date(value)
        return False, None

    text = as_text(value)
    if text is None:
        return False, None

    try:
        return True, date.fromisoformat(text[:10])
    except ValueError:
        pass

    for fmt in DATE_FORMATS:
        try:
            return True, datetime.strptime(text, fmt).date()
        except ValueError:
            continue

    return False, None


def validate_amount(value: Any) -> Tuple[bool, Optional[Decimal]]:
    """
    Parse a money amount, rounded half-up to two places.

    Currency symbols and thousands separators are stripped.

    Returns:
        Tuple of (is_valid, parsed_amount)
    """
    if value is None or isinstance(value, bool):
        return False, None

    try:
        if isinstance(value, float):
            amount = Decimal(repr(value))
        elif isinstance(value, (int, Decimal)):
            amount = Decimal(value)
        else:
            cleaned = str(value).replace(",", "").replace("$", "").replace("₦", "").strip()
            amount = Decimal(cleaned)
    except (InvalidOperation, ValueError):
        return False, None

    if not amount.is_finite() or abs(amount) >= MAX_AMOUNT:
        return False, None

    return True, amount.quantize(CENT, rounding=ROUND_HALF_UP)


def validate_integer(value: Any) -> Tuple[bool, Optional[int]]:
    if value is None or isinstance(value, bool):
        return False, None
    if isinstance(value, int):
        return True, value
    if isinstance(value, float):
        return (True, int(value)) if value.is_integer() else (False, None)
    text = as_text(value)
    if text and text.lstrip("-").isdigit():
        return True, int(text)
    return False, None


def validate_choice(value: Any, allowed: Iterable[str]) -> Tuple[bool, Optional[str]]:
    """Case-insensitive membership check; returns the canonical spelling."""
    text = as_text(value)
    if text is None:
        return False, None
    for option in allowed:
        if option.lower() == text.lower():
            return True, option
    return False, text


def parse_member_name(full_name: str) -> Tuple[Optional[str], Optional[str]]:
    """
    Split ``"Surname, First Middle"`` into (surname, firstname).

    A title before the first name ("Doe, Mr. John") is dropped. Returns
    (None, full_name) when there is no comma.
    """
    if "," not in full_name:
        return None, full_name.strip() or None

    surname, rest = full_name.split(",", 1)
    surname = surname.strip() or None
    rest = rest.strip()
    firstname = rest
    if "." in rest:
        period = rest.index(".")
        space = rest.find(" ", period)
        firstname = rest[space + 1:].strip() if space > period else rest[period + 1:].strip()
    if not firstname:
        firstname = rest
    return surname, firstname or None


class _RowChecker:
    """Collects FieldValidationError values while reading one row."""

    def __init__(self, row: RawRow):
        self.row = row
        self.errors: List[FieldValidationError] = []

    def add(self, field: str, code: str, message: str) -> None:
        self.errors.append(FieldValidationError(field, code, message))

    def text(self, field: str, *, required: bool = False) -> Optional[str]:
        value = as_text(self.row.get(field))
        if value is None:
            if required:
                self.add(field, "missing_field", f"'{field}' is required")
            return None
        limit = FIELD_MAX_LENGTHS.get(field)
        if limit and len(value) > limit:
            self.add(field, "too_long", f"'{field}' exceeds {limit} characters")
            value = value[:limit]
        return value

    def date(self, field: str, *, required: bool = False) -> Optional[date]:
        raw = self.row.get(field)
        if raw is None:
            if required:
                self.add(field, "missing_field", f"'{field}' is required")
            return None
        ok, parsed = validate_date(raw)
        if not ok:
            self.add(field, "invalid_date", f"Unable to parse date '{raw}' for '{field}'")
        return parsed

    def amount(self, field: str, *, required: bool = False) -> Optional[Decimal]:
        raw = self.row.get(field)
        if raw is None:
            if required:
                self.add(field, "invalid_amount", f"Invalid or missing {field}")
            return None
        ok, parsed = validate_amount(raw)
        if not ok:
            self.add(field, "invalid_amount", f"Invalid or missing {field}: '{raw}' is not a number")
        elif parsed <= 0:
            self.add(field, "invalid_amount", f"'{field}' must be greater than zero, got {parsed}")
        return parsed

    def choice(self, field: str, allowed: Iterable[str], *, required: bool = False,
               default: Optional[str] = None) -> Optional[str]:
        raw = self.row.get(field)
        if raw is None:
            if required:
                self.add(field, "missing_field", f"'{field}' is required")
            return default
        allowed = tuple(allowed)
        ok, value = validate_choice(raw, allowed)
        if not ok:
            self.add(field, "invalid_choice", f"'{raw}' is not a valid {field}. Allowed: {', '.join(allowed)}")
        return value

    def result(self, record) -> RowValidation:
        messages = [str(e) for e in self.errors]
        status = ValidationStatus.INVALID if messages else ValidationStatus.VALID
        return RowValidation(record=record, status=status, errors=messages)


# =============================================================================
# Domain validators
# =============================================================================

def validate_member_row(row: RawRow, **_options) -> RowValidation:
    check = _RowChecker(row)

    staff_no = check.text("staff_no", required=True)
    full_name = check.text("firstname", required=True)
    surname = firstname = None
    if full_name:
        surname, firstname = parse_member_name(full_name)
        if not surname or not firstname:
            check.add(
                "firstname",
                "invalid_name",
                f"Could not parse '{full_name}' as 'Surname, First Middle'",
            )

    email = check.text("email")
    if email:
        try:
            validate_email(email)
        except ValidationError:
            check.add("email", "invalid_email", f"'{email}' is not a valid email address")

    reg_no = check.text("reg_no")
    if reg_no is None and staff_no:
        reg_no = f"REG-{staff_no}"
        limit = FIELD_MAX_LENGTHS["reg_no"]
        if len(reg_no) > limit:
            check.add("reg_no", "too_long", f"Default reg_no '{reg_no}' exceeds {limit} characters")
            reg_no = reg_no[:limit]

    record = MemberRecord(
        staff_no=staff_no,
        reg_no=reg_no,
        surname=surname,
        firstname=firstname,
        email=email,
        gender=check.choice("gender", GENDERS),
        dob=check.date("dob"),
        date_of_appoint=check.date("date_of_appoint"),
        retirement_date=check.date("retirement_date"),
        mobile_no=check.text("mobile_no"),
        state_of_origin=check.text("state_of_origin"),
        rank_grade=check.text("rank_grade"),
        bank_name=check.text("bank_name"),
        acct_no=check.text("acct_no"),
        member_status=check.choice("member_status", MEMBER_STATUSES, default=DEFAULT_MEMBER_STATUS),
    )
    return check.result(record)


def validate_loan_row(row: RawRow, **_options) -> RowValidation:
    check = _RowChecker(row)

    ref_no = check.text("ref_no")
    staff_no = check.text("staff_no", required=True)
    reg_no = check.text("reg_no", required=True)
    loan_type = check.text("loan_type", required=True)
    amount_requested = check.amount("amount_requested", required=True)
    monthly_repayment = check.amount("monthly_repayment")

    repayment_period = None
    raw_period = row.get("repayment_period")
    if raw_period is not None:
        ok, repayment_period = validate_integer(raw_period)
        if not ok or not 0 < repayment_period <= MAX_REPAYMENT_PERIOD:
            check.add(
                "repayment_period",
                "invalid_integer",
                f"Invalid repayment_period '{raw_period}': expected 1 to {MAX_REPAYMENT_PERIOD} months",
            )
            repayment_period = None

    interest_rate = None
    raw_rate = row.get("interest_rate")
    if raw_rate is not None:
        ok, interest_rate = validate_amount(raw_rate)
        if not ok or not Decimal("0") <= interest_rate <= Decimal("100"):
            check.add("interest_rate", "invalid_rate", f"Invalid interest_rate '{raw_rate}': expected 0 to 100")
            interest_rate = None

    record = LoanRecord(
        ref_no=ref_no,
        staff_no=staff_no,
        reg_no=reg_no,
        loan_type=loan_type,
        amount_requested=amount_requested,
        monthly_repayment=monthly_repayment,
        repayment_period=repayment_period,
        interest_rate=interest_rate,
        purpose=as_text(row.get("purpose")),
        date_applied=check.date("date_applied"),
    )
    return check.result(record)


def validate_contribution_row(row: RawRow, **_options) -> RowValidation:
    check = _RowChecker(row)
    record = ContributionRecord(
        reg_no=check.text("reg_no", required=True),
        staff_no=check.text("staff_no", required=True),
        contribution_type=check.text("contribution_type", required=True),
        contribution_date=check.date("contribution_date", required=True),
        amount=check.amount("amount", required=True),
    )
    return check.result(record)


def validate_transaction_row(
    row: RawRow,
    *,
    transaction_modes: Iterable[str] = DEFAULT_TRANSACTION_MODES,
    **_options,
) -> RowValidation:
    check = _RowChecker(row)
    record = TransactionRecord(
        reg_no=check.text("reg_no", required=True),
        staff_no=check.text("staff_no", required=True),
        transaction_type_name=check.text("transaction_type_name", required=True),
        transaction_date=check.date("transaction_date", required=True),
        transaction_mode=check.choice("transaction_mode", transaction_modes, required=True),
        amount=check.amount("amount", required=True),
        description=check.text("description"),
    )
    return check.result(record)


VALIDATORS: Dict[str, Callable[..., RowValidation]] = {
    DomainKind.MEMBER: validate_member_row,
    DomainKind.LOAN: validate_loan_row,
    DomainKind.CONTRIBUTION: validate_contribution_row,
    DomainKind.TRANSACTION: validate_transaction_row,
}


def validate_row(kind: str, row: RawRow, **options) -> RowValidation:
    """Validate one raw row with the validator for ``kind``."""
    return VALIDATORS[DomainKind(kind)](row, **options)


# Register keys that must be unique once posted.
UNIQUE_KEYS: Dict[str, Tuple[str, ...]] = {
    DomainKind.MEMBER: ("staff_no", "reg_no"),
    DomainKind.LOAN: ("ref_no",),
}


def mark_duplicate_keys(
    kind: str, validated: List[Tuple[RawRow, RowValidation]],
) -> List[Tuple[RawRow, RowValidation]]:
    """
    Invalidate Valid rows that repeat a register key of an earlier Valid row.

    The first occurrence stays Valid; every later one gets a
    ``duplicate_key`` error. Invalid rows are never posted, so they
    neither claim a key nor get flagged.
    """
    fields = UNIQUE_KEYS.get(DomainKind(kind), ())
    if not fields:
        return list(validated)

    seen: Dict[Tuple[str, str], int] = {}
    marked = []
    for raw, result in validated:
        if result.is_valid:
            errors = []
            for field in fields:
                value = getattr(result.record, field)
                if value is None:
                    continue
                first = seen.get((field, value))
                if first is None:
                    seen[(field, value)] = raw.row_number
                else:
                    errors.append(str(FieldValidationError(
                        field, "duplicate_key", f"{field} '{value}' already appears on row {first}",
                    )))
            if errors:
                result = result._replace(status=ValidationStatus.INVALID, errors=result.errors + errors)
        marked.append((raw, result))
    return marked
