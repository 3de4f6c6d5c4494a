# uploads/domains.py
"""Column schema, validator and staging model for each upload kind."""

from dataclasses import dataclass
from typing import Callable, Type

from uploads.exceptions import SchemaError
from uploads.models import STAGED_MODELS, StagedRow
from uploads.parsers import ColumnSchema
from uploads.records import DomainKind
from uploads.validators import VALIDATORS, RowValidation

MEMBER_SCHEMA = ColumnSchema(
    columns=(
        "staff_no", "firstname", "email", "gender", "dob", "date_of_appoint",
        "retirement_date", "mobile_no", "state_of_origin", "rank_grade",
        "bank_name", "acct_no", "member_status", "reg_no",
    ),
    optional=frozenset({
        "email", "gender", "dob", "date_of_appoint", "retirement_date",
        "mobile_no", "state_of_origin", "rank_grade", "bank_name", "acct_no",
        "member_status", "reg_no",
    }),
    date_columns=frozenset({"dob", "date_of_appoint", "retirement_date"}),
)

LOAN_SCHEMA = ColumnSchema(
    columns=(
        "ref_no", "staff_no", "reg_no", "loan_type", "amount_requested",
        "monthly_repayment", "repayment_period", "interest_rate", "purpose",
        "date_applied",
    ),
    date_columns=frozenset({"date_applied"}),
)

CONTRIBUTION_SCHEMA = ColumnSchema(
    columns=("reg_no", "staff_no", "contribution_type", "contribution_date", "amount"),
    date_columns=frozenset({"contribution_date"}),
)

TRANSACTION_SCHEMA = ColumnSchema(
    columns=(
        "reg_no", "staff_no", "transaction_type_name", "transaction_date",
        "transaction_mode", "amount", "description",
    ),
    optional=frozenset({"description"}),
    date_columns=frozenset({"transaction_date"}),
)


@dataclass(frozen=True)
class UploadDomain:
    kind: DomainKind
    schema: ColumnSchema
    validator: Callable[..., RowValidation]
    staged_model: Type[StagedRow]


DOMAINS = {
    kind: UploadDomain(
        kind=kind,
        schema=schema,
        validator=VALIDATORS[kind],
        staged_model=STAGED_MODELS[kind],
    )
    for kind, schema in (
        (DomainKind.MEMBER, MEMBER_SCHEMA),
        (DomainKind.LOAN, LOAN_SCHEMA),
        (DomainKind.CONTRIBUTION, CONTRIBUTION_SCHEMA),
        (DomainKind.TRANSACTION, TRANSACTION_SCHEMA),
    )
}


def get_domain(kind) -> UploadDomain:
    """Look up an upload kind by value ("Loan") or label, case-insensitively."""
    for domain in DOMAINS.values():
        if str(kind).lower() in (domain.kind.value.lower(), domain.kind.label.lower()):
            return domain
    raise SchemaError(
        f"Unsupported upload kind '{kind}'. Expected one of: "
        f"{', '.join(DomainKind.values)}"
    )
