# tests/test_validators.py
"""
Tests for row validation.

Rows never raise: every failed rule is reported on the RowValidation and
the row is marked Invalid.
"""

from datetime import date
from decimal import Decimal

import pytest

from uploads.parsers import RawRow
from uploads.records import DomainKind, ValidationStatus
from uploads.validators import (
    RowValidation,
    mark_duplicate_keys,
    parse_member_name,
    validate_amount,
    validate_choice,
    validate_contribution_row,
    validate_date,
    validate_loan_row,
    validate_member_row,
    validate_row,
    validate_transaction_row,
)


def raw(**values):
    return RawRow(row_number=2, values=values)


# =============================================================================
# Field helpers
# =============================================================================

class TestAmounts:

    @pytest.mark.parametrize("value, expected", [
        (5000, Decimal("5000.00")),
        (1250.5, Decimal("1250.50")),
        ("1,250.50", Decimal("1250.50")),
        ("₦ 2,000", Decimal("2000.00")),
        ("$99.995", Decimal("100.00")),
        ("0.125", Decimal("0.13")),
    ])
    def test_valid_amounts(self, value, expected):
        assert validate_amount(value) == (True, expected)

    @pytest.mark.parametrize("value", ["abc", "", None, True, "NaN", "Infinity", "1e13"])
    def test_invalid_amounts(self, value):
        ok, parsed = validate_amount(value)
        assert not ok
        assert parsed is None


class TestDates:

    @pytest.mark.parametrize("value, expected", [
        ("2024-02-29", date(2024, 2, 29)),
        ("2024-02-29T00:00:00", date(2024, 2, 29)),
        ("15/02/2024", date(2024, 2, 15)),
        ("03/04/2024", date(2024, 4, 3)),
        ("01-Mar-2024", date(2024, 3, 1)),
        (45292, date(2024, 1, 1)),
        (date(2023, 12, 25), date(2023, 12, 25)),
    ])
    def test_valid_dates(self, value, expected):
        assert validate_date(value) == (True, expected)

    @pytest.mark.parametrize("value", ["not a date", "31/02/2024", -5, 0, True])
    def test_invalid_dates(self, value):
        assert validate_date(value) == (False, None)


class TestChoices:

    def test_choice_is_case_insensitive_and_canonical(self):
        assert validate_choice("bank transfer", ["Cash", "Bank Transfer"]) == (True, "Bank Transfer")

    def test_unknown_choice(self):
        assert validate_choice("Barter", ["Cash"]) == (False, "Barter")


class TestMemberNames:

    @pytest.mark.parametrize("full_name, expected", [
        ("Doe, John", ("Doe", "John")),
        ("Okafor, Mr. Chidi Emeka", ("Okafor", "Chidi Emeka")),
        ("Adeyemi, Dr.Tunde", ("Adeyemi", "Tunde")),
        ("Ibrahim,  Musa  ", ("Ibrahim", "Musa")),
        ("Single", (None, "Single")),
        (", Jane", (None, "Jane")),
    ])
    def test_parse(self, full_name, expected):
        assert parse_member_name(full_name) == expected


# =============================================================================
# Domain validators
# =============================================================================

class TestContributionRow:

    def test_valid_row(self):
        result = validate_contribution_row(raw(
            reg_no="REG-001", staff_no="S001", contribution_type="Savings",
            contribution_date="2024-01-31", amount="5,000",
        ))

        assert result.is_valid
        assert result.status == ValidationStatus.VALID
        assert result.errors == []
        assert result.record.amount == Decimal("5000.00")
        assert result.record.contribution_date == date(2024, 1, 31)
        assert result.record.category_name == "Savings"

    def test_invalid_amount_message(self):
        result = validate_contribution_row(raw(
            reg_no="REG-001", staff_no="S001", contribution_type="Savings",
            contribution_date="2024-01-31", amount="abc",
        ))

        assert result.status == ValidationStatus.INVALID
        assert result.errors == ["invalid_amount: Invalid or missing amount: 'abc' is not a number"]
        assert result.record.amount is None

    def test_every_failure_is_collected(self):
        result = validate_contribution_row(raw(
            reg_no=None, staff_no="S001", contribution_type=None,
            contribution_date="someday", amount=-10,
        ))

        codes = [e.split(":", 1)[0] for e in result.errors]
        assert codes == ["missing_field", "missing_field", "invalid_date", "invalid_amount"]
        assert not result.is_valid

    def test_zero_amount_is_invalid(self):
        result = validate_contribution_row(raw(
            reg_no="R", staff_no="S", contribution_type="Savings",
            contribution_date="2024-01-31", amount=0,
        ))

        assert not result.is_valid
        assert "greater than zero" in result.errors[0]


class TestTransactionRow:

    def test_mode_is_canonicalized(self):
        result = validate_transaction_row(raw(
            reg_no="R", staff_no="S", transaction_type_name="Withdrawal",
            transaction_date="2024-03-05", transaction_mode="cash", amount=400, description=None,
        ))

        assert result.is_valid
        assert result.record.transaction_mode == "Cash"
        assert result.record.description is None

    def test_configured_modes_are_honoured(self):
        row = raw(
            reg_no="R", staff_no="S", transaction_type_name="Savings",
            transaction_date="2024-03-05", transaction_mode="Mobile Money", amount=10,
        )

        assert not validate_transaction_row(row).is_valid
        assert validate_transaction_row(row, transaction_modes=["Mobile Money"]).is_valid

    def test_overlong_text_is_reported(self):
        result = validate_transaction_row(raw(
            reg_no="R" * 60, staff_no="S", transaction_type_name="Savings",
            transaction_date="2024-03-05", transaction_mode="Cash", amount=10,
        ))

        assert result.errors == ["too_long: 'reg_no' exceeds 50 characters"]


class TestMemberRow:

    def test_defaults(self):
        result = validate_member_row(raw(staff_no=1042, firstname="Bello, Aisha"))

        assert result.is_valid
        record = result.record
        assert record.staff_no == "1042"
        assert record.reg_no == "REG-1042"
        assert (record.surname, record.firstname) == ("Bello", "Aisha")
        assert record.member_status == "Active"
        assert record.category_name is None

    def test_unparseable_name(self):
        result = validate_member_row(raw(staff_no="S1", firstname="Aisha"))

        assert not result.is_valid
        assert result.errors[0].startswith("invalid_name:")

    def test_bad_email_gender_and_date(self):
        result = validate_member_row(raw(
            staff_no="S1", firstname="Doe, Jane", email="jane-at-example",
            gender="F", dob="yesterday",
        ))

        codes = sorted(e.split(":", 1)[0] for e in result.errors)
        assert codes == ["invalid_choice", "invalid_date", "invalid_email"]

    def test_default_reg_no_respects_the_column_limit(self):
        result = validate_member_row(raw(staff_no="S" * 50, firstname="Doe, Jane"))

        assert not result.is_valid
        assert result.errors == ["too_long: Default reg_no 'REG-" + "S" * 50 + "' exceeds 50 characters"]
        assert len(result.record.reg_no) == 50

    def test_default_reg_no_at_the_limit(self):
        result = validate_member_row(raw(staff_no="S" * 46, firstname="Doe, Jane"))

        assert result.is_valid
        assert len(result.record.reg_no) == 50


class TestLoanRow:

    def test_valid_row(self):
        result = validate_loan_row(raw(
            ref_no="LN-1", staff_no="S1", reg_no="R1", loan_type="Personal Loan",
            amount_requested=200000, monthly_repayment="10,000", repayment_period=20.0,
            interest_rate=5, purpose="School fees", date_applied="2024-04-01",
        ))

        assert result.is_valid
        assert result.record.repayment_period == 20
        assert result.record.interest_rate == Decimal("5.00")
        assert result.record.category_name == "Personal Loan"

    def test_out_of_range_terms(self):
        result = validate_loan_row(raw(
            staff_no="S1", reg_no="R1", loan_type="Personal Loan", amount_requested=1000,
            repayment_period=0, interest_rate=150,
        ))

        codes = [e.split(":", 1)[0] for e in result.errors]
        assert codes == ["invalid_integer", "invalid_rate"]
        assert result.record.repayment_period is None
        assert result.record.interest_rate is None


def test_validate_row_dispatches_by_kind():
    result = validate_row(DomainKind.MEMBER, raw(staff_no="S1", firstname="Doe, Jane"))
    assert result.record.kind == DomainKind.MEMBER


class TestDuplicateKeys:

    def _validated(self, kind, rows):
        return [
            (RawRow(row_number=n, values=values), validate_row(kind, RawRow(row_number=n, values=values)))
            for n, values in enumerate(rows, start=2)
        ]

    def test_later_member_rows_repeating_a_key_are_invalid(self):
        validated = self._validated(DomainKind.MEMBER, [
            {"staff_no": "S1", "firstname": "Doe, John"},
            {"staff_no": "S2", "firstname": "Roe, Jane", "reg_no": "REG-S1"},
            {"staff_no": "S1", "firstname": "Poe, Anna", "reg_no": "R9"},
        ])

        marked = mark_duplicate_keys(DomainKind.MEMBER, validated)

        statuses = [result.status for _, result in marked]
        assert statuses == [ValidationStatus.VALID, ValidationStatus.INVALID, ValidationStatus.INVALID]
        assert marked[1][1].errors == ["duplicate_key: reg_no 'REG-S1' already appears on row 2"]
        assert marked[2][1].errors == ["duplicate_key: staff_no 'S1' already appears on row 2"]

    def test_invalid_rows_do_not_claim_a_key(self):
        validated = self._validated(DomainKind.MEMBER, [
            {"staff_no": "S1", "firstname": "Anna"},
            {"staff_no": "S1", "firstname": "Doe, John"},
        ])

        marked = mark_duplicate_keys(DomainKind.MEMBER, validated)

        assert [result.is_valid for _, result in marked] == [False, True]
        assert marked[0][1].errors == ["invalid_name: Could not parse 'Anna' as 'Surname, First Middle'"]

    def test_loans_without_reference_are_not_compared(self):
        row = {"staff_no": "S1", "reg_no": "R1", "loan_type": "Personal Loan", "amount_requested": 100}
        validated = self._validated(DomainKind.LOAN, [row, row])

        marked = mark_duplicate_keys(DomainKind.LOAN, validated)

        assert all(result.is_valid for _, result in marked)

    def test_kinds_without_register_keys_are_unchanged(self):
        result = RowValidation(record=None, status=ValidationStatus.VALID, errors=[])
        validated = [(RawRow(row_number=2, values={}), result)]

        assert mark_duplicate_keys(DomainKind.CONTRIBUTION, validated) == validated
