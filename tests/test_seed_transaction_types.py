# tests/test_seed_transaction_types.py
from io import StringIO

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError

from ledger.models import Polarity, TransactionType


@pytest.mark.django_db
def test_defaults_are_created_once():
    call_command("seed_transaction_types", stdout=StringIO())
    first = TransactionType.objects.count()
    call_command("seed_transaction_types", stdout=StringIO())

    assert first == TransactionType.objects.count() == 10
    assert TransactionType.objects.get(name="Personal Loan").polarity == Polarity.DEBIT


@pytest.mark.django_db
def test_extra_types_and_existing_names(transaction_types):
    out = StringIO()

    call_command("seed_transaction_types", "--no-defaults", "--type", "Levy=credit", "--type", "savings=DEBIT", stdout=out)

    assert TransactionType.objects.get(name="Levy").polarity == Polarity.CREDIT
    assert TransactionType.objects.get(name="Savings").polarity == Polarity.CREDIT
    assert "SKIP: savings" in out.getvalue()


@pytest.mark.django_db
def test_dry_run_creates_nothing():
    call_command("seed_transaction_types", "--dry-run", stdout=StringIO())

    assert not TransactionType.objects.exists()


def test_bad_type_option():
    with pytest.raises(CommandError, match="NAME=CREDIT"):
        call_command("seed_transaction_types", "--no-defaults", "--type", "Levy")
