# tests/conftest.py
"""
Pytest fixtures for upload pipeline tests.

- Actors are plain ActorContext values; commands never look at a request.
- Workbooks are built in memory with openpyxl and passed around as bytes.
- Transaction types are seeded per test with bootstrap_writes_allowed().
"""

import io
from datetime import date

import pytest
from django.conf import settings
from django.contrib.auth import get_user_model
from django.contrib.auth.models import Permission
from openpyxl import Workbook
from rest_framework.test import APIClient

from accounts.authz import ALL_PERMISSIONS, VIEW, ActorContext
from core.write_barrier import bootstrap_writes_allowed
from ledger.models import Polarity, TransactionType
from uploads.domains import CONTRIBUTION_SCHEMA, LOAN_SCHEMA, MEMBER_SCHEMA, TRANSACTION_SCHEMA
from uploads.lifecycle import BatchLifecycle


User = get_user_model()


@pytest.fixture(autouse=True, scope="session")
def _testing_settings():
    """Ensure test-only settings are enabled for write guards."""
    settings.TESTING = True
    settings.DISABLE_EVENT_VALIDATION = False


# =============================================================================
# Workbooks
# =============================================================================

def build_workbook(headers, rows=(), sheet_title="Sheet1") -> bytes:
    """Write headers + rows to the first sheet of a new .xlsx and return its bytes."""
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = sheet_title
    if headers:
        sheet.append(list(headers))
    for row in rows:
        sheet.append(list(row))
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def make_workbook():
    return build_workbook


@pytest.fixture
def contribution_workbook():
    """Two valid contribution rows and one with a bad amount."""
    return build_workbook(
        CONTRIBUTION_SCHEMA.columns,
        [
            ["REG-001", "S001", "Savings", date(2024, 1, 31), 5000],
            ["REG-002", "S002", "savings", "15/02/2024", "1,250.50"],
            ["REG-003", "S003", "Shares", "2024-02-29", "abc"],
        ],
    )


@pytest.fixture
def valid_contribution_workbook():
    return build_workbook(
        CONTRIBUTION_SCHEMA.columns,
        [
            ["REG-001", "S001", "Savings", date(2024, 1, 31), 5000],
            ["REG-001", "S001", "Savings", date(2024, 2, 29), 2500],
            ["REG-002", "S002", "Shares", date(2024, 2, 29), 100],
        ],
    )


@pytest.fixture
def transaction_workbook():
    return build_workbook(
        TRANSACTION_SCHEMA.columns,
        [
            ["REG-001", "S001", "Savings", "2024-03-01", "Cash", 1000, "March deposit"],
            ["REG-001", "S001", "Withdrawal", "2024-03-05", "bank transfer", 400, None],
        ],
    )


@pytest.fixture
def member_workbook():
    return build_workbook(
        MEMBER_SCHEMA.columns,
        [
            ["S100", "Okafor, Mr. Chidi Emeka", "chidi@example.com", "male", "12/05/1980",
             None, None, "08030000000", "Anambra", "GL 10", "First Bank", "0123456789", None, "REG-100"],
            ["S101", "Bello, Aisha", None, "Female", None,
             None, None, None, None, None, None, None, "Retired", None],
        ],
    )


@pytest.fixture
def loan_workbook():
    return build_workbook(
        LOAN_SCHEMA.columns,
        [
            ["LN-001", "S001", "REG-001", "Personal Loan", 200000, 10000, 20, 5, "School fees", "2024-04-01"],
            [None, "S002", "REG-002", "Personal Loan", "50,000", None, None, None, None, None],
        ],
    )


# =============================================================================
# Reference data
# =============================================================================

@pytest.fixture
def transaction_types(db):
    """Credit and debit categories used across upload kinds."""
    with bootstrap_writes_allowed():
        return {
            name: TransactionType.objects.create(name=name, polarity=polarity)
            for name, polarity in (
                ("Savings", Polarity.CREDIT),
                ("Shares", Polarity.CREDIT),
                ("Withdrawal", Polarity.DEBIT),
                ("Personal Loan", Polarity.DEBIT),
            )
        }


# =============================================================================
# Actors
# =============================================================================

@pytest.fixture
def uploader():
    return ActorContext(identity="clerk@coop.test", perms=ALL_PERMISSIONS)


@pytest.fixture
def approver():
    return ActorContext(identity="treasurer@coop.test", perms=ALL_PERMISSIONS)


@pytest.fixture
def viewer():
    return ActorContext(identity="auditor@coop.test", perms=frozenset({VIEW}))


@pytest.fixture
def lifecycle(db):
    return BatchLifecycle.for_alias()


# =============================================================================
# API
# =============================================================================

def _user_with_perms(username, codenames):
    user = User.objects.create_user(username=username, password="testpass123")
    user.user_permissions.set(
        Permission.objects.filter(content_type__app_label="uploads", codename__in=codenames)
    )
    # has_perm caches permissions on the instance; reload to pick them up.
    return User.objects.get(pk=user.pk)


@pytest.fixture
def staff_user(db):
    return _user_with_perms(
        "treasurer",
        ["add_uploadbatch", "view_uploadbatch", "approve_uploadbatch", "reject_uploadbatch"],
    )


@pytest.fixture
def view_only_user(db):
    return _user_with_perms("auditor", ["view_uploadbatch"])


@pytest.fixture
def api_client(staff_user):
    client = APIClient()
    client.force_authenticate(user=staff_user)
    return client
