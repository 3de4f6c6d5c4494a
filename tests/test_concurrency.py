# tests/test_concurrency.py
"""
Concurrent approval of one batch.

Runs with real transactions (transaction=True) so each worker thread holds
its own connection and the batch row lock is actually contended.
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal

import pytest
from django.db import connections

from ledger.models import LedgerTransaction, MemberBalance
from uploads.exceptions import InvalidStateError
from uploads.lifecycle import BatchLifecycle
from uploads.models import UploadBatch


@pytest.mark.django_db(transaction=True)
def test_only_one_concurrent_approval_posts(uploader, approver, transaction_types, valid_contribution_workbook):
    staged = BatchLifecycle.for_alias().ingest("Contribution", valid_contribution_workbook, uploader)
    barrier = threading.Barrier(2)

    def approve():
        try:
            barrier.wait(timeout=10)
            return BatchLifecycle.for_alias().approve(staged.batch_id, approver)
        except InvalidStateError as exc:
            return exc
        finally:
            connections.close_all()

    with ThreadPoolExecutor(max_workers=2) as pool:
        outcomes = list(pool.map(lambda _: approve(), range(2)))

    refused = [o for o in outcomes if isinstance(o, InvalidStateError)]
    approved = [o for o in outcomes if not isinstance(o, InvalidStateError)]
    assert len(approved) == 1
    assert len(refused) == 1
    assert refused[0].current_status == UploadBatch.Status.PROCESSED

    assert LedgerTransaction.objects.filter(upload_batch_id=staged.batch_id).count() == 3
    savings = MemberBalance.objects.get(reg_no="REG-001", transaction_type=transaction_types["Savings"])
    assert savings.current_balance == Decimal("7500.00")


@pytest.mark.django_db(transaction=True)
def test_approve_and_reject_race_leaves_one_outcome(
    uploader, approver, transaction_types, valid_contribution_workbook,
):
    staged = BatchLifecycle.for_alias().ingest("Contribution", valid_contribution_workbook, uploader)
    barrier = threading.Barrier(2)

    def run(operation):
        try:
            barrier.wait(timeout=10)
            lifecycle = BatchLifecycle.for_alias()
            if operation == "approve":
                return lifecycle.approve(staged.batch_id, approver)
            return lifecycle.reject(staged.batch_id, approver)
        except InvalidStateError as exc:
            return exc
        finally:
            connections.close_all()

    with ThreadPoolExecutor(max_workers=2) as pool:
        outcomes = list(pool.map(run, ["approve", "reject"]))

    assert sum(isinstance(o, InvalidStateError) for o in outcomes) == 1

    batch = UploadBatch.objects.get(public_id=staged.batch_id)
    posted = LedgerTransaction.objects.filter(upload_batch_id=staged.batch_id).count()
    if batch.status == UploadBatch.Status.PROCESSED:
        assert posted == 3
    else:
        assert batch.status == UploadBatch.Status.REJECTED
        assert posted == 0
