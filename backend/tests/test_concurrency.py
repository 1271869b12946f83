# Overview: Pytest coverage for concurrent ledger writes and the retry helper.

"""
Concurrency Tests

Threaded races run on the in-memory store: a shared in-memory SQLite
connection is not safe across threads. The SQL store's guarantee comes
from its conditional UPDATE, which is exercised directly below.
"""

import threading

import pytest
from sqlalchemy.exc import OperationalError

from redimi.extensions import db
from redimi.models import KIND_REDEEM, Customer
from redimi.services import customer_service, ledger_service, vendor_service
from redimi.services.concurrency import run_with_retry
from redimi.stores import SqlLoyaltyStore
from redimi.validation import BalanceConflictError, InsufficientBalanceError, ValidationError


def _run_threads(count, target):
    barrier = threading.Barrier(count)
    results, errors = [], []
    lock = threading.Lock()

    def worker():
        barrier.wait()
        try:
            value = target()
        except Exception as exc:
            with lock:
                errors.append(exc)
        else:
            with lock:
                results.append(value)

    threads = [threading.Thread(target=worker) for _ in range(count)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    return results, errors


@pytest.fixture
def funded_customer(memory_store):
    vendor, _ = vendor_service.create_vendor(
        username="race", email="race@vendor.test", store=memory_store
    )
    customer = customer_service.create_customer(
        vendor.id, name="Ana", contact="+5215550001", store=memory_store
    )
    ledger_service.earn(
        vendor_id=vendor.id, customer_id=customer.id, purchase_amount=2000, store=memory_store
    )
    return vendor, customer


class TestConcurrentRedeem:

    def test_double_redeem_has_one_winner(self, memory_store, funded_customer):
        vendor, customer = funded_customer

        def redeem_all():
            return ledger_service.redeem(
                vendor_id=vendor.id, customer_id=customer.id, points=100, store=memory_store
            )

        results, errors = _run_threads(2, redeem_all)

        assert len(results) == 1
        assert len(errors) == 1
        assert isinstance(errors[0], InsufficientBalanceError)
        assert memory_store.find_customer(customer.id, vendor.id).balance == 0

        redeems = [
            t for t in ledger_service.list_transactions(vendor.id, store=memory_store)
            if t.kind == KIND_REDEEM
        ]
        assert len(redeems) == 1

    def test_mixed_writers_keep_ledger_consistent(self, memory_store, funded_customer):
        vendor, customer = funded_customer
        ledger_service.earn(
            vendor_id=vendor.id, customer_id=customer.id, purchase_amount=2000, store=memory_store
        )
        ops = iter(
            [("earn", 200)] * 10 + [("redeem", 15)] * 10
        )
        ops_lock = threading.Lock()

        def next_op():
            with ops_lock:
                kind, value = next(ops)
            if kind == "earn":
                return ledger_service.earn(
                    vendor_id=vendor.id, customer_id=customer.id, purchase_amount=value, store=memory_store
                )
            return ledger_service.redeem(
                vendor_id=vendor.id, customer_id=customer.id, points=value, store=memory_store
            )

        results, errors = _run_threads(20, next_op)

        # 200 starting points cover every redeem in any interleaving
        assert errors == []
        assert len(results) == 20
        balance = memory_store.find_customer(customer.id, vendor.id).balance
        assert balance == 200 + 100 - 150
        assert all(check.is_consistent for check in ledger_service.reconcile(vendor.id, store=memory_store))


class TestSqlCompareAndSwap:

    def test_stale_expected_balance_is_rejected(self, db_session):
        store = SqlLoyaltyStore()
        vendor, _ = vendor_service.create_vendor(username="cas", email="cas@vendor.test", store=store)
        customer = customer_service.create_customer(vendor.id, name="Ana", contact="+1", store=store)

        with store.atomic():
            assert store.set_balance(customer.id, vendor.id, 10, expected_balance=0) is True
        with store.atomic():
            assert store.set_balance(customer.id, vendor.id, 20, expected_balance=0) is False

        assert store.find_customer(customer.id, vendor.id).balance == 10

    def test_balance_update_bumps_version(self, db_session):
        store = SqlLoyaltyStore()
        vendor, _ = vendor_service.create_vendor(username="ver", email="ver@vendor.test", store=store)
        customer = customer_service.create_customer(vendor.id, name="Ana", contact="+1", store=store)

        ledger_service.earn(vendor_id=vendor.id, customer_id=customer.id, purchase_amount=100, store=store)

        row = db_session.query(Customer).filter_by(id=customer.id).populate_existing().one()
        assert row.balance == 5
        assert row.version_id == 2

    def test_cross_vendor_swap_matches_nothing(self, db_session):
        store = SqlLoyaltyStore()
        vendor, _ = vendor_service.create_vendor(username="own", email="own@vendor.test", store=store)
        other, _ = vendor_service.create_vendor(username="oth", email="oth@vendor.test", store=store)
        customer = customer_service.create_customer(vendor.id, name="Ana", contact="+1", store=store)

        with store.atomic():
            assert store.set_balance(customer.id, other.id, 10, expected_balance=0) is False
        assert db.session.query(Customer).filter_by(id=customer.id).one().balance == 0


class TestRunWithRetry:

    def test_retries_conflicts_until_success(self):
        attempts = []

        def op():
            attempts.append(1)
            if len(attempts) < 3:
                raise BalanceConflictError("lost race")
            return "done"

        assert run_with_retry(op, attempts=3, backoff_base=0) == "done"
        assert len(attempts) == 3

    def test_retries_operational_errors(self):
        attempts = []

        def op():
            attempts.append(1)
            if len(attempts) == 1:
                raise OperationalError("UPDATE customers", {}, Exception("database is locked"))
            return "done"

        assert run_with_retry(op, attempts=2, backoff_base=0) == "done"

    def test_gives_up_after_attempts(self):
        attempts = []

        def op():
            attempts.append(1)
            raise BalanceConflictError("lost race")

        with pytest.raises(BalanceConflictError):
            run_with_retry(op, attempts=4, backoff_base=0)
        assert len(attempts) == 4

    def test_business_errors_are_not_retried(self):
        attempts = []

        def op():
            attempts.append(1)
            raise ValidationError("bad input")

        with pytest.raises(ValidationError):
            run_with_retry(op, attempts=5, backoff_base=0)
        assert len(attempts) == 1

    def test_attempts_from_config(self, app, monkeypatch):
        monkeypatch.setitem(app.config, "REDIMI_RETRY_ATTEMPTS", 2)
        attempts = []

        def op():
            attempts.append(1)
            raise BalanceConflictError("lost race")

        with pytest.raises(BalanceConflictError):
            run_with_retry(op, backoff_base=0)
        assert len(attempts) == 2
