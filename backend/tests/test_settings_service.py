# Overview: Pytest coverage for vendor settings resolution and branch management.

import threading

import pytest

from redimi.models import EVENT_SYSTEM
from redimi.services import event_service, settings_service, vendor_service
from redimi.services.settings_service import DEFAULT_ACCRUAL_RATE, DEFAULT_BRANCH_NAME
from redimi.validation import ConflictError, NotFoundError, ValidationError


def _system_messages(store, vendor):
    return [
        e.message for e in event_service.list_events(vendor.id, store=store)
        if e.kind == EVENT_SYSTEM
    ]


class TestGetSettings:
    """First access creates defaults exactly once."""

    def test_creates_defaults(self, loyalty_store, vendor_a):
        settings = settings_service.get_settings(vendor_a.id, store=loyalty_store)
        assert settings.rate == DEFAULT_ACCRUAL_RATE
        assert settings.branches == [DEFAULT_BRANCH_NAME]
        assert settings.active_branch_name == DEFAULT_BRANCH_NAME
        assert settings.active_branch_id is not None
        assert settings.to_dict() == {
            "rate": 0.05,
            "active_branch_id": settings.active_branch_id,
            "active_branch": "Main Store",
            "branches": ["Main Store"],
        }

    def test_idempotent(self, loyalty_store, vendor_a):
        first = settings_service.get_settings(vendor_a.id, store=loyalty_store)
        second = settings_service.get_settings(vendor_a.id, store=loyalty_store)
        assert first == second
        assert len(settings_service.list_branches(vendor_a.id, store=loyalty_store)) == 1

    def test_keeps_existing_branches(self, loyalty_store, vendor_a):
        """A vendor that already has branches gets no Main Store; its first branch becomes active."""
        first = settings_service.add_branch(vendor_a.id, "Centro", store=loyalty_store)
        settings_service.add_branch(vendor_a.id, "Norte", store=loyalty_store)
        settings = settings_service.get_settings(vendor_a.id, store=loyalty_store)
        assert settings.branches == ["Centro", "Norte"]
        assert settings.active_branch_id == first.id
        assert settings.active_branch_name == "Centro"
        assert settings.rate == DEFAULT_ACCRUAL_RATE

    def test_lost_creation_race_reads_winner(self, loyalty_store, vendor_a, monkeypatch):
        winner = settings_service.get_settings(vendor_a.id, store=loyalty_store)

        original = loyalty_store.get_settings
        calls = []

        def stale_get_settings(vendor_id):
            calls.append(vendor_id)
            if len(calls) == 1:
                return None
            return original(vendor_id)

        monkeypatch.setattr(loyalty_store, "get_settings", stale_get_settings)
        settings = settings_service.get_settings(vendor_a.id, store=loyalty_store)

        assert settings == winner
        assert len(calls) >= 2
        monkeypatch.undo()
        assert len(settings_service.list_branches(vendor_a.id, store=loyalty_store)) == 1

    def test_ledger_terms_does_not_create(self, loyalty_store, vendor_a):
        terms = settings_service.ledger_terms(vendor_a.id, store=loyalty_store)
        assert terms.rate == DEFAULT_ACCRUAL_RATE
        assert terms.active_branch_id is None
        assert loyalty_store.get_settings(vendor_a.id) is None
        assert settings_service.list_branches(vendor_a.id, store=loyalty_store) == []


def test_concurrent_first_access_creates_one_branch(memory_store):
    vendor, _ = vendor_service.create_vendor(
        username="race", email="race@vendor.test", store=memory_store
    )
    barrier = threading.Barrier(8)
    results, errors = [], []

    def worker():
        barrier.wait()
        try:
            results.append(settings_service.get_settings(vendor.id, store=memory_store))
        except Exception as exc:  # pragma: no cover - surfaced by the assertion below
            errors.append(exc)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert len(results) == 8
    assert all(r == results[0] for r in results)
    assert [b.name for b in memory_store.list_branches(vendor.id)] == [DEFAULT_BRANCH_NAME]


class TestUpdateSettings:

    def test_updates_rate(self, loyalty_store, vendor_a):
        settings = settings_service.update_settings(vendor_a.id, rate="0.1", store=loyalty_store)
        assert settings.rate == 0.1
        assert settings_service.get_settings(vendor_a.id, store=loyalty_store).rate == 0.1
        assert _system_messages(loyalty_store, vendor_a) == ["Accrual rate changed from 0.05 to 0.1"]

    def test_same_rate_records_no_event(self, loyalty_store, vendor_a):
        settings_service.update_settings(vendor_a.id, rate=0.05, store=loyalty_store)
        assert _system_messages(loyalty_store, vendor_a) == []

    @pytest.mark.parametrize("rate", [-0.01, 101, "abc", True, float("nan"), float("inf")])
    def test_rejects_invalid_rate(self, loyalty_store, vendor_a, rate):
        with pytest.raises(ValidationError):
            settings_service.update_settings(vendor_a.id, rate=rate, store=loyalty_store)

    def test_selects_branch(self, loyalty_store, vendor_a):
        settings_service.get_settings(vendor_a.id, store=loyalty_store)
        settings_service.add_branch(vendor_a.id, "Centro", store=loyalty_store)
        settings = settings_service.update_settings(
            vendor_a.id, branch_name="Centro", store=loyalty_store
        )
        assert settings.active_branch_name == "Centro"
        assert settings.branches == ["Main Store", "Centro"]
        assert "Active branch set to Centro" in _system_messages(loyalty_store, vendor_a)

    def test_unknown_branch_is_ignored(self, loyalty_store, vendor_a, caplog):
        with caplog.at_level("WARNING", logger="redimi.services.settings_service"):
            settings = settings_service.update_settings(
                vendor_a.id, rate=0.2, branch_name="Nowhere", store=loyalty_store
            )
        assert settings.active_branch_name == DEFAULT_BRANCH_NAME
        assert settings.rate == 0.2
        assert "Nowhere" in caplog.text

    def test_unknown_branch_strict(self, loyalty_store, vendor_a):
        with pytest.raises(NotFoundError):
            settings_service.update_settings(
                vendor_a.id, rate=0.2, branch_name="Nowhere", store=loyalty_store, strict_branch=True
            )
        # Nothing from the rejected update is applied
        assert settings_service.get_settings(vendor_a.id, store=loyalty_store).rate == DEFAULT_ACCRUAL_RATE

    def test_strict_from_config(self, app, loyalty_store, vendor_a, monkeypatch):
        monkeypatch.setitem(app.config, "REDIMI_STRICT_BRANCH_SELECTION", True)
        with pytest.raises(NotFoundError):
            settings_service.update_settings(vendor_a.id, branch_name="Nowhere", store=loyalty_store)

    def test_empty_update_returns_current(self, loyalty_store, vendor_a):
        settings = settings_service.update_settings(vendor_a.id, store=loyalty_store)
        assert settings.rate == DEFAULT_ACCRUAL_RATE
        assert settings.branches == [DEFAULT_BRANCH_NAME]


class TestAddBranch:

    def test_appends_without_changing_active(self, loyalty_store, vendor_a):
        settings_service.get_settings(vendor_a.id, store=loyalty_store)
        branch = settings_service.add_branch(vendor_a.id, "  Norte  ", store=loyalty_store)
        assert branch.name == "Norte"

        settings = settings_service.get_settings(vendor_a.id, store=loyalty_store)
        assert settings.branches == ["Main Store", "Norte"]
        assert settings.active_branch_name == "Main Store"
        assert "Branch Norte added" in _system_messages(loyalty_store, vendor_a)

    def test_duplicate_name(self, loyalty_store, vendor_a):
        settings_service.add_branch(vendor_a.id, "Norte", store=loyalty_store)
        with pytest.raises(ConflictError):
            settings_service.add_branch(vendor_a.id, "Norte", store=loyalty_store)
        assert [b.name for b in settings_service.list_branches(vendor_a.id, store=loyalty_store)] == ["Norte"]
        assert _system_messages(loyalty_store, vendor_a) == ["Branch Norte added"]

    @pytest.mark.parametrize("name", [None, "", "   ", 42, "x" * 121])
    def test_rejects_invalid_name(self, loyalty_store, vendor_a, name):
        with pytest.raises(ValidationError):
            settings_service.add_branch(vendor_a.id, name, store=loyalty_store)
