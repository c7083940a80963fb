from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from src.core.schemas import AccountDraft, AppPreferences
from src.utils.account_store import AccountNotFound, AccountStore, PreferencesStore, StoreError
from src.utils.quant_models import AmountGoal

NOW = datetime(2024, 1, 1, tzinfo=UTC)


def _draft(name: str = "Vacation") -> AccountDraft:
    return AccountDraft(
        name=name,
        starting_balance=1000,
        interest_rate=0.05,
        monthly_contribution=100,
        goal=AmountGoal(target_amount=5000),
    )


def test_add_persists_and_reloads(tmp_path):
    path = tmp_path / "accounts.json"
    store = AccountStore(path)
    acc = store.add(_draft(), now=NOW)

    assert acc.current_balance == 1000
    assert acc.created_at == NOW

    reloaded = AccountStore(path).list()
    assert [a.id for a in reloaded] == [acc.id]
    assert isinstance(reloaded[0].goal, AmountGoal)


def test_update_recomputes_current_balance(tmp_path):
    store = AccountStore(tmp_path / "accounts.json")
    acc = store.add(_draft(), now=NOW)

    later = NOW + timedelta(days=61)
    updated = store.update(acc.model_copy(update={"name": "Trip"}), now=later)

    assert updated.name == "Trip"
    assert updated.updated_at == later
    assert updated.current_balance == pytest.approx(1200 * (1 + 0.05 / 12) ** 2)
    assert store.get(acc.id).name == "Trip"


def test_unknown_ids_raise(tmp_path):
    store = AccountStore(tmp_path / "accounts.json")
    acc = store.add(_draft(), now=NOW)
    store.delete(acc.id)

    with pytest.raises(AccountNotFound):
        store.delete(acc.id)
    with pytest.raises(AccountNotFound):
        store.update(acc, now=NOW)
    assert store.get(acc.id) is None


def test_bulk_import_and_clear(tmp_path):
    store = AccountStore(tmp_path / "accounts.json")
    created = store.bulk_import([_draft("A1"), _draft("B2")], now=NOW)
    assert len(created) == 2
    assert len(store.list()) == 2

    store.clear()
    assert store.list() == []


def test_refresh_balances(tmp_path):
    store = AccountStore(tmp_path / "accounts.json")
    store.add(_draft(), now=NOW)
    refreshed = store.refresh_balances(now=NOW + timedelta(days=30))
    assert refreshed[0].current_balance == pytest.approx(1100 * (1 + 0.05 / 12))


def test_failed_write_leaves_accounts_unchanged(tmp_path, monkeypatch):
    store = AccountStore(tmp_path / "accounts.json")
    kept = store.add(_draft("Kept"), now=NOW)

    def disk_full(self, target):
        raise OSError("No space left on device")

    monkeypatch.setattr(Path, "replace", disk_full)

    with pytest.raises(OSError):
        store.add(_draft("Lost"), now=NOW)
    with pytest.raises(OSError):
        store.bulk_import([_draft("X"), _draft("Y")], now=NOW)
    with pytest.raises(OSError):
        store.update(kept.model_copy(update={"name": "Renamed"}), now=NOW)
    with pytest.raises(OSError):
        store.delete(kept.id)
    with pytest.raises(OSError):
        store.refresh_balances(now=NOW + timedelta(days=90))
    with pytest.raises(OSError):
        store.clear()

    assert store.list() == [kept]
    monkeypatch.undo()
    assert AccountStore(tmp_path / "accounts.json").list() == [kept]


def test_corrupt_file_raises_store_error(tmp_path):
    path = tmp_path / "accounts.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(StoreError):
        AccountStore(path)


def test_preferences_round_trip(tmp_path):
    prefs = PreferencesStore(tmp_path / "prefs.json")
    assert prefs.load().default_projection_months == 36

    prefs.save(AppPreferences(default_projection_months=60, currency="EUR"))
    loaded = PreferencesStore(tmp_path / "prefs.json").load()
    assert loaded.default_projection_months == 60
    assert loaded.currency == "EUR"

    assert prefs.reset().default_projection_months == 36


def test_unreadable_preferences_fall_back_to_defaults(tmp_path):
    path = tmp_path / "prefs.json"
    path.write_text('{"default_projection_months": 0}', encoding="utf-8")
    assert PreferencesStore(path).load() == AppPreferences()
