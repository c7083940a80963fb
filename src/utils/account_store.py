from __future__ import annotations

import json
import threading
from datetime import datetime, UTC
from pathlib import Path
from typing import List, Optional, Sequence

from pydantic import TypeAdapter, ValidationError

from src.core.schemas import Account, AccountDraft, AppPreferences
from src.utils.logging import get_logger
from src.utils.quant_engine import current_balance

log = get_logger(__name__)

_ACCOUNTS = TypeAdapter(List[Account])


class StoreError(RuntimeError):
    pass


class AccountNotFound(KeyError):
    pass


def _now() -> datetime:
    return datetime.now(UTC)


class AccountStore:
    """
    Account list persisted as a JSON file.
    - Thread-safe
    - Every mutation rewrites the whole file (accounts are few and small)
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()
        self._accounts: List[Account] = self._load()

    def _load(self) -> List[Account]:
        if not self.path.exists():
            return []
        try:
            raw = self.path.read_text(encoding="utf-8")
            return _ACCOUNTS.validate_json(raw) if raw.strip() else []
        except (ValidationError, ValueError) as e:
            raise StoreError(f"Failed to load accounts from {self.path}: {e}") from e

    def _commit(self, accounts: List[Account]) -> None:
        """Write accounts to disk, then swap them in. Callers hold the lock."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_bytes(_ACCOUNTS.dump_json(accounts, indent=2))
        tmp.replace(self.path)
        self._accounts = accounts

    def list(self) -> List[Account]:
        with self._lock:
            return list(self._accounts)

    def get(self, account_id: str) -> Optional[Account]:
        with self._lock:
            return next((a for a in self._accounts if a.id == account_id), None)

    def add(self, draft: AccountDraft, *, now: Optional[datetime] = None) -> Account:
        ts = now or _now()
        account = Account(
            **draft.model_dump(),
            current_balance=draft.starting_balance,
            created_at=ts,
            updated_at=ts,
        )
        with self._lock:
            self._commit([*self._accounts, account])
        log.info("account added id=%s name=%r", account.id, account.name)
        return account

    def bulk_import(self, drafts: Sequence[AccountDraft], *, now: Optional[datetime] = None) -> List[Account]:
        ts = now or _now()
        created = [
            Account(**d.model_dump(), current_balance=d.starting_balance, created_at=ts, updated_at=ts)
            for d in drafts
        ]
        with self._lock:
            self._commit([*self._accounts, *created])
        log.info("bulk import added %d accounts", len(created))
        return created

    def update(self, account: Account, *, now: Optional[datetime] = None) -> Account:
        ts = now or _now()
        updated = account.model_copy(
            update={
                "current_balance": current_balance(account.snapshot(), account.created_at, now=ts),
                "updated_at": ts,
            }
        )
        with self._lock:
            if not any(a.id == account.id for a in self._accounts):
                raise AccountNotFound(account.id)
            self._commit([updated if a.id == account.id else a for a in self._accounts])
        log.info("account updated id=%s", account.id)
        return updated

    def delete(self, account_id: str) -> None:
        with self._lock:
            remaining = [a for a in self._accounts if a.id != account_id]
            if len(remaining) == len(self._accounts):
                raise AccountNotFound(account_id)
            self._commit(remaining)
        log.info("account deleted id=%s", account_id)

    def refresh_balances(self, *, now: Optional[datetime] = None) -> List[Account]:
        ts = now or _now()
        with self._lock:
            self._commit([
                a.model_copy(update={"current_balance": current_balance(a.snapshot(), a.created_at, now=ts), "updated_at": ts})
                for a in self._accounts
            ])
            return list(self._accounts)

    def clear(self) -> None:
        with self._lock:
            self._commit([])


class PreferencesStore:
    def __init__(self, path: str | Path, defaults: Optional[AppPreferences] = None) -> None:
        self.path = Path(path)
        self.defaults = defaults or AppPreferences()

    def load(self) -> AppPreferences:
        if not self.path.exists():
            return self.defaults
        try:
            saved = json.loads(self.path.read_text(encoding="utf-8") or "{}")
            return AppPreferences(**{**self.defaults.model_dump(), **saved})
        except (ValidationError, ValueError) as e:
            log.warning("ignoring unreadable preferences at %s: %s", self.path, e)
            return self.defaults

    def save(self, prefs: AppPreferences) -> AppPreferences:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(prefs.model_dump_json(indent=2), encoding="utf-8")
        return prefs

    def reset(self) -> AppPreferences:
        return self.save(self.defaults)
