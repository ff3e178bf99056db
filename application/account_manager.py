from __future__ import annotations

import logging
from concurrent.futures import Executor, Future
from enum import Enum
from typing import Dict, List, Optional
from uuid import UUID

from domain.currency import Amount, parse_amount
from domain.errors import InvalidAmountError, InvalidPlayerError, LedgerNotLoadedError, StorageError
from domain.models import Account, AccountRecord
from domain.repositories import AccountStore, ExternalResource
from domain.settings import LedgerSettings

logger = logging.getLogger("xpledger.account_manager")


class LedgerState(Enum):
    UNLOADED = "unloaded"
    LOADED = "loaded"


def _coerce_player_id(player_id: object) -> UUID:
    if player_id is None or player_id == "":
        raise InvalidPlayerError("Player id is required.")
    if isinstance(player_id, UUID):
        return player_id
    try:
        return UUID(str(player_id))
    except ValueError as exc:
        raise InvalidPlayerError(f"Not a player id: {player_id!r}") from exc


class AccountManager:
    """
    Owns the authoritative in-memory ledger.

    The mapping from player id to `Account` is the single source of truth
    while the process runs. The store is only consulted by `load()` and
    written by `save()`. The mapping is not synchronised: every mutation
    must happen on the host's game thread. `save_in_background()` takes its
    snapshot on the calling thread before handing off.
    """

    def __init__(
        self,
        store: AccountStore,
        settings: LedgerSettings,
        resource: Optional[ExternalResource] = None,
    ) -> None:
        self._store = store
        self._settings = settings
        self._resource = resource
        self._accounts: Dict[UUID, Account] = {}
        self.state = LedgerState.UNLOADED

    @property
    def settings(self) -> LedgerSettings:
        return self._settings

    def reload_settings(self, settings: LedgerSettings) -> None:
        """Apply new settings to the manager and to every live account."""

        self._settings = settings
        for account in self._accounts.values():
            account.scale_method = settings.scale_method
        logger.info(
            "Settings reloaded: economy method %s, starting balance %s",
            settings.scale_method.name,
            settings.starting_balance,
        )

    def load(self) -> bool:
        """
        Replace the in-memory ledger with the store's contents.

        On a store failure the ledger is left empty and False is returned;
        an empty ledger simply means there are no accounts yet.
        """

        self._accounts = {}
        try:
            records = self._store.load()
        except StorageError:
            logger.exception("Failed to load accounts from storage.")
            self.state = LedgerState.LOADED
            return False

        for record in records:
            if record.id in self._accounts:
                logger.warning("Duplicate stored account %s; keeping the later entry.", record.id)
            self._accounts[record.id] = self._new_account(record.id, record.balance_raw, record.name)

        self.state = LedgerState.LOADED
        logger.info("Loaded %d account(s).", len(self._accounts))
        return True

    def snapshot(self) -> List[AccountRecord]:
        """Point-in-time, immutable copy of the ledger."""

        return [account.to_record() for account in self._accounts.values()]

    def save(self) -> bool:
        records = self.snapshot()
        ok = self._store.save(records)
        if ok:
            logger.debug("Saved %d account(s).", len(records))
        else:
            logger.error("Saving %d account(s) failed; will retry at the next checkpoint.", len(records))
        return ok

    def save_in_background(self, executor: Executor) -> "Future[bool]":
        """Snapshot now, write on `executor`."""

        records = self.snapshot()
        return executor.submit(self._store.save, records)

    def shutdown(self) -> bool:
        """Final checkpoint; the manager returns to UNLOADED either way."""

        ok = self.save()
        self._accounts = {}
        self.state = LedgerState.UNLOADED
        return ok

    def has_account(self, player_id: UUID) -> bool:
        return self.get_account(player_id) is not None

    def get_account(self, player_id: UUID) -> Optional[Account]:
        try:
            return self._accounts.get(_coerce_player_id(player_id))
        except InvalidPlayerError:
            return None

    def all_accounts(self) -> List[Account]:
        return list(self._accounts.values())

    def create_account(self, player_id: UUID, name: Optional[str] = None) -> Account:
        """
        Open an account for `player_id`, or return the one it already has.

        A player who is online is seeded with the larger of their current
        experience total and the configured starting balance; if the
        starting balance wins it is pushed to their experience bar. An
        offline player simply gets the starting balance.

        Raises:
            InvalidPlayerError: if `player_id` is missing or malformed.
            LedgerNotLoadedError: if `load()` has not run yet, since it
                would discard the new account.
        """

        player_id = _coerce_player_id(player_id)
        if self.state is not LedgerState.LOADED:
            raise LedgerNotLoadedError("Load the ledger before opening accounts.")
        existing = self._accounts.get(player_id)
        if existing is not None:
            return existing

        account = self._new_account(player_id, 0, name)
        starting_raw = self._settings.starting_balance_raw
        current_total = self._resource.read_total(player_id) if self._resource is not None else None
        if current_total is None:
            account.set_balance_raw(starting_raw, propagate=False)
        elif current_total > starting_raw:
            account.set_balance_raw(current_total, propagate=False)
        else:
            account.set_balance_raw(starting_raw, propagate=True)

        self._accounts[player_id] = account
        logger.info("Created account %s with %d point(s).", player_id, account.get_balance_raw())
        return account

    def has_funds(self, player_id: UUID, amount: Amount) -> bool:
        account = self.get_account(player_id)
        if account is None:
            return False
        try:
            return account.has(amount)
        except InvalidAmountError:
            return False

    def transfer(self, source_id: UUID, target_id: UUID, amount: Amount) -> bool:
        """
        Move `amount` from one account to another, all or nothing.

        Fails without mutating anything when either account is missing,
        both ids are the same, the amount is negative or the source cannot
        cover it.
        """

        source = self.get_account(source_id)
        target = self.get_account(target_id)
        if source is None or target is None or source is target:
            return False
        try:
            value = parse_amount(amount)
        except InvalidAmountError:
            return False
        if value < 0 or not source.has(value):
            return False

        source.withdraw(value)
        target.deposit(value)
        return True

    def _new_account(self, player_id: UUID, balance_raw: int, name: Optional[str] = None) -> Account:
        return Account(
            player_id,
            self._settings.scale_method,
            resource=self._resource,
            balance_raw=balance_raw,
            name=name,
        )
