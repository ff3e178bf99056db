from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional
from uuid import UUID

from application.account_manager import AccountManager
from domain.models import Account
from domain.repositories import ExternalResource, Scheduler

logger = logging.getLogger("xpledger.reconciliation")


class SyncDirection(Enum):
    # Copy the experience bar into the ledger.
    PULL = "pull"
    # Copy the ledger into the experience bar.
    PUSH = "push"


@dataclass(frozen=True)
class ReconciliationTask:
    """
    One deferred copy between the ledger and a player's experience bar.

    Runs on the scheduler pass after the event that queued it, once the
    host has finished recomputing the player's level and progress. If the
    player has gone offline (or has no account) by then, the task does
    nothing.
    """

    manager: AccountManager
    resource: ExternalResource
    player_id: UUID
    direction: SyncDirection

    def __call__(self) -> None:
        account = self.manager.get_account(self.player_id)
        if account is None:
            logger.debug("No account for %s; skipping %s sync.", self.player_id, self.direction.value)
            return

        total = self.resource.read_total(account.id)
        if total is None:
            logger.debug("%s went offline; skipping %s sync.", self.player_id, self.direction.value)
            return

        if self.direction is SyncDirection.PULL:
            logger.debug("Setting account %s balance to %d point(s).", self.player_id, total)
            account.set_balance_raw(total, propagate=False)
        else:
            logger.debug(
                "Setting %s experience to %d point(s).", self.player_id, account.get_balance_raw()
            )
            self.resource.write_total(account.id, account.get_balance_raw())


class LedgerReconciler:
    """
    Keeps accounts and experience bars consistent in response to host events.

    Event handlers never read the experience bar themselves: the host fires
    its notifications before it has settled the new value, so every copy is
    queued for the next tick instead.
    """

    def __init__(
        self,
        manager: AccountManager,
        resource: ExternalResource,
        scheduler: Scheduler,
    ) -> None:
        self._manager = manager
        self._resource = resource
        self._scheduler = scheduler

    def _schedule(self, player_id: UUID, direction: SyncDirection) -> None:
        self._scheduler.run_after_one_tick(
            ReconciliationTask(self._manager, self._resource, player_id, direction)
        )

    def on_player_join(self, player_id: UUID, name: Optional[str] = None) -> Account:
        """
        Make sure the player has an account, then apply any balance changes
        made while they were offline to their experience bar.

        `name` is the player's current username; it replaces the stored one
        so renamed players show up under their new name.
        """

        account = self._manager.get_account(player_id)
        if account is None:
            account = self._manager.create_account(player_id, name)
        elif name:
            account.name = name
        logger.debug("%s joined; scheduling experience update from the ledger.", player_id)
        self._schedule(account.id, SyncDirection.PUSH)
        return account

    def on_experience_change(self, player_id: UUID) -> None:
        logger.debug("%s experience changed; scheduling balance update.", player_id)
        self._schedule(player_id, SyncDirection.PULL)

    def sync_now(self, player_id: UUID) -> Optional[Account]:
        """
        Copy the experience bar into the ledger immediately.

        Only safe outside of a change notification, when the value is
        already settled. Returns None if there is no account or the player
        is offline.
        """

        account = self._manager.get_account(player_id)
        if account is None:
            return None
        total = self._resource.read_total(account.id)
        if total is None:
            return None
        account.set_balance_raw(total, propagate=False)
        return account
