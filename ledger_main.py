from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import List, Optional

from application.account_manager import AccountManager
from application.reconciliation import LedgerReconciler
from domain.repositories import AccountStore
from domain.settings import LedgerSettings
from infrastructure.config import load_settings
from infrastructure.db.account_store_postgres import PostgresAccountStore
from infrastructure.db.account_store_sqlite import SqliteAccountStore
from infrastructure.engine.experience_table import ExperienceBarTable
from infrastructure.engine.tick_scheduler import TickScheduler
from infrastructure.files.account_store_yaml import YamlAccountStore

logger = logging.getLogger("xpledger")

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-28s | %(message)s"


def configure_logging(debug: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def build_account_store(settings: LedgerSettings) -> AccountStore:
    if settings.storage_backend == "sqlite":
        return SqliteAccountStore(settings.db_path, table_prefix=settings.table_prefix)
    if settings.storage_backend == "postgres":
        return PostgresAccountStore(settings.postgres_params, table_prefix=settings.table_prefix)
    return YamlAccountStore(settings.accounts_file)


class LedgerRuntime:
    """
    Wires the ledger into a host: store, manager, reconciler and checkpoints.

    Construction loads the ledger before anything can query it. A periodic
    checkpoint snapshots the ledger on the game thread and writes the
    snapshot on a single background worker. `shutdown()` drains pending
    writes and makes a final, synchronous save.
    """

    def __init__(
        self,
        settings: LedgerSettings,
        resource: ExperienceBarTable,
        scheduler: TickScheduler,
        store: Optional[AccountStore] = None,
    ) -> None:
        self.settings = settings
        self.resource = resource
        self.scheduler = scheduler
        self.store = store or build_account_store(settings)
        self.manager = AccountManager(self.store, settings, resource)
        self.reconciler = LedgerReconciler(self.manager, resource, scheduler)
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="ledger-save")
        self._saves: List["Future[bool]"] = []

        if not self.manager.load():
            logger.error("Starting with an empty ledger; storage could not be read.")
        scheduler.run_repeating(self.checkpoint, settings.save_interval_ticks)

    def reload(self, settings: LedgerSettings) -> None:
        self.settings = settings
        self.manager.reload_settings(settings)

    def checkpoint(self) -> "Future[bool]":
        self._saves = [f for f in self._saves if not f.done()]
        future = self.manager.save_in_background(self._executor)
        self._saves.append(future)
        return future

    def shutdown(self) -> bool:
        for future in self._saves:
            try:
                future.result()
            except Exception:
                logger.exception("Background checkpoint failed; relying on the final save.")
        self._executor.shutdown(wait=True)
        ok = self.manager.shutdown()
        if ok:
            logger.info("Ledger saved on shutdown.")
        else:
            logger.error("Final ledger save failed.")
        return ok


def main() -> LedgerRuntime:
    settings = load_settings()
    configure_logging(settings.debug)
    return LedgerRuntime(settings, ExperienceBarTable(), TickScheduler())


if __name__ == "__main__":
    runtime = main()
    logger.info("Ledger ready with %d account(s).", len(runtime.manager.all_accounts()))
    runtime.shutdown()
