from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict

from .currency import ScaleMethod

STORAGE_BACKENDS = ("yaml", "sqlite", "postgres")


@dataclass(frozen=True)
class LedgerSettings:
    """
    Everything the ledger reads from configuration, fixed at load time.

    A reload builds a new instance and hands it to the components that
    need it; nothing reads configuration lazily.
    """

    scale_method: ScaleMethod = ScaleMethod.POINTS
    starting_balance: Decimal = Decimal(0)
    storage_backend: str = "yaml"
    accounts_file: str = "accounts.yml"
    db_path: str = "ledger.db"
    table_prefix: str = ""
    postgres_params: Dict[str, Any] = field(default_factory=dict)
    save_interval_ticks: int = 6000
    debug: bool = False

    @property
    def starting_balance_raw(self) -> int:
        return self.scale_method.to_raw(self.starting_balance)
