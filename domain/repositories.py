from __future__ import annotations

from typing import TYPE_CHECKING, Callable, List, Optional, Protocol, Sequence
from uuid import UUID

if TYPE_CHECKING:
    from .models import AccountRecord


class AccountStore(Protocol):
    """
    Abstraction over ledger persistence.

    A store is a checkpoint, not a live cache: the account manager reads
    everything once at start-up and writes full snapshots back.
    Implementations are responsible for:
    - Mapping between their on-disk shape and `AccountRecord`.
    - Skipping (and logging) individual records they cannot decode.
    - Upsert semantics on save, so records absent from a snapshot survive.
    """

    def load(self) -> List[AccountRecord]:
        """
        Return every persisted record.

        Raises `StorageError` when the backend itself is unavailable.
        """

        ...

    def save(self, records: Sequence[AccountRecord]) -> bool:
        """Persist `records`. Never raises; returns False on failure."""

        ...


class ExternalResource(Protocol):
    """
    The host engine's experience value for a player.

    Only valid while the engine's own mutation of that value has settled,
    which in practice means one scheduler tick after any change event.
    """

    def read_total(self, player_id: UUID) -> Optional[int]:
        """Return the player's cumulative points, or None if they are offline."""

        ...

    def write_total(self, player_id: UUID, total: int) -> None:
        """Set the player's cumulative points. No-op if they are offline."""

        ...


class Scheduler(Protocol):
    """Cooperative, single-threaded task queue of the host."""

    def run_after_one_tick(self, task: Callable[[], None]) -> None:
        ...
