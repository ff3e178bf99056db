from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Tuple
from uuid import UUID

from .currency import Amount, ScaleMethod, parse_amount
from .experience import level_progress_from_total
from .repositories import ExternalResource

# Host usernames are at most 16 characters; the SQL column is sized to match.
NAME_MAX_LENGTH = 16


@dataclass(frozen=True)
class AccountRecord:
    """
    Persisted shape of an account: the player id, the raw point balance and
    the owner's last known name, if any.

    Records are immutable so that a snapshot handed to a storage worker
    cannot change underneath it.
    """

    id: UUID
    balance_raw: int
    name: Optional[str] = None


class Account:
    """
    One player's ledger entry.

    The balance is held as a raw, non-negative point count. Display amounts
    go through the account's `ScaleMethod`. Mutations that move value can
    also push the new total to the player's experience bar through the
    `ExternalResource` collaborator.
    """

    def __init__(
        self,
        account_id: UUID,
        scale_method: ScaleMethod,
        resource: Optional[ExternalResource] = None,
        balance_raw: int = 0,
        name: Optional[str] = None,
    ) -> None:
        self._id = account_id
        self.scale_method = scale_method
        self._resource = resource
        self._balance_raw = max(0, int(balance_raw))
        self._name: Optional[str] = None
        self.name = name

    @property
    def id(self) -> UUID:
        return self._id

    @property
    def name(self) -> Optional[str]:
        return self._name

    @name.setter
    def name(self, value: Optional[str]) -> None:
        self._name = value[:NAME_MAX_LENGTH] if value else None

    def __repr__(self) -> str:
        return f"Account(id={self._id}, name={self._name!r}, balance_raw={self._balance_raw})"

    def get_balance(self) -> Decimal:
        return self.scale_method.to_display(self._balance_raw)

    def get_balance_raw(self) -> int:
        return self._balance_raw

    def to_record(self) -> AccountRecord:
        return AccountRecord(id=self._id, balance_raw=self._balance_raw, name=self._name)

    def level_progress(self) -> Tuple[int, Decimal]:
        """The (level, progress) pair the raw balance corresponds to."""

        return level_progress_from_total(self._balance_raw)

    def set_balance(self, amount: Amount, propagate: bool = False) -> "Account":
        """
        Set the balance from a display amount.

        Raises:
            InvalidAmountError: if `amount` is negative.
        """

        return self.set_balance_raw(self.scale_method.to_raw(amount), propagate)

    def set_balance_raw(self, raw: int, propagate: bool = False) -> "Account":
        self._balance_raw = max(0, int(raw))
        if propagate and self._resource is not None:
            self._resource.write_total(self._id, self._balance_raw)
        return self

    def has(self, amount: Amount) -> bool:
        return self._balance_raw >= self.scale_method.to_raw(amount)

    def withdraw(self, amount: Amount) -> bool:
        value = parse_amount(amount)
        if value < 0 or not self.has(value):
            return False
        self.set_balance_raw(self._balance_raw - self.scale_method.to_raw(value), propagate=True)
        return True

    def deposit(self, amount: Amount) -> bool:
        value = parse_amount(amount)
        if value < 0:
            return False
        self.set_balance_raw(self._balance_raw + self.scale_method.to_raw(value), propagate=True)
        return True
