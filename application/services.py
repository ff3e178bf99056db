from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional, Union
from uuid import UUID

from application.account_manager import AccountManager
from domain.currency import Amount, ScaleMethod, parse_amount
from domain.errors import InvalidAmountError, InvalidPlayerError, LedgerNotLoadedError

AmountInput = Union[Amount, float]


class ResponseType(Enum):
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass
class EconomyResponse:
    """
    Result of a value-moving call made by an outside consumer.

    `amount` is what actually moved; `balance` is the affected account's
    balance afterwards (the payer's, for payments).
    """

    amount: Decimal
    balance: Decimal
    response_type: ResponseType
    error_message: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.response_type is ResponseType.SUCCESS


def _failure(message: str, balance: Decimal = Decimal(0)) -> EconomyResponse:
    return EconomyResponse(
        amount=Decimal(0),
        balance=balance,
        response_type=ResponseType.FAILURE,
        error_message=message,
    )


def _validate_amount(amount: AmountInput) -> Union[Decimal, str]:
    try:
        value = parse_amount(amount)
    except InvalidAmountError:
        return f"Not a valid amount: {amount!r}."
    if value < 0:
        return "Amount cannot be negative."
    return value


def fractional_digits(manager: AccountManager) -> int:
    return manager.settings.scale_method.scale


def format_amount(manager: AccountManager, amount: AmountInput, with_unit_name: bool = False) -> str:
    """Render `amount` for display; input that is not a number is echoed back unchanged."""

    try:
        value = parse_amount(amount)
    except InvalidAmountError:
        return str(amount)
    return manager.settings.scale_method.format(value, with_unit_name)


def currency_name_singular(manager: AccountManager) -> str:
    return manager.settings.scale_method.unit_name


def currency_name_plural(manager: AccountManager) -> str:
    return manager.settings.scale_method.unit_name_plural


def create_player_account(manager: AccountManager, player_id: UUID) -> bool:
    """Open an account if the player has none. False if one already existed."""

    if manager.has_account(player_id):
        return False
    try:
        manager.create_account(player_id)
    except (InvalidPlayerError, LedgerNotLoadedError):
        return False
    return True


def get_balance(manager: AccountManager, player_id: UUID) -> Decimal:
    account = manager.get_account(player_id)
    if account is None:
        return Decimal(0)
    return account.get_balance()


def has(manager: AccountManager, player_id: UUID, amount: AmountInput) -> bool:
    value = _validate_amount(amount)
    if isinstance(value, str):
        return False
    return manager.has_funds(player_id, value)


def withdraw_player(manager: AccountManager, player_id: UUID, amount: AmountInput) -> EconomyResponse:
    """
    Take `amount` from a player's account and experience bar.

    Fails, without touching the account, if it does not exist, the amount
    is invalid or the balance cannot cover it.
    """

    account = manager.get_account(player_id)
    if account is None:
        return _failure("Player has no account.")

    value = _validate_amount(amount)
    if isinstance(value, str):
        return _failure(value, account.get_balance())

    if not account.withdraw(value):
        return _failure("Insufficient funds.", account.get_balance())

    return EconomyResponse(
        amount=value,
        balance=account.get_balance(),
        response_type=ResponseType.SUCCESS,
    )


def deposit_player(manager: AccountManager, player_id: UUID, amount: AmountInput) -> EconomyResponse:
    account = manager.get_account(player_id)
    if account is None:
        return _failure("Player has no account.")

    value = _validate_amount(amount)
    if isinstance(value, str):
        return _failure(value, account.get_balance())

    account.deposit(value)
    return EconomyResponse(
        amount=value,
        balance=account.get_balance(),
        response_type=ResponseType.SUCCESS,
    )


def pay(
    manager: AccountManager,
    sender_id: UUID,
    target_id: UUID,
    amount: AmountInput,
) -> EconomyResponse:
    """
    Player-to-player payment.

    The amount is first fixed to the economy's decimal places, then moved
    in one step so that neither side changes if the other cannot.
    """

    sender = manager.get_account(sender_id)
    if sender is None:
        return _failure("Sender has no account.")
    target = manager.get_account(target_id)
    if target is None:
        return _failure("Recipient has no account.", sender.get_balance())
    if target is sender:
        return _failure("Players cannot pay themselves.", sender.get_balance())

    value = _validate_amount(amount)
    if isinstance(value, str):
        return _failure(value, sender.get_balance())

    scale_method: ScaleMethod = manager.settings.scale_method
    payment = scale_method.quantize(value)
    if not manager.transfer(sender_id, target_id, payment):
        return _failure("Insufficient funds.", sender.get_balance())

    return EconomyResponse(
        amount=payment,
        balance=sender.get_balance(),
        response_type=ResponseType.SUCCESS,
    )
