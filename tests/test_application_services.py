import unittest
import uuid
from decimal import Decimal

from application.account_manager import AccountManager
from application.services import (
    ResponseType,
    create_player_account,
    currency_name_plural,
    currency_name_singular,
    deposit_player,
    format_amount,
    fractional_digits,
    get_balance,
    has,
    pay,
    withdraw_player,
)
from domain.currency import ScaleMethod
from domain.settings import LedgerSettings


class InMemoryAccountStore:
    def __init__(self):
        self.records = {}

    def load(self):
        return list(self.records.values())

    def save(self, records):
        for record in records:
            self.records[record.id] = record
        return True


class InMemoryResource:
    def __init__(self):
        self.totals = {}

    def read_total(self, player_id):
        return self.totals.get(player_id)

    def write_total(self, player_id, total):
        if player_id in self.totals:
            self.totals[player_id] = total


class ApplicationServicesTests(unittest.TestCase):
    def setUp(self) -> None:
        self.resource = InMemoryResource()
        self.manager = AccountManager(
            InMemoryAccountStore(),
            LedgerSettings(starting_balance=Decimal(10)),
            self.resource,
        )
        self.manager.load()
        self.player = uuid.uuid4()
        self.resource.totals[self.player] = 0
        create_player_account(self.manager, self.player)

    def test_create_player_account_only_once(self):
        self.assertTrue(self.manager.has_account(self.player))
        self.assertFalse(create_player_account(self.manager, self.player))
        self.assertFalse(create_player_account(self.manager, None))

    def test_create_player_account_with_string_id(self):
        other = str(uuid.uuid4())
        self.assertTrue(create_player_account(self.manager, other))
        self.assertFalse(create_player_account(self.manager, other))
        self.assertEqual(len(self.manager.all_accounts()), 2)
        self.assertEqual(get_balance(self.manager, other), Decimal(10))
        self.assertTrue(deposit_player(self.manager, other, 1).success)

    def test_create_player_account_before_load(self):
        manager = AccountManager(InMemoryAccountStore(), LedgerSettings())
        self.assertFalse(create_player_account(manager, uuid.uuid4()))

    def test_pay_self_by_string_id(self):
        result = pay(self.manager, self.player, str(self.player), 1)
        self.assertFalse(result.success)
        self.assertEqual(get_balance(self.manager, self.player), Decimal(10))

    def test_withdraw_insufficient_funds(self):
        result = withdraw_player(self.manager, self.player, 15)
        self.assertFalse(result.success)
        self.assertEqual(result.response_type, ResponseType.FAILURE)
        self.assertEqual(result.balance, Decimal(10))
        self.assertEqual(get_balance(self.manager, self.player), Decimal(10))

    def test_deposit_then_withdraw_updates_experience(self):
        self.assertTrue(deposit_player(self.manager, self.player, 5).success)
        self.assertEqual(self.resource.totals[self.player], 15)

        result = withdraw_player(self.manager, self.player, 12)
        self.assertTrue(result.success)
        self.assertEqual(result.amount, Decimal(12))
        self.assertEqual(result.balance, Decimal(3))
        self.assertEqual(self.resource.totals[self.player], 3)

    def test_invalid_amounts_fail_without_mutation(self):
        for amount in (-1, "abc", float("nan")):
            self.assertFalse(withdraw_player(self.manager, self.player, amount).success)
            self.assertFalse(deposit_player(self.manager, self.player, amount).success)
            self.assertFalse(has(self.manager, self.player, amount))
        self.assertEqual(get_balance(self.manager, self.player), Decimal(10))

    def test_missing_account(self):
        stranger = uuid.uuid4()
        self.assertEqual(get_balance(self.manager, stranger), Decimal(0))
        self.assertFalse(has(self.manager, stranger, 0))
        self.assertFalse(withdraw_player(self.manager, stranger, 1).success)
        self.assertFalse(deposit_player(self.manager, stranger, 1).success)

    def test_has(self):
        self.assertTrue(has(self.manager, self.player, 10))
        self.assertFalse(has(self.manager, self.player, 10.5))

    def test_pay_flow(self):
        other = uuid.uuid4()
        create_player_account(self.manager, other)

        result = pay(self.manager, self.player, other, 4)
        self.assertTrue(result.success)
        self.assertEqual(result.balance, Decimal(6))
        self.assertEqual(get_balance(self.manager, other), Decimal(14))

    def test_pay_rejections(self):
        other = uuid.uuid4()
        create_player_account(self.manager, other)

        self.assertFalse(pay(self.manager, self.player, self.player, 1).success)
        self.assertFalse(pay(self.manager, self.player, uuid.uuid4(), 1).success)
        self.assertFalse(pay(self.manager, uuid.uuid4(), other, 1).success)
        self.assertFalse(pay(self.manager, self.player, other, 11).success)
        self.assertFalse(pay(self.manager, self.player, other, -2).success)
        self.assertEqual(get_balance(self.manager, self.player), Decimal(10))
        self.assertEqual(get_balance(self.manager, other), Decimal(10))

    def test_currency_presentation(self):
        self.assertEqual(fractional_digits(self.manager), 0)
        self.assertEqual(currency_name_singular(self.manager), "point")
        self.assertEqual(currency_name_plural(self.manager), "points")
        self.assertEqual(format_amount(self.manager, 1500, with_unit_name=True), "1,500 points")
        self.assertEqual(format_amount(self.manager, "lots"), "lots")
        self.assertEqual(format_amount(self.manager, float("inf")), "inf")

        self.manager.reload_settings(LedgerSettings(scale_method=ScaleMethod.LEVELS))
        self.assertEqual(fractional_digits(self.manager), 2)
        self.assertEqual(format_amount(self.manager, 0.1), "0.10")
        self.assertEqual(get_balance(self.manager, self.player), Decimal("0.10"))


if __name__ == "__main__":
    unittest.main()
