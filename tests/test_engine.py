"""
Tests for the ledger engine

Every rejected operation must leave the stored account AND the snapshot
untouched, so most failure tests check both the account and the number
of writes.
"""

import pytest
from decimal import Decimal

from pocketbank.errors import (
    InsufficientFunds,
    InvalidAmount,
    InvalidInput,
    InvalidPIN,
    LoanAlreadyActive,
    NoActiveLoan,
    StorageError,
)
from pocketbank.models.account import OperationType, TransactionStatus
from pocketbank.models.audit import AuditEventType, AuditSeverity
from pocketbank.models.market import AssetKind, CurrencyKind


def cash(store, handle):
    return store.get(handle).cash_balance


class TestDeposit:
    """Tests for deposits."""

    def test_deposit_adds_cash(self, engine, store, alice):
        receipt = engine.deposit(alice, "250.50")

        assert receipt.operation == OperationType.DEPOSIT
        assert receipt.status == TransactionStatus.COMPLETED
        assert receipt.amount == Decimal("250.50")
        assert receipt.cash_balance == Decimal("1250.50")
        assert cash(store, alice) == Decimal("1250.50")

    def test_deposit_is_persisted(self, engine, alice, account_storage):
        engine.deposit(alice, 100)
        assert account_storage.load()[0].cash_balance == Decimal("1100.00")

    @pytest.mark.parametrize("amount", [0, "-10", "abc", "nan", "inf"])
    def test_deposit_rejects_bad_amounts(self, engine, store, alice, account_storage, amount):
        writes = account_storage.save_count
        with pytest.raises(InvalidAmount):
            engine.deposit(alice, amount)
        assert cash(store, alice) == Decimal("1000.00")
        assert account_storage.save_count == writes

    def test_deposit_too_large_is_rejected(self, engine, store, alice, account_storage):
        writes = account_storage.save_count
        with pytest.raises(InvalidAmount):
            engine.deposit(alice, "1e26")
        assert cash(store, alice) == Decimal("1000.00")
        assert account_storage.save_count == writes

    def test_deposit_overflowing_balance_is_rejected(self, engine, store, alice):
        engine.deposit(alice, "9" * 25)
        before = cash(store, alice)

        with pytest.raises(InvalidAmount):
            engine.deposit(alice, "9" * 26)
        assert cash(store, alice) == before

    def test_deposit_then_withdraw_restores_balance(self, engine, store, alice):
        engine.deposit(alice, 100)
        engine.withdraw(alice, 100, 1234)
        assert cash(store, alice) == Decimal("1000.00")


class TestWithdraw:
    """Tests for withdrawals."""

    def test_withdraw_removes_cash(self, engine, store, alice):
        receipt = engine.withdraw(alice, "300", 1234)
        assert receipt.amount == Decimal("300.00")
        assert cash(store, alice) == Decimal("700.00")

    def test_withdraw_entire_balance(self, engine, store, alice):
        engine.withdraw(alice, "1000.00", 1234)
        assert cash(store, alice) == Decimal("0.00")

    def test_amount_checked_before_funds_and_pin(self, engine, alice):
        with pytest.raises(InvalidAmount):
            engine.withdraw(alice, 0, 9999)

    def test_funds_checked_before_pin(self, engine, alice):
        with pytest.raises(InsufficientFunds):
            engine.withdraw(alice, "1000.01", 9999)

    def test_wrong_pin(self, engine, store, alice, account_storage):
        writes = account_storage.save_count
        with pytest.raises(InvalidPIN):
            engine.withdraw(alice, 100, 4321)
        assert cash(store, alice) == Decimal("1000.00")
        assert account_storage.save_count == writes


class TestPurchaseAsset:
    """Tests for asset purchases."""

    def test_purchase_gold(self, engine, store, alice):
        receipt = engine.purchase_asset(alice, AssetKind.GOLD, 1234)

        account = store.get(alice)
        expected_units = Decimal("100.00") / Decimal("60.00")
        assert account.cash_balance == Decimal("900.00")
        assert account.asset_holdings[AssetKind.GOLD] == expected_units
        assert receipt.units == expected_units
        assert receipt.price == Decimal("60.00")
        assert receipt.instrument == "gold"

    def test_purchase_uses_current_price(self, engine, store, price_feed, alice):
        price_feed.advance()
        price = price_feed.current_price(AssetKind.CRYPTO)

        engine.purchase_asset(alice, "crypto", 1234)
        assert store.get(alice).asset_holdings[AssetKind.CRYPTO] == Decimal("100.00") / price

    def test_purchases_accumulate(self, engine, store, alice):
        engine.purchase_asset(alice, AssetKind.SILVER, 1234)
        engine.purchase_asset(alice, AssetKind.SILVER, 1234)
        account = store.get(alice)
        assert account.asset_holdings[AssetKind.SILVER] == Decimal("8")
        assert account.cash_balance == Decimal("800.00")

    def test_invalid_asset_refunds_and_writes_nothing(self, engine, store, alice, account_storage):
        writes = account_storage.save_count
        with pytest.raises(InvalidInput):
            engine.purchase_asset(alice, "platinum", 1234)
        assert cash(store, alice) == Decimal("1000.00")
        assert account_storage.save_count == writes

    def test_insufficient_funds_checked_before_pin(self, engine, alice):
        engine.withdraw(alice, "950", 1234)
        with pytest.raises(InsufficientFunds):
            engine.purchase_asset(alice, AssetKind.GOLD, 9999)

    def test_wrong_pin(self, engine, store, alice):
        with pytest.raises(InvalidPIN):
            engine.purchase_asset(alice, AssetKind.GOLD, 4321)
        assert store.get(alice).asset_holdings[AssetKind.GOLD] == Decimal("0")


class TestLoans:
    """Tests for taking and repaying the fixed loan."""

    def test_take_loan(self, engine, store, alice):
        receipt = engine.take_loan(alice, 1234, confirmed=True)

        account = store.get(alice)
        assert receipt.amount == Decimal("500.00")
        assert account.loan_outstanding == Decimal("500.00")
        assert account.cash_balance == Decimal("1500.00")

    def test_declined_loan_is_cancelled(self, engine, store, alice, account_storage):
        writes = account_storage.save_count
        receipt = engine.take_loan(alice, 1234, confirmed=False)

        assert receipt.status == TransactionStatus.CANCELLED
        assert receipt.succeeded is False
        assert store.get(alice).loan_outstanding == Decimal("0")
        assert account_storage.save_count == writes

    def test_one_loan_at_a_time(self, engine, store, alice):
        engine.take_loan(alice, 1234, confirmed=True)
        with pytest.raises(LoanAlreadyActive):
            engine.take_loan(alice, 1234, confirmed=True)
        assert cash(store, alice) == Decimal("1500.00")

    def test_pin_checked_before_loan_state(self, engine, alice):
        engine.take_loan(alice, 1234, confirmed=True)
        with pytest.raises(InvalidPIN):
            engine.take_loan(alice, 4321, confirmed=True)

    def test_repay_loan(self, engine, store, alice):
        engine.take_loan(alice, 1234, confirmed=True)
        receipt = engine.repay_loan(alice, 1234, confirmed=True)

        account = store.get(alice)
        assert receipt.status == TransactionStatus.COMPLETED
        assert account.loan_outstanding == Decimal("0")
        assert account.cash_balance == Decimal("1000.00")

    def test_repay_without_loan(self, engine, alice):
        with pytest.raises(NoActiveLoan):
            engine.repay_loan(alice, 1234, confirmed=True)

    def test_no_active_loan_is_invalid_input(self, engine, alice):
        with pytest.raises(InvalidInput):
            engine.repay_loan(alice, 1234, confirmed=True)

    def test_repay_with_insufficient_cash_is_declined(self, engine, store, alice):
        engine.take_loan(alice, 1234, confirmed=True)
        engine.withdraw(alice, "1200", 1234)

        receipt = engine.repay_loan(alice, 1234, confirmed=True)

        assert receipt.status == TransactionStatus.DECLINED
        account = store.get(alice)
        assert account.cash_balance == Decimal("300.00")
        assert account.loan_outstanding == Decimal("500.00")

    def test_declined_repayment_is_cancelled(self, engine, store, alice):
        engine.take_loan(alice, 1234, confirmed=True)
        receipt = engine.repay_loan(alice, 1234, confirmed=False)

        assert receipt.status == TransactionStatus.CANCELLED
        assert store.get(alice).loan_outstanding == Decimal("500.00")

    def test_repay_wrong_pin(self, engine, alice):
        engine.take_loan(alice, 1234, confirmed=True)
        with pytest.raises(InvalidPIN):
            engine.repay_loan(alice, 4321, confirmed=True)

    def test_loan_status(self, engine, alice):
        status = engine.loan_status(alice)
        assert status.has_loan is False
        assert status.loan_amount_offered == Decimal("500.00")

        engine.take_loan(alice, 1234, confirmed=True)
        status = engine.loan_status(alice)
        assert status.has_loan is True
        assert status.can_repay is True


class TestInterest:
    """Tests for interest accrual."""

    def test_accrue_interest(self, engine, store, alice):
        receipt = engine.accrue_interest(alice)
        assert receipt.amount == Decimal("50.00")
        assert cash(store, alice) == Decimal("1050.00")

    def test_interest_compounds(self, engine, store, alice):
        engine.accrue_interest(alice)
        engine.accrue_interest(alice)
        assert cash(store, alice) == Decimal("1102.50")

    def test_interest_on_zero_balance(self, engine, store, alice):
        engine.withdraw(alice, "1000", 1234)
        receipt = engine.accrue_interest(alice)
        assert receipt.amount == Decimal("0.00")
        assert cash(store, alice) == Decimal("0.00")


class TestForex:
    """Tests for the foreign currency wallet."""

    def test_buy_euros(self, engine, store, alice):
        receipt = engine.convert_to_foreign(alice, CurrencyKind.EUR, "110")

        account = store.get(alice)
        assert account.cash_balance == Decimal("890.00")
        assert account.currency_holdings[CurrencyKind.EUR] == Decimal("100")
        assert receipt.units == Decimal("100")
        assert receipt.price == Decimal("1.10")

    def test_buy_rupees(self, engine, store, alice):
        engine.convert_to_foreign(alice, "INR", "12")
        assert store.get(alice).currency_holdings[CurrencyKind.INR] == Decimal("1000")

    def test_sell_euros(self, engine, store, alice):
        engine.convert_to_foreign(alice, CurrencyKind.EUR, "110")
        receipt = engine.convert_from_foreign(alice, CurrencyKind.EUR, "40")

        account = store.get(alice)
        assert receipt.amount == Decimal("44.00")
        assert account.cash_balance == Decimal("934.00")
        assert account.currency_holdings[CurrencyKind.EUR] == Decimal("60")

    def test_round_trip_is_value_neutral(self, engine, store, alice):
        buy = engine.convert_to_foreign(alice, CurrencyKind.EUR, "50")
        engine.convert_from_foreign(alice, CurrencyKind.EUR, buy.units)

        account = store.get(alice)
        assert account.cash_balance == Decimal("1000.00")
        assert account.currency_holdings[CurrencyKind.EUR] == Decimal("0")

    def test_buy_more_than_cash(self, engine, store, alice):
        with pytest.raises(InsufficientFunds):
            engine.convert_to_foreign(alice, CurrencyKind.GBP, "1000.01")
        assert cash(store, alice) == Decimal("1000.00")

    @pytest.mark.parametrize("amount", ["0", "-5"])
    def test_buy_non_positive(self, engine, alice, amount):
        with pytest.raises(InvalidAmount):
            engine.convert_to_foreign(alice, CurrencyKind.GBP, amount)

    def test_buy_unknown_currency(self, engine, store, alice):
        with pytest.raises(InvalidInput):
            engine.convert_to_foreign(alice, "JPY", "10")
        assert cash(store, alice) == Decimal("1000.00")

    def test_sell_more_than_held(self, engine, alice):
        engine.convert_to_foreign(alice, CurrencyKind.EUR, "110")
        with pytest.raises(InsufficientFunds):
            engine.convert_from_foreign(alice, CurrencyKind.EUR, "100.01")

    def test_sell_zero(self, engine, alice):
        with pytest.raises(InvalidAmount):
            engine.convert_from_foreign(alice, CurrencyKind.EUR, "0")

    def test_conversion_uses_current_rate(self, engine, store, price_feed, alice):
        price_feed.set_rate(CurrencyKind.GBP, "1.25")
        engine.convert_to_foreign(alice, CurrencyKind.GBP, "125")
        assert store.get(alice).currency_holdings[CurrencyKind.GBP] == Decimal("100")


class TestReporting:
    """Tests for net worth and statements."""

    def test_fresh_account_net_worth(self, engine, alice):
        assert engine.net_worth(alice) == Decimal("1000.00")

    def test_purchases_and_conversions_keep_net_worth(self, engine, alice):
        engine.purchase_asset(alice, AssetKind.GOLD, 1234)
        engine.convert_to_foreign(alice, CurrencyKind.EUR, "110")
        assert engine.net_worth(alice) == Decimal("1000.00")

    def test_loan_is_subtracted(self, engine, alice):
        engine.take_loan(alice, 1234, confirmed=True)
        assert engine.net_worth(alice) == Decimal("1000.00")

    def test_net_worth_follows_market(self, engine, price_feed, alice):
        engine.purchase_asset(alice, AssetKind.SILVER, 1234)
        price_feed.advance()

        units = Decimal("4")
        price = price_feed.current_price(AssetKind.SILVER)
        expected = (Decimal("900.00") + units * price).quantize(Decimal("0.01"))
        assert engine.net_worth(alice) == expected

    def test_statement(self, engine, alice):
        engine.purchase_asset(alice, AssetKind.SILVER, 1234)
        engine.convert_to_foreign(alice, CurrencyKind.GBP, "127")
        engine.take_loan(alice, 1234, confirmed=True)

        statement = engine.statement(alice)

        assert statement.account_name == "alice"
        assert statement.cash_balance == Decimal("1273.00")
        assert statement.loan_outstanding == Decimal("500.00")
        assert [line.instrument for line in statement.assets] == ["crypto", "gold", "silver"]
        assert [line.instrument for line in statement.currencies] == ["EUR", "GBP", "INR"]
        silver = statement.assets[2]
        assert silver.units == Decimal("4")
        assert silver.value == Decimal("100.00")
        assert statement.total_assets == Decimal("100.00")
        assert statement.total_forex == Decimal("127.00")
        assert statement.net_worth == Decimal("1000.00")


class TestFailureSafety:
    """A failed operation changes nothing, in memory or on disk."""

    def test_failed_write_rolls_back_deposit(self, engine, store, alice, account_storage):
        account_storage.fail = True
        with pytest.raises(StorageError):
            engine.deposit(alice, 100)

        account_storage.fail = False
        assert cash(store, alice) == Decimal("1000.00")
        assert account_storage.load()[0].cash_balance == Decimal("1000.00")

    def test_failed_write_rolls_back_loan(self, engine, store, alice, account_storage):
        account_storage.fail = True
        with pytest.raises(StorageError):
            engine.take_loan(alice, 1234, confirmed=True)
        assert store.get(alice).loan_outstanding == Decimal("0")

    def test_unknown_handle(self, engine):
        with pytest.raises(InvalidInput):
            engine.deposit("nobody", 10)


class TestAuditTrail:
    """Every success and every rejection is recorded."""

    def test_success_is_audited(self, engine, alice, audit_storage):
        engine.deposit(alice, 10)
        event = audit_storage.get_recent_events(1)[0]
        assert event.event_type == AuditEventType.DEPOSIT
        assert event.account_name == "alice"
        assert event.amount == Decimal("10.00")

    def test_rejection_is_audited(self, engine, alice, audit_storage):
        with pytest.raises(InsufficientFunds):
            engine.withdraw(alice, 5000, 1234)

        event = audit_storage.get_recent_events(1)[0]
        assert event.event_type == AuditEventType.OPERATION_REJECTED
        assert event.severity == AuditSeverity.WARNING
        assert event.error_code == "insufficient_funds"
        assert event.details["operation"] == "withdraw"

    def test_declined_repayment_is_audited(self, engine, alice, audit_storage):
        engine.take_loan(alice, 1234, confirmed=True)
        engine.withdraw(alice, "1200", 1234)
        engine.repay_loan(alice, 1234, confirmed=True)

        event = audit_storage.get_recent_events(1)[0]
        assert event.event_type == AuditEventType.LOAN_REPAYMENT_DECLINED
