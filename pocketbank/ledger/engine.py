"""
Ledger Engine

Every operation that changes an account's money or holdings.

FLOW for each mutation:
1. Normalize and validate the primitive inputs
2. Take a working copy of the account from the store
3. Check preconditions (funds, PIN, loan state) against the copy
4. Apply the change to the copy
5. Commit the copy (persisted before we return)
6. Audit, and hand back a receipt

CRITICAL: A check that fails raises BEFORE anything is committed.
The stored account and the snapshot are untouched by a failed operation.

PIN re-verification is a second check, distinct from login, required
before withdraw, asset purchase, taking a loan and repaying a loan.
"""

from contextlib import contextmanager
from decimal import Decimal
from typing import Iterator, Optional, Union

from pocketbank.audit import AuditLogger
from pocketbank.config import LedgerSettings
from pocketbank.errors import (
    InsufficientFunds,
    InvalidInput,
    InvalidPIN,
    LedgerError,
    LoanAlreadyActive,
    NoActiveLoan,
)
from pocketbank.ledger.store import AccountStore
from pocketbank.models.account import (
    Account,
    AccountHandle,
    AccountStatement,
    HoldingLine,
    LoanStatus,
    OperationType,
    TransactionReceipt,
    TransactionStatus,
)
from pocketbank.models.audit import AuditEventType
from pocketbank.models.market import AssetKind, CurrencyKind
from pocketbank.services.market import PriceFeed, resolve_asset, resolve_currency
from pocketbank.validation.validator import (
    ZERO,
    as_money,
    validate_pin,
    validate_positive_amount,
    validate_positive_quantity,
)


class LedgerEngine:
    """
    Applies ledger operations to accounts held by an AccountStore.

    Prices and rates are read from the PriceFeed at the moment of each
    operation; the engine never moves the market.
    """

    def __init__(
        self,
        store: AccountStore,
        price_feed: PriceFeed,
        settings: Optional[LedgerSettings] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._feed = price_feed
        self._settings = settings or store.settings
        self._audit = audit_logger

    @property
    def store(self) -> AccountStore:
        return self._store

    @property
    def price_feed(self) -> PriceFeed:
        return self._feed

    # =========================================================================
    # CASH
    # =========================================================================

    def deposit(self, handle: AccountHandle, amount) -> TransactionReceipt:
        """Add cash. The amount must be strictly positive."""
        with self._rejections_audited(handle, OperationType.DEPOSIT):
            amount = validate_positive_amount(amount)
            account = self._store.get(handle)
            account.cash_balance = as_money(account.cash_balance + amount)
            account = self._store.commit(account)

        message = f"Deposited {self._fmt(amount)}"
        self._record(AuditEventType.DEPOSIT, account, amount, message)
        return self._receipt(account, OperationType.DEPOSIT, amount=amount, message=message)

    def withdraw(self, handle: AccountHandle, amount, pin) -> TransactionReceipt:
        """
        Take cash out.

        Checked in order: amount is positive (InvalidAmount), amount is
        covered by cash (InsufficientFunds), PIN matches (InvalidPIN).
        """
        with self._rejections_audited(handle, OperationType.WITHDRAW):
            amount = validate_positive_amount(amount)
            account = self._store.get(handle)
            if amount > account.cash_balance:
                raise InsufficientFunds(
                    f"Cannot withdraw {self._fmt(amount)}; balance is "
                    f"{self._fmt(account.cash_balance)}"
                )
            self._verify_pin(account, pin)

            account.cash_balance = as_money(account.cash_balance - amount)
            account = self._store.commit(account)

        message = f"Withdrew {self._fmt(amount)}"
        self._record(AuditEventType.WITHDRAWAL, account, amount, message)
        return self._receipt(account, OperationType.WITHDRAW, amount=amount, message=message)

    def accrue_interest(self, handle: AccountHandle) -> TransactionReceipt:
        """Credit one period of interest on the cash balance."""
        with self._rejections_audited(handle, OperationType.ACCRUE_INTEREST):
            account = self._store.get(handle)
            interest = as_money(account.cash_balance * self._settings.interest_rate)
            account.cash_balance = as_money(account.cash_balance + interest)
            account = self._store.commit(account)

        message = (
            f"Interest of {self._fmt(interest)} "
            f"({self._settings.interest_rate * 100:.2f}%) credited"
        )
        self._record(
            AuditEventType.INTEREST_ACCRUED, account, interest, message,
            {"rate": str(self._settings.interest_rate)},
        )
        return self._receipt(
            account,
            OperationType.ACCRUE_INTEREST,
            amount=interest,
            price=self._settings.interest_rate,
            message=message,
        )

    # =========================================================================
    # INVESTMENTS
    # =========================================================================

    def purchase_asset(
        self,
        handle: AccountHandle,
        kind: Union[AssetKind, str],
        pin,
    ) -> TransactionReceipt:
        """
        Spend the fixed purchase amount on one asset at its current price.

        The asset choice is only looked at after the tentative debit, the
        same way the console flow asks for it. An unknown asset refunds
        the debit and raises InvalidInput; nothing is committed.
        """
        with self._rejections_audited(handle, OperationType.PURCHASE_ASSET):
            spend = as_money(self._settings.asset_purchase_amount)
            account = self._store.get(handle)
            if account.cash_balance < spend:
                raise InsufficientFunds(
                    f"Asset purchases cost {self._fmt(spend)}; balance is "
                    f"{self._fmt(account.cash_balance)}"
                )
            self._verify_pin(account, pin)

            account.cash_balance = as_money(account.cash_balance - spend)
            try:
                asset = resolve_asset(kind)
            except InvalidInput:
                # refund; the working copy is discarded
                account.cash_balance = as_money(account.cash_balance + spend)
                raise

            price = self._feed.current_price(asset)
            units = spend / price
            account.asset_holdings[asset] += units
            account = self._store.commit(account)

        message = f"Bought {units:.4f} {asset.value} at {self._fmt(price)}"
        self._record(
            AuditEventType.ASSET_PURCHASED, account, spend, message,
            {"asset": asset.value, "units": str(units), "price": str(price)},
        )
        return self._receipt(
            account,
            OperationType.PURCHASE_ASSET,
            amount=spend,
            units=units,
            instrument=asset.value,
            price=price,
            message=message,
        )

    # =========================================================================
    # LOANS
    # =========================================================================

    def loan_status(self, handle: AccountHandle) -> LoanStatus:
        account = self._store.get(handle)
        return LoanStatus(
            account_name=account.name,
            loan_outstanding=account.loan_outstanding,
            cash_balance=account.cash_balance,
            loan_amount_offered=as_money(self._settings.loan_amount),
        )

    def take_loan(self, handle: AccountHandle, pin, confirmed: bool) -> TransactionReceipt:
        """
        Take the fixed-size loan.

        PIN first, then the one-loan-at-a-time rule. Declining the
        confirmation returns a CANCELLED receipt and changes nothing.
        """
        with self._rejections_audited(handle, OperationType.TAKE_LOAN):
            account = self._store.get(handle)
            self._verify_pin(account, pin)
            if account.has_loan:
                raise LoanAlreadyActive(
                    f"Outstanding loan of {self._fmt(account.loan_outstanding)} must be repaid first"
                )

            loan = as_money(self._settings.loan_amount)
            if not confirmed:
                message = "Loan request cancelled"
                self._record(AuditEventType.LOAN_REQUEST_CANCELLED, account, None, message)
                return self._receipt(
                    account, OperationType.TAKE_LOAN,
                    status=TransactionStatus.CANCELLED, message=message,
                )

            account.loan_outstanding = loan
            account.cash_balance = as_money(account.cash_balance + loan)
            account = self._store.commit(account)

        message = f"Loan of {self._fmt(loan)} approved"
        self._record(AuditEventType.LOAN_TAKEN, account, loan, message)
        return self._receipt(account, OperationType.TAKE_LOAN, amount=loan, message=message)

    def repay_loan(self, handle: AccountHandle, pin, confirmed: bool) -> TransactionReceipt:
        """
        Repay the whole outstanding loan from cash.

        Not enough cash is not an error: a DECLINED receipt says so.
        Declining the confirmation returns a CANCELLED receipt.
        """
        with self._rejections_audited(handle, OperationType.REPAY_LOAN):
            account = self._store.get(handle)
            self._verify_pin(account, pin)
            if not account.has_loan:
                raise NoActiveLoan("You have no outstanding loan")

            loan = account.loan_outstanding
            if account.cash_balance < loan:
                message = "Insufficient funds to repay loan"
                self._record(AuditEventType.LOAN_REPAYMENT_DECLINED, account, loan, message)
                return self._receipt(
                    account, OperationType.REPAY_LOAN,
                    status=TransactionStatus.DECLINED, amount=loan, message=message,
                )

            if not confirmed:
                message = "Loan repayment cancelled"
                return self._receipt(
                    account, OperationType.REPAY_LOAN,
                    status=TransactionStatus.CANCELLED, amount=loan, message=message,
                )

            account.cash_balance = as_money(account.cash_balance - loan)
            account.loan_outstanding = ZERO
            account = self._store.commit(account)

        message = f"Loan of {self._fmt(loan)} fully repaid"
        self._record(AuditEventType.LOAN_REPAID, account, loan, message)
        return self._receipt(account, OperationType.REPAY_LOAN, amount=loan, message=message)

    # =========================================================================
    # FOREX
    # =========================================================================

    def convert_to_foreign(
        self,
        handle: AccountHandle,
        currency: Union[CurrencyKind, str],
        usd_amount,
    ) -> TransactionReceipt:
        """Buy foreign currency: units credited = usd / rate."""
        with self._rejections_audited(handle, OperationType.CONVERT_TO_FOREIGN):
            currency = resolve_currency(currency)
            usd_amount = validate_positive_amount(usd_amount)
            account = self._store.get(handle)
            if usd_amount > account.cash_balance:
                raise InsufficientFunds(
                    f"Cannot convert {self._fmt(usd_amount)}; balance is "
                    f"{self._fmt(account.cash_balance)}"
                )

            rate = self._feed.current_rate(currency)
            units = usd_amount / rate
            account.cash_balance = as_money(account.cash_balance - usd_amount)
            account.currency_holdings[currency] += units
            account = self._store.commit(account)

        message = f"Converted {self._fmt(usd_amount)} to {units:.2f} {currency.value}"
        self._record(
            AuditEventType.CURRENCY_BOUGHT, account, usd_amount, message,
            {"currency": currency.value, "units": str(units), "rate": str(rate)},
        )
        return self._receipt(
            account,
            OperationType.CONVERT_TO_FOREIGN,
            amount=usd_amount,
            units=units,
            instrument=currency.value,
            price=rate,
            message=message,
        )

    def convert_from_foreign(
        self,
        handle: AccountHandle,
        currency: Union[CurrencyKind, str],
        foreign_amount,
    ) -> TransactionReceipt:
        """Sell foreign currency: cash credited = units * rate."""
        with self._rejections_audited(handle, OperationType.CONVERT_FROM_FOREIGN):
            currency = resolve_currency(currency)
            units = validate_positive_quantity(foreign_amount)
            account = self._store.get(handle)
            held = account.currency_holdings[currency]
            if units > held:
                raise InsufficientFunds(
                    f"Cannot sell {units} {currency.value}; holding {held:.2f}"
                )

            rate = self._feed.current_rate(currency)
            usd_amount = as_money(units * rate)
            account.currency_holdings[currency] = held - units
            account.cash_balance = as_money(account.cash_balance + usd_amount)
            account = self._store.commit(account)

        message = f"Converted {units:.2f} {currency.value} to {self._fmt(usd_amount)}"
        self._record(
            AuditEventType.CURRENCY_SOLD, account, usd_amount, message,
            {"currency": currency.value, "units": str(units), "rate": str(rate)},
        )
        return self._receipt(
            account,
            OperationType.CONVERT_FROM_FOREIGN,
            amount=usd_amount,
            units=units,
            instrument=currency.value,
            price=rate,
            message=message,
        )

    # =========================================================================
    # REPORTING
    # =========================================================================

    def statement(self, handle: AccountHandle) -> AccountStatement:
        """Holdings valued at current prices and rates."""
        account = self._store.get(handle)

        assets = []
        total_assets = ZERO
        for asset, units in account.asset_holdings.items():
            price = self._feed.current_price(asset)
            value = units * price
            total_assets += value
            assets.append(
                HoldingLine(
                    instrument=asset.value,
                    units=units,
                    unit_value=price,
                    value=as_money(value),
                )
            )

        currencies = []
        total_forex = ZERO
        for currency, units in account.currency_holdings.items():
            rate = self._feed.current_rate(currency)
            value = units * rate
            total_forex += value
            currencies.append(
                HoldingLine(
                    instrument=currency.value,
                    units=units,
                    unit_value=rate,
                    value=as_money(value),
                )
            )

        net_worth = (
            account.cash_balance + total_assets + total_forex - account.loan_outstanding
        )

        return AccountStatement(
            account_name=account.name,
            cash_balance=account.cash_balance,
            loan_outstanding=account.loan_outstanding,
            assets=assets,
            currencies=currencies,
            total_assets=as_money(total_assets),
            total_forex=as_money(total_forex),
            net_worth=as_money(net_worth),
        )

    def net_worth(self, handle: AccountHandle) -> Decimal:
        """cash + asset value + forex value - loan, at current prices."""
        return self.statement(handle).net_worth

    # =========================================================================
    # HELPERS
    # =========================================================================

    @contextmanager
    def _rejections_audited(
        self,
        handle: AccountHandle,
        operation: OperationType,
    ) -> Iterator[None]:
        try:
            yield
        except LedgerError as e:
            if self._audit:
                self._audit.log_rejected(str(handle), operation.value, e)
            raise

    @staticmethod
    def _verify_pin(account: Account, pin) -> None:
        try:
            pin = validate_pin(pin)
        except InvalidInput:
            raise InvalidPIN("Invalid PIN")
        if pin != account.pin:
            raise InvalidPIN("Invalid PIN")

    def _record(
        self,
        event_type: AuditEventType,
        account: Account,
        amount: Optional[Decimal],
        description: str,
        details: Optional[dict] = None,
    ) -> None:
        if self._audit:
            self._audit.log_operation(event_type, account.name, amount, description, details)

    def _fmt(self, amount: Decimal) -> str:
        return f"{self._settings.currency_symbol}{amount:,.2f}"

    @staticmethod
    def _receipt(
        account: Account,
        operation: OperationType,
        status: TransactionStatus = TransactionStatus.COMPLETED,
        **fields,
    ) -> TransactionReceipt:
        return TransactionReceipt(
            account_name=account.name,
            operation=operation,
            status=status,
            cash_balance=account.cash_balance,
            loan_outstanding=account.loan_outstanding,
            **fields,
        )
