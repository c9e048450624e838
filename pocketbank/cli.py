"""
Console Driver

Menu-driven terminal front-end:

    Main menu:    1. Create Account  2. Login  3. Exit
    Account menu: 1. Cash Transaction  2. Purchase Assets  3. Loan Management
                  4. Account Status    5. View Market Prices  6. Update Market
                  7. Add Interest      8. Forex Wallet        9. Logout

The driver only parses input and renders results. Every rule lives in
the ledger; every LedgerError is shown as "[ERROR] ..." and the menu
carries on.

Run with:
    pocket-bank --data-file accounts.json --seed 42
"""

import argparse
import sys
from decimal import Decimal
from typing import Callable, Optional

from pocketbank import __version__
from pocketbank.audit import configure_logging
from pocketbank.config import get_settings
from pocketbank.errors import InvalidInput, LedgerError, StorageError
from pocketbank.models.account import (
    AccountStatement,
    TransactionReceipt,
    TransactionStatus,
)
from pocketbank.models.market import AssetKind, CurrencyKind, MarketUpdate
from pocketbank.orchestrator import AppComponents, create_app_components

ASSET_MENU = {
    1: (AssetKind.CRYPTO, "Cryptocurrency"),
    2: (AssetKind.GOLD, "Gold"),
    3: (AssetKind.SILVER, "Silver"),
}

CURRENCY_MENU = {
    1: CurrencyKind.EUR,
    2: CurrencyKind.GBP,
    3: CurrencyKind.INR,
}

BOX_WIDTH = 40


def _box(title: str, lines: list[str]) -> str:
    """Render a simple framed panel."""
    border = "=" * BOX_WIDTH
    body = "\n".join(f"  {line}" for line in lines)
    return f"\n{border}\n{title.center(BOX_WIDTH)}\n{border}\n{body}\n{border}"


class ConsoleApp:
    """
    Interactive console session.

    input_func/output_func default to input()/print() and are swapped
    out in tests.
    """

    def __init__(
        self,
        components: AppComponents,
        input_func: Callable[[str], str] = input,
        output_func: Callable[[str], None] = print,
    ):
        self._c = components
        self._input = input_func
        self._out = output_func
        self._symbol = components.store.settings.currency_symbol

    # =========================================================================
    # ENTRY
    # =========================================================================

    def run(self) -> None:
        self._out(_box("POCKET BANK", [f"Version {__version__}"]))
        self._out(f"\n[INFO] Loaded {len(self._c.store)} existing account(s).")

        try:
            while True:
                if self._c.session.is_authenticated:
                    self._account_menu()
                elif not self._main_menu():
                    break
        except (EOFError, KeyboardInterrupt):
            self._out("")

        self._out("\n[INFO] Thank you for using Pocket Bank. Goodbye!")

    def _main_menu(self) -> bool:
        """Returns False when the user chose to exit."""
        self._out(_box("MAIN MENU", ["1. Create Account", "2. Login", "3. Exit"]))
        choice = self._read_int("Choice: ")
        if choice == 1:
            self.create_account()
        elif choice == 2:
            self.login()
        elif choice == 3:
            return False
        else:
            self._error("Invalid input provided.")
        return True

    def _account_menu(self) -> None:
        self._out(_box("ACCOUNT OPERATIONS", [
            "1. Cash Transaction (Deposit/Withdraw)",
            "2. Purchase Assets",
            "3. Loan Management",
            "4. Account Status",
            "5. View Market Prices",
            "6. Update Market",
            "7. Add Interest",
            "8. Forex Wallet",
            "9. Logout",
        ]))
        actions = {
            1: self.cash_transaction,
            2: self.purchase_asset,
            3: self.manage_loan,
            4: self.account_status,
            5: self.market_prices,
            6: self.update_market,
            7: self.add_interest,
            8: self.forex_wallet,
            9: self.logout,
        }
        action = actions.get(self._read_int("Choice: "))
        if action is None:
            self._error("Invalid input provided.")
            return
        try:
            action()
        except LedgerError as e:
            self._error(str(e))

    # =========================================================================
    # MAIN MENU ACTIONS
    # =========================================================================

    def create_account(self) -> None:
        self._out("\n=== CREATE ACCOUNT ===")
        name = self._input("Enter name (letters only): ").strip()
        pin = self._input("Set 4-digit PIN (1000-9999): ").strip()
        try:
            handle = self._c.store.register(name, pin)
        except LedgerError as e:
            self._error(str(e))
            return
        account = self._c.store.get(handle)
        self._out(f"\n[SUCCESS] Account created for {handle}")
        self._out(f"Starting balance: {self._money(account.cash_balance)}")

    def login(self) -> None:
        self._out("\n=== LOGIN ===")
        name = self._input("Name: ").strip()
        pin = self._input("PIN: ").strip()
        try:
            handle = self._c.session.login(name, pin)
        except LedgerError as e:
            self._error(str(e))
            return
        self._out(f"\n[SUCCESS] Welcome back, {handle}!")

    # =========================================================================
    # ACCOUNT MENU ACTIONS
    # =========================================================================

    def cash_transaction(self) -> None:
        handle = self._c.session.require()
        self._out("\n=== CASH TRANSACTION ===\n1. Deposit\n2. Withdraw")
        choice = self._read_int("Choice: ")
        if choice not in (1, 2):
            raise InvalidInput("Invalid input provided.")
        amount = self._input(f"Enter amount: {self._symbol}").strip()

        if choice == 1:
            receipt = self._c.engine.deposit(handle, amount)
        else:
            pin = self._input("Enter PIN to confirm: ").strip()
            receipt = self._c.engine.withdraw(handle, amount, pin)
        self._show_receipt(receipt)

    def purchase_asset(self) -> None:
        handle = self._c.session.require()
        pin = self._input("Enter PIN to confirm: ").strip()
        spend = self._c.store.settings.asset_purchase_amount

        self._out("\n=== PURCHASE ASSET ===")
        self._out(f"Investment amount: {self._money(spend)}\n")
        for number, (kind, label) in ASSET_MENU.items():
            price = self._c.price_feed.current_price(kind)
            self._out(f"{number}. {label:<15}({self._money(price)}/unit)")

        choice = self._read_int("\nChoice: ")
        kind = ASSET_MENU[choice][0] if choice in ASSET_MENU else str(choice)
        receipt = self._c.engine.purchase_asset(handle, kind, pin)
        self._show_receipt(receipt)

    def manage_loan(self) -> None:
        handle = self._c.session.require()
        status = self._c.engine.loan_status(handle)
        pin = self._input("Enter PIN to confirm: ").strip()

        self._out("\n=== LOAN MANAGEMENT ===")
        if not status.has_loan:
            self._out("You have no outstanding loan.")
            confirmed = self._confirm(
                f"Would you like to take a loan of {self._money(status.loan_amount_offered)}?"
            )
            receipt = self._c.engine.take_loan(handle, pin, confirmed)
        else:
            self._out(f"Outstanding loan: {self._money(status.loan_outstanding)}")
            confirmed = status.can_repay and self._confirm("Repay full loan?")
            receipt = self._c.engine.repay_loan(handle, pin, confirmed)
        self._show_receipt(receipt)

    def account_status(self) -> None:
        handle = self._c.session.require()
        self._out(self.render_statement(self._c.engine.statement(handle)))

    def market_prices(self) -> None:
        snapshot = self._c.price_feed.snapshot()
        lines = [
            f"{label:<15} {self._money(snapshot.prices[kind])} per unit"
            for kind, label in ASSET_MENU.values()
        ]
        lines += [
            f"{currency.value:<15} {self._money(snapshot.rates[currency], places=4)} per unit"
            for currency in CURRENCY_MENU.values()
        ]
        self._out(_box("CURRENT MARKET PRICES", lines))

    def update_market(self) -> None:
        update = self._c.price_feed.advance()
        self._c.audit_logger.log_market_update(update)
        self._out(self.render_market_update(update))

    def add_interest(self) -> None:
        handle = self._c.session.require()
        receipt = self._c.engine.accrue_interest(handle)
        self._out("\n=== INTEREST PAYMENT ===")
        self._show_receipt(receipt)

    def forex_wallet(self) -> None:
        handle = self._c.session.require()
        statement = self._c.engine.statement(handle)

        self._out("\n=== FOREX WALLET ===")
        self._out(f"USD Balance: {self._money(statement.cash_balance)}\n")
        for line in statement.currencies:
            self._out(f"{line.instrument}: {line.units:.2f} (~ {self._money(line.value)})")
        self._out(
            "\n1. Convert USD -> EUR\n2. Convert USD -> GBP\n3. Convert USD -> INR\n"
            "4. Convert Foreign Currency -> USD\n5. Back"
        )

        choice = self._read_int("\nChoice: ")
        if choice in CURRENCY_MENU:
            amount = self._input(f"Enter USD amount to convert: {self._symbol}").strip()
            receipt = self._c.engine.convert_to_foreign(handle, CURRENCY_MENU[choice], amount)
        elif choice == 4:
            self._out("\n1. EUR -> USD\n2. GBP -> USD\n3. INR -> USD")
            currency_choice = self._read_int("Choice: ")
            if currency_choice not in CURRENCY_MENU:
                raise InvalidInput("Invalid input provided.")
            amount = self._input("Enter amount to convert: ").strip()
            receipt = self._c.engine.convert_from_foreign(
                handle, CURRENCY_MENU[currency_choice], amount
            )
        elif choice == 5:
            return
        else:
            raise InvalidInput("Invalid input provided.")
        self._show_receipt(receipt)

    def logout(self) -> None:
        handle = self._c.session.require()
        self._c.session.logout()
        self._out(f"\n[INFO] Logged out. Goodbye, {handle}!")

    # =========================================================================
    # RENDERING
    # =========================================================================

    def render_statement(self, statement: AccountStatement) -> str:
        lines = [
            f"Account Holder: {statement.account_name}",
            "",
            "CASH",
            f"  Balance:     {self._money(statement.cash_balance):>16}",
            f"  Loan:       -{self._money(statement.loan_outstanding):>16}",
            "",
            "ASSETS",
        ]
        for line in statement.assets:
            lines.append(
                f"  {line.instrument:<7}{line.units:>10.4f} units {self._money(line.value):>12}"
            )
        lines.append(f"  Total Assets: {self._money(statement.total_assets):>15}")
        lines += ["", "FOREX"]
        for line in statement.currencies:
            lines.append(
                f"  {line.instrument:<7}{line.units:>10.2f} units {self._money(line.value):>12}"
            )
        lines.append(f"  Total Forex:  {self._money(statement.total_forex):>15}")
        lines += ["", f"NET WORTH:      {self._money(statement.net_worth):>15}"]
        return _box("ACCOUNT STATUS REPORT", lines)

    def render_market_update(self, update: MarketUpdate) -> str:
        labels = {kind: label for kind, label in ASSET_MENU.values()}
        lines = [
            f"{labels[change.asset]:<15} {self._money(change.new_price)} "
            f"({change.change_percent:+d}%)"
            for change in update.changes
        ]
        return _box("MARKET UPDATE", lines)

    def _show_receipt(self, receipt: TransactionReceipt) -> None:
        if receipt.status == TransactionStatus.COMPLETED:
            self._out(f"\n[SUCCESS] {receipt.message}")
            self._out(f"New balance: {self._money(receipt.cash_balance)}")
            if receipt.loan_outstanding > 0:
                self._out(f"Outstanding loan: {self._money(receipt.loan_outstanding)}")
        else:
            self._out(f"\n[INFO] {receipt.message}")

    # =========================================================================
    # INPUT HELPERS
    # =========================================================================

    def _read_int(self, prompt: str) -> Optional[int]:
        raw = self._input(prompt).strip()
        try:
            return int(raw)
        except ValueError:
            return None

    def _confirm(self, question: str) -> bool:
        return self._read_int(f"{question} (1=Yes, 0=No): ") == 1

    def _error(self, message: str) -> None:
        self._out(f"\n[ERROR] {message}")

    def _money(self, amount: Decimal, places: int = 2) -> str:
        return f"{self._symbol}{amount:,.{places}f}"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pocket-bank",
        description="Pocket Bank: a personal ledger with investments, loans and a forex wallet",
    )
    parser.add_argument(
        "--data-file",
        default=None,
        help="Path of the JSON account snapshot (default: POCKETBANK_DATA_FILE or accounts.json)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for market updates, for reproducible sessions",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level for the structured log on stderr (default: POCKETBANK_LOG_LEVEL)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    log_settings = get_settings().logging
    if args.log_level:
        log_settings = log_settings.model_copy(update={"level": args.log_level})
    configure_logging(log_settings)

    try:
        components = create_app_components(data_file=args.data_file, seed=args.seed)
    except StorageError as e:
        print(f"[ERROR] Could not load accounts: {e}", file=sys.stderr)
        return 1

    ConsoleApp(components).run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
