"""
Input Rules for the Ledger Boundary

DESIGN DECISION: Drivers parse console/web input, but the core never
trusts them. Every name, PIN and amount that reaches the store or the
engine is checked again here.

Money handling:
- All monetary values are Decimal, never float.
- Cash amounts (balances, loans, deposits) are kept at cent precision
  with banker's rounding.
- Unit quantities (asset units, foreign currency units) keep full
  Decimal precision so value-neutral conversions stay neutral.

IMPORTANT: Validation NEVER silently fixes values.
Out-of-range input is rejected, not clamped.
"""

from decimal import ROUND_HALF_EVEN, Context, Decimal, InvalidOperation

from pocketbank.errors import InvalidAmount, InvalidInput

# Banker's rounding for every ledger calculation.
MONEY_CONTEXT = Context(prec=28, rounding=ROUND_HALF_EVEN)

CENT = Decimal("0.01")
ZERO = Decimal("0")

MIN_PIN = 1000
MAX_PIN = 9999


def _to_decimal(value) -> Decimal:
    """Convert int/float/str/Decimal to Decimal, rejecting NaN and infinities."""
    if isinstance(value, bool):
        raise InvalidAmount(f"Not a monetary value: {value!r}")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidAmount(f"Not a number: {value!r}")
    if not amount.is_finite():
        raise InvalidAmount(f"Amount must be finite, got {value!r}")
    return amount


def as_money(value) -> Decimal:
    """
    Normalize any numeric input to a Decimal with 2 fractional digits.

    Values with more integer digits than the money context can hold at
    cent precision are rejected as InvalidAmount.
    """
    amount = _to_decimal(value)
    try:
        return amount.quantize(CENT, rounding=ROUND_HALF_EVEN, context=MONEY_CONTEXT)
    except InvalidOperation:
        raise InvalidAmount(f"Amount is too large: {value!r}")


def as_quantity(value) -> Decimal:
    """Normalize a unit quantity (asset or currency units) to Decimal."""
    return _to_decimal(value)


def validate_positive_amount(value) -> Decimal:
    """
    Validate a cash amount for deposit/withdraw/convert.

    Rules:
    - Must be a finite number
    - Must be >= 0.01 once rounded to cents

    Returns the normalized amount.
    """
    amount = as_money(value)
    if amount <= ZERO:
        raise InvalidAmount(f"Amount must be greater than zero, got {value!r}")
    return amount


def validate_positive_quantity(value) -> Decimal:
    """Validate a unit quantity that must be strictly positive."""
    quantity = as_quantity(value)
    if quantity <= ZERO:
        raise InvalidAmount(f"Quantity must be greater than zero, got {value!r}")
    return quantity


def validate_pin(pin) -> int:
    """PIN must be an integer in [1000, 9999]."""
    if isinstance(pin, bool):
        raise InvalidInput("PIN must be a 4-digit number")
    if isinstance(pin, str):
        pin = pin.strip()
        if not pin.isdigit():
            raise InvalidInput("PIN must be a 4-digit number")
        pin = int(pin)
    if not isinstance(pin, int):
        raise InvalidInput("PIN must be a 4-digit number")
    if not MIN_PIN <= pin <= MAX_PIN:
        raise InvalidInput(f"PIN must be between {MIN_PIN} and {MAX_PIN}")
    return pin


def validate_name(name, max_length: int) -> str:
    """Account names are non-empty, alphabetic only, and bounded in length."""
    if not isinstance(name, str) or not name:
        raise InvalidInput("Name is required")
    if not name.isascii() or not name.isalpha():
        raise InvalidInput("Name must contain only alphabetic characters")
    if len(name) > max_length:
        raise InvalidInput(f"Name must be at most {max_length} characters")
    return name
