"""Input validation package."""

from pocketbank.validation.validator import (
    MAX_PIN,
    MIN_PIN,
    as_money,
    as_quantity,
    validate_name,
    validate_pin,
    validate_positive_amount,
    validate_positive_quantity,
)

__all__ = [
    "MAX_PIN",
    "MIN_PIN",
    "as_money",
    "as_quantity",
    "validate_name",
    "validate_pin",
    "validate_positive_amount",
    "validate_positive_quantity",
]
