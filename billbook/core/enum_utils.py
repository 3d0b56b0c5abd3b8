"""
Enum Utilities for VARCHAR-based Status Fields

STORAGE STANDARD:
━━━━━━━━━━━━━━━━━
• Database: VARCHAR(20) - NOT a native ENUM
• SQLAlchemy: String(20) with Mapped[str]
• Pydantic: Python Enum for API validation
• Case: All enum values stored in UPPERCASE

DATA FLOW:
━━━━━━━━━━
INPUT (API Request):
    "paid" / "Paid" / "PAID" → normalize_to_uppercase() → BillStatus.PAID → "PAID"

OUTPUT (API Response):
    Database "UNPAID" → returned as-is
"""

from enum import Enum
from typing import Any, TypeVar, Type, Set

from billbook.core.exceptions import ValidationError


T = TypeVar('T', bound=Enum)


def enum_values(enum_class: Type[Enum]) -> list:
    """List all values of an enum class."""
    return [e.value for e in enum_class]


def enum_comment(enum_class: Type[Enum]) -> str:
    """
    Generate a comment string for VARCHAR column.

    Examples:
        >>> enum_comment(BillStatus)
        'PAID, UNPAID'
    """
    return ", ".join(enum_values(enum_class))


def parse_enum(value: Any, enum_class: Type[T]) -> T:
    """
    Case-insensitive conversion of request input to an enum member.

    Examples:
        >>> parse_enum("paid", BillStatus)
        <BillStatus.PAID: 'PAID'>

    Raises:
        ValidationError: ``value`` is not one of the enum's values
    """
    if isinstance(value, enum_class):
        return value
    try:
        return enum_class(normalize_to_uppercase(value, set(enum_values(enum_class))))
    except ValueError as e:
        raise ValidationError(
            f"Invalid {enum_class.__name__}: {value}",
            details={"allowed": enum_values(enum_class)},
        ) from e


# =============================================================================
# CASE NORMALIZATION FOR PYDANTIC SCHEMAS
# =============================================================================

def normalize_to_uppercase(value: Any, valid_values: Set[str]) -> Any:
    """
    Normalize a string value to UPPERCASE if it's a valid enum value.

    Returns the original value otherwise, so Pydantic raises the
    validation error.

    Examples:
        >>> normalize_to_uppercase('paid', {'PAID', 'UNPAID'})
        'PAID'
        >>> normalize_to_uppercase('settled', {'PAID', 'UNPAID'})
        'settled'
    """
    if value is None:
        return value
    if isinstance(value, str):
        upper_v = value.strip().upper()
        if upper_v in valid_values:
            return upper_v
    return value


def create_uppercase_validator(field_name: str, valid_values: Set[str]) -> classmethod:
    """
    Create a Pydantic field_validator that normalizes values to UPPERCASE.

    Usage:
        class BillStatusUpdate(BaseModel):
            status: BillStatus

            normalize_status = create_uppercase_validator('status', VALID_BILL_STATUSES)
    """
    from pydantic import field_validator

    @field_validator(field_name, mode='before')
    @classmethod
    def validate(cls, v):
        return normalize_to_uppercase(v, valid_values)

    return validate


# =============================================================================
# VALID VALUE SETS
# =============================================================================

VALID_BILL_STATUSES = {"PAID", "UNPAID"}

VALID_INVOICE_STATUSES = {"PAID", "PENDING"}
