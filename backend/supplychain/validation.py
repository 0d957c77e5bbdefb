from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from .errors import InvalidArgumentError


# Matches products.name column length
MAX_NAME_LENGTH = 255

# The all-zero address some clients send for "no identity"
ZERO_ADDRESS = "0x" + "0" * 40


def normalize_identity(value: Any) -> Optional[str]:
    """
    Canonical form of a caller identity: stripped and lower-cased.

    Returns None for the null identity (None, blank, or the zero address).
    Identities compare case-insensitively (hex wallet addresses arrive in
    mixed case).
    """
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidArgumentError("identity must be a string")
    s = value.strip().lower()
    if not s or s == ZERO_ADDRESS:
        return None
    return s


def require_identity(value: Any, field: str = "identity") -> str:
    """Normalize an identity and reject the null identity."""
    identity = normalize_identity(value)
    if identity is None:
        raise InvalidArgumentError(f"{field} must be a non-null identity")
    return identity


def validate_name(value: Any) -> str:
    if not isinstance(value, str):
        raise InvalidArgumentError("name must be a string")
    name = value.strip()
    if not name:
        raise InvalidArgumentError("name cannot be blank")
    if len(name) > MAX_NAME_LENGTH:
        raise InvalidArgumentError(f"name exceeds max length {MAX_NAME_LENGTH}")
    return name


def validate_description(value: Any) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise InvalidArgumentError("description must be a string")
    return value.strip()


def validate_price(value: Any) -> int:
    """
    Price is a positive integer in the smallest unit of account.

    Strict like the integer column coercion: bools, floats and
    scientific-notation strings are rejected rather than rounded.
    """
    if isinstance(value, bool):
        raise InvalidArgumentError("price must be an integer")
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped or not stripped.lstrip("-").isdigit():
            raise InvalidArgumentError("price must be a plain integer")
        value = int(stripped)
    if not isinstance(value, int):
        raise InvalidArgumentError("price must be an integer")
    if value <= 0:
        raise InvalidArgumentError("price must be > 0")
    return value


def validate_product_id(value: Any) -> int:
    """Type check only; range checks against the counter live in the product store."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgumentError("product id must be an integer")
    return value


def validate_date_range(start: Optional[datetime], end: Optional[datetime]) -> None:
    if start is None or end is None:
        raise InvalidArgumentError("start and end are both required")
    if start > end:
        raise InvalidArgumentError("start must not be after end")
