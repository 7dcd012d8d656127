"""
Core math modules для stable token

Целочисленные примитивы с гарантией детерминизма и контролем переполнения.
"""

from src.core.math.integer_math import (
    # Constants
    PERMILLE_DENOMINATOR,
    UINT128_MAX,
    # Exceptions
    ArithmeticOverflowError,
    # Type validation
    ensure_uint,
    is_uint,
    # Checked arithmetic
    abs_diff,
    checked_add,
    checked_mul,
    checked_sub,
    floor_div,
    saturating_cap,
    # Permille
    apply_permille,
    capped_deviation_permille,
    deviation_permille,
)

__all__ = [
    # Constants
    "PERMILLE_DENOMINATOR",
    "UINT128_MAX",
    # Exceptions
    "ArithmeticOverflowError",
    # Type validation
    "ensure_uint",
    "is_uint",
    # Checked arithmetic
    "abs_diff",
    "checked_add",
    "checked_mul",
    "checked_sub",
    "floor_div",
    "saturating_cap",
    # Permille
    "apply_permille",
    "capped_deviation_permille",
    "deviation_permille",
]
