"""Utility functions for the DSR calculator.

This module provides helpers for turning user input into Python data types,
for formatting monetary amounts and for validating a set of loan parameters
before it is handed to the engine. The engine itself never rejects input;
the front ends call :func:`validate_parameters` first.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Union

from .config import MAX_INTEREST_RATE, MAX_TERM_YEARS
from .data_models import CollateralType, LoanParameters, RepaymentMethod

Number = Union[Decimal, float, int]


def decimal_from_str(value: str) -> Decimal:
    """Convert a numeric string into a ``Decimal``.

    The function strips any commas and surrounding whitespace and handles
    both integer and float-like strings. It raises ``ValueError`` if
    conversion fails or the value is not finite.
    """
    try:
        cleaned = str(value).replace(",", "").strip()
        result = Decimal(cleaned)
    except (InvalidOperation, TypeError) as exc:
        raise ValueError(f"Invalid numeric value: {value}") from exc
    if not result.is_finite():
        raise ValueError(f"Invalid numeric value: {value}")
    return result


def int_from_str(value: Any) -> int:
    """Convert a whole-number string (``"30"``, ``"30.0"``) into an ``int``."""
    number = decimal_from_str(str(value))
    if number != number.to_integral_value():
        raise ValueError(f"Expected a whole number: {value}")
    return int(number)


def parse_repayment_method(value: Union[str, RepaymentMethod]) -> RepaymentMethod:
    """Accept ``equal_installment``/``equal-installment`` style names."""
    if isinstance(value, RepaymentMethod):
        return value
    try:
        return RepaymentMethod(value.strip().lower().replace("-", "_"))
    except ValueError as exc:
        raise ValueError(f"Unknown repayment method: {value}") from exc


def parse_collateral_type(value: Union[str, CollateralType]) -> CollateralType:
    if isinstance(value, CollateralType):
        return value
    try:
        return CollateralType(value.strip().lower())
    except ValueError as exc:
        raise ValueError(f"Unknown collateral type: {value}") from exc


def parse_flag(value: Any) -> bool:
    """Interpret checkbox and JSON style truthy values."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def format_money(value: Number) -> str:
    """Format an amount rounded to whole units with thousands separators.

    >>> format_money(Decimal("1520056.43"))
    '1,520,056'
    """
    rounded = Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return f"{rounded:,}"


def validate_parameters(params: LoanParameters) -> None:
    """Raise ``ValueError`` if ``params`` is outside the supported ranges.

    Income and loan amount must be non-negative, the rate between 0 and
    ``MAX_INTEREST_RATE``, the term between one year and ``MAX_TERM_YEARS``
    and the grace period shorter than the term. A grace period as long as the
    term would leave no months to repay the principal in.
    """
    if params.annual_income < 0:
        raise ValueError("Annual income must not be negative")
    if params.loan_amount < 0:
        raise ValueError("Loan amount must not be negative")
    if params.interest_rate < 0:
        raise ValueError("Interest rate must not be negative")
    if params.interest_rate > MAX_INTEREST_RATE:
        raise ValueError(f"Interest rate must not exceed {MAX_INTEREST_RATE}%")
    if params.loan_term_year < 1:
        raise ValueError("Loan term must be at least 1 year")
    if params.loan_term_year > MAX_TERM_YEARS:
        raise ValueError(f"Loan term must not exceed {MAX_TERM_YEARS} years")
    if params.grace_period_year < 0:
        raise ValueError("Grace period must not be negative")
    if params.grace_period_year >= params.loan_term_year:
        raise ValueError(
            f"Grace period ({params.grace_period_year} years) must be shorter than "
            f"the loan term ({params.loan_term_year} years)"
        )
