"""Output helpers for the DSR calculator.

This module provides simple functions to render DSR results, amortization
schedules and scenario comparisons in a tabular text format using built-in
printing and string formatting.
"""

from __future__ import annotations

from typing import Iterable

from .data_models import CalculationResult, CollateralType, LoanParameters, RepaymentMethod
from .utils import format_money

METHOD_LABELS = {
    RepaymentMethod.EQUAL_INSTALLMENT: "Equal installment",
    RepaymentMethod.EQUAL_PRINCIPAL: "Equal principal",
}

COLLATERAL_LABELS = {
    CollateralType.HOUSING: "Housing / officetel",
    CollateralType.OTHER: "Other (land, commercial)",
}


def housing_grace_warning(params: LoanParameters) -> str:
    """Return the warning shown for housing loans with a grace period, or ``""``."""
    if params.collateral_type == CollateralType.HOUSING and params.grace_period_year > 0:
        return (
            "Housing loans with a grace period repay principal over fewer years, "
            "which raises the DSR."
        )
    return ""


def rate_note(params: LoanParameters, result: CalculationResult) -> str:
    if params.apply_stress_dsr:
        return f"stress rate {result.stress_dsr_rate_used:.1f}% applied"
    return f"rate {params.interest_rate}% applied"


def print_summary(params: LoanParameters, result: CalculationResult) -> None:
    """Print the DSR and the loan totals in a human-readable format."""
    print("Summary")
    print("-" * 72)
    print(f"Annual income      : {format_money(params.annual_income)}")
    print(f"Loan amount        : {format_money(params.loan_amount)}")
    print(f"Term / grace       : {params.loan_term_year} / {params.grace_period_year} years")
    print(f"Repayment method   : {METHOD_LABELS[params.repayment_method]}")
    print(f"Collateral         : {COLLATERAL_LABELS[params.collateral_type]}")
    print(f"DSR                : {result.dsr_ratio:.2f}% ({result.risk_level.value}, {rate_note(params, result)})")
    print(f"Principal burden   : {format_money(result.annual_principal_burden)} / year")
    print(f"Interest burden    : {format_money(result.annual_interest_burden)} / year")
    print(f"Total interest     : {format_money(result.total_interest)}")
    print(f"Total payment      : {format_money(result.total_payment)}")
    print(f"Avg monthly payment: {format_money(result.avg_monthly_payment)}")
    warning = housing_grace_warning(params)
    if warning:
        print(f"Note: {warning}")
    print("-" * 72)


def print_schedule(schedule: Iterable) -> None:
    """Print the amortization schedule as a simple table.

    Parameters
    ----------
    schedule: Iterable[MonthlyPaymentEntry]
        The schedule entries to print.
    """
    headers = ["Month", "Payment", "Principal", "Interest", "Balance"]
    print("\t".join(headers))
    for entry in schedule:
        row = [
            str(entry.month),
            f"{entry.payment:.2f}",
            f"{entry.principal:.2f}",
            f"{entry.interest:.2f}",
            f"{entry.balance:.2f}",
        ]
        print("\t".join(row))


def print_comparison(r1: CalculationResult, r2: CalculationResult) -> None:
    """Print a comparison of two DSR results side by side.

    The difference column is scenario2 - scenario1, so a negative difference
    means the second scenario carries the lighter burden.
    """
    print("Comparison")
    print("=" * 72)
    keys = [
        "dsr_ratio",
        "annual_principal_burden",
        "annual_interest_burden",
        "total_interest",
        "avg_monthly_payment",
    ]
    print(f"{'Metric':24s} {'Scenario1':>15s} {'Scenario2':>15s} {'Difference':>15s}")
    for key in keys:
        v1 = getattr(r1, key)
        v2 = getattr(r2, key)
        diff = v2 - v1
        print(f"{key:24s} {v1:15.2f} {v2:15.2f} {diff:15.2f}")
    print(f"{'risk_level':24s} {r1.risk_level.value:>15s} {r2.risk_level.value:>15s}")
    print("=" * 72)
