"""Core calculation engine for the DSR calculator.

This module implements the amortization logic for equal installment
(annuity) and equal principal loans with an optional interest-only grace
period, and the Debt Service Ratio built on top of it.

Two schedules are produced from the same monthly step:

* the *actual* schedule at the nominal rate, which is what the borrower pays
  and what gets displayed, and
* the *stress* schedule at the nominal rate plus the stress add-on, of which
  only the total interest is kept. It feeds the interest burden of the ratio.

Everything here is a pure function of :class:`LoanParameters`. Nothing is
cached and nothing raises for numeric reasons; inputs are validated by the
front ends (see :func:`dsr_calc.utils.validate_parameters`).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal, getcontext
from typing import Iterator, List, Optional

from .config import STRESS_RATE_ADDON
from .data_models import (
    ActualSchedule,
    CalculationResult,
    CollateralType,
    LoanParameters,
    MonthlyPaymentEntry,
    RepaymentMethod,
    StressSchedule,
)

getcontext().prec = 28  # increase precision for financial calculations

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


@dataclass(frozen=True)
class AmortizationStep:
    interest: Decimal
    principal: Decimal
    payment: Decimal
    balance: Decimal


def monthly_rate(annual_rate_percent: Decimal) -> Decimal:
    """Convert an annual percentage (e.g. ``4.5``) into a monthly decimal rate."""
    return (annual_rate_percent / Decimal(100)) / Decimal(12)


def stress_rate(params: LoanParameters) -> Decimal:
    """Return the annual rate (percent) used for the interest burden of the ratio."""
    if params.apply_stress_dsr:
        return params.interest_rate + STRESS_RATE_ADDON
    return params.interest_rate


def _calculate_annuity_payment(principal: Decimal, rate_per_month: Decimal, term: int) -> Decimal:
    """Return the annuity (equal installment) monthly payment for a loan.

    The formula is:

        payment = P * (i * (1 + i)^n) / ((1 + i)^n - 1)

    where ``P`` is the principal, ``i`` is the monthly interest rate and
    ``n`` is the number of payments. When the interest rate is zero, the
    payment simplifies to ``P / n``.
    """
    if term <= 0:
        raise ValueError("Term must be positive")
    if rate_per_month == 0:
        return principal / Decimal(term)
    factor = (1 + rate_per_month) ** term
    return principal * (rate_per_month * factor) / (factor - 1)


def amortization_step(
    remaining_balance: Decimal,
    rate_per_month: Decimal,
    month: int,
    total_months: int,
    grace_months: int,
    repayment_method: RepaymentMethod,
    loan_amount: Decimal,
    installment: Optional[Decimal] = None,
) -> AmortizationStep:
    """Compute one month of the schedule.

    Parameters
    ----------
    remaining_balance: Decimal
        Principal outstanding before this month's payment.
    rate_per_month: Decimal
        Monthly decimal rate, see :func:`monthly_rate`.
    month: int
        1-based month index.
    total_months, grace_months: int
        Length of the loan and of the interest-only period, in months.
    repayment_method: RepaymentMethod
        Equal installment or equal principal.
    loan_amount: Decimal
        Original principal. Both methods amortize the original amount over
        ``total_months - grace_months`` periods, not the balance left when
        repayment starts (the two are equal since no principal is repaid
        during the grace period).
    installment: Decimal, optional
        Fixed annuity payment of the pass; required for equal installment
        loans once the grace period is over.
    """
    interest = remaining_balance * rate_per_month

    if month <= grace_months:
        principal = ZERO
        payment = interest
    else:
        amortizing_months = total_months - grace_months
        if repayment_method == RepaymentMethod.EQUAL_PRINCIPAL:
            principal = loan_amount / Decimal(amortizing_months)
            payment = principal + interest
        else:
            if installment is None:
                installment = _calculate_annuity_payment(loan_amount, rate_per_month, amortizing_months)
            payment = installment
            principal = payment - interest

    balance = remaining_balance - principal
    if balance < 0:
        balance = ZERO
    return AmortizationStep(interest=interest, principal=principal, payment=payment, balance=balance)


def _iter_schedule(params: LoanParameters, rate_per_month: Decimal) -> Iterator[MonthlyPaymentEntry]:
    """Yield the monthly entries of ``params`` amortized at ``rate_per_month``."""
    total_months = params.total_months
    grace_months = params.grace_months
    amortizing_months = total_months - grace_months

    # The annuity is computed once per pass. With no amortizing months every
    # month is a grace month and the installment is never needed.
    installment = None
    if params.repayment_method == RepaymentMethod.EQUAL_INSTALLMENT and amortizing_months > 0:
        installment = _calculate_annuity_payment(params.loan_amount, rate_per_month, amortizing_months)

    balance = params.loan_amount
    for month in range(1, total_months + 1):
        step = amortization_step(
            balance,
            rate_per_month,
            month,
            total_months,
            grace_months,
            params.repayment_method,
            params.loan_amount,
            installment,
        )
        balance = step.balance
        yield MonthlyPaymentEntry(
            month=month,
            payment=step.payment,
            principal=step.principal,
            interest=step.interest,
            balance=step.balance,
        )


def generate_actual_schedule(params: LoanParameters) -> ActualSchedule:
    """Build the displayed schedule at the nominal interest rate."""
    entries: List[MonthlyPaymentEntry] = []
    total_interest = ZERO
    total_payment = ZERO
    for entry in _iter_schedule(params, monthly_rate(params.interest_rate)):
        entries.append(entry)
        total_interest += entry.interest
        total_payment += entry.payment
    return ActualSchedule(entries=tuple(entries), total_interest=total_interest, total_payment=total_payment)


def generate_stress_schedule(params: LoanParameters) -> StressSchedule:
    """Run the schedule at the stress rate and keep only its total interest.

    When ``apply_stress_dsr`` is False the stress rate is the nominal rate
    and the total equals the actual schedule's total interest.
    """
    annual_rate = stress_rate(params)
    total_interest = ZERO
    for entry in _iter_schedule(params, monthly_rate(annual_rate)):
        total_interest += entry.interest
    return StressSchedule(annual_rate=annual_rate, total_interest=total_interest)


def annual_principal_burden(params: LoanParameters) -> Decimal:
    """Return the yearly principal burden used by the ratio.

    Housing collateral spreads the principal over the years left after the
    grace period, so a grace period raises the burden. Other collateral
    always uses the full term. If there are no years to divide by, the whole
    loan amount is taken as one year's burden.
    """
    if params.loan_term_year <= 0:
        return params.loan_amount
    if params.collateral_type == CollateralType.HOUSING:
        effective_term_year = params.loan_term_year - params.grace_period_year
        if effective_term_year > 0:
            return params.loan_amount / Decimal(effective_term_year)
        return params.loan_amount
    return params.loan_amount / Decimal(params.loan_term_year)


def annual_interest_burden(params: LoanParameters, total_stress_interest: Decimal) -> Decimal:
    """Spread the stress interest over the full loan term, grace years included."""
    if params.loan_term_year <= 0:
        return ZERO
    return total_stress_interest / Decimal(params.loan_term_year)


def dsr_ratio(annual_income: Decimal, principal_burden: Decimal, interest_burden: Decimal) -> Decimal:
    """Return ``(principal + interest burden) / income`` in percent, 0 without income."""
    if annual_income <= 0:
        return ZERO
    return (principal_burden + interest_burden) / annual_income * Decimal(100)


def calculate_dsr(params: LoanParameters) -> CalculationResult:
    """Compute the actual schedule, the stress interest and the DSR ratio.

    Parameters
    ----------
    params: LoanParameters
        The loan scenario. It is not modified.

    Returns
    -------
    CalculationResult
        The ratio, the actual monthly schedule and its totals, and the
        burdens the ratio was built from.
    """
    actual = generate_actual_schedule(params)
    stress = generate_stress_schedule(params)

    principal_burden = annual_principal_burden(params)
    interest_burden = annual_interest_burden(params, stress.total_interest)
    ratio = dsr_ratio(params.annual_income, principal_burden, interest_burden)

    total_months = params.total_months
    avg_monthly_payment = actual.total_payment / Decimal(total_months) if total_months > 0 else ZERO

    logger.debug(
        "DSR %.2f%% (principal burden %.0f, interest burden %.0f at %s%%)",
        ratio,
        principal_burden,
        interest_burden,
        stress.annual_rate,
    )

    return CalculationResult(
        dsr_ratio=ratio,
        monthly_payments=actual.entries,
        total_interest=actual.total_interest,
        total_payment=actual.total_payment,
        avg_monthly_payment=avg_monthly_payment,
        stress_dsr_rate_used=stress.annual_rate,
        annual_principal_burden=principal_burden,
        annual_interest_burden=interest_burden,
        total_stress_interest=stress.total_interest,
    )
