"""Data models for the DSR calculator.

This module defines the enums and dataclasses used by the calculator: the
loan parameters entered by the user, the individual monthly entries of an
amortization schedule and the result of a DSR calculation. All of them are
frozen dataclasses so a calculation can never mutate its inputs, and two
calculations with the same parameters compare equal.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Tuple

from .config import DSR_CAUTION_LIMIT, DSR_SAFE_LIMIT


class RepaymentMethod(str, Enum):
    """How the amortizing part of the loan is repaid."""

    EQUAL_INSTALLMENT = "equal_installment"  # constant total payment
    EQUAL_PRINCIPAL = "equal_principal"  # constant principal payment


class CollateralType(str, Enum):
    """Collateral classification used by the principal burden rule."""

    HOUSING = "housing"  # houses and officetels
    OTHER = "other"  # land, commercial property, etc.


class RiskLevel(str, Enum):
    SAFE = "Safe"
    CAUTION = "Caution"
    HIGH_RISK = "High Risk"


def classify_dsr(ratio: Decimal) -> RiskLevel:
    """Map a DSR percentage to a risk level.

    Up to ``DSR_SAFE_LIMIT`` percent is safe, up to ``DSR_CAUTION_LIMIT``
    percent needs caution and anything above is high risk.
    """
    if ratio <= DSR_SAFE_LIMIT:
        return RiskLevel.SAFE
    if ratio <= DSR_CAUTION_LIMIT:
        return RiskLevel.CAUTION
    return RiskLevel.HIGH_RISK


@dataclass(frozen=True)
class LoanParameters:
    """Inputs of a single DSR calculation.

    Attributes
    ----------
    annual_income: Decimal
        Gross annual income of the borrower.
    loan_amount: Decimal
        Principal of the loan.
    interest_rate: Decimal
        Nominal annual interest rate in percent (``Decimal("4.5")`` is 4.5 %).
    loan_term_year: int
        Loan term in years.
    grace_period_year: int
        Initial interest-only period in years. Expected to be smaller than
        ``loan_term_year``; the engine tolerates larger values but the result
        is not meaningful.
    repayment_method: RepaymentMethod
        Equal installment (annuity) or equal principal.
    collateral_type: CollateralType
        Housing collateral is penalized for grace periods in the DSR ratio.
    apply_stress_dsr: bool
        When True, the stress add-on is applied to the rate used for the
        interest burden of the ratio. The displayed schedule always uses the
        nominal rate.
    """

    annual_income: Decimal
    loan_amount: Decimal
    interest_rate: Decimal
    loan_term_year: int
    grace_period_year: int = 0
    repayment_method: RepaymentMethod = RepaymentMethod.EQUAL_INSTALLMENT
    collateral_type: CollateralType = CollateralType.HOUSING
    apply_stress_dsr: bool = False

    @property
    def total_months(self) -> int:
        return self.loan_term_year * 12

    @property
    def grace_months(self) -> int:
        return self.grace_period_year * 12


@dataclass(frozen=True)
class MonthlyPaymentEntry:
    """One month of the amortization schedule.

    During the grace period ``principal`` is zero and ``payment`` equals
    ``interest``. ``balance`` is the remaining principal after the payment.
    """

    month: int
    payment: Decimal
    principal: Decimal
    interest: Decimal
    balance: Decimal


@dataclass(frozen=True)
class ActualSchedule:
    """Schedule at the contracted (nominal) rate, as shown to the user."""

    entries: Tuple[MonthlyPaymentEntry, ...]
    total_interest: Decimal
    total_payment: Decimal


@dataclass(frozen=True)
class StressSchedule:
    """Totals of the schedule run at the stress rate.

    Only the accumulated interest is kept; the per-month entries of this pass
    never leave the engine.
    """

    annual_rate: Decimal
    total_interest: Decimal


@dataclass(frozen=True)
class CalculationResult:
    """Output of :func:`dsr_calc.engine.calculate_dsr`."""

    dsr_ratio: Decimal  # percent
    monthly_payments: Tuple[MonthlyPaymentEntry, ...]
    total_interest: Decimal
    total_payment: Decimal
    avg_monthly_payment: Decimal
    stress_dsr_rate_used: Decimal
    annual_principal_burden: Decimal = Decimal("0")
    annual_interest_burden: Decimal = Decimal("0")
    total_stress_interest: Decimal = Decimal("0")

    @property
    def risk_level(self) -> RiskLevel:
        return classify_dsr(self.dsr_ratio)


@dataclass(frozen=True)
class Advice:
    """Text returned by the advice generator.

    ``ok`` is False when ``text`` is a fallback message rather than advice
    produced by the model.
    """

    text: str
    ok: bool = True
