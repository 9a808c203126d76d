from decimal import Decimal

import pytest

from dsr_calc.data_models import CollateralType, LoanParameters, RepaymentMethod


@pytest.fixture
def scenario_a() -> LoanParameters:
    """50m income, 300m housing loan at 4.5% over 30 years, no grace, no stress."""
    return LoanParameters(
        annual_income=Decimal("50000000"),
        loan_amount=Decimal("300000000"),
        interest_rate=Decimal("4.5"),
        loan_term_year=30,
        grace_period_year=0,
        repayment_method=RepaymentMethod.EQUAL_INSTALLMENT,
        collateral_type=CollateralType.HOUSING,
        apply_stress_dsr=False,
    )


@pytest.fixture
def cli_scenario_args():
    return ["-i", "50m", "-a", "300m", "-r", "4.5", "-t", "30"]
