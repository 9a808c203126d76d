"""Configuration values for the DSR calculator.

Regulatory constants and display defaults are plain module constants. The
settings of the advice generator come from the environment (optionally a
``.env`` file loaded with ``python-dotenv``).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Optional

from dotenv import load_dotenv

# Percentage points added to the nominal rate when the stress DSR is applied
STRESS_RATE_ADDON = Decimal("3.0")

# Upper bounds (inclusive, percent) of the risk levels
DSR_SAFE_LIMIT = Decimal("40")
DSR_CAUTION_LIMIT = Decimal("70")

# Largest inputs accepted by the front ends
MAX_TERM_YEARS = 50
MAX_INTEREST_RATE = Decimal("100")

# Rows of the schedule shown before truncating
MAX_PREVIEW_ROWS = 120

DEFAULT_SCENARIO: Dict[str, Any] = {
    "annual_income": "50000000",
    "loan_amount": "300000000",
    "interest_rate": "4.5",
    "loan_term_year": 30,
    "grace_period_year": 0,
    "repayment_method": "equal_installment",
    "collateral_type": "housing",
    "apply_stress_dsr": False,
}

DEFAULT_ADVICE_MODEL = "gpt-4o-mini"
DEFAULT_ADVICE_TIMEOUT = 30.0


@dataclass(frozen=True)
class AdviceSettings:
    """Settings for the advice generator.

    ``api_key`` may be None, in which case the OpenAI client falls back to
    its own ``OPENAI_API_KEY`` lookup and fails if that is missing too.
    """

    model: str = DEFAULT_ADVICE_MODEL
    timeout: float = DEFAULT_ADVICE_TIMEOUT
    api_key: Optional[str] = None
    base_url: Optional[str] = None

    @classmethod
    def from_env(cls) -> "AdviceSettings":
        load_dotenv()
        timeout_raw = os.environ.get("DSR_ADVICE_TIMEOUT")
        try:
            timeout = float(timeout_raw) if timeout_raw else DEFAULT_ADVICE_TIMEOUT
        except ValueError as exc:
            raise ValueError(f"Invalid DSR_ADVICE_TIMEOUT: {timeout_raw}") from exc
        return cls(
            model=os.environ.get("DSR_ADVICE_MODEL", DEFAULT_ADVICE_MODEL),
            timeout=timeout,
            api_key=os.environ.get("OPENAI_API_KEY") or None,
            base_url=os.environ.get("DSR_ADVICE_BASE_URL") or None,
        )
