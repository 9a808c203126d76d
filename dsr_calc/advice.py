"""Natural-language advice for a DSR result.

The advice is produced by an external chat-completion model. This module only
formats the prompt and returns the text; it never feeds anything back into
the calculation. Any failure of the service is logged and turned into a
fallback message so callers can show it next to, not instead of, the
calculation result.
"""

from __future__ import annotations

import logging
from typing import Optional

from openai import OpenAI, OpenAIError

from .config import STRESS_RATE_ADDON, AdviceSettings
from .data_models import Advice, CalculationResult, LoanParameters
from .formatter import COLLATERAL_LABELS, METHOD_LABELS
from .utils import format_money

logger = logging.getLogger(__name__)

NO_ADVICE_MESSAGE = "No analysis could be generated for this scenario."
ADVICE_ERROR_MESSAGE = "The AI analysis is unavailable right now. Please try again in a moment."

SYSTEM_PROMPT = (
    "You are a financial expert familiar with Korean lending regulation. "
    "You explain Debt Service Ratio (DSR) results to retail borrowers politely and professionally."
)


def build_advice_prompt(params: LoanParameters, result: CalculationResult) -> str:
    """Describe the scenario and its result for the advice model."""
    if params.apply_stress_dsr:
        stress_text = f"applied (+{STRESS_RATE_ADDON}%p, {result.stress_dsr_rate_used}% used)"
    else:
        stress_text = "not applied"

    return f"""
Please analyse the following loan scenario and its DSR (Debt Service Ratio) and give advice,
taking Korean financial regulation into account.

**Borrower data:**
- Annual income: {format_money(params.annual_income)} KRW
- Loan amount: {format_money(params.loan_amount)} KRW
- Loan term: {params.loan_term_year} years
- Grace period: {params.grace_period_year} years
- Interest rate: {params.interest_rate}%
- Repayment method: {METHOD_LABELS[params.repayment_method]}
- Stress DSR: {stress_text}
- Collateral: {COLLATERAL_LABELS[params.collateral_type]}

**Calculation notes:**
- For housing collateral the grace period is excluded from the principal repayment period in the DSR.
- For other collateral the full loan term is used.

**Result:**
- DSR: {result.dsr_ratio:.2f}%
- Total interest: {format_money(result.total_interest)} KRW
- Average monthly payment: {format_money(result.avg_monthly_payment)} KRW

**Requests:**
1. Assess whether this DSR is stable, needs caution or is risky (regulatory ceiling of 40-50% as reference).
2. Mention how the stress DSR and the grace period affected the ratio.
3. Summarise concrete advice for reducing the repayment burden in about three bullet points.

Answer in markdown.
""".strip()


def create_client(settings: AdviceSettings) -> OpenAI:
    return OpenAI(api_key=settings.api_key, base_url=settings.base_url, timeout=settings.timeout)


def generate_advice(
    params: LoanParameters,
    result: CalculationResult,
    client: Optional[OpenAI] = None,
    settings: Optional[AdviceSettings] = None,
) -> Advice:
    """Ask the model for advice on ``result``.

    Returns an :class:`Advice` with ``ok=False`` and a fallback message when
    the service cannot be reached, rejects the request or answers with no
    text, or when its settings cannot be loaded. Exceptions from the service
    are never propagated.
    """
    if settings is None:
        try:
            settings = AdviceSettings.from_env()
        except ValueError:
            logger.exception("Invalid advice settings")
            return Advice(text=ADVICE_ERROR_MESSAGE, ok=False)
    prompt = build_advice_prompt(params, result)
    try:
        if client is None:
            client = create_client(settings)
        logger.info("Requesting DSR advice from model %s", settings.model)
        response = client.chat.completions.create(
            model=settings.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
        )
    except OpenAIError:
        logger.exception("Advice request failed")
        return Advice(text=ADVICE_ERROR_MESSAGE, ok=False)

    text = ""
    if response.choices:
        text = (response.choices[0].message.content or "").strip()
    if not text:
        logger.warning("Advice model returned an empty answer")
        return Advice(text=NO_ADVICE_MESSAGE, ok=False)
    return Advice(text=text)
