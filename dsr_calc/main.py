"""Command-line interface for the DSR calculator.

This module uses the ``click`` library to implement a multi-command
interface. Users can compute a DSR with its full amortization schedule, view
only the summary, compare two loan scenarios or ask for AI-generated advice.
Results can be printed to the terminal or exported to JSON/CSV files.
"""

from __future__ import annotations

import csv
import json
import logging
import shlex
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import click

from .advice import generate_advice
from .config import MAX_PREVIEW_ROWS
from .data_models import CalculationResult, LoanParameters, MonthlyPaymentEntry
from .engine import calculate_dsr
from .formatter import print_comparison, print_schedule, print_summary
from .utils import (
    decimal_from_str,
    int_from_str,
    parse_collateral_type,
    parse_flag,
    parse_repayment_method,
    validate_parameters,
)

METHOD_CHOICES = ["equal-installment", "equal-principal"]
COLLATERAL_CHOICES = ["housing", "other"]


def parse_amount(value: str) -> Decimal:
    """Parse a numeric string with optional suffixes.

    Accepts plain numbers ("300000000") and shorthand with ``k``/``m``
    suffixes (e.g., "300m" meaning 300_000_000). Returns a ``Decimal`` so
    large amounts keep every digit.
    """
    value = str(value).strip().lower()
    value = value.replace(",", "")
    factor = Decimal(1)
    if value.endswith("k"):
        factor = Decimal(1_000)
        value = value[:-1]
    elif value.endswith("m"):
        factor = Decimal(1_000_000)
        value = value[:-1]
    try:
        return decimal_from_str(value) * factor
    except ValueError:
        raise click.BadParameter(f"Invalid amount: {value}")


def build_params_from_options(
    income: str,
    amount: str,
    rate: Any,
    term: Any,
    grace: Any = 0,
    method: str = "equal-installment",
    collateral: str = "housing",
    stress: Any = False,
) -> LoanParameters:
    """Turn raw option/form values into validated :class:`LoanParameters`.

    Raises ``click.BadParameter`` with a readable message for anything the
    engine should not be asked to compute.
    """
    try:
        params = LoanParameters(
            annual_income=parse_amount(income),
            loan_amount=parse_amount(amount),
            interest_rate=decimal_from_str(str(rate)),
            loan_term_year=int_from_str(term),
            grace_period_year=int_from_str(grace if grace not in (None, "") else 0),
            repayment_method=parse_repayment_method(method),
            collateral_type=parse_collateral_type(collateral),
            apply_stress_dsr=parse_flag(stress),
        )
        validate_parameters(params)
    except ValueError as exc:
        raise click.BadParameter(str(exc))
    return params


def summary_to_dict(params: LoanParameters, result: CalculationResult) -> Dict[str, Any]:
    """Return the JSON-serialisable summary of a calculation."""
    return {
        "annual_income": float(params.annual_income),
        "loan_amount": float(params.loan_amount),
        "interest_rate": float(params.interest_rate),
        "loan_term_year": params.loan_term_year,
        "grace_period_year": params.grace_period_year,
        "repayment_method": params.repayment_method.value,
        "collateral_type": params.collateral_type.value,
        "apply_stress_dsr": params.apply_stress_dsr,
        "dsr_ratio": float(result.dsr_ratio),
        "risk_level": result.risk_level.value,
        "stress_dsr_rate_used": float(result.stress_dsr_rate_used),
        "annual_principal_burden": float(result.annual_principal_burden),
        "annual_interest_burden": float(result.annual_interest_burden),
        "total_interest": float(result.total_interest),
        "total_payment": float(result.total_payment),
        "avg_monthly_payment": float(result.avg_monthly_payment),
        "months": len(result.monthly_payments),
    }


def serialize_schedule(schedule: Sequence[MonthlyPaymentEntry]) -> List[Dict[str, Any]]:
    """Convert schedule entries into JSON-serialisable dictionaries."""
    return [
        {
            "month": e.month,
            "payment": float(e.payment),
            "principal": float(e.principal),
            "interest": float(e.interest),
            "balance": float(e.balance),
        }
        for e in schedule
    ]


def export_to_json(path: Path, params: LoanParameters, result: CalculationResult) -> None:
    """Export summary and schedule to a JSON file."""
    data = {
        "summary": summary_to_dict(params, result),
        "schedule": serialize_schedule(result.monthly_payments),
    }
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def export_to_csv(path: Path, schedule: Sequence[MonthlyPaymentEntry]) -> None:
    """Export schedule to a CSV file."""
    header = ["Month", "Payment", "Principal", "Interest", "Balance"]
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        for e in schedule:
            writer.writerow([e.month, float(e.payment), float(e.principal), float(e.interest), float(e.balance)])


def loan_options(func):
    """Attach the loan parameter options shared by the commands."""
    options = [
        click.option("--income", "-i", "income", required=True, help="Annual income (before tax)"),
        click.option("--amount", "-a", "amount", required=True, help="Loan amount"),
        click.option("--rate", "-r", "rate", required=True, type=float, help="Annual interest rate (percent)"),
        click.option("--term", "-t", "term", required=True, type=int, help="Loan term in years"),
        click.option("--grace", "-g", "grace", default=0, show_default=True, type=int, help="Grace period in years"),
        click.option(
            "--method",
            "method",
            type=click.Choice(METHOD_CHOICES),
            default="equal-installment",
            show_default=True,
            help="Repayment method",
        ),
        click.option(
            "--collateral",
            "collateral",
            type=click.Choice(COLLATERAL_CHOICES),
            default="housing",
            show_default=True,
            help="Collateral type",
        ),
        click.option("--stress/--no-stress", "stress", default=False, help="Apply the stress DSR rate add-on"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """A command-line DSR (Debt Service Ratio) calculator."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@loan_options
@click.option("--rows", "rows", type=int, default=MAX_PREVIEW_ROWS, show_default=True, help="Schedule rows to print")
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
def calculate(
    income: str,
    amount: str,
    rate: float,
    term: int,
    grace: int,
    method: str,
    collateral: str,
    stress: bool,
    rows: int,
    output: Optional[str],
) -> None:
    """Compute the DSR and print the amortization schedule."""
    params = build_params_from_options(income, amount, rate, term, grace, method, collateral, stress)
    result = calculate_dsr(params)
    if output:
        path = Path(output)
        if path.suffix.lower() == ".json":
            export_to_json(path, params, result)
            click.echo(f"Schedule exported to {path}")
        elif path.suffix.lower() == ".csv":
            export_to_csv(path, result.monthly_payments)
            click.echo(f"Schedule exported to {path}")
        else:
            raise click.BadParameter("Unsupported output format; use .json or .csv")
    else:
        print_summary(params, result)
        schedule_entries = result.monthly_payments
        # Limit schedule length printed to avoid flooding the terminal
        if len(schedule_entries) > rows:
            click.echo(f"Schedule has {len(schedule_entries)} rows; showing first {rows} rows.")
            print_schedule(schedule_entries[:rows])
        else:
            print_schedule(schedule_entries)


@cli.command()
@loan_options
@click.option("--output", "output", type=str, help="Output file path (.json)")
def summary(
    income: str,
    amount: str,
    rate: float,
    term: int,
    grace: int,
    method: str,
    collateral: str,
    stress: bool,
    output: Optional[str],
) -> None:
    """Compute and print only the DSR summary."""
    params = build_params_from_options(income, amount, rate, term, grace, method, collateral, stress)
    result = calculate_dsr(params)
    if output:
        path = Path(output)
        if path.suffix.lower() != ".json":
            raise click.BadParameter("Summary export must use .json extension")
        with path.open("w", encoding="utf-8") as f:
            json.dump({"summary": summary_to_dict(params, result)}, f, indent=2)
        click.echo(f"Summary exported to {path}")
    else:
        print_summary(params, result)


def parse_scenario_opts(opts: str) -> Dict[str, Any]:
    """Map a quoted scenario option string onto :func:`build_params_from_options` arguments."""
    tokens = shlex.split(opts)
    params: Dict[str, Any] = {
        "income": None,
        "amount": None,
        "rate": None,
        "term": None,
        "grace": 0,
        "method": "equal-installment",
        "collateral": "housing",
        "stress": False,
    }
    valued = {
        "-i": "income",
        "--income": "income",
        "-a": "amount",
        "--amount": "amount",
        "-r": "rate",
        "--rate": "rate",
        "-t": "term",
        "--term": "term",
        "-g": "grace",
        "--grace": "grace",
        "--method": "method",
        "--collateral": "collateral",
    }
    i = 0
    while i < len(tokens):
        token = tokens[i]
        if token == "--stress":
            params["stress"] = True
        elif token == "--no-stress":
            params["stress"] = False
        elif token in valued:
            i += 1
            if i >= len(tokens):
                raise click.BadParameter(f"Option {token} in scenario needs a value")
            params[valued[token]] = tokens[i]
        else:
            raise click.BadParameter(f"Unknown option in scenario: {token}")
        i += 1
    for name in ("income", "amount", "rate", "term"):
        if params[name] is None:
            raise click.BadParameter(f"Scenario missing required option {name}")
    return params


@cli.command()
@click.option("--scenario1", "scenario1", required=True, help="First scenario options quoted string")
@click.option("--scenario2", "scenario2", required=True, help="Second scenario options quoted string")
def compare(scenario1: str, scenario2: str) -> None:
    """Compare two loan scenarios.

    Scenarios are provided as quoted option strings, for example:

        dsr-calc compare --scenario1 "-i 50m -a 300m -r 4.5 -t 30" --scenario2 "-i 50m -a 300m -r 4.5 -t 30 --stress"
    """
    config1 = build_params_from_options(**parse_scenario_opts(scenario1))
    config2 = build_params_from_options(**parse_scenario_opts(scenario2))
    print_comparison(calculate_dsr(config1), calculate_dsr(config2))


@cli.command()
@loan_options
def advise(
    income: str,
    amount: str,
    rate: float,
    term: int,
    grace: int,
    method: str,
    collateral: str,
    stress: bool,
) -> None:
    """Compute the DSR and ask the AI model for advice on it."""
    params = build_params_from_options(income, amount, rate, term, grace, method, collateral, stress)
    result = calculate_dsr(params)
    print_summary(params, result)
    advice = generate_advice(params, result)
    if advice.ok:
        click.echo(advice.text)
    else:
        click.echo(advice.text, err=True)


if __name__ == "__main__":
    cli()
