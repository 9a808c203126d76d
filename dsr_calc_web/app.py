import json
import logging
import os

import click
from flask import Flask, jsonify, render_template, request

from dsr_calc.advice import generate_advice
from dsr_calc.config import DEFAULT_SCENARIO, MAX_PREVIEW_ROWS
from dsr_calc.engine import calculate_dsr
from dsr_calc.formatter import COLLATERAL_LABELS, METHOD_LABELS, housing_grace_warning, rate_note
from dsr_calc.main import build_params_from_options, serialize_schedule, summary_to_dict

logger = logging.getLogger(__name__)

app = Flask(__name__)
app.config["ASSET_VERSION"] = os.environ.get("ASSET_VERSION", "1")
app.secret_key = os.environ.get("FLASK_SECRET_KEY", "dev-secret-key")


def _form_to_params(form):
    return build_params_from_options(
        form.get("annual_income", "").strip(),
        form.get("loan_amount", "").strip(),
        form.get("interest_rate", "").strip(),
        form.get("loan_term_year", "").strip(),
        form.get("grace_period_year", "").strip() or 0,
        form.get("repayment_method", "equal_installment"),
        form.get("collateral_type", "housing"),
        form.get("apply_stress_dsr"),
    )


def _json_to_params(data: dict):
    return build_params_from_options(
        data.get("annual_income", ""),
        data.get("loan_amount", ""),
        data.get("interest_rate", ""),
        data.get("loan_term_year", ""),
        data.get("grace_period_year", 0),
        data.get("repayment_method", "equal_installment"),
        data.get("collateral_type", "housing"),
        data.get("apply_stress_dsr", False),
    )


def _json_body():
    """Return the posted JSON object, or None if the body is not one."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    return data if isinstance(data, dict) else None


def _schedule_for_view(schedule, show_full_schedule: bool):
    """Return the rows to render and how many were left out."""
    if show_full_schedule or len(schedule) <= MAX_PREVIEW_ROWS:
        return schedule, 0
    return schedule[:MAX_PREVIEW_ROWS], len(schedule) - MAX_PREVIEW_ROWS


@app.route("/", methods=["GET", "POST"])
def index():
    form_values = dict(DEFAULT_SCENARIO)
    params = None
    result = None
    schedule = []
    truncated = 0
    error = None
    show_full_schedule = False

    if request.method == "POST":
        form_values.update(request.form.to_dict())
        form_values["apply_stress_dsr"] = "apply_stress_dsr" in request.form
        show_full_schedule = request.form.get("show_full_schedule") == "1"
        try:
            params = _form_to_params(request.form)
            result = calculate_dsr(params)
            schedule, truncated = _schedule_for_view(result.monthly_payments, show_full_schedule)
        except click.BadParameter as exc:
            error = exc.message

    current_schedule_payload = json.dumps(serialize_schedule(result.monthly_payments)) if result else "null"

    return render_template(
        "index.html",
        form=form_values,
        params=params,
        result=result,
        schedule=schedule,
        truncated=truncated,
        show_full_schedule=show_full_schedule,
        error=error,
        warning=housing_grace_warning(params) if params else "",
        rate_note=rate_note(params, result) if result else "",
        method_labels=METHOD_LABELS,
        collateral_labels=COLLATERAL_LABELS,
        asset_version=app.config["ASSET_VERSION"],
        current_schedule_payload=current_schedule_payload,
    )


@app.post("/api/calculate")
def api_calculate():
    data = _json_body()
    if data is None:
        return jsonify({"error": "Request body must be a JSON object"}), 400
    try:
        params = _json_to_params(data)
    except click.BadParameter as exc:
        return jsonify({"error": exc.message}), 400
    result = calculate_dsr(params)
    return jsonify(
        {
            "summary": summary_to_dict(params, result),
            "schedule": serialize_schedule(result.monthly_payments),
        }
    )


@app.post("/api/advice")
def api_advice():
    """Return advice for the posted scenario.

    The calculation is redone from the posted parameters so the advice always
    matches what the client currently shows. Advice failures are reported
    with ``ok: false`` rather than an error status.
    """
    data = _json_body()
    if data is None:
        return jsonify({"error": "Request body must be a JSON object"}), 400
    try:
        params = _json_to_params(data)
    except click.BadParameter as exc:
        return jsonify({"error": exc.message}), 400
    result = calculate_dsr(params)
    advice = generate_advice(params, result)
    return jsonify({"advice": advice.text, "ok": advice.ok})


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    print("Starting DSR Calculator web app...")
    app.run(host="0.0.0.0", port=int(os.environ.get("PORT", "8710")), debug=True)
