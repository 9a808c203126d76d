import pytest

from dsr_calc.data_models import Advice
from dsr_calc_web import app as web

FORM = {
    "annual_income": "50,000,000",
    "loan_amount": "300,000,000",
    "interest_rate": "4.5",
    "loan_term_year": "30",
    "grace_period_year": "0",
    "repayment_method": "equal_installment",
    "collateral_type": "housing",
}


@pytest.fixture
def client():
    web.app.config["TESTING"] = True
    with web.app.test_client() as client:
        yield client


def test_index_shows_default_form(client):
    response = client.get("/")
    assert response.status_code == 200
    body = response.get_data(as_text=True)
    assert "DSR Calculator" in body
    assert 'value="300000000"' in body
    assert "Repayment schedule" not in body


def test_index_post_renders_result(client):
    response = client.post("/", data=FORM)
    assert response.status_code == 200
    body = response.get_data(as_text=True)
    assert "Repayment schedule" in body
    assert "Safe" in body
    assert "rate 4.5% applied" in body
    assert "240 more rows truncated" in body


def test_index_post_full_schedule_and_housing_warning(client):
    form = dict(FORM, grace_period_year="5", apply_stress_dsr="1", show_full_schedule="1")
    body = client.post("/", data=form).get_data(as_text=True)
    assert "truncated" not in body
    assert "stress rate 7.5% applied" in body
    assert "Housing loans with a grace period" in body


def test_index_post_validation_error(client):
    form = dict(FORM, grace_period_year="30")
    response = client.post("/", data=form)
    assert response.status_code == 200
    body = response.get_data(as_text=True)
    assert "Grace period (30 years) must be shorter than the loan term (30 years)" in body
    assert "Repayment schedule" not in body


def test_api_calculate(client):
    response = client.post("/api/calculate", json=dict(FORM, apply_stress_dsr=True))
    assert response.status_code == 200
    data = response.get_json()
    assert len(data["schedule"]) == 360
    assert data["summary"]["stress_dsr_rate_used"] == 7.5
    assert data["summary"]["risk_level"] in ("Safe", "Caution", "High Risk")


def test_api_calculate_rejects_bad_input(client):
    response = client.post("/api/calculate", json=dict(FORM, loan_term_year="0"))
    assert response.status_code == 400
    assert "at least 1 year" in response.get_json()["error"]


def test_api_advice_failure_is_reported_not_raised(client, monkeypatch):
    monkeypatch.setattr(web, "generate_advice", lambda params, result: Advice(text="unavailable", ok=False))
    response = client.post("/api/advice", json=FORM)
    assert response.status_code == 200
    assert response.get_json() == {"advice": "unavailable", "ok": False}


def test_api_advice_success(client, monkeypatch):
    seen = {}

    def fake_advice(params, result):
        seen["dsr"] = result.dsr_ratio
        return Advice(text="Looks stable.")

    monkeypatch.setattr(web, "generate_advice", fake_advice)
    response = client.post("/api/advice", json=FORM)
    assert response.get_json() == {"advice": "Looks stable.", "ok": True}
    assert 36 < seen["dsr"] < 37


def test_api_advice_with_malformed_timeout_is_reported(client, monkeypatch):
    monkeypatch.setenv("DSR_ADVICE_TIMEOUT", "soon")
    response = client.post("/api/advice", json=FORM)
    assert response.status_code == 200
    assert response.get_json()["ok"] is False


@pytest.mark.parametrize("endpoint", ["/api/calculate", "/api/advice"])
@pytest.mark.parametrize("body", [[1, 2], "text", 42])
def test_api_rejects_non_object_body(client, endpoint, body):
    response = client.post(endpoint, json=body)
    assert response.status_code == 400
    assert response.get_json() == {"error": "Request body must be a JSON object"}
