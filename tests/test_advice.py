import logging
from dataclasses import replace
from types import SimpleNamespace

from openai import OpenAIError

from dsr_calc.advice import (
    ADVICE_ERROR_MESSAGE,
    NO_ADVICE_MESSAGE,
    build_advice_prompt,
    generate_advice,
)
from dsr_calc.config import AdviceSettings
from dsr_calc.engine import calculate_dsr

SETTINGS = AdviceSettings(model="test-model", timeout=1.0, api_key="sk-test")


class FakeCompletions:
    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def fake_client(completions):
    return SimpleNamespace(chat=SimpleNamespace(completions=completions))


def test_prompt_describes_scenario(scenario_a):
    params = replace(scenario_a, grace_period_year=5, apply_stress_dsr=True)
    result = calculate_dsr(params)
    prompt = build_advice_prompt(params, result)
    assert "Annual income: 50,000,000 KRW" in prompt
    assert "Loan amount: 300,000,000 KRW" in prompt
    assert "Grace period: 5 years" in prompt
    assert "applied (+3.0%p, 7.5% used)" in prompt
    assert f"DSR: {result.dsr_ratio:.2f}%" in prompt
    assert "40-50%" in prompt


def test_prompt_without_stress(scenario_a):
    prompt = build_advice_prompt(scenario_a, calculate_dsr(scenario_a))
    assert "Stress DSR: not applied" in prompt


def test_generate_advice_returns_model_text(scenario_a):
    result = calculate_dsr(scenario_a)
    completions = FakeCompletions(content="  **Stable.** Keep it up.\n")
    advice = generate_advice(scenario_a, result, client=fake_client(completions), settings=SETTINGS)
    assert advice.ok
    assert advice.text == "**Stable.** Keep it up."
    call = completions.calls[0]
    assert call["model"] == "test-model"
    assert call["messages"][-1]["content"] == build_advice_prompt(scenario_a, result)


def test_generate_advice_empty_answer(scenario_a):
    completions = FakeCompletions(content=None)
    advice = generate_advice(scenario_a, calculate_dsr(scenario_a), client=fake_client(completions), settings=SETTINGS)
    assert not advice.ok
    assert advice.text == NO_ADVICE_MESSAGE


def test_generate_advice_service_error_is_caught(scenario_a, caplog):
    result = calculate_dsr(scenario_a)
    completions = FakeCompletions(error=OpenAIError("service down"))
    with caplog.at_level(logging.ERROR, logger="dsr_calc.advice"):
        advice = generate_advice(scenario_a, result, client=fake_client(completions), settings=SETTINGS)
    assert not advice.ok
    assert advice.text == ADVICE_ERROR_MESSAGE
    assert "Advice request failed" in caplog.text
    # the calculation is untouched by the failure
    assert calculate_dsr(scenario_a) == result


def test_generate_advice_without_api_key(scenario_a, monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    settings = AdviceSettings(model="test-model", api_key=None)
    advice = generate_advice(scenario_a, calculate_dsr(scenario_a), settings=settings)
    assert not advice.ok
    assert advice.text == ADVICE_ERROR_MESSAGE


def test_generate_advice_with_malformed_timeout(scenario_a, monkeypatch, caplog):
    monkeypatch.setenv("DSR_ADVICE_TIMEOUT", "soon")
    completions = FakeCompletions(content="unused")
    with caplog.at_level(logging.ERROR, logger="dsr_calc.advice"):
        advice = generate_advice(scenario_a, calculate_dsr(scenario_a), client=fake_client(completions))
    assert not advice.ok
    assert advice.text == ADVICE_ERROR_MESSAGE
    assert completions.calls == []
    assert "Invalid advice settings" in caplog.text


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("DSR_ADVICE_MODEL", "gpt-test")
    monkeypatch.setenv("DSR_ADVICE_TIMEOUT", "5")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
    monkeypatch.delenv("DSR_ADVICE_BASE_URL", raising=False)
    settings = AdviceSettings.from_env()
    assert settings.model == "gpt-test"
    assert settings.timeout == 5.0
    assert settings.api_key == "sk-env"
    assert settings.base_url is None
