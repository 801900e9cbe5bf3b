import pytest

from llm.llm_client import LLMClient


def test_llm_extra_text_around_json(fake_provider_factory):
    provider = fake_provider_factory(
        'Sure! Here is the result: {"tasks":[{"text":"Call mom","quadrant":"Q3_DELEGATE"}]} Thanks.'
    )
    client = LLMClient(provider=provider)
    out = client.complete("Call mom")
    assert out.startswith("{") and out.endswith("}")
    assert "Q3_DELEGATE" in out


def test_llm_invalid_json_fallback(fake_provider_factory):
    provider = fake_provider_factory("INVALID OUTPUT")
    client = LLMClient(provider=provider)
    assert client.complete("Anything") == '{"tasks": []}'


def test_classify_rejects_bad_quadrant(fake_provider_factory):
    provider = fake_provider_factory('{"tasks":[{"text":"A","quadrant":"URGENT"}]}')
    with pytest.raises(ValueError):
        LLMClient(provider=provider).classify_quadrants(["A"])


def test_mock_provider_is_default(monkeypatch):
    monkeypatch.setenv("LLM_PROVIDER", "mock")
    result = LLMClient().classify_quadrants(["Pay the rent today", "Learn Spanish"])
    assert result.quadrant_for("Pay the rent today") == "Q1_DO"
    assert result.quadrant_for("Learn Spanish") == "Q2_SCHEDULE"
