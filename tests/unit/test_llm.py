"""
Unit tests for the Gemini REST provider and retry policy (resumefit.utils.llm).
"""

import pytest

import resumefit.utils.llm as llm
from conftest import FakeResponse, FakeSession
from resumefit.exceptions import ConfigurationError, ModelRequestError
from resumefit.utils.llm import GeminiProvider, GenerationConfig, get_provider

REPLY = {
    "candidates": [{"content": {"parts": [{"text": '{"ops": '}, {"text": "[]}"}]}}],
    "usageMetadata": {"promptTokenCount": 120, "candidatesTokenCount": 8},
}


@pytest.fixture(autouse=True)
def no_backoff(monkeypatch):
    monkeypatch.setattr(llm, "BASE_DELAY", 0.0)
    monkeypatch.setattr(llm.time, "sleep", lambda seconds: None)


def _provider(responses):
    session = FakeSession(responses)
    return GeminiProvider(model="gemini-2.0-flash", api_key="test-key", session=session), session


@pytest.mark.unit
class TestGeminiProvider:
    def test_request_and_reply(self):
        provider, session = _provider([FakeResponse(200, json_data=REPLY)])
        config = GenerationConfig(temperature=0.2, top_p=0.8, max_output_tokens=4000)

        response = provider.generate("system text", "user text", config)

        assert response.content == '{"ops": []}'
        assert (response.input_tokens, response.output_tokens) == (120, 8)

        method, url, kwargs = session.calls[0]
        assert method == "POST"
        assert url.endswith("/models/gemini-2.0-flash:generateContent")
        assert kwargs["params"] == {"key": "test-key"}
        payload = kwargs["json"]
        assert payload["contents"][0]["parts"][0]["text"] == "user text"
        assert payload["systemInstruction"]["parts"][0]["text"] == "system text"
        assert payload["generationConfig"] == {
            "temperature": 0.2,
            "maxOutputTokens": 4000,
            "topP": 0.8,
            "responseMimeType": "application/json",
        }

    def test_empty_system_prompt_omitted(self):
        provider, session = _provider([FakeResponse(200, json_data=REPLY)])
        provider.generate("", "user text", GenerationConfig(json_response=False))

        payload = session.calls[0][2]["json"]
        assert "systemInstruction" not in payload
        assert "responseMimeType" not in payload["generationConfig"]
        assert "topP" not in payload["generationConfig"]

    def test_overload_is_retried(self):
        provider, session = _provider([
            FakeResponse(503, content=b"overloaded"),
            FakeResponse(429, content=b"rate limited"),
            FakeResponse(200, json_data=REPLY),
        ])
        assert provider.generate("", "user text").content == '{"ops": []}'
        assert len(session.calls) == 3

    def test_retries_exhausted(self):
        provider, session = _provider([FakeResponse(503, content=b"overloaded")] * llm.MAX_RETRIES)

        with pytest.raises(ModelRequestError) as excinfo:
            provider.generate("", "user text")

        assert excinfo.value.status == 503
        assert len(session.calls) == llm.MAX_RETRIES

    def test_client_error_not_retried(self):
        provider, session = _provider([FakeResponse(400, content=b"bad request")])

        with pytest.raises(ModelRequestError) as excinfo:
            provider.generate("", "user text")

        assert excinfo.value.status == 400
        assert excinfo.value.body == "bad request"
        assert len(session.calls) == 1

    def test_missing_api_key(self, monkeypatch):
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        with pytest.raises(ConfigurationError, match="Missing API key in Options."):
            GeminiProvider(api_key="")


@pytest.mark.unit
class TestGetProvider:
    def test_gemini_with_model(self):
        provider = get_provider("Gemini", model="gemini-1.5-pro", api_key="test-key")
        assert isinstance(provider, GeminiProvider)
        assert provider.name == "gemini/gemini-1.5-pro"

    def test_unknown_provider(self):
        with pytest.raises(ValueError, match="Unknown provider"):
            get_provider("mystery", api_key="test-key")
