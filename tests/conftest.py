"""Shared fixtures: settings, the sample template and in-process fakes for network collaborators."""

from pathlib import Path
from typing import List

import pytest

from resumefit.config import load_settings
from resumefit.utils.llm import GenerationConfig, LLMProvider, LLMResponse

FIXTURES_PATH = Path(__file__).parent / "fixtures"


class FakeProvider(LLMProvider):
    """Returns canned replies in order and records every prompt it was sent."""

    _provider_prefix = "fake"
    _retryable_exception = RuntimeError
    _retry_message = "Fake overloaded"

    def __init__(self, replies: List[str]):
        self.replies = list(replies)
        self.prompts = []
        self.configs = []
        self.update_model("scripted")

    def _call_api(self, system_prompt: str, user_prompt: str, config: GenerationConfig) -> LLMResponse:
        self.prompts.append(user_prompt)
        self.configs.append(config)
        content = self.replies.pop(0) if self.replies else ""
        return LLMResponse(content=content, model=self.model, input_tokens=0, output_tokens=0)


class FakeResponse:
    def __init__(self, status_code=200, content=b"", headers=None, json_data=None, text=None):
        self.status_code = status_code
        self.content = content
        self.headers = headers or {}
        self._json = json_data
        self.text = text if text is not None else content.decode("utf-8", errors="replace")

    @property
    def ok(self):
        return 200 <= self.status_code < 400

    def json(self):
        return self._json


class FakeSession:
    """Stands in for requests.Session: scripted responses, recorded calls."""

    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []

    def _next(self, method, url, kwargs):
        self.calls.append((method, url, kwargs))
        return self.responses.pop(0)

    def post(self, url, **kwargs):
        return self._next("POST", url, kwargs)

    def get(self, url, **kwargs):
        return self._next("GET", url, kwargs)


@pytest.fixture
def settings(monkeypatch):
    for name in ("LLM_PROVIDER", "COMPILE_URL"):
        monkeypatch.delenv(name, raising=False)
    return load_settings()


@pytest.fixture
def template_tex():
    return (FIXTURES_PATH / "swe_template.tex").read_text(encoding="utf-8")


@pytest.fixture
def two_roles_tex():
    """Two experience sections under the same employer heading."""
    return (FIXTURES_PATH / "two_roles.tex").read_text(encoding="utf-8")


@pytest.fixture
def compile_error_log():
    return (FIXTURES_PATH / "compile_error.log").read_text(encoding="utf-8")
