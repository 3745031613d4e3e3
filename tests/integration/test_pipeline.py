"""
Integration tests for the full tailoring pipeline with in-process fakes for the
model API and the compile service.
"""

import base64

import pytest

from conftest import FakeProvider
from resumefit.contexts.rendering.compiler import CompilationResult
from resumefit.contexts.templating.latex_patterns import InjectionPatterns
from resumefit.contexts.templating.structure import find_section, find_skill_line
from resumefit.exceptions import CompilationError, ModelRequestError
from resumefit.pipeline import MISSING_API_KEY, MISSING_TEMPLATE, PipelineRequest, process_request
from resumefit.state import ResumeData, StatusStore
from resumefit.utils.llm import LLMResponse

JD = "Backend engineer: Kafka streaming, Python services, SQL analytics and R&D support."

KEYWORD_REPLY = '{"skills": ["Kafka"], "important": ["Kafka"]}'
BULLET_REPLY = """Here you go:
```json
{"ops":[
  {"op":"replace_bullets","section":"Acme Corp","bullets":[
    "Built Kafka data pipelines in Python processing 2M events per day",
    "Reduced API latency by **30%** through Kafka caching"]},
  {"op":"replace_bullets","section":"Globex","bullets":[
    "Automated weekly Kafka reporting with SQL for the R&D group"]}
]}
```"""
SKILL_REPLY = '{"ops":[{"op":"replace_skill_csv","label":"Programming Languages","csv":"Python, Go, SQL, Kafka, python"}]}'


class FakeCompiler:
    def __init__(self, error=None):
        self.error = error
        self.calls = []

    def __call__(self, tex, settings, cls_content="", class_filename=None):
        self.calls.append({"tex": tex, "cls_content": cls_content, "class_filename": class_filename})
        if self.error:
            raise self.error
        return CompilationResult(success=True, pdf_bytes=b"%PDF-fake", page_count=1)


@pytest.fixture
def data(template_tex):
    return ResumeData.from_dict({
        "apikey": "test-key",
        "ownerName": "Jane Doe",
        "categories": [
            {"id": "swe", "name": "Software", "keywords": ["Python", "Go"], "latex": template_tex,
             "clsFileContent": "CLS"},
            {"id": "blank", "name": "Blank", "latex": "   "},
        ],
        "projects": [
            {"id": "p1", "name": "Dashboard", "dates": "2022", "bullets": ["Built a metrics dashboard"]},
            {"id": "p2", "name": "Unused", "bullets": ["Never selected"]},
        ],
    })


def _request(**overrides):
    fields = dict(jd=JD, prompt="", company="Acme Robotics", category_id="swe", selected_project_ids=["p1"])
    fields.update(overrides)
    return PipelineRequest(**fields)


@pytest.mark.integration
class TestProcessRequest:
    def test_full_run(self, data, settings):
        provider = FakeProvider([KEYWORD_REPLY, BULLET_REPLY, SKILL_REPLY])
        compiler = FakeCompiler()
        status = StatusStore()

        result = process_request(
            _request(), data=data, provider=provider, compiler=compiler, settings=settings, status=status
        )

        assert set(result) == {"pdf_b64", "tex", "pdf_filename"}
        assert base64.b64decode(result["pdf_b64"]) == b"%PDF-fake"
        assert result["pdf_filename"] == "Jane_Doe_Acme_Robotics.pdf"

        tex = result["tex"]
        assert find_section(tex, "Acme Corp").bullets == [
            "Built Kafka data pipelines in Python processing 2M events per day",
            "Reduced API latency by 30\\% through Kafka caching",
            "Mentored three junior engineers on code review practices",
        ]
        assert find_section(tex, "Globex").bullets == [
            "Automated weekly Kafka reporting with SQL for the R\\&D group"
        ]
        assert find_section(tex, "Dashboard").bullets == ["Built a metrics dashboard"]
        assert "Never selected" not in tex
        assert find_skill_line(tex, "Programming Languages").items == ["Python", "Go", "SQL", "Kafka"]
        assert find_skill_line(tex, "Frameworks and Libraries").items == ["Django", "React"]

        assert compiler.calls[0]["tex"] == tex
        assert compiler.calls[0]["cls_content"] == "CLS"
        assert compiler.calls[0]["class_filename"] == "fed-res.cls"
        assert status.get()["stage"] == "done"

    def test_passes_run_in_order(self, data, settings):
        provider = FakeProvider([KEYWORD_REPLY, BULLET_REPLY, SKILL_REPLY])
        process_request(_request(prompt="Stress reliability"), data=data, provider=provider,
                        compiler=FakeCompiler(), settings=settings)

        keyword_prompt, bullet_prompt, skill_prompt = provider.prompts
        assert "### User-Supplied Keywords:\nPython, Go" in keyword_prompt
        assert "Stress reliability" in bullet_prompt
        assert "▼ Dashboard (1)" in bullet_prompt
        assert "### Mandatory Skills to Include:\nKafka" in skill_prompt
        assert "Programming Languages: Python, Go, SQL" in skill_prompt

    def test_unparseable_replies_leave_template_unchanged(self, data, settings, template_tex):
        provider = FakeProvider(["no json here", "still nothing", "```"])
        result = process_request(_request(selected_project_ids=[]), data=data, provider=provider,
                                 compiler=FakeCompiler(), settings=settings)

        assert result["tex"] == template_tex.replace(InjectionPatterns.MARKER, "")

    def test_missing_api_key(self, data, settings):
        data.apikey = ""
        provider = FakeProvider([])
        result = process_request(_request(), data=data, provider=provider, compiler=FakeCompiler(), settings=settings)

        assert result == {"error": MISSING_API_KEY}
        assert provider.prompts == []

    @pytest.mark.parametrize("category_id", ["absent", "blank"])
    def test_missing_template(self, data, settings, category_id):
        provider = FakeProvider([])
        compiler = FakeCompiler()
        result = process_request(_request(category_id=category_id), data=data, provider=provider,
                                 compiler=compiler, settings=settings)

        assert result == {"error": MISSING_TEMPLATE}
        assert provider.prompts == []
        assert compiler.calls == []

    def test_model_failure_aborts(self, data, settings):
        class FailingProvider(FakeProvider):
            def _call_api(self, system_prompt, user_prompt, config) -> LLMResponse:
                if "Word count windows" in user_prompt:
                    raise ModelRequestError("gemini request failed", status=400)
                return super()._call_api(system_prompt, user_prompt, config)

        compiler = FakeCompiler()
        status = StatusStore()
        result = process_request(_request(), data=data, provider=FailingProvider([KEYWORD_REPLY]),
                                 compiler=compiler, settings=settings, status=status)

        assert "HTTP 400" in result["error"]
        assert "bullets pass" in result["error"]
        assert compiler.calls == []
        assert status.get()["stage"] == "failed"

    def test_compile_failure(self, data, settings):
        compiler = FakeCompiler(error=CompilationError("LaTeX compile failed", first_error="! Undefined control sequence."))
        result = process_request(_request(), data=data, provider=FakeProvider([KEYWORD_REPLY, "", ""]),
                                 compiler=compiler, settings=settings)

        assert result["error"].startswith("LaTeX compile failed")
        assert "! Undefined control sequence." in result["error"]
