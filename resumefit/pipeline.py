"""
Tailoring pipeline orchestrator.

One request runs, in this order:

1. configuration checks (API key, category, template), before any network call
2. project injection into the category template
3. keyword-gap pass
4. bullet-rewrite pass, post-hoc bullet policy, reconciliation
5. skill-refinement pass, deletion quota, reconciliation
6. deterministic LaTeX repairs
7. remote compilation

Usage:
    from resumefit.pipeline import PipelineRequest, process_request

    result = process_request(PipelineRequest(jd=jd_text, company="Acme", category_id="swe"))
    if "error" in result:
        ...
"""

import base64
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from loguru import logger

from resumefit.config import PipelineSettings, load_settings
from resumefit.contexts.rendering.compiler import CompilationResult, compile_remote, pdf_filename
from resumefit.contexts.targeting import (
    ModelClient,
    apply_operations,
    enforce_bullet_policy,
    enforce_skill_quota,
)
from resumefit.contexts.templating import (
    class_filename,
    find_sections,
    find_skill_lines,
    inject_projects,
    repair_latex,
)
from resumefit.contexts.templating.logger import log_sections_found
from resumefit.exceptions import ConfigurationError, ResumeFitError
from resumefit.state import ResumeData, ResumeDataStore, StatusStore
from resumefit.utils.llm import LLMProvider, get_provider

MISSING_API_KEY = "Missing API key in Options."
MISSING_TEMPLATE = "Selected category not found or has no LaTeX template."

Compiler = Callable[..., CompilationResult]


@dataclass
class PipelineRequest:
    """One tailoring request."""

    jd: str
    prompt: str = ""
    company: str = ""
    category_id: str = ""
    selected_project_ids: List[str] = field(default_factory=list)


def build_base_document(request: PipelineRequest, data: ResumeData) -> str:
    """
    Validate the request against the user's data and return the base document.

    Raises:
        ConfigurationError: Missing API key, unknown category or empty template
    """
    if not (data.apikey or "").strip():
        raise ConfigurationError(MISSING_API_KEY)

    category = data.get_category(request.category_id)
    if category is None or not (category.latex or "").strip():
        raise ConfigurationError(MISSING_TEMPLATE)

    projects = data.select_projects(request.selected_project_ids)
    return inject_projects(category.latex, projects)


def tailor_document(
    tex: str,
    request: PipelineRequest,
    keywords: List[str],
    client: ModelClient,
    settings: PipelineSettings,
    on_stage: Callable[[str], None] = lambda stage: None,
) -> str:
    """
    Run the three model passes over tex and return the repaired result.

    Raises:
        ModelRequestError: If any model call fails
    """
    on_stage("keywords")
    gaps = client.extract_keyword_gaps(request.jd, keywords)

    on_stage("bullets")
    original_sections = find_sections(tex)
    bullet_ops = client.plan_bullet_rewrites(request.jd, tex, gaps.important, request.prompt)
    bullet_ops = enforce_bullet_policy(original_sections, bullet_ops, gaps.important, settings)
    tex = apply_operations(tex, bullet_ops)

    on_stage("skills")
    skill_lines = find_skill_lines(tex, list(settings.skill_labels) or None)
    log_sections_found(original_sections, [line.label for line in skill_lines])
    skill_ops = client.plan_skill_refinements(request.jd, skill_lines, gaps.skills)
    skill_ops = enforce_skill_quota(tex, skill_ops, settings)
    tex = apply_operations(tex, skill_ops)

    return repair_latex(tex)


def process_request(
    request: PipelineRequest,
    data: Optional[ResumeData] = None,
    provider: Optional[LLMProvider] = None,
    compiler: Optional[Compiler] = None,
    settings: Optional[PipelineSettings] = None,
    status: Optional[StatusStore] = None,
) -> Dict[str, Any]:
    """
    Tailor the selected category template to a job description and compile it.

    Args:
        request: Job description, user prompt, company, category and projects
        data: User record (default: loaded from RESUMEFIT_DATA)
        provider: LLM provider (default: settings.provider with the stored API key)
        compiler: Callable with compile_remote()'s signature (default: compile_remote)
        settings: Pipeline settings (default: load_settings())
        status: Status store updated with the current stage

    Returns:
        {"pdf_b64", "tex", "pdf_filename"} on success, {"error": message} on failure
    """
    status = status or StatusStore()
    token = status.begin(company=request.company, category_id=request.category_id)

    def on_stage(stage: str) -> None:
        status.merge(token, stage=stage)

    try:
        settings = settings or load_settings()
        data = data if data is not None else ResumeDataStore().load()

        tex = build_base_document(request, data)
        category = data.get_category(request.category_id)

        provider = provider or get_provider(settings.provider, settings.model, api_key=data.apikey)
        client = ModelClient(provider, settings)
        tex = tailor_document(tex, request, list(category.keywords), client, settings, on_stage)

        on_stage("compiling")
        compile_fn = compiler or compile_remote
        result = compile_fn(
            tex,
            settings,
            cls_content=category.cls_file_content,
            class_filename=class_filename(tex, settings.default_class_filename),
        )
    except ResumeFitError as e:
        logger.error(f"Tailoring failed: {e}")
        status.merge(token, stage="failed", error=str(e))
        return {"error": str(e)}
    except Exception as e:
        logger.exception(f"Unexpected failure while tailoring: {e}")
        status.merge(token, stage="failed", error=str(e))
        return {"error": str(e) or type(e).__name__}

    filename = pdf_filename(data.owner_name or "Resume", request.company)
    status.merge(token, stage="done", pdf_filename=filename)
    return {
        "pdf_b64": base64.b64encode(result.pdf_bytes).decode("ascii"),
        "tex": tex,
        "pdf_filename": filename,
    }
