"""
Model passes of a tailoring run.

ModelClient sends the keyword-gap, bullet-rewrite and skill-refinement prompts
through an LLMProvider and turns each reply into validated results. A failed
HTTP call aborts the pass (ModelRequestError propagates); an unusable reply
degrades to an empty result.
"""

from dataclasses import dataclass, field
from typing import Any, List, Sequence

from resumefit.config import PipelineSettings
from resumefit.contexts.targeting.keywords import contains_term, is_trivial, normalize_term
from resumefit.contexts.targeting.logger import _log_debug, _log_info, log_model_reply
from resumefit.contexts.targeting.normalizer import parse_operations, recover_json
from resumefit.contexts.targeting.operations import Operation, ReplaceBullets, ReplaceSkillCsv
from resumefit.contexts.targeting.prompts import (
    build_bullet_rewrite_prompt,
    build_keyword_gap_prompt,
    build_skill_refine_prompt,
    system_prompt,
)
from resumefit.contexts.templating.data_structures import SkillLine
from resumefit.contexts.templating.structure import find_sections
from resumefit.exceptions import ModelRequestError
from resumefit.utils.llm import GenerationConfig, LLMProvider


@dataclass
class KeywordGaps:
    """Terms from the job description that the user's keyword list lacks."""

    skills: List[str] = field(default_factory=list)
    important: List[str] = field(default_factory=list)


def clean_keyword_list(
    value: Any, jd: str, exclude: Sequence[str], limit: int
) -> List[str]:
    """
    Validate one keyword array from the model.

    Keeps strings only, drops trivial words, terms absent from the JD, terms the
    user already lists (case-insensitive), and duplicates; caps at limit.
    """
    if not isinstance(value, list):
        return []

    excluded = {normalize_term(term) for term in exclude}
    jd_normalized = normalize_term(jd)
    kept, seen = [], set()
    for item in value:
        if not isinstance(item, str):
            continue
        term = item.strip()
        key = normalize_term(term)
        if is_trivial(term) or key in excluded or key in seen:
            continue
        if key not in jd_normalized and not contains_term(jd, term):
            _log_debug(f"Dropped keyword not found in JD: {term}")
            continue
        seen.add(key)
        kept.append(term)
        if len(kept) >= limit:
            break
    return kept


class ModelClient:
    """
    Runs the three model passes against one provider.

    Example:
        client = ModelClient(get_provider("gemini", api_key=key), load_settings())
        gaps = client.extract_keyword_gaps(jd, category.keywords)
        ops = client.plan_bullet_rewrites(jd, tex, gaps.important, user_prompt)
    """

    def __init__(self, provider: LLMProvider, settings: PipelineSettings):
        self.provider = provider
        self.settings = settings

    def _generate(self, pass_name: str, user_prompt: str, config: GenerationConfig) -> str:
        try:
            response = self.provider.generate(system_prompt(), user_prompt, config)
        except ModelRequestError as e:
            raise ModelRequestError(
                e.message, status=e.status, pass_name=pass_name, body=e.body
            ) from e
        log_model_reply(pass_name, response)
        return response.content

    def extract_keyword_gaps(self, jd: str, keywords: Sequence[str]) -> KeywordGaps:
        """Skills and important terms in the JD that the user's keyword list lacks."""
        s = self.settings
        prompt = build_keyword_gap_prompt(jd, list(keywords), s)
        config = GenerationConfig(
            temperature=s.keywords_temperature,
            max_output_tokens=s.keywords_max_tokens,
            json_response=True,
        )
        raw = self._generate("keywords", prompt, config)
        reply = recover_json(raw, "skills") or recover_json(raw, "important") or {}

        gaps = KeywordGaps(
            skills=clean_keyword_list(reply.get("skills"), jd, keywords, s.max_keyword_items),
            important=clean_keyword_list(reply.get("important"), jd, keywords, s.max_keyword_items),
        )
        _log_info(f"Keyword gaps: {len(gaps.skills)} skills, {len(gaps.important)} important terms")
        return gaps

    def plan_bullet_rewrites(
        self, jd: str, tex: str, important: Sequence[str], user_prompt: str = ""
    ) -> List[Operation]:
        """
        One replace_bullets op per rewriteable section.

        Returns [] without calling the model when the document has no sections.
        """
        sections = find_sections(tex)
        if not sections:
            _log_info("No rewriteable sections; skipping bullet rewrite")
            return []

        s = self.settings
        prompt = build_bullet_rewrite_prompt(jd, sections, list(important), user_prompt, s)
        config = GenerationConfig(
            temperature=s.bullets_temperature,
            top_p=s.bullets_top_p,
            max_output_tokens=s.bullets_max_tokens,
            json_response=True,
        )
        ops = parse_operations(self._generate("bullets", prompt, config))
        ops = [op for op in ops if isinstance(op, ReplaceBullets)]
        _log_info(f"Bullet pass planned {len(ops)} op(s) for {len(sections)} section(s)")
        return ops

    def plan_skill_refinements(
        self, jd: str, skill_lines: Sequence[SkillLine], must_include: Sequence[str]
    ) -> List[Operation]:
        """
        One replace_skill_csv op per skill line.

        Returns [] without calling the model when there are no skill lines.
        """
        if not skill_lines:
            _log_info("No skill lines; skipping skill refinement")
            return []

        s = self.settings
        prompt = build_skill_refine_prompt(jd, skill_lines, list(must_include), s)
        config = GenerationConfig(
            temperature=s.skills_temperature,
            top_p=s.skills_top_p,
            max_output_tokens=s.skills_max_tokens,
            json_response=True,
        )
        ops = parse_operations(self._generate("skills", prompt, config))
        ops = [op for op in ops if isinstance(op, ReplaceSkillCsv)]
        _log_info(f"Skill pass planned {len(ops)} op(s) for {len(skill_lines)} line(s)")
        return ops
