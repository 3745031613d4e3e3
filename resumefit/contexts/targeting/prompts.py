"""
Prompt templates and builders for the three model passes.

Each pass sends one user prompt: an instruction block, the bounded data dump of
the current document state, and the exact JSON shape expected back.
"""

from typing import List, Sequence, Tuple

from resumefit.config import PipelineSettings
from resumefit.contexts.templating.data_structures import RewriteableSection, SkillLine
from resumefit.utils.latex_parsing_tools import to_plaintext
from resumefit.utils.text_processing import TRUNCATION_MARKER, count_words, truncate_for_prompt

# =============================================================================
# PROMPT TEMPLATES
# =============================================================================

_SYSTEM_PROMPT = """\
You are an expert resume editor specializing in ATS optimization.
Respond with a single raw JSON object and nothing else: no markdown fences, no commentary."""

_KEYWORD_GAP_TEMPLATE = """\
You are an expert ATS keyword extractor. Generate a single, valid JSON object from the
Job Description (JD) and the user-supplied keywords below.

## TASK
Identify technical skills and other important keywords that are present in the JD but
*absent* from the user-supplied keyword list.

## JSON OUTPUT SPECIFICATION
{{"skills": ["string"], "important": ["string"]}}

- skills: up to {max_items} technical skills, frameworks, tools, cloud platforms and
  databases found in the JD but not in the user's list.
- important: up to {max_items} high-impact, ATS-friendly terms from the JD (methodologies,
  qualifications, e.g. "performance optimization", "CI/CD pipelines"), not broad concepts.

## RULES
1. Strict exclusion: no output keyword may appear in the user-supplied list.
2. JD source only: every output keyword must appear verbatim in the JD text.
3. Limit: at most {max_items} items per array.
4. Empty is OK: return [] for a category with no matches.
5. Exclude stop-words and trivial English words.

## INPUTS

### JD Text:
{jd}

### User-Supplied Keywords:
{keywords}"""

_BULLET_REWRITE_TEMPLATE = """\
Enhance the user's existing resume bullet points to be more impactful while adhering
to all rules.

## STRICT RULES
1. Word count windows: each rewritten bullet MUST fall within its own word count window
   (a 15-word bullet with a "15-20" window must be rewritten to 15-20 words).
2. Weave in keywords: include one or two words from the Important Words list in each
   bullet, naturally.
3. Preserve core meaning: keep the original intent. All numbers, metrics and proper
   nouns must be preserved.
4. Maintain structure: do NOT add, delete or reorder bullets. Return exactly as many
   bullets per section as shown in parentheses after its name.
5. Plain text only: no Markdown emphasis and no new LaTeX commands.
{instruction_block}
## INPUTS
### Job Description:
{jd}
### Important Words (to include):
{important}
### Current Bullets & Their Word Count Windows:
{section_dump}
*Required word count windows (in order): [{windows}]*

## OUTPUT FORMAT
Return STRICT JSON ONLY, one op per section, using the section names exactly as shown:
{{"ops":[{{"op":"replace_bullets","section":"Section Name","bullets":["...","..."]}}]}}"""

_USER_INSTRUCTION_BLOCK = """
## USER PROMPT (Highest Priority)
{instruction}
"""

_SKILL_REFINE_TEMPLATE = """\
Refine the resume skill lines below to match the job description.

## PROCESSING LOGIC & RULES
1. Core mandate: for EACH skill in "Mandatory Skills to Include":
   a. choose the most appropriate skill line (label) for it;
   b. add it inside that line's list, not at the end;
   c. do not duplicate a skill that is already listed.
2. Keep every original label exactly as written. Do not add or rename labels.
{deletion_rule}
4. Do not invent skills that are not in the mandatory list, the current skill lines,
   or the job description.
5. Plain comma-separated text only: no bold, no LaTeX commands, no Markdown.

## INPUTS

### Job Description:
{jd}

### Mandatory Skills to Include:
{must_include}

### CURRENT SKILL LINES:
{skill_dump}

## OUTPUT FORMAT
Return STRICT JSON ONLY, one op per label:
{{"ops":[{{"op":"replace_skill_csv","label":"Original Label","csv":"skill, skill, skill"}}]}}"""


def system_prompt() -> str:
    """System prompt shared by every pass."""
    return _SYSTEM_PROMPT


# =============================================================================
# DATA DUMPS
# =============================================================================


def format_section_dump(sections: Sequence[RewriteableSection], max_chars: int = 7000) -> str:
    """
    Concise dump of the rewriteable sections that fits a context budget.

    Format:
        ▼ Acme Corp (3)
          • first bullet
          • ...

    Once the dump passes max_chars, the current section is finished and an
    explicit "…" marker ends the dump.
    """
    out = ""
    for section in sections:
        out += f"▼ {section.name} ({len(section.bullets)})\n"
        for bullet in section.bullets:
            out += f"  • {bullet}\n"
        out += "\n"
        if len(out) > max_chars:
            out += f"{TRUNCATION_MARKER}\n"
            break
    return out.strip()


def word_window(bullet: str, lower_slack: int, upper_slack: int) -> Tuple[int, int]:
    """(min, max) word count for a rewrite of bullet; min is never below 1."""
    n = count_words(to_plaintext(bullet))
    return max(1, n + lower_slack), max(1, n + upper_slack)


def format_word_windows(
    sections: Sequence[RewriteableSection], lower_slack: int, upper_slack: int
) -> str:
    """Per-bullet windows in document order, e.g. "12-17, 9-14"."""
    windows = []
    for section in sections:
        for bullet in section.bullets:
            low, high = word_window(bullet, lower_slack, upper_slack)
            windows.append(f"{low}-{high}")
    return ", ".join(windows)


def format_skill_dump(skill_lines: Sequence[SkillLine]) -> str:
    """One "Label: a, b, c" line per skill line."""
    return "\n".join(f"{line.label}: {', '.join(line.items)}" for line in skill_lines)


# =============================================================================
# PROMPT BUILDERS
# =============================================================================


def build_keyword_gap_prompt(jd: str, keywords: List[str], settings: PipelineSettings) -> str:
    """User prompt for the keyword-gap pass."""
    return _KEYWORD_GAP_TEMPLATE.format(
        max_items=settings.max_keyword_items,
        jd=truncate_for_prompt(jd, settings.keywords_jd_chars),
        keywords=", ".join(keywords) or "None",
    )


def build_bullet_rewrite_prompt(
    jd: str,
    sections: Sequence[RewriteableSection],
    important: List[str],
    user_prompt: str,
    settings: PipelineSettings,
) -> str:
    """User prompt for the bullet rewrite pass."""
    instruction = (user_prompt or "").strip()
    instruction_block = _USER_INSTRUCTION_BLOCK.format(instruction=instruction) if instruction else ""

    return _BULLET_REWRITE_TEMPLATE.format(
        instruction_block=instruction_block,
        jd=truncate_for_prompt(jd, settings.bullets_jd_chars),
        important=", ".join(important) or "None",
        section_dump=format_section_dump(sections, settings.section_dump_chars),
        windows=format_word_windows(
            sections, settings.window_lower_slack, settings.window_upper_slack
        ),
    )


def _deletion_rule(max_deletions: int) -> str:
    if max_deletions < 0:
        return "3. Remove entries only when they are irrelevant to the job description."
    if max_deletions == 0:
        return "3. Do not delete any existing entry."
    return f"3. Delete at most {max_deletions} existing entries from any one line."


def build_skill_refine_prompt(
    jd: str, skill_lines: Sequence[SkillLine], must_include: List[str], settings: PipelineSettings
) -> str:
    """User prompt for the skill refinement pass."""
    return _SKILL_REFINE_TEMPLATE.format(
        deletion_rule=_deletion_rule(settings.max_skill_deletions),
        jd=truncate_for_prompt(jd, settings.skills_jd_chars),
        must_include=", ".join(must_include) or "None",
        skill_dump=format_skill_dump(skill_lines),
    )

