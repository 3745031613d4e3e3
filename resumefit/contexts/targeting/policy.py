"""
Post-hoc rewrite policy.

The prompts ask the model to respect word windows, keyword quotas and the
skill deletion quota; these functions enforce the same limits on the planned
ops before they are applied. Thresholds come from PipelineSettings.
"""

from collections import Counter
from dataclasses import replace
from typing import List, Sequence, Tuple

from resumefit.config import PipelineSettings
from resumefit.contexts.targeting.keywords import contains_term, matched_terms
from resumefit.contexts.targeting.logger import _log_info, log_policy_reverts
from resumefit.contexts.targeting.operations import Operation, ReplaceBullets, ReplaceSkillCsv
from resumefit.contexts.targeting.reconciliation import clean_skill_csv, section_occurrences, skill_key
from resumefit.contexts.templating.data_structures import RewriteableSection
from resumefit.contexts.templating.structure import find_skill_line, resolve_section
from resumefit.utils.latex_parsing_tools import strip_markdown_bold, to_plaintext
from resumefit.utils.text_processing import count_words


def policy_slack(settings: PipelineSettings) -> Tuple[int, int]:
    """
    (lower, upper) word slack a rewrite may use and still be kept.

    The window always contains the one requested in the prompt, widened by the
    policy_* slack when that is looser.
    """
    return (
        min(settings.window_lower_slack, settings.policy_lower_slack),
        max(settings.window_upper_slack, settings.policy_upper_slack),
    )


def _within_window(original: str, rewritten: str, settings: PipelineSettings) -> bool:
    n = count_words(to_plaintext(original))
    r = count_words(to_plaintext(strip_markdown_bold(rewritten)))
    lower, upper = policy_slack(settings)
    return max(1, n + lower) <= r <= n + upper


def _bullet_violation(
    original: str,
    rewritten: str,
    important: Sequence[str],
    usage: Counter,
    settings: PipelineSettings,
) -> str:
    """Reason the rewrite must be reverted, or "" if it is acceptable."""
    if not _within_window(original, rewritten, settings):
        return "word window"

    hits = matched_terms(rewritten, important)
    required = min(settings.min_keyword_hits, len(important))
    if len(hits) < required:
        return "keyword quota"

    if settings.max_keyword_repeats > 0:
        introduced = [term for term in hits if not contains_term(original, term)]
        if any(usage[term] >= settings.max_keyword_repeats for term in introduced):
            return "keyword repetition"

    return ""


def enforce_bullet_policy(
    original_sections: Sequence[RewriteableSection],
    ops: Sequence[Operation],
    important: Sequence[str],
    settings: PipelineSettings,
) -> List[Operation]:
    """
    Revert rewritten bullets that break the word window or keyword limits.

    A rewritten bullet is replaced by the original bullet at the same index
    when it falls outside its word window (see policy_slack()), mentions
    fewer than min_keyword_hits important terms (capped at the number of
    terms), or would put an important term in more than
    max_keyword_repeats bullets. Bullets beyond the original count are left for
    reconciliation to truncate.

    Returns:
        New op list; non-bullet ops and unresolvable sections pass through
    """
    if not settings.enforce_bullet_policy:
        return list(ops)

    usage: Counter = Counter()
    result = []
    for op, occurrence in zip(ops, section_occurrences(ops)):
        if not isinstance(op, ReplaceBullets):
            result.append(op)
            continue
        section = resolve_section(list(original_sections), op.section, occurrence)
        if section is None:
            result.append(op)
            continue

        bullets = list(op.bullets)
        reverted = []
        for i, original in enumerate(section.bullets[: len(bullets)]):
            rewritten = bullets[i]
            if rewritten is None:
                usage.update(matched_terms(original, important))
                continue
            if rewritten.strip() != original.strip():
                reason = _bullet_violation(original, rewritten, important, usage, settings)
                if reason:
                    bullets[i] = original
                    reverted.append(f"{i + 1} ({reason})")
            usage.update(matched_terms(bullets[i], important))

        log_policy_reverts(section.name, reverted)
        result.append(replace(op, bullets=bullets))
    return result


def enforce_skill_quota(
    tex: str, ops: Sequence[Operation], settings: PipelineSettings
) -> List[Operation]:
    """
    Cap how many existing skill entries one op may delete.

    If an op drops more than max_skill_deletions of the line's current entries,
    the excess dropped entries are appended back to its csv (a negative quota
    disables the check).
    """
    quota = settings.max_skill_deletions
    if quota < 0:
        return list(ops)

    result = []
    for op in ops:
        if not isinstance(op, ReplaceSkillCsv):
            result.append(op)
            continue
        line = find_skill_line(tex, op.label)
        if line is None:
            result.append(op)
            continue

        kept = {skill_key(item) for item in clean_skill_csv(op.csv)}
        dropped = [item for item in line.items if skill_key(item) not in kept]
        if len(dropped) <= quota:
            result.append(op)
            continue

        restored = dropped[quota:]
        _log_info(
            f"Skill quota: '{line.label}' dropped {len(dropped)} entries, "
            f"restoring {len(restored)}"
        )
        csv = ", ".join(part for part in (op.csv.strip(), ", ".join(restored)) if part)
        result.append(replace(op, csv=csv))
    return result
