"""
Reconciliation / op-application engine.

Applies validated operations to the live document, one at a time and best
effort: an op that cannot be resolved or fails is logged and skipped, and the
remaining ops still run. Every op re-derives its target from the current text,
never from a cached parse.
"""

import re
from collections import Counter
from typing import List, Optional, Sequence, Tuple

from resumefit.contexts.targeting.keywords import normalize_term
from resumefit.contexts.targeting.logger import _log_debug, _log_error, _log_warning, log_ops_applied
from resumefit.contexts.targeting.operations import Operation, ReplaceBullets, ReplaceSkillCsv
from resumefit.contexts.templating.data_structures import RewriteableSection
from resumefit.contexts.templating.structure import (
    find_section,
    find_sections,
    find_skill_line,
    replace_section_body,
    replace_skill_items,
    section_key,
)
from resumefit.utils.latex_parsing_tools import (
    LaTeXPatterns,
    escape_latex,
    strip_formatting_commands,
    strip_markdown_bold,
    to_plaintext,
)


# =============================================================================
# BULLETS
# =============================================================================


def normalize_bullets(model_bullets: Sequence[Optional[str]], originals: Sequence[str]) -> List[str]:
    """
    Fit the model's bullets to the original count.

    Missing or None entries are filled with the original bullet at the same
    index and extras are dropped. Model text is de-Markdowned and escaped;
    padded originals and model bullets equal to the original are kept verbatim.

    Example:
        >>> normalize_bullets(["A", None], ["one", "two", "three"])
        ['A', 'two', 'three']
    """
    bullets = []
    for i, original in enumerate(originals):
        candidate = model_bullets[i] if i < len(model_bullets) else None
        if candidate is None:
            bullets.append(original)
            continue
        if candidate.strip() == original.strip():
            bullets.append(original)
            continue
        cleaned = escape_latex(strip_markdown_bold(candidate).strip())
        bullets.append(cleaned if cleaned else original)
    return bullets


def _section_at(tex: str, body_start: int) -> Optional[RewriteableSection]:
    return next((s for s in find_sections(tex) if s.body_start == body_start), None)


def apply_replace_bullets(tex: str, op: ReplaceBullets, occurrence: int = 0) -> Tuple[str, bool]:
    """
    Replace the bullets of one section, keeping its original bullet count.

    occurrence picks among sections sharing the op's name, in document order.

    Returns:
        (new_tex, applied)
    """
    section = find_section(tex, op.section, occurrence)
    if section is None:
        _log_warning(f"replace_bullets: no section named '{op.section}' (#{occurrence + 1}); skipped")
        return tex, False

    want = len(section.bullets)
    bullets = normalize_bullets(op.bullets, section.bullets)
    if len(op.bullets) != want:
        _log_debug(f"'{section.name}': model returned {len(op.bullets)} bullet(s), want {want}")

    for attempt in range(2):
        new_tex = replace_section_body(tex, section, bullets)
        check = _section_at(new_tex, section.body_start)
        if check is not None and len(check.bullets) == want:
            return new_tex, True
        _log_debug(f"'{section.name}': bullet count mismatch after replacement (attempt {attempt + 1})")
        # Rebuild with every bullet on a single line
        bullets = [" ".join(bullet.split()) for bullet in bullets]

    _log_warning(f"replace_bullets: could not keep {want} bullets in '{section.name}'; skipped")
    return tex, False


# =============================================================================
# SKILLS
# =============================================================================


def skill_key(item: str) -> str:
    """Comparison key of a skill entry (escaped or not, any case)."""
    return normalize_term(to_plaintext(item))


def _drop_stray_braces(text: str) -> str:
    """Remove braces left by unwrapping, except inside escape sequences like \\{."""
    pieces = []
    pos = 0
    for match in re.finditer(LaTeXPatterns.ESCAPED_SEQUENCE, text):
        pieces.append(re.sub(r"[{}]", "", text[pos:match.start()]))
        pieces.append(match.group(0))
        pos = match.end()
    pieces.append(re.sub(r"[{}]", "", text[pos:]))
    return "".join(pieces)


def clean_skill_csv(csv: str) -> List[str]:
    """
    Turn a model csv payload into escaped, de-duplicated skill entries.

    Formatting commands and Markdown bold are stripped, entries are trimmed,
    empties dropped, duplicates removed case-insensitively (first casing wins).

    Example:
        >>> clean_skill_csv("Go, go, Rust, GO")
        ['Go', 'Rust']
    """
    text = _drop_stray_braces(strip_markdown_bold(strip_formatting_commands(csv or "")))

    items, seen = [], set()
    for entry in text.split(","):
        entry = entry.strip()
        if not entry:
            continue
        key = entry.casefold()
        if key in seen:
            continue
        seen.add(key)
        items.append(escape_latex(entry))
    return items


def apply_replace_skill_csv(tex: str, op: ReplaceSkillCsv) -> Tuple[str, bool]:
    """
    Replace the items of one skill line; its label and markup stay untouched.

    Returns:
        (new_tex, applied)
    """
    line = find_skill_line(tex, op.label)
    if line is None:
        _log_warning(f"replace_skill_csv: no skill line labeled '{op.label}'; skipped")
        return tex, False

    items = clean_skill_csv(op.csv)
    if not items:
        _log_warning(f"replace_skill_csv: empty list for '{op.label}'; kept current items")
        return tex, False

    return replace_skill_items(tex, line, items), True


# =============================================================================
# BATCH
# =============================================================================


def section_occurrences(ops: Sequence[Operation]) -> List[int]:
    """
    For each op, how many earlier replace_bullets ops name the same section.

    The model returns one op per dumped section in document order, so the k-th
    op for a repeated heading belongs to its k-th occurrence.

    Example:
        >>> section_occurrences([ReplaceBullets("Acme"), ReplaceBullets("Globex"), ReplaceBullets("acme")])
        [0, 0, 1]
    """
    seen: Counter = Counter()
    occurrences = []
    for op in ops:
        if not isinstance(op, ReplaceBullets):
            occurrences.append(0)
            continue
        key = section_key(op.section) or op.section
        occurrences.append(seen[key])
        seen[key] += 1
    return occurrences


def apply_operation(tex: str, op: Operation, occurrence: int = 0) -> Tuple[str, bool]:
    if isinstance(op, ReplaceBullets):
        return apply_replace_bullets(tex, op, occurrence)
    if isinstance(op, ReplaceSkillCsv):
        return apply_replace_skill_csv(tex, op)
    _log_warning(f"Unsupported operation {type(op).__name__}; skipped")
    return tex, False


def apply_operations(tex: str, ops: Sequence[Operation]) -> str:
    """
    Apply every operation to tex, independently and best effort.

    An op that cannot be resolved, or raises while being applied, leaves the
    document as it was and does not stop the remaining ops.
    """
    applied = skipped = 0
    for op, occurrence in zip(ops, section_occurrences(ops)):
        try:
            tex, ok = apply_operation(tex, op, occurrence)
        except Exception as e:
            _log_error(f"Failed to apply {op!r}: {e}")
            ok = False
        if ok:
            applied += 1
        else:
            skipped += 1

    log_ops_applied(applied, skipped)
    return tex
