"""
LaTeX Structure Parser

Locates the editable regions of a résumé template with an explicit scanner:
heading macros are read argument by argument with balanced-brace matching and
itemize blocks are matched by environment depth.

Every function takes the current document string and returns fresh results,
so offsets are only valid for the exact string they were computed from.
"""

import re
from typing import List, Optional, Tuple

from resumefit.contexts.templating.data_structures import RewriteableSection, SkillLine
from resumefit.contexts.templating.latex_patterns import (
    HeadingPatterns,
    ItemizePatterns,
    SkillPatterns,
)
from resumefit.contexts.templating.logger import _log_debug, _log_warning
from resumefit.utils.latex_parsing_tools import (
    LaTeXPatterns,
    extract_environment_content,
    extract_sequential_params,
    nested_environment_spans,
    skip_optional_argument,
    to_plaintext,
)
from resumefit.utils.text_processing import extract_balanced_delimiters


def find_sections(tex: str) -> List[RewriteableSection]:
    """
    Find every experience/project heading followed by a bulleted list.

    Sections with an empty name or no bullets are ignored. Results are in
    document order.

    Shapes recognized:
        \\resumeSubheading{Title}{...}{...}{...} + itemize       -> name "Title"
        \\resumeProjectHeading{\\textbf{Name} ...}{Dates} + itemize -> name "Name"
    """
    sections = []
    boundary_re = re.compile(HeadingPatterns.BOUNDARY_REGEX)
    begin_itemize_re = re.compile(ItemizePatterns.BEGIN_REGEX)

    for heading in re.finditer(HeadingPatterns.ANY_HEADING_REGEX, tex):
        is_project = heading.group(1) == HeadingPatterns.PROJECT.lstrip("\\")
        num_params = HeadingPatterns.PROJECT_PARAMS if is_project else HeadingPatterns.EXPERIENCE_PARAMS

        params, after_params = extract_sequential_params(tex, heading.end(), num_params)
        if not params:
            continue
        name = _project_name(params[0]) if is_project else params[0].strip()
        if not name:
            continue

        begin = begin_itemize_re.search(tex, after_params)
        if not begin:
            continue
        boundary = boundary_re.search(tex, after_params)
        if boundary and boundary.start() < begin.start():
            _log_debug(f"Heading '{name}' has no bullet list before the next heading")
            continue

        try:
            _, begin_end, end_start = extract_environment_content(
                tex, ItemizePatterns.ENV_NAME, begin.start()
            )
        except ValueError as e:
            _log_warning(f"Skipping section '{name}': {e}")
            continue

        body_start = skip_optional_argument(tex, begin_end)
        bullets = extract_bullets(tex[body_start:end_start])
        if not bullets:
            continue

        sections.append(
            RewriteableSection(
                name=name,
                bullets=bullets,
                kind="project" if is_project else "experience",
                body_start=body_start,
                body_end=end_start,
            )
        )

    return sections


def _project_name(heading_arg: str) -> str:
    """Name of a project heading: the \\textbf{...} content of its first argument."""
    pos = heading_arg.find("\\textbf{")
    if pos == -1:
        # No bold title; fall back to the plaintext before the first separator
        return to_plaintext(heading_arg.split("$|$")[0])
    try:
        content, _ = extract_balanced_delimiters(heading_arg, pos + len("\\textbf{"))
    except ValueError:
        return ""
    return content.strip()


def _item_starts(body: str) -> List[re.Match]:
    """\\item markers at line start that are not inside a nested environment."""
    spans = nested_environment_spans(body)
    return [
        match
        for match in re.finditer(LaTeXPatterns.ITEM_AT_LINE_START, body)
        if not any(start <= match.start() < end for start, end in spans)
    ]


def extract_bullets(body: str) -> List[str]:
    """
    Split an itemize body into one entry per top-level \\item.

    An item runs until the next \\item at the start of a line (outside nested
    environments) or the end of the body, so the last bullet is kept even when
    no newline precedes \\end{itemize}.

    Example:
        >>> extract_bullets("\\n  \\\\item First\\n  \\\\item Second")
        ['First', 'Second']
    """
    starts = _item_starts(body)
    bullets = []
    for i, match in enumerate(starts):
        end = starts[i + 1].start() if i + 1 < len(starts) else len(body)
        bullets.append(body[match.end():end].strip())
    return bullets


def render_itemize_body(
    bullets: List[str], indent: str = ItemizePatterns.DEFAULT_ITEM_INDENT, closing_indent: str = ""
) -> str:
    """
    Inverse of extract_bullets(): one \\item line per bullet.

    Example:
        >>> render_itemize_body(["A", "B"], indent="  ")
        '\\n  \\\\item A\\n  \\\\item B\\n'
    """
    lines = "".join(f"{indent}\\item {bullet}\n" for bullet in bullets)
    return f"\n{lines}{closing_indent}"


def _body_layout(body: str) -> Tuple[str, str, str]:
    """(leading text before the first item, item indent, indent before \\end{itemize})."""
    starts = _item_starts(body)
    if not starts:
        return "", ItemizePatterns.DEFAULT_ITEM_INDENT, ""

    first = starts[0]
    indent = first.group(0)[: first.group(0).index("\\item")]
    leading = body[: first.start()].rstrip()

    stripped = body.rstrip(" \t")
    closing_indent = body[len(stripped):] if stripped.endswith("\n") else ""
    return leading, indent or ItemizePatterns.DEFAULT_ITEM_INDENT, closing_indent


def replace_section_body(tex: str, section: RewriteableSection, bullets: List[str]) -> str:
    """
    Replace only the itemize body of a section, keeping the heading, the
    \\begin{itemize}[options] line and \\end{itemize} verbatim.

    Args:
        tex: Document the section was parsed from
        section: Section with offsets valid for tex
        bullets: New bullet texts (already LaTeX)

    Returns:
        New document string
    """
    body = tex[section.body_start:section.body_end]
    leading, indent, closing_indent = _body_layout(body)
    new_body = leading + render_itemize_body(bullets, indent, closing_indent)
    return tex[: section.body_start] + new_body + tex[section.body_end:]


def section_key(name: str) -> str:
    """
    Normalized heading title for fuzzy correlation with model output.

    Lowercased, trailing "(N)" count removed, punctuation runs collapsed.

    Example:
        >>> section_key("Acme Corp. (3)")
        'acme corp'
    """
    text = to_plaintext(name or "").lower()
    text = re.sub(r"\s*\(\d+\)\s*$", "", text)
    return re.sub(r"[\W_]+", " ", text).strip()


def resolve_section(
    sections: List[RewriteableSection], name: str, occurrence: int = 0
) -> Optional[RewriteableSection]:
    """
    Pick a section by exact name, then by section_key().

    Headings may share a name (two roles at one employer); occurrence selects
    among the matches in document order.
    """
    matches = [section for section in sections if section.name == name]
    if not matches:
        key = section_key(name)
        if not key:
            return None
        matches = [section for section in sections if section_key(section.name) == key]
    return matches[occurrence] if occurrence < len(matches) else None


def find_section(tex: str, name: str, occurrence: int = 0) -> Optional[RewriteableSection]:
    """Resolve a section of tex by name; see resolve_section()."""
    return resolve_section(find_sections(tex), name, occurrence)


# --- Skill lines ---


def _label_regex(label: str) -> str:
    """
    Regex matching a label as written in LaTeX.

    Regex metacharacters are escaped first; reserved LaTeX characters then match
    with or without their escaping backslash, and whitespace runs match any run.
    """
    plain = re.sub(r"\\([%&#$_])", r"\1", label.strip())
    plain = re.sub(r"\s+", " ", plain)

    parts = []
    for ch in plain:
        if ch == " ":
            parts.append(r"\s+")
        elif ch in SkillPatterns.RESERVED_CHARS:
            parts.append(r"\\?" + re.escape(ch))
        else:
            parts.append(re.escape(ch))
    return "".join(parts)


def _plain_items_end(tex: str, start: int) -> int:
    """End of a "Label: items" segment: a \\\\ line break, a newline, or an unbalanced }."""
    depth = 0
    pos = start
    while pos < len(tex):
        ch = tex[pos]
        if ch == "\\":
            if tex.startswith("\\\\", pos):
                return pos
            pos += 2
            continue
        if ch == "\n":
            return pos
        if ch == "{":
            depth += 1
        elif ch == "}":
            if depth == 0:
                return pos
            depth -= 1
        pos += 1
    return len(tex)


def _split_items(segment: str) -> List[str]:
    return [item.strip() for item in segment.split(",") if item.strip()]


def find_skill_line(tex: str, label: str) -> Optional[SkillLine]:
    """
    Locate a skill line by label.

    Accepts both \\textbf{Label}{: items} and \\textbf{Label}: items, and labels
    written with or without escapes for reserved characters (R&D vs R\\&D).

    Returns:
        SkillLine with offsets into tex, or None if the label is not present
    """
    if not label or not label.strip():
        return None

    label_re = (
        SkillPatterns.LABEL_OPEN + _label_regex(label) + SkillPatterns.LABEL_CLOSE
    )
    for label_match in re.finditer(label_re, tex):
        braced = re.compile(SkillPatterns.BRACED_COLON).match(tex, label_match.end())
        if braced:
            try:
                _, group_end = extract_balanced_delimiters(tex, braced.end())
            except ValueError:
                continue
            start, end = braced.end(), group_end - 1
        else:
            plain = re.compile(SkillPatterns.PLAIN_COLON).match(tex, label_match.end())
            if not plain:
                continue
            start = plain.end()
            end = _plain_items_end(tex, start)

        # Trim surrounding whitespace from the item segment
        segment = tex[start:end]
        start += len(segment) - len(segment.lstrip())
        end -= len(segment) - len(segment.rstrip())
        end = max(start, end)

        return SkillLine(
            label=label_match.group(0)[len("\\textbf{"):-1].strip(),
            items=_split_items(tex[start:end]),
            items_start=start,
            items_end=end,
        )

    return None


def replace_skill_items(tex: str, line: SkillLine, items: List[str]) -> str:
    """Rewrite only the item segment of a skill line; the label is untouched."""
    return tex[: line.items_start] + ", ".join(items) + tex[line.items_end:]


def discover_skill_labels(tex: str) -> List[str]:
    """
    Labels of every skill line, in document order.

    When the template has a Skills section, only that section is searched.
    """
    start, end = 0, len(tex)
    skills_heading = re.search(SkillPatterns.SKILLS_SECTION_REGEX, tex)
    if skills_heading:
        start = skills_heading.end()
        next_section = re.compile(SkillPatterns.ANY_SECTION_REGEX).search(tex, start)
        end = next_section.start() if next_section else len(tex)

    labels = []
    for match in re.compile(SkillPatterns.ANY_LABEL_REGEX).finditer(tex, start, end):
        label = match.group(1).strip()
        if label and label not in labels:
            labels.append(label)
    return labels


def find_skill_lines(tex: str, labels: Optional[List[str]] = None) -> List[SkillLine]:
    """Skill lines for the given labels (or every discovered label), skipping absent ones."""
    lines = []
    for label in labels or discover_skill_labels(tex):
        line = find_skill_line(tex, label)
        if line is None:
            _log_debug(f"Skill line '{label}' not found in template")
            continue
        lines.append(line)
    return lines
