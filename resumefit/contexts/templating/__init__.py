"""
Templating Context

Responsibilities:
- Locates rewriteable sections and skill lines inside a LaTeX template
- Replaces itemize bodies and skill item segments without touching other markup
- Renders selected projects and splices them into the template
- Applies deterministic LaTeX repairs before compilation

Owns: LaTeX structure knowledge, project rendering, repairs
Never: Talks to the model or decides what the new content should be
"""

from resumefit.contexts.templating.assembly import (
    class_filename,
    inject_projects,
    render_project,
    repair_latex,
)
from resumefit.contexts.templating.data_structures import RewriteableSection, SkillLine
from resumefit.contexts.templating.structure import (
    discover_skill_labels,
    extract_bullets,
    find_sections,
    find_skill_line,
    find_skill_lines,
    render_itemize_body,
    replace_section_body,
    replace_skill_items,
    section_key,
)

__all__ = [
    # Structure parsing and surgery
    "find_sections",
    "extract_bullets",
    "render_itemize_body",
    "replace_section_body",
    "find_skill_line",
    "find_skill_lines",
    "replace_skill_items",
    "discover_skill_labels",
    "section_key",
    # Assembly
    "render_project",
    "inject_projects",
    "repair_latex",
    "class_filename",
    # Data structures
    "RewriteableSection",
    "SkillLine",
]
