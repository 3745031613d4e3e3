"""
Templating Data Structures

Editable regions located inside a LaTeX résumé. Offsets refer to the exact
string the region was parsed from; regions are re-derived after every edit.
"""

from dataclasses import dataclass, field
from typing import List


@dataclass(frozen=True)
class RewriteableSection:
    """
    A work-experience or project entry whose bullet list is a rewrite target.

    Attributes:
        name: Heading title (job title/company or project name), raw LaTeX
        bullets: Bullet texts in document order, raw LaTeX without the \\item marker
        kind: "experience" or "project"
        body_start: Offset right after \\begin{itemize}[options]
        body_end: Offset of the matching \\end{itemize}
    """

    name: str
    bullets: List[str] = field(default_factory=list)
    kind: str = "experience"
    body_start: int = 0
    body_end: int = 0


@dataclass(frozen=True)
class SkillLine:
    """
    A labeled, comma-separated skill list.

    Attributes:
        label: Category label as written in the template (never rewritten)
        items: Current entries, raw LaTeX
        items_start: Offset of the first character of the item segment
        items_end: Offset right after the last item character
    """

    label: str
    items: List[str] = field(default_factory=list)
    items_start: int = 0
    items_end: int = 0
