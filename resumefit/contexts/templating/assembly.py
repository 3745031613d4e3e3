"""
Document Assembly

Builds the base document for a request (selected projects spliced into the
category template) and applies the deterministic repair pass before compilation.

Project blocks are rendered from templates/project_block.tex.jinja with
LaTeX-safe Jinja2 delimiters:
- Variable: <<< var >>>
- Block: <%% block %%>
- Comment: <# comment #>
"""

import re
from pathlib import Path
from typing import Dict, List

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from resumefit.contexts.templating.latex_patterns import (
    DocumentPatterns,
    InjectionPatterns,
    RepairPatterns,
)
from resumefit.contexts.templating.logger import _log_warning, log_injection, log_repairs
from resumefit.state import Project
from resumefit.utils.latex_parsing_tools import escape_latex

TEMPLATES_PATH = Path(__file__).parent / "templates"
PROJECT_TEMPLATE = "project_block.tex.jinja"

_env = Environment(
    loader=FileSystemLoader(str(TEMPLATES_PATH)),
    variable_start_string="<<<",
    variable_end_string=">>>",
    block_start_string="<%%",
    block_end_string="%%>",
    comment_start_string="<#",
    comment_end_string="#>",
    trim_blocks=False,
    lstrip_blocks=False,
    keep_trailing_newline=True,
    undefined=StrictUndefined,
)


def render_project(project: Project) -> str:
    """
    Render one project as a \\resumeProjectHeading + itemize block.

    Name, dates and bullets are escaped (idempotently, so pre-escaped user text
    is safe); the link goes into \\href verbatim.
    """
    template = _env.get_template(PROJECT_TEMPLATE)
    rendered = template.render(
        name=escape_latex(project.name),
        link=(project.link or "").strip(),
        dates=escape_latex(project.dates),
        bullets=[escape_latex(bullet) for bullet in project.bullets if bullet and bullet.strip()],
    )
    # Drop the leading template comment line and the trailing newline
    return rendered.lstrip("\n").rstrip("\n")


def inject_projects(tex: str, projects: List[Project]) -> str:
    """
    Splice rendered project blocks into a template.

    Injection points, in order:
    1. The marker comment %PROJECTS WILL BE DYNAMICALLY INJECTED HERE
       (removed when no project is selected)
    2. The list of a \\section{Projects} block, between
       \\resumeSubHeadingListStart and \\resumeSubHeadingListEnd
    If neither exists the template is returned unchanged with a warning.
    """
    block = InjectionPatterns.BLOCK_SEPARATOR.join(render_project(p) for p in projects)

    if InjectionPatterns.MARKER in tex:
        log_injection(len(projects), "injection marker")
        return tex.replace(InjectionPatterns.MARKER, block, 1)

    if not projects:
        return tex

    match = re.search(InjectionPatterns.PROJECTS_SECTION_REGEX, tex)
    if match:
        log_injection(len(projects), "\\section{Projects} list")
        return tex[: match.end(1)] + f"\n{block}\n" + tex[match.start(3):]

    _log_warning(
        f"No injection point for {len(projects)} project(s): add "
        f"'{InjectionPatterns.MARKER}' or a \\section{{Projects}} list to the template"
    )
    return tex


def _fix_spacing_argument(match: re.Match) -> str:
    command, amount, unit = match.group(1), match.group(2), match.group(3)
    return f"\\{command}{{{amount}{unit or RepairPatterns.DEFAULT_SPACING_UNIT}}}"


def repair_latex(tex: str) -> str:
    """
    Fix known LaTeX emission mistakes before compilation.

    - \\\\textbf{ (doubled backslash) -> \\textbf{
    - \\textbackslash{}vspace\\{4pt\\} (escaped spacing command) -> \\vspace{4pt}
    - \\vspace -4pt (missing braces) -> \\vspace{-4pt}
    - \\vspace{-4 pt} / \\vspace{-4} (stray space, missing unit) -> \\vspace{-4pt}
    """
    repairs: Dict[str, int] = {}

    tex, repairs["doubled_textbf"] = re.subn(
        RepairPatterns.DOUBLED_TEXTBF_REGEX, RepairPatterns.DOUBLED_TEXTBF_REPL, tex
    )
    tex, repairs["escaped_spacing"] = re.subn(
        RepairPatterns.ESCAPED_SPACING_REGEX, RepairPatterns.ESCAPED_SPACING_REPL, tex
    )
    tex, repairs["unbraced_spacing"] = re.subn(
        RepairPatterns.UNBRACED_SPACING_REGEX, RepairPatterns.UNBRACED_SPACING_REPL, tex
    )

    fixed_arguments = 0

    def _count_and_fix(match: re.Match) -> str:
        nonlocal fixed_arguments
        replacement = _fix_spacing_argument(match)
        if replacement != match.group(0):
            fixed_arguments += 1
        return replacement

    tex = re.sub(RepairPatterns.SPACING_ARGUMENT_REGEX, _count_and_fix, tex)
    repairs["spacing_argument"] = fixed_arguments

    log_repairs(repairs)
    return tex


def class_filename(tex: str, default: str) -> str:
    """
    File name the class content must be uploaded under, from \\documentclass.

    Example:
        >>> class_filename("\\\\documentclass[11pt]{fed-res}", "resume.cls")
        'fed-res.cls'
    """
    match = re.search(DocumentPatterns.DOCUMENTCLASS_REGEX, tex)
    if not match:
        return default
    name = match.group(1).strip()
    return name if name.endswith(".cls") else f"{name}.cls"
