"""
LaTeX Pattern Constants

Centralized LaTeX pattern strings for the résumé templates we tailor.
Organized into frozen dataclasses by category for immutability and clear grouping.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class HeadingPatterns:
    """
    Heading macros that introduce a rewriteable section.

    Experience: \\resumeSubheading{Title}{Location}{Role}{Dates}
    Project:    \\resumeProjectHeading{\\textbf{Name} $|$ \\emph{Stack}}{Dates}
    """
    EXPERIENCE: str = r'\resumeSubheading'
    PROJECT: str = r'\resumeProjectHeading'
    EXPERIENCE_PARAMS: int = 4
    PROJECT_PARAMS: int = 2

    # Either heading macro, not followed by more letters
    ANY_HEADING_REGEX: str = r'\\(resumeSubheading|resumeProjectHeading)(?![A-Za-z])'

    # An itemize must open before the next of these to belong to a heading
    BOUNDARY_REGEX: str = (
        r'\\(?:resumeSubheading|resumeProjectHeading|section\*?|resumeSubHeadingListEnd)(?![A-Za-z])'
    )


@dataclass(frozen=True)
class ItemizePatterns:
    """Itemize environment markers and rendering defaults."""
    ENV_NAME: str = 'itemize'
    BEGIN_REGEX: str = r'\\begin\{itemize\}'
    DEFAULT_ITEM_INDENT: str = '    '


@dataclass(frozen=True)
class SkillPatterns:
    """
    Skill line shapes.

    Braced: \\textbf{Languages}{: Python, Go}
    Plain:  \\textbf{Languages}: Python, Go \\\\
    """
    LABEL_OPEN: str = r'\\textbf\{\s*'
    LABEL_CLOSE: str = r'\s*\}'
    BRACED_COLON: str = r'\s*\{\s*:'
    PLAIN_COLON: str = r'\s*:'

    # Any \textbf{Label} followed by either colon style
    ANY_LABEL_REGEX: str = r'\\textbf\{\s*([^{}]+?)\s*\}\s*(?:\{\s*:|:)'

    # Skills section heading, used to scope label discovery
    SKILLS_SECTION_REGEX: str = r'\\section\*?\{[^}]*[Ss]kills[^}]*\}'
    ANY_SECTION_REGEX: str = r'\\section\*?\{'

    # LaTeX-reserved characters that may appear escaped or bare in a label
    RESERVED_CHARS: str = '%&#$_'


@dataclass(frozen=True)
class InjectionPatterns:
    """Where generated project blocks are spliced into a template."""
    MARKER: str = '%PROJECTS WILL BE DYNAMICALLY INJECTED HERE'
    PROJECTS_SECTION_REGEX: str = (
        r'(\\section\{Projects\}[\s\S]*?\\resumeSubHeadingListStart)'
        r'([\s\S]*?)'
        r'(\\resumeSubHeadingListEnd)'
    )
    BLOCK_SEPARATOR: str = '\n\\vspace{4pt}\n'


@dataclass(frozen=True)
class DocumentPatterns:
    """Document-level patterns."""
    DOCUMENTCLASS_REGEX: str = r'\\documentclass(?:\[[^\]]*\])?\{([^}]+)\}'


@dataclass(frozen=True)
class RepairPatterns:
    """
    Known LaTeX emission mistakes fixed by repair_latex().

    Each *_REGEX is paired with the replacement in the same dataclass.
    """
    # \\textbf{ emitted where \textbf{ was meant (not preceded by another backslash)
    DOUBLED_TEXTBF_REGEX: str = r'(?<!\\)\\\\textbf\{'
    DOUBLED_TEXTBF_REPL: str = r'\\textbf{'

    # \textbackslash{}vspace{...} from escaping a spacing command as text
    ESCAPED_SPACING_REGEX: str = r'\\textbackslash\{\}([vh]space\*?)\\\{([^{}]*?)\\\}'
    ESCAPED_SPACING_REPL: str = r'\\\1{\2}'

    # \vspace -4pt / \vspace 4 pt (missing braces)
    UNBRACED_SPACING_REGEX: str = r'\\([vh]space\*?)[ \t]+(-?\d*\.?\d+)[ \t]*(pt|em|ex|mm|cm|in|bp)\b'
    UNBRACED_SPACING_REPL: str = r'\\\1{\2\3}'

    # \vspace{-4 pt} (space before the unit) and \vspace{-4} (missing unit)
    SPACING_ARGUMENT_REGEX: str = r'\\([vh]space\*?)\{\s*(-?\d*\.?\d+)\s*([a-z]*)\s*\}'
    DEFAULT_SPACING_UNIT: str = 'pt'
