"""
LaTeX Parsing Tools

Fundamental parsing and sanitizing utilities for LaTeX text.

Self-contained module with no project dependencies beyond text_processing.
All LaTeX patterns are defined as constants below for visibility and maintainability.
"""

import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from resumefit.utils.text_processing import extract_balanced_delimiters


@dataclass(frozen=True)
class LaTeXPatterns:
    """
    LaTeX pattern templates for parsing and manipulation.

    These are format string templates that accept command/environment names.
    Use .format() or f-strings to substitute the command name.
    """

    # Environment patterns (use with .format(env=name))
    BEGIN_ENV: str = r"\\begin\{{{env}\}}"  # Matches \begin{envname}
    END_ENV: str = r"\\end\{{{env}\}}"  # Matches \end{envname}
    ANY_BEGIN_OR_END: str = r"\\(?P<kind>begin|end)\{(?P<env>[^}]+)\}"

    # Itemize markers. A bullet boundary is an \item that starts a line.
    ITEM_AT_LINE_START: str = r"(?m)^[ \t]*\\item(?![A-Za-z])"

    # Sequences escape_latex() must treat as already escaped
    ESCAPED_SEQUENCE: str = (
        r"\\(?:textbackslash\{\}|textasciitilde\{\}|textasciicircum\{\}|[%&#$_{}])"
    )

    # Markdown emphasis a model may leak into LaTeX text
    MARKDOWN_STRONG: str = r"(\*\*|__)(?=\S)(.+?)(?<=\S)\1"
    MARKDOWN_EMPHASIS: str = r"(?<![\w*\\])\*(?=\S)([^*\n]+?)(?<=\S)\*(?![\w*])"

    # Plaintext conversion patterns (for stripping LaTeX in to_plaintext())
    SPACING_COMMANDS: str = r"\\[vh]space\*?\{[^}]*\}"  # Matches \vspace{...} or \hspace{...}
    HREF: str = r"\\href\{[^}]*\}"  # Matches the URL argument of \href
    ANY_COMMAND_NO_BRACES: str = r"\\[a-zA-Z]+\*?"  # Matches any \command


# Plain character -> LaTeX escape. Applied one character at a time, so the
# backslash replacement never sees the backslashes it produced itself.
LATEX_ESCAPES: Dict[str, str] = {
    "\\": r"\textbackslash{}",
    "%": r"\%",
    "&": r"\&",
    "#": r"\#",
    "$": r"\$",
    "_": r"\_",
    "{": r"\{",
    "}": r"\}",
    "~": r"\textasciitilde{}",
    "^": r"\textasciicircum{}",
}

# Wrappers unwrapped by to_plaintext() and stripped from model skill payloads
FORMATTING_WRAPPERS = ["textbf", "textit", "emph", "underline", "texttt", "textsc"]


def extract_sequential_params(latex_str: str, start_pos: int, num_params: int) -> Tuple[List[str], int]:
    """
    Extract N sequential brace-delimited parameters from a position, handling nested braces.

    Only whitespace may separate the parameters; anything else stops the scan.

    Args:
        latex_str: LaTeX source
        start_pos: Position to start searching (typically right after a macro name)
        num_params: Number of {...} parameters to extract

    Returns:
        (params, end_pos): extracted parameter values and the position after the
        last parameter that was read

    Example:
        >>> extract_sequential_params(r"\\resumeSubheading{Acme}{2020 -- 2022}", 17, 2)
        (['Acme', '2020 -- 2022'], 37)
    """
    params = []
    pos = start_pos

    for _ in range(num_params):
        match = re.compile(r"\s*\{").match(latex_str, pos)
        if not match:
            break
        try:
            value, pos = extract_balanced_delimiters(latex_str, match.end())
        except ValueError:
            break
        params.append(value)

    return params, pos


def skip_optional_argument(text: str, pos: int) -> int:
    """
    Skip one optional [...] argument starting at pos (leading whitespace allowed).

    Returns the position after the closing bracket, or pos unchanged when no
    optional argument is present.

    Example:
        >>> skip_optional_argument("[leftmargin=10pt] rest", 0)
        17
    """
    match = re.compile(r"[ \t]*\[").match(text, pos)
    if not match:
        return pos
    try:
        _, end = extract_balanced_delimiters(text, match.end(), open_char="[", close_char="]")
    except ValueError:
        return pos
    return end


def extract_environment_content(
    text: str, env_name: str, start_pos: int = 0
) -> Tuple[str, int, int]:
    """
    Extract content from LaTeX environment, handling nested environments.

    Finds \\begin{env_name} and matching \\end{env_name}, correctly handling
    nested environments of the same name.

    Args:
        text: LaTeX text
        env_name: Environment name (e.g., 'itemize')
        start_pos: Position to start searching (default: 0)

    Returns:
        (content, begin_end_pos, end_start_pos) where:
        - content: Text between \\begin{env} and \\end{env}
        - begin_end_pos: Position after \\begin{env_name}
        - end_start_pos: Position at \\end{env_name}

    Raises:
        ValueError: If environment is not found or unmatched
    """
    env_name_escaped = re.escape(env_name)
    begin_pattern = re.compile(LaTeXPatterns.BEGIN_ENV.format(env=env_name_escaped))
    end_pattern = re.compile(LaTeXPatterns.END_ENV.format(env=env_name_escaped))

    begin_match = begin_pattern.search(text, start_pos)
    if not begin_match:
        raise ValueError(f"No \\begin{{{env_name}}} found")

    begin_end_pos = begin_match.end()
    pos = begin_end_pos
    depth = 1

    while depth > 0:
        begin_nested = begin_pattern.search(text, pos)
        end_nested = end_pattern.search(text, pos)
        if not end_nested:
            break
        if begin_nested and begin_nested.start() < end_nested.start():
            depth += 1
            pos = begin_nested.end()
            continue
        depth -= 1
        if depth == 0:
            return text[begin_end_pos:end_nested.start()], begin_end_pos, end_nested.start()
        pos = end_nested.end()

    raise ValueError(f"Unmatched \\begin{{{env_name}}}")


def nested_environment_spans(content: str) -> List[Tuple[int, int]]:
    """
    Spans (start, end) of every top-level environment inside content.

    Used to ignore \\item markers that belong to a nested list.
    """
    spans = []
    depth = 0
    span_start = 0
    for match in re.finditer(LaTeXPatterns.ANY_BEGIN_OR_END, content):
        if match.group("kind") == "begin":
            if depth == 0:
                span_start = match.start()
            depth += 1
        elif depth > 0:
            depth -= 1
            if depth == 0:
                spans.append((span_start, match.end()))
    if depth > 0:
        spans.append((span_start, len(content)))
    return spans


def replace_command(text: str, command: str, prefix: str = "", suffix: str = "") -> str:
    """
    Replace LaTeX command with optional prefix/suffix around content.

    Handles nested braces correctly using balanced delimiter matching.

    Examples:
        >>> replace_command("\\\\textbf{bold text}", "textbf")
        'bold text'
        >>> replace_command("Normal \\\\textbf{bold} text", "textbf", "**", "**")
        'Normal **bold** text'
    """
    result = text
    command_pattern = f"\\{command}{{"
    search_from = 0

    while True:
        pos = result.find(command_pattern, search_from)
        if pos == -1:
            break

        brace_pos = pos + len(command_pattern)
        try:
            content, end_pos = extract_balanced_delimiters(result, brace_pos)
        except ValueError:
            # Unmatched braces: drop the dangling opener only
            result = result[:pos] + result[brace_pos:]
            search_from = pos
            continue

        result = result[:pos] + prefix + content + suffix + result[end_pos:]
        search_from = pos

    return result


def strip_formatting_commands(text: str, commands: Optional[List[str]] = None) -> str:
    """
    Unwrap formatting commands (\\textbf{...} etc.), keeping their content.

    Example:
        >>> strip_formatting_commands("\\\\textbf{Python}, \\\\emph{Go}")
        'Python, Go'
    """
    result = text or ""
    for command in commands or FORMATTING_WRAPPERS:
        result = replace_command(result, command)
    return result


def escape_latex(text: str) -> str:
    """
    Escape LaTeX special characters without double-escaping.

    Already-escaped sequences (\\%, \\&, \\textbackslash{}, ...) are kept as opaque
    tokens; only the text between them is escaped. Every backslash in the output
    starts such a token, so escape_latex(escape_latex(s)) == escape_latex(s).

    Example:
        >>> escape_latex("Cut costs 30% & R&D")
        'Cut costs 30\\\\% \\\\& R\\\\&D'
        >>> escape_latex("Cut costs 30\\\\% already")
        'Cut costs 30\\\\% already'
    """
    if not text:
        return ""

    text = str(text)
    pieces = []
    pos = 0
    for match in re.finditer(LaTeXPatterns.ESCAPED_SEQUENCE, text):
        pieces.append(_escape_plain(text[pos:match.start()]))
        pieces.append(match.group(0))
        pos = match.end()
    pieces.append(_escape_plain(text[pos:]))
    return "".join(pieces)


def _escape_plain(segment: str) -> str:
    return "".join(LATEX_ESCAPES.get(ch, ch) for ch in segment)


def strip_markdown_bold(text: str) -> str:
    """
    Remove Markdown emphasis markers a model adds around terms.

    LaTeX commands such as \\textbf{...} are left untouched.

    Example:
        >>> strip_markdown_bold("Built **Kafka** pipelines in *Go*")
        'Built Kafka pipelines in Go'
    """
    if not text:
        return ""
    result = re.sub(LaTeXPatterns.MARKDOWN_STRONG, r"\2", text)
    result = re.sub(LaTeXPatterns.MARKDOWN_EMPHASIS, r"\1", result)
    return result.replace("**", "")


def to_plaintext(latex_str: str) -> str:
    """
    Strip LaTeX commands from text, returning plaintext for word counting.

    Example:
        >>> to_plaintext("\\\\textbf{Cut} latency by 30\\\\% \\\\vspace{2pt}")
        'Cut latency by 30%'
    """
    if not latex_str:
        return ""

    result = strip_formatting_commands(latex_str)
    result = re.sub(LaTeXPatterns.HREF, "", result)
    result = re.sub(LaTeXPatterns.SPACING_COMMANDS, "", result)
    result = result.replace(r"\\", " ")

    for plain, escaped in LATEX_ESCAPES.items():
        result = result.replace(escaped, plain)

    result = result.replace("$", "")
    result = re.sub(LaTeXPatterns.ANY_COMMAND_NO_BRACES, "", result)
    result = result.replace("{", "").replace("}", "")
    return re.sub(r"\s+", " ", result).strip()
