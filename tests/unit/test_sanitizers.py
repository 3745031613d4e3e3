"""
Unit tests for the text sanitizers in resumefit.utils.latex_parsing_tools
and the scanners in resumefit.utils.text_processing.
"""

import pytest

from resumefit.utils.latex_parsing_tools import (
    escape_latex,
    extract_environment_content,
    extract_sequential_params,
    nested_environment_spans,
    replace_command,
    skip_optional_argument,
    strip_formatting_commands,
    strip_markdown_bold,
    to_plaintext,
)
from resumefit.utils.text_processing import (
    count_words,
    find_json_segment,
    pending_json_closers,
    snippet_around,
    truncate_for_prompt,
)


@pytest.mark.unit
class TestEscapeLatex:
    def test_escapes_reserved_characters(self):
        assert escape_latex("Cut costs 30% & R&D") == r"Cut costs 30\% \& R\&D"

    def test_escapes_braces_tilde_caret_and_backslash(self):
        assert escape_latex("a_b {x} ~ ^") == (
            r"a\_b \{x\} \textasciitilde{} \textasciicircum{}"
        )
        assert escape_latex("back\\slash") == r"back\textbackslash{}slash"

    def test_already_escaped_sequences_are_kept(self):
        assert escape_latex(r"30\% done, 40% to go") == r"30\% done, 40\% to go"

    @pytest.mark.parametrize(
        "text",
        [
            "100% of $5 budgets",
            r"already 30\% done",
            "a_b {x} ~ ^",
            "back\\slash",
            r"mixed \& and & and \textbackslash{} and \\",
        ],
    )
    def test_idempotent(self, text):
        once = escape_latex(text)
        assert escape_latex(once) == once

    def test_empty(self):
        assert escape_latex("") == ""
        assert escape_latex(None) == ""


@pytest.mark.unit
class TestStripMarkdownBold:
    def test_removes_strong_and_emphasis(self):
        assert strip_markdown_bold("Built **Kafka** pipelines in *Go*") == "Built Kafka pipelines in Go"

    def test_removes_unpaired_markers(self):
        assert strip_markdown_bold("dangling **bold") == "dangling bold"

    def test_leaves_latex_commands(self):
        assert strip_markdown_bold(r"\textbf{Kafka} pipelines") == r"\textbf{Kafka} pipelines"


@pytest.mark.unit
class TestToPlaintext:
    def test_strips_commands_and_escapes(self):
        assert to_plaintext(r"\textbf{Cut} latency by 30\% \vspace{2pt}") == "Cut latency by 30%"

    def test_nested_formatting(self):
        assert to_plaintext(r"\textbf{Led \emph{three} teams}") == "Led three teams"

    def test_word_count_of_latex_bullet(self):
        assert count_words(to_plaintext(r"Reduced API latency by 30\% through caching")) == 7


@pytest.mark.unit
class TestLatexScanning:
    def test_sequential_params(self):
        params, end = extract_sequential_params(r"\resumeSubheading{Acme}{2020 -- 2022}", 17, 2)
        assert params == ["Acme", "2020 -- 2022"]
        assert end == 37

    def test_sequential_params_across_newlines(self):
        tex = "\\resumeSubheading\n    {Acme {Corp}}{Remote}"
        params, _ = extract_sequential_params(tex, len("\\resumeSubheading"), 2)
        assert params == ["Acme {Corp}", "Remote"]

    def test_skip_optional_argument(self):
        assert skip_optional_argument("[leftmargin=10pt] rest", 0) == 17
        assert skip_optional_argument("no options", 0) == 0

    def test_environment_content_handles_nesting(self):
        tex = r"\begin{itemize}\item a \begin{itemize}\item b\end{itemize}\end{itemize} tail"
        content, begin_end, end_start = extract_environment_content(tex, "itemize")
        assert content == r"\item a \begin{itemize}\item b\end{itemize}"
        assert tex[end_start:].startswith(r"\end{itemize} tail")
        assert begin_end == len(r"\begin{itemize}")

    def test_environment_content_unmatched(self):
        with pytest.raises(ValueError):
            extract_environment_content(r"\begin{itemize}\item a", "itemize")

    def test_nested_environment_spans(self):
        body = r"\item a \begin{tabular}x\end{tabular} \item b"
        spans = nested_environment_spans(body)
        assert len(spans) == 1
        start, end = spans[0]
        assert body[start:end] == r"\begin{tabular}x\end{tabular}"

    def test_replace_command_with_markers(self):
        assert replace_command(r"Normal \textbf{bold} text", "textbf", "**", "**") == "Normal **bold** text"

    def test_strip_formatting_commands(self):
        assert strip_formatting_commands(r"\textbf{Python}, \emph{Go}") == "Python, Go"


@pytest.mark.unit
class TestJsonScanning:
    def test_segment_ignores_brackets_in_strings(self):
        assert find_json_segment('xx {"a": "}"} yy', 3) == 13

    def test_segment_unbalanced(self):
        assert find_json_segment('{"a": [1, 2}', 0) is None

    def test_pending_closers(self):
        assert pending_json_closers('{"ops": [{"a": 1}') == "]}"
        assert pending_json_closers('{"ops": []}') == ""

    def test_pending_closers_inside_string(self):
        assert pending_json_closers('{"ops": ["unterminated') is None


@pytest.mark.unit
class TestBudgets:
    def test_truncate_for_prompt_marks_cut(self):
        assert truncate_for_prompt("abcdef", 3) == "abc\n…"
        assert truncate_for_prompt("abc", 3) == "abc"

    def test_snippet_around(self):
        text = "\n".join(f"line {i}" for i in range(20))
        pos = text.index("line 10")
        snippet = snippet_around(text, pos, before=1, after=1)
        assert snippet == "line 9\nline 10\nline 11"
