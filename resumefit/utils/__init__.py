"""
Shared utilities for resumefit.

Common functionality used across contexts:
- Text processing and balanced-delimiter scanning
- LaTeX escaping and parsing helpers
- LLM provider abstraction
- Logger configuration
"""

from resumefit.utils.latex_parsing_tools import escape_latex, strip_markdown_bold, to_plaintext

__all__ = ["escape_latex", "strip_markdown_bold", "to_plaintext"]
