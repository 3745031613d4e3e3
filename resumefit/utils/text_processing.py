"""
Text processing utilities shared by the LaTeX scanner and the JSON recovery ladder.
"""

import re
from typing import Optional, Tuple

# Closing delimiter for each opening delimiter tracked by find_json_segment()
JSON_PAIRS = {"{": "}", "[": "]"}

TRUNCATION_MARKER = "…"


def extract_balanced_delimiters(
    text: str,
    start_pos: int,
    open_char: str = '{',
    close_char: str = '}',
    escape_char: str = '\\'
) -> Tuple[str, int]:
    """
    Extract content between balanced delimiters, handling escaped characters.

    Assumes start_pos is AT or AFTER an opening delimiter. Counts nested delimiters
    to find the matching closing delimiter, skipping escaped characters.

    Args:
        text: Text containing delimited content
        start_pos: Position right after the opening delimiter
        open_char: Opening delimiter character (default: '{')
        close_char: Closing delimiter character (default: '}')
        escape_char: Character used for escaping (default: '\\')

    Returns:
        (content, end_pos) where:
        - content: Text between the delimiters (excluding delimiters themselves)
        - end_pos: Position after the closing delimiter

    Raises:
        ValueError: If delimiters are unmatched

    Example:
        >>> text = "foo {bar {nested} baz} qux"
        >>> content, end = extract_balanced_delimiters(text, 5)
        >>> content
        'bar {nested} baz'
    """
    depth = 1  # Start at 1 (already inside opening delimiter)
    pos = start_pos

    while pos < len(text) and depth > 0:
        if text[pos] == escape_char:
            # Skip escaped character
            pos += 2
            continue
        elif text[pos] == open_char:
            depth += 1
        elif text[pos] == close_char:
            depth -= 1
        pos += 1

    if depth != 0:
        raise ValueError(
            f"Unmatched {open_char}{close_char} delimiters starting at position {start_pos}"
        )

    content = text[start_pos:pos - 1]
    return content, pos


def find_json_segment(text: str, start_pos: int) -> Optional[int]:
    """
    Find the end of a balanced JSON array/object that opens at start_pos.

    Unlike extract_balanced_delimiters(), this scanner understands JSON string
    literals: brackets inside "..." are ignored and a backslash inside a string
    skips the following character. Mixed nesting ({[...]}) is tracked with a stack,
    so a mismatched closer ends the scan.

    Args:
        text: Text containing the segment
        start_pos: Position of the opening '{' or '['

    Returns:
        Position after the matching closer, or None if the segment never balances

    Example:
        >>> find_json_segment('xx {"a": "}"} yy', 3)
        13
    """
    if start_pos >= len(text) or text[start_pos] not in JSON_PAIRS:
        return None

    stack = []
    in_string = False
    escaping = False

    for pos in range(start_pos, len(text)):
        ch = text[pos]
        if escaping:
            escaping = False
            continue
        if in_string:
            if ch == "\\":
                escaping = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch in JSON_PAIRS:
            stack.append(JSON_PAIRS[ch])
        elif ch in ("}", "]"):
            if not stack or stack.pop() != ch:
                return None
            if not stack:
                return pos + 1

    return None


def truncate_for_prompt(text: str, limit: int, marker: str = TRUNCATION_MARKER) -> str:
    """
    Cut text to a prompt budget, appending an explicit truncation marker.

    Text within the budget is returned unchanged.
    """
    text = text or ""
    if len(text) <= limit:
        return text
    return text[:limit].rstrip() + f"\n{marker}"


def count_words(text: str) -> int:
    """Whitespace-delimited word count."""
    return len((text or "").split())


def snippet_around(text: str, pos: int, before: int = 2, after: int = 6) -> str:
    """
    Return the lines surrounding character position pos.

    Used to show a bounded window of a compiler log around the first error.
    """
    lines = text.splitlines()
    line_no = text.count("\n", 0, max(pos, 0))
    start = max(0, line_no - before)
    return "\n".join(lines[start : line_no + after + 1])


def pending_json_closers(text: str) -> Optional[str]:
    """
    Closers needed to balance a truncated JSON fragment.

    Returns None if the fragment ends inside a string literal or closes a
    bracket it never opened; otherwise the (possibly empty) closing sequence.

    Example:
        >>> pending_json_closers('{"ops": [{"a": 1}')
        ']}'
    """
    stack = []
    in_string = False
    escaping = False

    for ch in text:
        if escaping:
            escaping = False
            continue
        if in_string:
            if ch == "\\":
                escaping = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch in JSON_PAIRS:
            stack.append(JSON_PAIRS[ch])
        elif ch in ("}", "]"):
            if not stack or stack.pop() != ch:
                return None

    if in_string:
        return None
    return "".join(reversed(stack))
