"""
Response Normalizer

Recovers a JSON object from free-form model output. Strategies run in order of
increasing permissiveness and the first one that yields an object whose key
holds a list wins:

1. direct parse of the trimmed reply
2. Markdown code fences stripped
3. first balanced {...} segment that parses, after backslash sanitizing
4. the literal key (e.g. "ops") followed by a balanced array/object
5. shrink the tail from a located {"ops" start, closing any open brackets
6. give up: empty result

Parsing never raises; the worst case is an empty op list.
"""

import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from resumefit.contexts.targeting.logger import _log_debug, log_unparseable_reply
from resumefit.contexts.targeting.operations import Operation, parse_operation_list
from resumefit.utils.text_processing import find_json_segment, pending_json_closers

OPS_KEY = "ops"

# ```json ... ``` or ``` ... ```
FENCE_REGEX = r"```[ \t]*(?:json|JSON)?[ \t]*\n?(.*?)```"
UNTERMINATED_FENCE_REGEX = r"^```[ \t]*(?:json|JSON)?[ \t]*\n?"

# A backslash pair that is a valid JSON escape, or a lone backslash (group 1 empty)
JSON_ESCAPE_REGEX = r'\\(u[0-9a-fA-F]{4}|["\\/bfnrt])?'

# Bounds for the scanning strategies
MAX_SEGMENT_CANDIDATES = 50
MAX_SHRINK_ATTEMPTS = 500


@dataclass
class ModelReply:
    """Normalized model reply: raw op dicts (validated later) and how they were found."""

    ops: List[Dict[str, Any]] = field(default_factory=list)
    strategy: str = "none"


def sanitize_backslashes(text: str) -> str:
    """
    Double every backslash that does not start a valid JSON escape.

    LaTeX fragments such as 30\\% or R\\&D arrive unescaped inside JSON strings;
    the lone backslash becomes an escaped one so the string decodes to 30\\%.
    Valid pairs (\\\\, \\", \\n, \\uXXXX, ...) are consumed whole and kept.
    """
    return re.sub(
        JSON_ESCAPE_REGEX, lambda m: m.group(0) if m.group(1) else "\\\\", text
    )


def _loads(text: str) -> Any:
    try:
        return json.loads(text)
    except (ValueError, RecursionError):
        return None


def _accept(value: Any, key: str) -> Optional[Dict[str, Any]]:
    """An object whose key holds a list; anything else fails the strategy."""
    if isinstance(value, dict) and isinstance(value.get(key), list):
        return value
    return None


def _direct(text: str, key: str) -> Optional[Dict[str, Any]]:
    return _accept(_loads(text), key)


def _fenced(text: str, key: str) -> Optional[Dict[str, Any]]:
    blocks = re.findall(FENCE_REGEX, text, flags=re.DOTALL)
    if not blocks and text.startswith("```"):
        # Reply cut off before the closing fence
        blocks = [re.sub(UNTERMINATED_FENCE_REGEX, "", text).rstrip("`")]
    for block in blocks:
        block = block.strip()
        found = _accept(_loads(block), key) or _accept(_loads(sanitize_backslashes(block)), key)
        if found:
            return found
    return None


def _balanced_segment(text: str, key: str) -> Optional[Dict[str, Any]]:
    pos = text.find("{")
    for _ in range(MAX_SEGMENT_CANDIDATES):
        if pos == -1:
            return None
        end = find_json_segment(text, pos)
        if end is not None:
            found = _accept(_loads(sanitize_backslashes(text[pos:end])), key)
            if found:
                return found
        pos = text.find("{", pos + 1)
    return None


def _keyed_value(text: str, key: str) -> Optional[Dict[str, Any]]:
    for match in re.finditer(rf'"{re.escape(key)}"\s*:\s*(?=[\[{{])', text):
        end = find_json_segment(text, match.end())
        if end is None:
            continue
        value = _loads(sanitize_backslashes(text[match.end():end]))
        if isinstance(value, list):
            return {key: value}
        if isinstance(value, dict):
            # A lone object where a list was expected counts as one entry
            return {key: [value]}
    return None


def _shrink_tail(text: str, key: str) -> Optional[Dict[str, Any]]:
    start = re.search(rf'\{{\s*"{re.escape(key)}"', text)
    if not start:
        return None

    fragment = sanitize_backslashes(text[start.start():])
    cut_points = [i + 1 for i, ch in enumerate(fragment) if ch in "}]"]
    for end in reversed(cut_points[-MAX_SHRINK_ATTEMPTS:]):
        candidate = fragment[:end]
        closers = pending_json_closers(candidate)
        if closers is None:
            continue
        found = _accept(_loads(candidate + closers), key)
        if found:
            return found
    return None


STRATEGIES = [
    ("direct", _direct),
    ("fenced", _fenced),
    ("balanced_segment", _balanced_segment),
    ("keyed_value", _keyed_value),
    ("shrink_tail", _shrink_tail),
]


def _recover(raw: str, key: str) -> Tuple[Optional[Dict[str, Any]], str]:
    text = (raw if isinstance(raw, str) else "").strip()
    if not text:
        return None, "empty"
    for name, strategy in STRATEGIES:
        found = strategy(text, key)
        if found is not None:
            return found, name
    return None, "none"


def recover_json(raw: str, key: str) -> Optional[Dict[str, Any]]:
    """
    Recover a JSON object whose `key` holds a list from a noisy model reply.

    Returns:
        The object, or None if every strategy failed
    """
    found, strategy = _recover(raw, key)
    if found is not None:
        _log_debug(f"Recovered '{key}' object via {strategy}")
    return found


def parse_model_reply(raw: str) -> ModelReply:
    """
    Parse a model reply expected to hold {"ops": [...]}.

    Total: never raises. Unparseable input yields ModelReply(ops=[]).
    """
    found, strategy = _recover(raw, OPS_KEY)
    if found is None:
        log_unparseable_reply(raw if isinstance(raw, str) else repr(raw))
        return ModelReply()
    _log_debug(f"Recovered {len(found[OPS_KEY])} op(s) via {strategy}")
    return ModelReply(ops=list(found[OPS_KEY]), strategy=strategy)


def parse_operations(raw: str) -> List[Operation]:
    """parse_model_reply() followed by op validation."""
    return parse_operation_list(parse_model_reply(raw).ops)
