"""
Rewrite operations emitted by the model.

Replies are untrusted: every op dict is validated here, right after parsing, and
turned into one of two immutable variants. Malformed shapes are rejected and
logged so they never reach the reconciliation engine.
"""

import re
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Optional, Union

from resumefit.contexts.targeting.logger import _log_warning

# JSON control escapes that swallowed the backslash of a LaTeX command (\textbf -> TAB + "extbf")
_SWALLOWED_COMMANDS = {"\t": "t", "\b": "b", "\f": "f", "\r": "r"}
_SWALLOWED_COMMAND_RE = re.compile(r"[\t\b\f\r](?=[A-Za-z])")


@dataclass(frozen=True)
class ReplaceBullets:
    """
    Replace every bullet of the named section, in order.

    A None entry keeps its position but has no usable text; reconciliation
    falls back to the original bullet at that index.
    """

    KIND: ClassVar[str] = "replace_bullets"

    section: str
    bullets: List[Optional[str]] = field(default_factory=list)


@dataclass(frozen=True)
class ReplaceSkillCsv:
    """Replace the items of the labeled skill line with a comma-separated list."""

    KIND: ClassVar[str] = "replace_skill_csv"

    label: str
    csv: str = ""


Operation = Union[ReplaceBullets, ReplaceSkillCsv]


def restore_latex_commands(text: str) -> str:
    """
    Undo JSON control escapes that ate a LaTeX command's backslash.

    A reply containing "\\textbf{Go}" unescaped decodes to TAB + "extbf{Go}";
    a control character directly followed by a letter is turned back into the
    backslash command.
    """
    return _SWALLOWED_COMMAND_RE.sub(lambda m: "\\" + _SWALLOWED_COMMANDS[m.group(0)], text)


def _as_text(value: Any) -> Optional[str]:
    if isinstance(value, str):
        return restore_latex_commands(value)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


def parse_operation(record: Any) -> Optional[Operation]:
    """
    Validate one op dict from a model reply.

    Accepted shapes:
        {"op": "replace_bullets", "section": str, "bullets": [str, ...]}
        {"op": "replace_skill_csv", "label": str, "csv": str | [str, ...]}

    Returns:
        The typed operation, or None (logged) for anything else
    """
    if not isinstance(record, dict):
        _log_warning(f"Rejected op: expected an object, got {type(record).__name__}")
        return None

    kind = record.get("op")

    if kind == ReplaceBullets.KIND:
        section = _as_text(record.get("section"))
        bullets = record.get("bullets")
        if not section or not section.strip():
            _log_warning("Rejected replace_bullets op: missing section name")
            return None
        if not isinstance(bullets, list):
            _log_warning(f"Rejected replace_bullets op for '{section}': bullets is not a list")
            return None
        return ReplaceBullets(section=section.strip(), bullets=[_as_text(bullet) for bullet in bullets])

    if kind == ReplaceSkillCsv.KIND:
        label = _as_text(record.get("label"))
        csv = record.get("csv")
        if isinstance(csv, list):
            csv = ", ".join(t for t in (_as_text(item) for item in csv) if t)
        else:
            csv = _as_text(csv)
        if not label or not label.strip():
            _log_warning("Rejected replace_skill_csv op: missing label")
            return None
        if csv is None:
            _log_warning(f"Rejected replace_skill_csv op for '{label}': csv is not text")
            return None
        return ReplaceSkillCsv(label=label.strip(), csv=csv)

    _log_warning(f"Rejected op of unknown kind: {kind!r}")
    return None


def parse_operation_list(records: List[Dict[str, Any]]) -> List[Operation]:
    """Validate a list of op dicts, dropping the malformed ones."""
    ops = []
    for record in records or []:
        op = parse_operation(record)
        if op is not None:
            ops.append(op)
    return ops
