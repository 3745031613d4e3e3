"""
Persisted user data and request status.

ResumeDataStore reads/writes the user's record (API key, categories with their
LaTeX templates, reusable projects) as JSON. StatusStore holds the status of
the latest generation request, keyed by a generation token so that updates
from a superseded request are ignored.
"""

import itertools
import json
import os
import uuid
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

load_dotenv()

RESUMEFIT_DATA = Path(os.getenv("RESUMEFIT_DATA", "resume_data.json"))


def _pick(record: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    """First present key; the stored record may use snake_case or camelCase."""
    for key in keys:
        if key in record and record[key] is not None:
            return record[key]
    return default


def _as_list(value: Any) -> List[str]:
    """Keyword/bullet lists may be stored as a list or a comma-separated string."""
    if value is None:
        return []
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return [str(item) for item in value if str(item).strip()]


@dataclass
class Category:
    """
    A résumé flavour: LaTeX template plus the keywords the user already covers.

    Attributes:
        id: Stable identifier referenced by requests
        name: Display name
        keywords: Skills the user already lists (excluded from keyword gaps)
        latex: Full LaTeX template source
        cls_file_content: Optional document class source uploaded with the template
    """

    id: str
    name: str = ""
    keywords: List[str] = field(default_factory=list)
    latex: str = ""
    cls_file_content: str = ""

    @classmethod
    def from_dict(cls, record: Dict[str, Any]) -> "Category":
        return cls(
            id=str(_pick(record, "id", default="")),
            name=_pick(record, "name", default=""),
            keywords=_as_list(_pick(record, "keywords")),
            latex=_pick(record, "latex", default=""),
            cls_file_content=_pick(record, "cls_file_content", "clsFileContent", default=""),
        )


@dataclass
class Project:
    """A reusable project entry that can be injected into any category template."""

    id: str
    name: str
    dates: str = ""
    link: str = ""
    bullets: List[str] = field(default_factory=list)
    category_ids: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, record: Dict[str, Any]) -> "Project":
        bullets = _pick(record, "bullets", default=[])
        if isinstance(bullets, str):
            bullets = [line.strip() for line in bullets.splitlines() if line.strip()]
        return cls(
            id=str(_pick(record, "id", default="")),
            name=_pick(record, "name", default=""),
            dates=_pick(record, "dates", default=""),
            link=_pick(record, "link", default=""),
            bullets=list(bullets),
            category_ids=[str(c) for c in _pick(record, "category_ids", "categoryIds", default=[])],
        )


@dataclass
class ResumeData:
    """The user's whole record."""

    apikey: str = ""
    categories: List[Category] = field(default_factory=list)
    projects: List[Project] = field(default_factory=list)
    owner_name: str = ""

    @classmethod
    def from_dict(cls, record: Dict[str, Any]) -> "ResumeData":
        return cls(
            apikey=_pick(record, "apikey", "api_key", "apiKey", default=""),
            categories=[Category.from_dict(c) for c in record.get("categories") or []],
            projects=[Project.from_dict(p) for p in record.get("projects") or []],
            owner_name=_pick(record, "owner_name", "ownerName", default=""),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def get_category(self, category_id: str) -> Optional[Category]:
        return next((c for c in self.categories if c.id == str(category_id)), None)

    def select_projects(self, project_ids: List[str]) -> List[Project]:
        """Projects whose id is in project_ids, in stored order."""
        wanted = {str(pid) for pid in project_ids or []}
        return [p for p in self.projects if p.id in wanted]


class ResumeDataStore:
    """JSON-file persistence for ResumeData."""

    def __init__(self, path: Path = RESUMEFIT_DATA):
        self.path = Path(path)

    def load(self) -> ResumeData:
        """Load the record; a missing file is an empty record."""
        if not self.path.exists():
            return ResumeData()
        with open(self.path, encoding="utf-8") as f:
            return ResumeData.from_dict(json.load(f))

    def save(self, data: ResumeData) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(data.to_dict(), f, indent=2, ensure_ascii=False)


class StatusStore:
    """
    Status of the latest generation request.

    begin() issues a new generation token and resets the status. Writers pass
    their token to merge()/set(); writes from a superseded token are ignored.
    Readers use is_current() to discard stale views.

    Example:
        >>> store = StatusStore()
        >>> old = store.begin()
        >>> new = store.begin()
        >>> store.merge(old, stage="compiling")
        False
        >>> store.merge(new, stage="compiling")
        True
    """

    def __init__(self):
        self._counter = itertools.count(1)
        self._token: Optional[str] = None
        self._status: Dict[str, Any] = {}

    def begin(self, **initial: Any) -> str:
        token = f"{next(self._counter)}-{uuid.uuid4().hex[:8]}"
        self._token = token
        self._status = {"token": token, "stage": "started", **initial}
        return token

    def is_current(self, token: str) -> bool:
        return token is not None and token == self._token

    def merge(self, token: str, **fields: Any) -> bool:
        """Update fields of the current status; returns False for a stale token."""
        if not self.is_current(token):
            return False
        self._status.update(fields)
        return True

    def set(self, token: str, status: Dict[str, Any]) -> bool:
        """Replace the current status; returns False for a stale token."""
        if not self.is_current(token):
            return False
        self._status = {"token": token, **status}
        return True

    def get(self) -> Dict[str, Any]:
        return dict(self._status)
