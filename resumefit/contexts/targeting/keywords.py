"""
Keyword matching helpers shared by keyword-gap validation and the bullet policy.
"""

import re
from typing import FrozenSet, Iterable, List

from nltk.stem import PorterStemmer

STOPWORDS = frozenset(
    "and or the a an to of in on for with by from at as is are was were be being been into "
    "about over under this that these those it its their our your you we they i will can may "
    "might should must vs via per".split()
)

_stemmer = PorterStemmer()


def normalize_term(text: str) -> str:
    """
    Lowercase and collapse everything except the characters skill names use.

    Example:
        >>> normalize_term("CI/CD  Pipelines!")
        'ci cd pipelines'
    """
    text = (text or "").lower()
    text = re.sub(r"[^\w+#.\- ]", " ", text)
    text = re.sub(r"\s+", " ", text).strip()
    return text.strip(".-")


def word_forms(token: str) -> FrozenSet[str]:
    """
    The token and its Porter stem.

    Two tokens match when their forms intersect, so "pipelines" matches
    "pipeline" and "optimizing" matches "optimize".
    """
    token = token.lower().strip(".-")
    return frozenset({token, _stemmer.stem(token)})


def is_trivial(term: str) -> bool:
    """A term that carries no signal: empty, a stopword, or a 1-character token."""
    normalized = normalize_term(term)
    return not normalized or normalized in STOPWORDS or len(normalized) < 2


def _token_forms(text: str) -> List[FrozenSet[str]]:
    return [word_forms(token) for token in normalize_term(text).split()]


def contains_term(text: str, term: str) -> bool:
    """
    Whether text mentions term; multi-word terms must appear as a sequence.

    Example:
        >>> contains_term("Optimized Kafka pipelines", "pipeline")
        True
    """
    term_forms = _token_forms(term)
    if not term_forms:
        return False
    text_forms = _token_forms(text)
    width = len(term_forms)
    for i in range(len(text_forms) - width + 1):
        if all(text_forms[i + j] & term_forms[j] for j in range(width)):
            return True
    return False


def matched_terms(text: str, terms: Iterable[str]) -> List[str]:
    """The terms mentioned in text, in the order given."""
    return [term for term in terms if contains_term(text, term)]
