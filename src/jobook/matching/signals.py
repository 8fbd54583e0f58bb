"""Signal extraction from free text (CVs and job posts).

All extractors are pure functions over a string. Empty or missing text yields
empty sets and zero levels, never an error.
"""
import re
from typing import Iterable, List, Optional, Set

from .types import ExtractedSignal
from .vocab import (
    DEGREE_LEVELS,
    ENGLISH_REQUIREMENT_RE,
    ENGLISH_WORD_LEVELS,
    IELTS_BANDS,
    ROLE_FAMILIES,
    ROLE_TOKENS,
    TECH_NEEDLES,
    TOEIC_BANDS,
    normalize_symbols,
)

MAX_YEARS = 30

_YEARS_RE = re.compile(
    r'([0-9]{1,2})\s*(\+)?\s*(năm|years?)(?:\s+(kinh\s*nghiệm|of\s+experience))?',
    re.I,
)
_IELTS_RE = re.compile(r'ielts\s*([0-9](?:\.[0-9])?)', re.I)
_TOEIC_RE = re.compile(r'toeic\s*([0-9]{3})', re.I)


def _lower(text: Optional[str]) -> str:
    return (text or '').lower()


def extract_roles(text: Optional[str]) -> Set[str]:
    t = _lower(text)
    return {tok for tok in ROLE_TOKENS if tok in t}


def extract_tech(text: Optional[str]) -> Set[str]:
    t = normalize_symbols(_lower(text))
    return {needle for needle in TECH_NEEDLES if needle in t}


def extract_years(text: Optional[str]) -> int:
    """Largest 'N years' / 'N năm' mention, capped at 30; 0 when absent."""
    found = 0
    for m in _YEARS_RE.finditer(_lower(text)):
        found = max(found, int(m.group(1)))
    return min(MAX_YEARS, found)


def extract_degree_level(text: Optional[str]) -> int:
    t = text or ''
    for level, pattern in DEGREE_LEVELS:
        if pattern.search(t):
            return level
    return 0


def english_word_level(text: Optional[str]) -> int:
    t = text or ''
    for level, pattern in ENGLISH_WORD_LEVELS:
        if pattern.search(t):
            return level
    return 0


def _band_level(value, bands) -> int:
    for threshold, level in bands:
        if value >= threshold:
            return level
    return 1


def extract_english_level(text: Optional[str]) -> int:
    """IELTS band, then TOEIC score, then qualitative wording; 0 when nothing is stated."""
    t = text or ''
    m = _IELTS_RE.search(t)
    if m:
        return _band_level(float(m.group(1)), IELTS_BANDS)
    m = _TOEIC_RE.search(t)
    if m:
        return _band_level(int(m.group(1)), TOEIC_BANDS)
    return english_word_level(t)


def has_english_requirement(text: Optional[str]) -> bool:
    return bool(ENGLISH_REQUIREMENT_RE.search(_lower(text)))


def english_requirement_level(text: Optional[str]) -> int:
    # A bare mention of English counts as a basic requirement.
    if not has_english_requirement(text):
        return 0
    return max(1, english_word_level(text))


def detect_role_family(text: Optional[str]) -> Optional[str]:
    t = _lower(text)
    for family, keys in ROLE_FAMILIES:
        if any(k in t for k in keys):
            return family
    return None


def is_cross_domain(family_a: Optional[str], family_b: Optional[str]) -> bool:
    return bool(family_a and family_b and family_a != family_b)


def extract_signal(text: Optional[str]) -> ExtractedSignal:
    return ExtractedSignal(
        roles=frozenset(extract_roles(text)),
        tech=frozenset(extract_tech(text)),
        years=extract_years(text),
        degree_level=extract_degree_level(text),
        english_level=extract_english_level(text),
    )


def ordered_overlap(a: Iterable[str], b: Iterable[str], order: Iterable[str]) -> List[str]:
    """Intersection of two token sets, listed in vocabulary order."""
    sa, sb = set(a), set(b)
    return [t for t in order if t in sa and t in sb]


def role_overlap(a: Iterable[str], b: Iterable[str]) -> List[str]:
    return ordered_overlap(a, b, ROLE_TOKENS)


def tech_overlap(a: Iterable[str], b: Iterable[str]) -> List[str]:
    return ordered_overlap(a, b, TECH_NEEDLES)
