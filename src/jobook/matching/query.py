"""Tokenizer and scorer for short smart-search queries."""
import re
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from .vocab import QUERY_ROLE_KEYWORDS, QUERY_SKILL_KEYWORDS

MAX_YEARS = 30
SKILL_POINTS = 3
ROLE_POINTS = 2
SENIORITY_BONUS = 2

_YEARS_RE = re.compile(r'([0-9]{1,2})\s*(năm|nam|yrs?|years?|y)')
_TIERS = (
    (re.compile(r'intern|fresher'), 0),
    (re.compile(r'junior'), 1),
    (re.compile(r'middle|mid'), 2),
    (re.compile(r'senior'), 3),
)

_INTERN_RE = re.compile(r'intern|fresher')
_JUNIOR_RE = re.compile(r'junior|1\s*[-–to]?\s*2|1-2|1 to 2')
_SENIOR_RE = re.compile(r'senior|3\+|3\s*plus|3\s*\+|\b3\b|4|5')


@dataclass
class QueryTokens:
    skills: List[str] = field(default_factory=list)
    roles: List[str] = field(default_factory=list)
    years: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def extract_query_years(text: Optional[str]) -> Optional[int]:
    t = (text or '').lower()
    m = _YEARS_RE.search(t)
    if m:
        return min(MAX_YEARS, max(0, int(m.group(1))))
    for pattern, years in _TIERS:
        if pattern.search(t):
            return years
    return None


def extract_query_tokens(query: Optional[str]) -> QueryTokens:
    t = (query or '').lower()
    return QueryTokens(
        skills=[k for k in dict.fromkeys(QUERY_SKILL_KEYWORDS) if k in t],
        roles=[k for k in dict.fromkeys(QUERY_ROLE_KEYWORDS) if k in t],
        years=extract_query_years(t),
    )


def build_like_params(tokens: QueryTokens) -> List[str]:
    return [f'%{k}%' for k in dict.fromkeys(tokens.skills + tokens.roles)]


def compute_query_score(text: Optional[str], tokens: QueryTokens) -> int:
    t = (text or '').lower()
    score = SKILL_POINTS * sum(1 for k in tokens.skills if k in t)
    score += ROLE_POINTS * sum(1 for k in tokens.roles if k in t)
    years = tokens.years
    if years is not None:
        if years == 0 and _INTERN_RE.search(t):
            score += SENIORITY_BONUS
        if 1 <= years <= 2 and _JUNIOR_RE.search(t):
            score += SENIORITY_BONUS
        if years >= 3 and _SENIOR_RE.search(t):
            score += SENIORITY_BONUS
    return score
