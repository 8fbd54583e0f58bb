from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Mapping, Optional

# Contributions rendered after the scoring clauses, separated by ' | '.
ADJUSTMENT_CATEGORIES = frozenset({'title', 'cross_domain_cap', 'expired'})


@dataclass(frozen=True)
class ExtractedSignal:
    roles: FrozenSet[str] = frozenset()
    tech: FrozenSet[str] = frozenset()
    years: int = 0
    degree_level: int = 0
    english_level: int = 0


@dataclass(frozen=True)
class Contribution:
    category: str
    detail: str


@dataclass(frozen=True)
class CandidateProfile:
    cv_name: str = ''
    cv_text: str = ''
    bio: str = ''

    @property
    def text(self) -> str:
        """Name, CV text and bio; roles, tech and domain are read from this."""
        return f'{self.cv_name or ""} {self.cv_text or ""} {self.bio or ""}'

    @property
    def body(self) -> str:
        """CV text and bio; years, degree and English level are read from this."""
        return f'{self.cv_text or ""} {self.bio or ""}'


@dataclass(frozen=True)
class PostLite:
    id: int
    title: str = ''
    description: str = ''
    post_type: str = ''
    is_expired: bool = False
    created_at: Optional[float] = None
    start_at: Optional[float] = None
    end_at: Optional[float] = None
    company_name: str = ''

    @property
    def text(self) -> str:
        return f'{self.title or ""} {self.description or ""}'

    @property
    def is_recruiting(self) -> bool:
        return self.post_type == 'find_candidate'

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> 'PostLite':
        keys = set(row.keys())
        return cls(
            id=int(row['id']),
            title=row['title'] or '',
            description=row['description'] or '',
            post_type=row['post_type'] or '',
            is_expired=bool(row['is_expired']) if 'is_expired' in keys else False,
            created_at=row['created_at'] if 'created_at' in keys else None,
            start_at=row['start_at'] if 'start_at' in keys else None,
            end_at=row['end_at'] if 'end_at' in keys else None,
            company_name=(row['company_name'] or '') if 'company_name' in keys else '',
        )

    def to_prompt_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'post_type': self.post_type,
            'title': self.title,
            'description': self.description,
            'company_name': self.company_name,
            'start_at': self.start_at,
            'end_at': self.end_at,
            'is_expired': self.is_expired,
        }


@dataclass
class ScoreResult:
    post_id: int
    score: float = 0
    contributions: List[Contribution] = field(default_factory=list)
    highlights: List[str] = field(default_factory=list)

    @property
    def reason(self) -> str:
        return render_reason(self.contributions)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'post_id': self.post_id,
            'score': self.score,
            'reason': self.reason,
            'highlights': list(self.highlights),
        }


def render_reason(contributions: List[Contribution]) -> str:
    clauses = [c.detail for c in contributions if c.category not in ADJUSTMENT_CATEGORIES and c.detail]
    text = '; '.join(clauses)
    for c in contributions:
        if c.category in ADJUSTMENT_CATEGORIES and c.detail:
            text = f'{text} | {c.detail}' if text else c.detail
    return text
