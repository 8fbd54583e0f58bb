"""Deterministic scorer used when the AI ranking is unavailable or unusable."""
import math
from typing import List, Optional, Sequence

from .signals import (
    detect_role_family,
    english_requirement_level,
    extract_degree_level,
    extract_english_level,
    extract_roles,
    extract_tech,
    extract_years,
    is_cross_domain,
    role_overlap,
    tech_overlap,
)
from .types import CandidateProfile, Contribution, ExtractedSignal, PostLite, ScoreResult

ROLE_POINTS, ROLE_CAP = 20, 40
TECH_POINTS, TECH_CAP = 6, 30
MET_POINTS = 10
UNSTATED_POINTS = 5
CROSS_DOMAIN_CAP = 50
REASON_TECH_LIMIT = 6


def clamp_score(score: float) -> int:
    if not math.isfinite(score):
        return 0
    return max(0, min(100, int(round(score))))


def candidate_signal(profile: CandidateProfile) -> ExtractedSignal:
    full = profile.text
    body = profile.body
    return ExtractedSignal(
        roles=frozenset(extract_roles(full)),
        tech=frozenset(extract_tech(full)),
        years=extract_years(body),
        degree_level=extract_degree_level(body),
        english_level=extract_english_level(body),
    )


def post_requirements(post: PostLite) -> ExtractedSignal:
    """Signals of a post, read as requirements (English level is the required level)."""
    text = post.text
    return ExtractedSignal(
        roles=frozenset(extract_roles(text)),
        tech=frozenset(extract_tech(text)),
        years=extract_years(text),
        degree_level=extract_degree_level(text),
        english_level=english_requirement_level(text),
    )


def _requirement_points(have: int, required: int) -> int:
    if required:
        return MET_POINTS if have >= required else 0
    return UNSTATED_POINTS if have > 0 else 0


def cross_domain_clause(cv_family: str, post_family: str) -> Contribution:
    return Contribution('cross_domain', f'Different domain: CV {cv_family} vs post {post_family} (score capped)')


def match_contributions(cv: ExtractedSignal, req: ExtractedSignal,
                        roles: Sequence[str], tech: Sequence[str]) -> List[Contribution]:
    """Reason clauses in priority order: role, tech, years, degree, English."""
    out: List[Contribution] = []
    if roles:
        out.append(Contribution('role', f'Role match: {", ".join(roles)}'))
    if tech:
        out.append(Contribution('tech', f'Tech match: {", ".join(tech[:REASON_TECH_LIMIT])}'))
    if req.years:
        out.append(Contribution('years', f'Experience: requires {req.years}+ years, CV has {cv.years}'))
    if req.degree_level:
        out.append(Contribution('degree', f'Degree: requires level {req.degree_level}, CV level {cv.degree_level}'))
    if req.english_level:
        out.append(Contribution('english', f'English: requires level {req.english_level}, CV level {cv.english_level}'))
    return out


def fallback_score(profile: CandidateProfile, post: PostLite,
                   cv: Optional[ExtractedSignal] = None,
                   cv_family: Optional[str] = None) -> ScoreResult:
    if cv is None:
        cv = candidate_signal(profile)
        cv_family = detect_role_family(profile.text)
    req = post_requirements(post)
    post_family = detect_role_family(post.text)

    roles = role_overlap(cv.roles, req.roles)
    tech = tech_overlap(cv.tech, req.tech)

    score = min(ROLE_CAP, ROLE_POINTS * len(roles))
    score += min(TECH_CAP, TECH_POINTS * len(tech))
    score += _requirement_points(cv.years, req.years)
    score += _requirement_points(cv.degree_level, req.degree_level)
    score += _requirement_points(cv.english_level, req.english_level)

    contributions = match_contributions(cv, req, roles, tech)
    if is_cross_domain(cv_family, post_family):
        score = min(score, CROSS_DOMAIN_CAP)
        contributions.append(cross_domain_clause(cv_family, post_family))
    if not contributions:
        contributions.append(Contribution('generic', 'Some overlap between the CV and the post'))

    return ScoreResult(post_id=post.id, score=clamp_score(score), contributions=contributions)


def fallback_scores(profile: CandidateProfile, posts: Sequence[PostLite]) -> List[ScoreResult]:
    cv = candidate_signal(profile)
    family = detect_role_family(profile.text)
    return [fallback_score(profile, p, cv=cv, cv_family=family) for p in posts]
