"""Post-processing shared by the AI and fallback scoring paths.

Whatever produced the base score, every post goes through the same
adjustments: title boost, recruiting nudge, cross-domain cap, expiry penalty,
clamping and highlight selection.
"""
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple

from .fallback import (
    CROSS_DOMAIN_CAP,
    candidate_signal,
    clamp_score,
    match_contributions,
    post_requirements,
)
from .signals import detect_role_family, is_cross_domain, role_overlap, tech_overlap
from .types import CandidateProfile, Contribution, ExtractedSignal, PostLite, ScoreResult
from .vocab import DEGREE_HIGHLIGHT_TERMS, ENGLISH_HIGHLIGHT_TERMS, ROLE_TOKENS

TITLE_NAME_POINTS = 8
TITLE_ROLE_POINTS = 10
TITLE_BOOST_CAP = 30
RECRUITING_BONUS = 5
EXPIRED_PENALTY = 25

MAX_HIGHLIGHTS = 12
MIN_HIGHLIGHT_LEN = 2
MAX_HIGHLIGHT_LEN = 80


def cv_name_tokens(cv_name: Optional[str]) -> List[str]:
    tokens = [t for t in (cv_name or '').lower().split() if len(t) >= 2]
    return list(dict.fromkeys(tokens))


def title_boost(cv_name: Optional[str], title: Optional[str], matched_roles: Sequence[str]) -> Tuple[int, List[str]]:
    """Points for CV-name tokens and matched role tokens appearing in the post title."""
    t = (title or '').lower()
    name_hits = [tok for tok in cv_name_tokens(cv_name) if tok in t]
    role_hits = [r for r in matched_roles if r in t]
    boost = TITLE_NAME_POINTS * len(name_hits) + TITLE_ROLE_POINTS * len(role_hits)
    return min(TITLE_BOOST_CAP, boost), list(dict.fromkeys(name_hits + role_hits))


def clean_highlights(terms: Iterable, drop: Iterable[str] = ()) -> List[str]:
    dropped = {d.lower() for d in drop}
    out: List[str] = []
    seen = set()
    for raw in terms:
        if raw is None:
            continue
        term = str(raw).strip()[:MAX_HIGHLIGHT_LEN].strip()
        if len(term) < MIN_HIGHLIGHT_LEN:
            continue
        key = term.lower()
        if key in seen or key in dropped:
            continue
        seen.add(key)
        out.append(term)
        if len(out) >= MAX_HIGHLIGHTS:
            break
    return out


def build_highlights(post: PostLite, req: ExtractedSignal, roles: Sequence[str], tech: Sequence[str]) -> List[str]:
    terms: List[str] = list(roles) + list(tech)
    post_lower = post.text.lower()
    if req.degree_level:
        terms += [k for k in DEGREE_HIGHLIGHT_TERMS if k in post_lower]
    if req.english_level:
        terms += [k for k in ENGLISH_HIGHLIGHT_TERMS if k in post_lower]
    if req.years:
        n = req.years
        terms += [f'{n} năm', f'{n}+ năm', f'{n} years', f'{n}+ years']
    return terms


def merge_result(profile: CandidateProfile, post: PostLite, upstream: Optional[ScoreResult] = None,
                 cv: Optional[ExtractedSignal] = None, cv_family: Optional[str] = None) -> ScoreResult:
    if cv is None:
        cv = candidate_signal(profile)
        cv_family = detect_role_family(profile.text)
    req = post_requirements(post)
    post_family = detect_role_family(post.text)
    cross = is_cross_domain(cv_family, post_family)
    roles = role_overlap(cv.roles, req.roles)
    tech = tech_overlap(cv.tech, req.tech)

    score = float(upstream.score or 0) if upstream is not None else 0.0
    contributions = [c for c in (upstream.contributions if upstream is not None else []) if c.detail]
    if not contributions:
        contributions = match_contributions(cv, req, roles, tech)

    boost, hits = title_boost(profile.cv_name, post.title, roles)
    if boost:
        score += boost
        contributions.append(Contribution('title', f'Title mentions {", ".join(hits)} (+{boost})'))

    if post.is_recruiting:
        score += RECRUITING_BONUS

    if cross:
        score = min(score, CROSS_DOMAIN_CAP)
        if not any(c.category == 'cross_domain' for c in contributions):
            contributions.append(Contribution(
                'cross_domain_cap', f'Different domain: CV {cv_family} vs post {post_family} (score capped)'))

    if post.is_expired:
        score = max(0.0, score - EXPIRED_PENALTY)
        contributions.append(Contribution('expired', 'Post has expired (penalized)'))

    upstream_highlights = list(upstream.highlights) if upstream is not None else []
    candidates = upstream_highlights or build_highlights(post, req, [] if cross else roles, tech)
    highlights = clean_highlights(candidates, drop=ROLE_TOKENS if cross else ())

    return ScoreResult(post_id=post.id, score=clamp_score(score), contributions=contributions,
                       highlights=highlights)


def rank_posts(profile: CandidateProfile, posts: Sequence[PostLite],
               upstream: Optional[Mapping[int, ScoreResult]] = None) -> List[ScoreResult]:
    """Merge every post with its upstream score (if any) and sort by score, highest first."""
    upstream = upstream or {}
    cv = candidate_signal(profile)
    family = detect_role_family(profile.text)
    merged = [merge_result(profile, p, upstream.get(p.id), cv=cv, cv_family=family) for p in posts]
    merged.sort(key=lambda r: r.score, reverse=True)
    return merged
