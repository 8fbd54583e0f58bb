"""CV-to-post recommendations: AI ranking with a deterministic fallback.

One Gemini call per request. Any failure of that call, or an answer that does
not parse into ``{summary, scores}``, falls through to the local fallback
scorer. Both paths then go through the same merge step.
"""
import json
import math
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .gemini_client import GeminiClient, GeminiError
from .matching import CandidateProfile, Contribution, PostLite, ScoreResult, fallback_scores, rank_posts

log = logging.getLogger(__name__)

FALLBACK_SUMMARY = 'Could not build a summary with Gemini. Showing recommendations from the fallback matcher.'

RANKING_CONFIG = {
    'temperature': 0.3,
    'topK': 32,
    'topP': 0.9,
    'maxOutputTokens': 2048,
}

SYSTEM_HINT = """You are a job recommendation assistant. Using the CV content and the candidate profile:
1) Summarize the CV in 3-6 short bullet points: skills, experience, desired position (if visible), main technologies, seniority.
2) Read every post carefully (especially post_type='find_candidate') and rate how well it fits the CV on a 0-100 scale.
  - Priorities, in order: (a) position/seniority (Intern/Junior/Mid/Senior/Lead), (b) main languages and frameworks,
    (c) required years of experience, (d) education (BSc/MSc/PhD), (e) English level.
  - Other criteria (product domain, location/remote) are secondary.
  - Penalize expired posts (is_expired=true) and unrelated posts heavily.
  - If the role family differs (e.g. a Web CV against an Embedded/Firmware post), cap the score at 40-50 and say so.
  - Give a 1-2 sentence reason based only on details actually present in the CV and the post.
  - Optionally list up to 12 short "highlights": words from the post that explain the match.
3) Return PLAIN JSON with exactly this schema:
  { "summary": string,
    "scores": Array<{ "post_id": number, "score": number, "reason": string, "highlights": string[] }> }
No markdown, no ``` fences. If data is missing, estimate carefully and say so in the reason."""


def truncate(text: Optional[str], limit: int = 4000) -> str:
    if not text:
        return ''
    if len(text) <= limit:
        return text
    return text[:limit] + f'\n... (truncated, {len(text)} characters total)'


@dataclass
class Recommendation:
    summary: str
    results: List[ScoreResult] = field(default_factory=list)
    used_fallback: bool = False


def _coerce_score(value: Any) -> Optional[float]:
    try:
        score = float(value)
    except (TypeError, ValueError):
        return None
    # NaN and Infinity parse as JSON and as float('inf')
    return score if math.isfinite(score) else None


def parse_ranking(payload: Any) -> Tuple[str, Dict[int, ScoreResult]]:
    """Validate the model's ranking JSON; raises GeminiError when it is unusable."""
    if not isinstance(payload, dict) or not isinstance(payload.get('scores'), list):
        raise GeminiError('Ranking output has no scores list')
    scores: Dict[int, ScoreResult] = {}
    for item in payload['scores']:
        if not isinstance(item, dict):
            continue
        try:
            post_id = int(item.get('post_id'))
        except (TypeError, ValueError):
            continue
        reason = str(item.get('reason') or '').strip()
        highlights = item.get('highlights')
        scores[post_id] = ScoreResult(
            post_id=post_id,
            score=_coerce_score(item.get('score')) or 0,
            contributions=[Contribution('upstream', reason)] if reason else [],
            highlights=[h for h in highlights if isinstance(h, str)] if isinstance(highlights, list) else [],
        )
    return str(payload.get('summary') or '').strip(), scores


def build_prompt(profile: CandidateProfile, posts: Sequence[PostLite], user: Mapping[str, Any]) -> str:
    posts_json = json.dumps([p.to_prompt_dict() for p in posts], ensure_ascii=False)
    return (
        f"{SYSTEM_HINT}\n\n"
        f"CV name: {profile.cv_name}\n"
        f"Candidate: {user.get('full_name') or ''} - {user.get('email') or ''}\n"
        f"Address: {user.get('address') or ''}\n"
        f"Bio: {truncate(profile.bio, 1000)}\n\n"
        f"--- CV content (may be truncated) ---\n{truncate(profile.cv_text, 8000)}\n\n"
        f"--- Posts (key fields only) ---\n{truncate(posts_json, 8000)}\n"
    )


class Recommender:
    def __init__(self, client: GeminiClient, model: Optional[str] = None):
        self.client = client
        self.model = model

    def ai_ranking(self, profile: CandidateProfile, posts: Sequence[PostLite],
                   user: Mapping[str, Any]) -> Tuple[str, Dict[int, ScoreResult]]:
        payload = self.client.generate_json(build_prompt(profile, posts, user), model=self.model,
                                            generation_config=RANKING_CONFIG)
        return parse_ranking(payload)

    def recommend(self, profile: CandidateProfile, posts: Sequence[PostLite],
                  user: Optional[Mapping[str, Any]] = None) -> Recommendation:
        used_fallback = False
        try:
            summary, upstream = self.ai_ranking(profile, posts, user or {})
        except GeminiError as e:
            log.warning('Gemini ranking failed, using fallback scorer: %s', e)
            summary = FALLBACK_SUMMARY
            upstream = {r.post_id: r for r in fallback_scores(profile, posts)}
            used_fallback = True
        return Recommendation(summary=summary, results=rank_posts(profile, posts, upstream),
                              used_fallback=used_fallback)
