from .fallback import fallback_score, fallback_scores
from .merge import merge_result, rank_posts
from .query import QueryTokens, build_like_params, compute_query_score, extract_query_tokens
from .signals import (
    detect_role_family,
    extract_degree_level,
    extract_english_level,
    extract_roles,
    extract_signal,
    extract_tech,
    extract_years,
)
from .types import CandidateProfile, Contribution, ExtractedSignal, PostLite, ScoreResult

__all__ = [
    'CandidateProfile', 'Contribution', 'ExtractedSignal', 'PostLite', 'QueryTokens', 'ScoreResult',
    'build_like_params', 'compute_query_score', 'detect_role_family', 'extract_degree_level',
    'extract_english_level', 'extract_query_tokens', 'extract_roles', 'extract_signal',
    'extract_tech', 'extract_years', 'fallback_score', 'fallback_scores', 'merge_result',
    'rank_posts',
]
