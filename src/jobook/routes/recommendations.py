from flask import Blueprint, current_app, jsonify, request

from .. import storage
from ..auth import current_user, login_required
from ..db import fetch_all, fetch_one, row_dict, rows_dicts
from ..errors import ApiError
from ..matching import CandidateProfile, PostLite
from . import now

bp = Blueprint('recommendations', __name__, url_prefix='/recommendations')

POST_LIMIT = 200

# only a passed end date counts here, unlike the feed
POSTS_SQL = f"""
    SELECT p.*,
           u.full_name AS author_name,
           u.account_type AS author_type,
           u.avatar_url AS author_avatar,
           co.name AS company_name,
           co.logo_url AS company_logo_url,
           co.tax_code AS company_tax_code,
           c.name AS cv_name,
           c.file_url AS cv_file_url,
           (p.post_type = 'find_candidate' AND p.start_at IS NOT NULL AND p.end_at IS NOT NULL
            AND :now > p.end_at) AS is_expired
    FROM posts p
    JOIN users u ON p.user_id = u.id
    LEFT JOIN companies co ON p.company_id = co.id
    LEFT JOIN cvs c ON p.attached_cv_id = c.id
    ORDER BY is_expired ASC, p.created_at DESC
    LIMIT {POST_LIMIT}
"""


def _cv_id() -> int:
    try:
        cv_id = int(request.args.get('cvId', ''))
    except ValueError:
        cv_id = 0
    if cv_id <= 0:
        raise ApiError('Missing or invalid cvId')
    return cv_id


@bp.get('')
@login_required
def recommend():
    me = current_user()
    if me['account_type'] != 'candidate':
        raise ApiError('Only candidates can get recommendations', 403)
    cv_id = _cv_id()
    cv = row_dict(fetch_one('SELECT * FROM cvs WHERE id = ? AND user_id = ?', (cv_id, me['id'])))
    if not cv:
        raise ApiError('CV not found or does not belong to you', 404)
    path = storage.resolve_public_url(cv['file_url'])
    if path is None or not path.exists():
        raise ApiError('CV file not found', 404)

    cv_text = storage.read_cv_text(cv['file_url'])
    rows = rows_dicts(fetch_all(POSTS_SQL, {'now': now()}))
    profile = CandidateProfile(cv_name=cv['name'] or '', cv_text=cv_text, bio=me.get('bio') or '')
    posts = [PostLite.from_row(r) for r in rows]

    result = current_app.extensions['jobook.recommender'].recommend(profile, posts, me)
    by_id = {r['id']: r for r in rows}
    ranked = [
        dict(by_id[s.post_id], relevance=s.score, reason=s.reason, highlights=s.highlights)
        for s in result.results
    ]
    current_app.logger.info('Recommendations for CV %s: %d posts (fallback=%s)',
                            cv_id, len(ranked), result.used_fallback)
    return jsonify({'cv': cv, 'cvSummary': result.summary, 'cvText': cv_text, 'posts': ranked})
