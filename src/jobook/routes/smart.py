from flask import Blueprint, jsonify

from ..auth import current_user, login_required
from ..db import fetch_all, rows_dicts
from ..errors import ApiError
from ..matching import build_like_params, compute_query_score, extract_query_tokens
from . import body, now

bp = Blueprint('smart', __name__, url_prefix='/smart')

SEARCH_LIMIT = 200
RECRUITING_TTL = 10 * 86400


@bp.post('/search')
@login_required
def search():
    query = body().get('query')
    if not isinstance(query, str) or not query.strip():
        raise ApiError('query is required')

    tokens = extract_query_tokens(query)
    patterns = build_like_params(tokens)
    # candidates look for recruiters, everyone else for candidates
    target = 'find_candidate' if current_user()['account_type'] == 'candidate' else 'find_job'

    where = 'p.post_type = ?'
    params = [target]
    if patterns:
        likes = ' OR '.join('(p.title LIKE ? OR p.description LIKE ? OR u.bio LIKE ?)' for _ in patterns)
        where += f' AND ({likes})'
        for pattern in patterns:
            params += [pattern, pattern, pattern]

    rows = fetch_all(
        f"""
        SELECT p.*, u.full_name AS author_name, u.account_type AS author_type, u.avatar_url AS author_avatar,
               c.file_url AS cv_file_url,
               (p.post_type = 'find_candidate' AND p.created_at < ?) AS is_expired
        FROM posts p
        JOIN users u ON p.user_id = u.id
        LEFT JOIN cvs c ON p.attached_cv_id = c.id
        WHERE {where}
        ORDER BY p.created_at DESC
        LIMIT {SEARCH_LIMIT}
        """,
        [now() - RECRUITING_TTL] + params,
    )

    items = []
    for item in rows_dicts(rows):
        text = '\n'.join(item.get(k) or '' for k in ('title', 'description', 'author_name', 'author_type'))
        item['_score'] = compute_query_score(text, tokens)
        items.append(item)
    items.sort(key=lambda x: (x['_score'], x['created_at']), reverse=True)
    return jsonify({'items': items, 'tokens': tokens.to_dict()})
