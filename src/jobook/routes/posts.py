from flask import Blueprint, jsonify, request

from ..auth import current_user, login_required
from ..db import execute, fetch_all, fetch_one, row_dict, rows_dicts
from ..errors import ApiError
from . import body, int_arg, now, parse_time, str_arg

bp = Blueprint('posts', __name__, url_prefix='/posts')

POST_TYPES = ('find_job', 'find_candidate')
DAY = 86400

# recruiting posts outside their [start_at, end_at] window
EXPIRED_SQL = ("(p.post_type = 'find_candidate' AND p.start_at IS NOT NULL AND p.end_at IS NOT NULL "
               "AND (:now < p.start_at OR :now > p.end_at))")

POST_SELECT = f"""
    SELECT p.*,
           u.full_name AS author_name,
           u.account_type AS author_type,
           u.avatar_url AS author_avatar,
           co.name AS company_name,
           co.logo_url AS company_logo_url,
           co.tax_code AS company_tax_code,
           c.name AS cv_name,
           c.file_url AS cv_file_url,
           {EXPIRED_SQL} AS is_expired
    FROM posts p
    JOIN users u ON p.user_id = u.id
    LEFT JOIN companies co ON p.company_id = co.id
    LEFT JOIN cvs c ON p.attached_cv_id = c.id
"""


def get_post(post_id: int):
    post = row_dict(fetch_one(f'{POST_SELECT} WHERE p.id = :id', {'now': now(), 'id': post_id}))
    if not post:
        raise ApiError('Post not found', 404)
    return post


def _attached_cv(data, post_type: str, user_id: int):
    raw = data.get('attached_cv_id')
    cv_id = int_arg(raw, None, 'CV id')
    if post_type == 'find_job':
        if not cv_id:
            raise ApiError('CV is required for job seeking posts')
        if not fetch_one('SELECT id FROM cvs WHERE id = ? AND user_id = ?', (cv_id, user_id)):
            raise ApiError('Selected CV is invalid')
    return cv_id


@bp.get('')
@login_required
def list_posts():
    args = request.args
    page = max(1, int_arg(args.get('page'), 1, 'page'))
    limit = max(1, int_arg(args.get('limit'), 10, 'limit'))
    params = {'now': now(), 'uid': current_user()['id'], 'limit': limit, 'offset': (page - 1) * limit}

    where = []
    if args.get('type'):
        where.append('p.post_type = :type')
        params['type'] = args['type']
    if args.get('start_date'):
        start = parse_time(args['start_date'])
        if start is None:
            raise ApiError('Invalid start_date')
        where.append('p.created_at >= :start')
        params['start'] = start
    if args.get('end_date'):
        end = parse_time(args['end_date'])
        if end is None:
            raise ApiError('Invalid end_date')
        # whole end day included
        where.append('p.created_at < :end')
        params['end'] = end + DAY
    where_sql = f"WHERE {' AND '.join(where)}" if where else ''

    rows = fetch_all(
        f"""
        SELECT * FROM (
            SELECT q.*, (f.follower_id IS NOT NULL) AS is_following_author
            FROM ({POST_SELECT}) q
            LEFT JOIN follows f ON f.following_id = q.user_id AND f.follower_id = :uid
        ) p
        {where_sql}
        ORDER BY p.is_expired ASC, p.is_following_author DESC, p.created_at DESC
        LIMIT :limit OFFSET :offset
        """,
        params,
    )
    return jsonify({'posts': rows_dicts(rows)})


@bp.get('/user/<int:user_id>')
@login_required
def user_posts(user_id: int):
    params = {'now': now(), 'uid': user_id}
    sql = f'{POST_SELECT} WHERE p.user_id = :uid'
    if request.args.get('type'):
        sql += ' AND p.post_type = :type'
        params['type'] = request.args['type']
    rows = fetch_all(f'{sql} ORDER BY is_expired ASC, p.created_at DESC', params)
    return jsonify({'posts': rows_dicts(rows)})


@bp.get('/<int:post_id>')
@login_required
def post_detail(post_id: int):
    return jsonify({'post': get_post(post_id)})


@bp.post('')
@login_required
def create_post():
    data = body()
    me = current_user()
    post_type = data.get('post_type')
    title = str_arg(data.get('title'), 'title')
    if post_type not in POST_TYPES:
        raise ApiError('Invalid post_type')
    if not title:
        raise ApiError('title is required')
    if post_type == 'find_job' and me['account_type'] != 'candidate':
        raise ApiError('Only candidates can create find_job posts')
    if post_type == 'find_candidate' and me['account_type'] != 'company':
        raise ApiError('Only companies can create find_candidate posts')
    cv_id = _attached_cv(data, post_type, me['id'])

    ts = now()
    company_id = start_at = end_at = None
    if post_type == 'find_candidate':
        if not me.get('company_id'):
            raise ApiError('Your account is not linked to a company')
        if data.get('start_at'):
            raise ApiError('start_at cannot be set; it is the moment the post is published')
        if not data.get('end_at'):
            raise ApiError('end_at is required')
        end_at = parse_time(data['end_at'])
        if end_at is None:
            raise ApiError('Invalid end_at')
        if end_at <= ts:
            raise ApiError('end_at must be in the future')
        company_id, start_at = me['company_id'], ts

    cur = execute(
        'INSERT INTO posts (user_id, company_id, post_type, title, description, attached_cv_id, start_at, end_at, '
        'created_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)',
        (me['id'], company_id, post_type, title, str_arg(data.get('description'), 'description'), cv_id,
         start_at, end_at, ts),
    )
    return jsonify({'post': get_post(cur.lastrowid)}), 201


@bp.put('/<int:post_id>')
@login_required
def update_post(post_id: int):
    data = body()
    me = current_user()
    post = row_dict(fetch_one('SELECT * FROM posts WHERE id = ? AND user_id = ?', (post_id, me['id'])))
    if not post:
        raise ApiError('Post not found or not authorized', 404)
    if 'attached_cv_id' not in data:
        data['attached_cv_id'] = post['attached_cv_id']
    cv_id = _attached_cv(data, post['post_type'], me['id'])

    end_at = post['end_at']
    if post['post_type'] == 'find_candidate':
        if data.get('start_at'):
            raise ApiError('start_at cannot be changed')
        if data.get('end_at'):
            end_at = parse_time(data['end_at'])
            if end_at is None:
                raise ApiError('Invalid end_at')
            if post['start_at'] is not None and end_at <= post['start_at']:
                raise ApiError('end_at must be after start_at')

    execute(
        'UPDATE posts SET title = ?, description = ?, attached_cv_id = ?, end_at = ? WHERE id = ? AND user_id = ?',
        (str_arg(data.get('title'), 'title') or post['title'],
         str_arg(data.get('description'), 'description', post['description'], strip=False),
         cv_id, end_at, post_id, me['id']),
    )
    return jsonify({'post': get_post(post_id)})


@bp.delete('/<int:post_id>')
@login_required
def delete_post(post_id: int):
    cur = execute('DELETE FROM posts WHERE id = ? AND user_id = ?', (post_id, current_user()['id']))
    if cur.rowcount == 0:
        raise ApiError('Post not found or not authorized', 404)
    return jsonify({'message': 'Post deleted successfully'})
