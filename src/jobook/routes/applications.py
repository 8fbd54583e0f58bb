from flask import Blueprint, current_app, jsonify

from ..auth import current_user, login_required
from ..db import execute, fetch_all, fetch_one, row_dict, rows_dicts
from ..errors import ApiError
from . import body, int_arg, now

bp = Blueprint('applications', __name__, url_prefix='/applications')

STATUSES = ('pending', 'reviewed', 'accepted', 'rejected')

APPLICATION_SELECT = """
    SELECT a.*,
           p.title AS post_title,
           p.post_type AS post_type,
           p.user_id AS post_owner_id,
           co.name AS company_name,
           u.full_name AS applicant_name,
           u.email AS applicant_email,
           u.avatar_url AS applicant_avatar,
           c.name AS cv_name,
           c.file_url AS cv_file_url
    FROM applications a
    JOIN posts p ON p.id = a.post_id
    JOIN users u ON u.id = a.applicant_id
    LEFT JOIN companies co ON co.id = p.company_id
    LEFT JOIN cvs c ON c.id = a.cv_id
"""


def _is_expired(post, ts: float) -> bool:
    if post['start_at'] is None or post['end_at'] is None:
        return False
    return ts < post['start_at'] or ts > post['end_at']


@bp.post('')
@login_required
def apply():
    data = body()
    me = current_user()
    if me['account_type'] != 'candidate':
        raise ApiError('Only candidates can apply', 403)
    post_id = int_arg(data.get('post_id'), None, 'post id')
    cv_id = int_arg(data.get('cv_id'), None, 'CV id')
    if not post_id or not cv_id:
        raise ApiError('post_id and cv_id are required')
    if not fetch_one('SELECT id FROM cvs WHERE id = ? AND user_id = ?', (cv_id, me['id'])):
        raise ApiError('Selected CV is invalid')

    post = fetch_one('SELECT * FROM posts WHERE id = ?', (post_id,))
    if post is None:
        raise ApiError('Post not found', 404)
    ts = now()
    if post['post_type'] != 'find_candidate':
        raise ApiError('Applications are only accepted on recruiting posts')
    if _is_expired(post, ts):
        raise ApiError('This post is no longer accepting applications')
    if fetch_one('SELECT id FROM applications WHERE post_id = ? AND applicant_id = ?', (post_id, me['id'])):
        raise ApiError('You have already applied to this post')

    cur = execute(
        'INSERT INTO applications (post_id, cv_id, applicant_id, created_at) VALUES (?, ?, ?, ?)',
        (post_id, cv_id, me['id'], ts),
    )
    current_app.logger.info('User %s applied to post %s', me['id'], post_id)
    application = row_dict(fetch_one(f'{APPLICATION_SELECT} WHERE a.id = ?', (cur.lastrowid,)))
    return jsonify({'message': 'Application submitted', 'application': application}), 201


@bp.get('/my-applications')
@login_required
def my_applications():
    rows = fetch_all(f'{APPLICATION_SELECT} WHERE a.applicant_id = ? ORDER BY a.created_at DESC',
                     (current_user()['id'],))
    return jsonify({'applications': rows_dicts(rows)})


@bp.get('/received')
@login_required
def received():
    rows = fetch_all(f'{APPLICATION_SELECT} WHERE p.user_id = ? ORDER BY a.created_at DESC',
                     (current_user()['id'],))
    return jsonify({'applications': rows_dicts(rows)})


@bp.get('/post/<int:post_id>')
@login_required
def for_post(post_id: int):
    if not fetch_one('SELECT id FROM posts WHERE id = ? AND user_id = ?', (post_id, current_user()['id'])):
        raise ApiError('Post not found or not authorized', 404)
    rows = fetch_all(f'{APPLICATION_SELECT} WHERE a.post_id = ? ORDER BY a.created_at DESC', (post_id,))
    return jsonify({'applications': rows_dicts(rows)})


@bp.patch('/<int:application_id>/status')
@login_required
def set_status(application_id: int):
    status = body().get('status')
    if status not in STATUSES:
        raise ApiError('Invalid status')
    row = fetch_one(f'{APPLICATION_SELECT} WHERE a.id = ?', (application_id,))
    if row is None or row['post_owner_id'] != current_user()['id']:
        raise ApiError('Application not found or not authorized', 404)
    execute('UPDATE applications SET status = ? WHERE id = ?', (status, application_id))
    application = row_dict(fetch_one(f'{APPLICATION_SELECT} WHERE a.id = ?', (application_id,)))
    return jsonify({'message': 'Status updated', 'application': application})
