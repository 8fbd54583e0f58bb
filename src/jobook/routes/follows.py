from flask import Blueprint, jsonify

from ..auth import current_user, login_required
from ..db import execute, fetch_all, fetch_one, rows_dicts
from ..errors import ApiError
from . import now

bp = Blueprint('follows', __name__, url_prefix='/follows')

PEOPLE_SELECT = """
    SELECT u.id, u.full_name, u.account_type, u.avatar_url, u.bio, f.created_at AS followed_at
    FROM follows f
    JOIN users u ON u.id = f.{join}
    WHERE f.{where} = ?
    ORDER BY f.created_at DESC
"""


def _followers(user_id: int):
    return rows_dicts(fetch_all(PEOPLE_SELECT.format(join='follower_id', where='following_id'), (user_id,)))


def _following(user_id: int):
    return rows_dicts(fetch_all(PEOPLE_SELECT.format(join='following_id', where='follower_id'), (user_id,)))


def _target(user_id: int):
    if user_id == current_user()['id']:
        raise ApiError('You cannot follow yourself')
    row = fetch_one('SELECT id, account_type FROM users WHERE id = ?', (user_id,))
    if row is None or row['account_type'] == 'admin':
        raise ApiError('User not found', 404)


@bp.post('/<int:user_id>')
@login_required
def follow(user_id: int):
    _target(user_id)
    execute('INSERT OR IGNORE INTO follows (follower_id, following_id, created_at) VALUES (?, ?, ?)',
            (current_user()['id'], user_id, now()))
    return jsonify({'message': 'Followed', 'following': True}), 201


@bp.delete('/<int:user_id>')
@login_required
def unfollow(user_id: int):
    _target(user_id)
    execute('DELETE FROM follows WHERE follower_id = ? AND following_id = ?', (current_user()['id'], user_id))
    return jsonify({'message': 'Unfollowed', 'following': False})


@bp.get('/followers')
@login_required
def my_followers():
    return jsonify({'followers': _followers(current_user()['id'])})


@bp.get('/following')
@login_required
def my_following():
    return jsonify({'following': _following(current_user()['id'])})


@bp.get('/status/<int:user_id>')
@login_required
def status(user_id: int):
    row = fetch_one('SELECT 1 FROM follows WHERE follower_id = ? AND following_id = ?',
                    (current_user()['id'], user_id))
    return jsonify({'following': row is not None})


@bp.get('/counts/<int:user_id>')
@login_required
def counts(user_id: int):
    followers = fetch_one('SELECT COUNT(*) AS n FROM follows WHERE following_id = ?', (user_id,))['n']
    following = fetch_one('SELECT COUNT(*) AS n FROM follows WHERE follower_id = ?', (user_id,))['n']
    return jsonify({'followers': followers, 'following': following})


@bp.get('/<int:user_id>/followers')
@login_required
def user_followers(user_id: int):
    return jsonify({'followers': _followers(user_id)})


@bp.get('/<int:user_id>/following')
@login_required
def user_following(user_id: int):
    return jsonify({'following': _following(user_id)})
