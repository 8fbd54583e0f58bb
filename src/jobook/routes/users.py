from flask import Blueprint, jsonify, request

from .. import storage
from ..auth import USER_COLUMNS, current_user, login_required
from ..db import execute, fetch_all, fetch_one, row_dict, rows_dicts
from ..errors import ApiError
from . import body, int_arg, now, settings, str_arg

bp = Blueprint('users', __name__, url_prefix='/users')

MAX_PAGE_SIZE = 50


@bp.get('/<int:user_id>')
def get_user(user_id: int):
    user = row_dict(fetch_one(f'SELECT {USER_COLUMNS} FROM users WHERE id = ?', (user_id,)))
    # admin profiles are never exposed
    if not user or user['account_type'] == 'admin':
        raise ApiError('User not found', 404)
    return jsonify({'user': user})


@bp.patch('/profile')
@login_required
def update_profile():
    data = body()
    me = current_user()
    full_name = str_arg(data.get('full_name'), 'full_name') or me['full_name']
    bio = str_arg(data.get('bio'), 'bio', me['bio'], strip=False)
    execute(
        'UPDATE users SET full_name = ?, bio = ?, address = COALESCE(?, address), updated_at = ? WHERE id = ?',
        (full_name, bio, str_arg(data.get('address'), 'address') or None, now(), me['id']),
    )
    user = row_dict(fetch_one(f'SELECT {USER_COLUMNS} FROM users WHERE id = ?', (me['id'],)))
    return jsonify({'message': 'Profile updated successfully', 'user': user})


@bp.post('/avatar')
@login_required
def upload_avatar():
    file = request.files.get('avatar')
    ext = storage.check_upload(file, settings().max_avatar_bytes, mime_prefix='image/', what='avatar')
    me = current_user()
    url, _path = storage.save_upload(file, storage.AVATARS, 'avatar-', ext)
    avatar_url = f"{settings().public_url.rstrip('/')}{url}"
    old = me.get('avatar_url')
    execute('UPDATE users SET avatar_url = ?, updated_at = ? WHERE id = ?', (avatar_url, now(), me['id']))
    if old:
        storage.remove_public_file(old)
    return jsonify({'message': 'Avatar updated successfully', 'avatar_url': avatar_url})


@bp.get('')
@login_required
def search_users():
    args = request.args
    page = max(1, int_arg(args.get('page'), 1, 'page'))
    limit = min(MAX_PAGE_SIZE, max(1, int_arg(args.get('limit'), 10, 'limit')))
    offset = (page - 1) * limit

    where = ["u.account_type <> 'admin'"]
    params = []
    search = args.get('search')
    if search:
        where.append('(u.full_name LIKE ? OR u.email LIKE ?)')
        params += [f'%{search}%', f'%{search}%']
    if args.get('type'):
        where.append('u.account_type = ?')
        params.append(args['type'])
    if args.get('same_company') in ('true', '1'):
        company_id = current_user().get('company_id')
        if not company_id:
            raise ApiError('This account is not linked to a company')
        where.append('u.company_id = ?')
        params.append(company_id)
    where_sql = ' AND '.join(where)

    total = fetch_one(f'SELECT COUNT(*) AS total FROM users u WHERE {where_sql}', params)['total']
    rows = fetch_all(
        f"""
        SELECT u.id, u.full_name, u.email, u.account_type, u.bio, u.avatar_url, u.company_id,
               c.name AS company_name, c.logo_url AS company_logo_url
        FROM users u
        LEFT JOIN companies c ON c.id = u.company_id
        WHERE {where_sql}
        ORDER BY u.full_name
        LIMIT ? OFFSET ?
        """,
        params + [limit, offset],
    )
    return jsonify({'users': rows_dicts(rows), 'total': total})
