from flask import Blueprint, current_app, jsonify

from ..auth import USER_COLUMNS, current_user, hash_password, issue_token, login_required, verify_password
from ..db import execute, fetch_one, row_dict
from ..errors import ApiError
from . import body, now, str_arg

bp = Blueprint('auth', __name__, url_prefix='/auth')

SELF_REGISTER_TYPES = ('candidate', 'company')


@bp.post('/register')
def register():
    data = body()
    full_name = str_arg(data.get('full_name'), 'full_name')
    email = str_arg(data.get('email'), 'email').lower()
    password = str_arg(data.get('password'), 'password', strip=False)
    account_type = data.get('account_type')
    if account_type == 'admin':
        raise ApiError('Cannot self-register as admin', 403)
    if account_type not in SELF_REGISTER_TYPES:
        account_type = 'candidate'
    if not full_name or not email or not password:
        raise ApiError('full_name, email and password are required')

    if fetch_one('SELECT id FROM users WHERE email = ?', (email,)):
        raise ApiError('User already exists')

    company_id = None
    if account_type == 'company':
        code = str_arg(data.get('code'), 'code')
        if not code:
            raise ApiError('code is required for company accounts')
        company = fetch_one('SELECT id, status FROM companies WHERE code = ?', (code,))
        if company is None:
            raise ApiError('No company found with this code. Please register the company first.')
        if company['status'] != 'accepted':
            raise ApiError('The company has not been approved yet. Please wait for an admin review.')
        company_id = company['id']

    ts = now()
    cur = execute(
        'INSERT INTO users (full_name, email, password_hash, account_type, bio, address, company_id, created_at, updated_at) '
        'VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)',
        (full_name, email, hash_password(password), account_type, str_arg(data.get('bio'), 'bio'),
         str_arg(data.get('address'), 'address') or None, company_id, ts, ts),
    )
    user = row_dict(fetch_one(f'SELECT {USER_COLUMNS} FROM users WHERE id = ?', (cur.lastrowid,)))
    current_app.logger.info('Registered %s user %s', account_type, user['id'])
    return jsonify({'message': 'User created successfully', 'token': issue_token(user), 'user': user}), 201


@bp.post('/login')
def login():
    data = body()
    email = str_arg(data.get('email'), 'email').lower()
    row = fetch_one(f'SELECT {USER_COLUMNS}, password_hash FROM users WHERE email = ?', (email,))
    password = str_arg(data.get('password'), 'password', strip=False)
    if row is None or not verify_password(row['password_hash'], password):
        raise ApiError('Invalid credentials')
    user = row_dict(row)
    user.pop('password_hash', None)
    return jsonify({'message': 'Login successful', 'token': issue_token(user), 'user': user})


@bp.get('/me')
@login_required
def me():
    return jsonify({'user': current_user()})
