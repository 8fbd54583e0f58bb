from functools import wraps
from typing import Any, Dict, Mapping, Optional

from flask import current_app, g, request
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from werkzeug.security import check_password_hash, generate_password_hash

from .db import fetch_one, row_dict
from .errors import ApiError

_SALT = 'jobook-auth'

USER_COLUMNS = 'id, full_name, email, account_type, bio, address, avatar_url, company_id, created_at'


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password_hash: str, password: str) -> bool:
    return bool(password_hash) and check_password_hash(password_hash, password or '')


def _serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(current_app.config['SECRET_KEY'], salt=_SALT)


def issue_token(user: Mapping[str, Any]) -> str:
    return _serializer().dumps({'uid': user['id'], 'email': user['email']})


def read_token(token: str) -> Dict[str, Any]:
    ttl = current_app.config['JOBOOK_SETTINGS'].token_ttl_sec
    try:
        return _serializer().loads(token, max_age=ttl)
    except SignatureExpired:
        raise ApiError('Token expired', 401) from None
    except BadSignature:
        raise ApiError('Invalid token', 403) from None


def _bearer() -> Optional[str]:
    header = request.headers.get('Authorization', '')
    if header.lower().startswith('bearer '):
        return header[7:].strip() or None
    return None


def current_user() -> Dict[str, Any]:
    return g.user


def login_required(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        token = _bearer()
        if not token:
            raise ApiError('Access token required', 401)
        payload = read_token(token)
        user = row_dict(fetch_one(f'SELECT {USER_COLUMNS} FROM users WHERE id = ?', (payload.get('uid'),)))
        if not user:
            raise ApiError('Invalid token', 403)
        g.user = user
        return fn(*args, **kwargs)
    return wrapper


def admin_required(fn):
    @wraps(fn)
    @login_required
    def wrapper(*args, **kwargs):
        if g.user.get('account_type') != 'admin':
            raise ApiError('Admin only', 403)
        return fn(*args, **kwargs)
    return wrapper
