import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from flask import current_app, request

from ..errors import ApiError


def body() -> Dict[str, Any]:
    """JSON body, or form fields for multipart requests."""
    payload = request.get_json(silent=True)
    if isinstance(payload, dict):
        return payload
    return request.form.to_dict()


def now() -> float:
    return time.time()


def settings():
    return current_app.config['JOBOOK_SETTINGS']


def int_arg(value: Any, default: Optional[int] = None, name: str = 'id') -> Optional[int]:
    if value is None or value == '':
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ApiError(f'Invalid {name}') from None


def str_arg(value: Any, name: str, default: Any = '', strip: bool = True) -> Any:
    """Text field from a request body; 400 when the client sent a non-string."""
    if value is None:
        return default
    if not isinstance(value, str):
        raise ApiError(f'Invalid {name}')
    return value.strip() if strip else value


def parse_time(value: Any) -> Optional[float]:
    """Epoch seconds from a number or an ISO-8601 string; None when unparsable."""
    if value is None or value == '' or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).strip()
    try:
        return float(text)
    except ValueError:
        pass
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    try:
        dt = datetime.fromisoformat(text)
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.timestamp()


from .applications import bp as applications_bp  # noqa: E402
from .auth import bp as auth_bp  # noqa: E402
from .companies import bp as companies_bp  # noqa: E402
from .cvs import bp as cvs_bp  # noqa: E402
from .follows import bp as follows_bp  # noqa: E402
from .gemini import bp as gemini_bp  # noqa: E402
from .posts import bp as posts_bp  # noqa: E402
from .recommendations import bp as recommendations_bp  # noqa: E402
from .smart import bp as smart_bp  # noqa: E402
from .users import bp as users_bp  # noqa: E402

BLUEPRINTS = (
    auth_bp, users_bp, companies_bp, cvs_bp, posts_bp, applications_bp,
    follows_bp, smart_bp, recommendations_bp, gemini_bp,
)
