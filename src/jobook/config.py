import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

log = logging.getLogger(__name__)

ROOT = Path(__file__).resolve().parents[2]
DEFAULT_DATA_DIR = ROOT / 'data' / 'jobook'

MB = 1024 * 1024


@dataclass(frozen=True)
class Settings:
    data_dir: Path = DEFAULT_DATA_DIR
    db_path: Optional[Path] = None
    upload_dir: Optional[Path] = None
    secret_key: str = 'dev-secret-change-me'
    token_ttl_sec: int = 7 * 24 * 3600
    host: str = '127.0.0.1'
    port: int = 5001
    server_url: Optional[str] = None
    gemini_api_key: Optional[str] = None
    gemini_model: str = 'gemini-2.0-flash'
    gemini_rank_model: Optional[str] = None
    gemini_endpoint: str = 'https://generativelanguage.googleapis.com/v1beta/models'
    gemini_timeout_sec: float = 20.0
    log_level: str = 'INFO'
    max_content_length: int = 20 * MB
    max_cv_bytes: int = 20 * MB
    max_avatar_bytes: int = 2 * MB
    max_logo_bytes: int = 3 * MB

    def __post_init__(self):
        data_dir = Path(self.data_dir)
        object.__setattr__(self, 'data_dir', data_dir)
        object.__setattr__(self, 'db_path', Path(self.db_path) if self.db_path else data_dir / 'jobook.db')
        object.__setattr__(self, 'upload_dir', Path(self.upload_dir) if self.upload_dir else data_dir / 'uploads')

    @property
    def public_url(self) -> str:
        return self.server_url or f'http://localhost:{self.port}'

    @property
    def ranking_model(self) -> str:
        return self.gemini_rank_model or self.gemini_model


# env var -> (field, cast); later names win
_ENV = {
    'JOBOOK_DATA_DIR': ('data_dir', Path),
    'JOBOOK_DB_PATH': ('db_path', Path),
    'JOBOOK_UPLOAD_DIR': ('upload_dir', Path),
    'JWT_SECRET': ('secret_key', str),
    'JOBOOK_SECRET_KEY': ('secret_key', str),
    'JOBOOK_TOKEN_TTL_SEC': ('token_ttl_sec', int),
    'JOBOOK_HOST': ('host', str),
    'PORT': ('port', int),
    'JOBOOK_PORT': ('port', int),
    'SERVER_URL': ('server_url', str),
    'JOBOOK_SERVER_URL': ('server_url', str),
    'GEMINI_API_KEY': ('gemini_api_key', str),
    'GEMINI_MODEL': ('gemini_model', str),
    'GEMINI_RANK_MODEL': ('gemini_rank_model', str),
    'GEMINI_ENDPOINT': ('gemini_endpoint', str),
    'GEMINI_TIMEOUT_SEC': ('gemini_timeout_sec', float),
    'LOG_LEVEL': ('log_level', str),
}


def _from_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    raw = yaml.safe_load(path.read_text(encoding='utf-8')) or {}
    if not isinstance(raw, dict):
        log.warning('Ignoring config file %s: top level is not a mapping', path)
        return {}
    known = {f.name for f in fields(Settings)}
    out = {}
    for key, value in raw.items():
        if key in known:
            out[key] = value
        else:
            log.warning('Ignoring unknown config key %r in %s', key, path)
    return out


def _from_env() -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for name, (field_name, cast) in _ENV.items():
        raw = os.getenv(name)
        if raw is None or raw.strip() == '':
            continue
        try:
            out[field_name] = cast(raw.strip())
        except ValueError:
            log.warning('Ignoring %s=%r: not a valid %s', name, raw, cast.__name__)
    return out


def load_settings(path: Optional[Path] = None, **overrides) -> Settings:
    """Defaults, then the YAML file, then the environment, then explicit overrides."""
    load_dotenv()
    if path is None:
        path = Path(os.getenv('JOBOOK_CONFIG', 'jobook.yaml'))
    values: Dict[str, Any] = {}
    values.update(_from_yaml(Path(path)))
    values.update(_from_env())
    values.update(overrides)
    return Settings(**values)
