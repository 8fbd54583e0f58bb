"""Upload storage on local disk and CV text extraction."""
import logging
import random
import time
from pathlib import Path
from typing import Iterable, Optional, Tuple

from docx import Document
from flask import current_app
from PyPDF2 import PdfReader
from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

from .errors import ApiError

log = logging.getLogger(__name__)

AVATARS = 'avatars'
COMPANIES = 'companies'
CVS = 'cvs'
SUBDIRS = (AVATARS, COMPANIES, CVS)

CV_EXT = {'.pdf', '.docx'}
LOGO_MIMETYPES = {'image/png', 'image/jpeg', 'image/jpg', 'image/webp'}


def upload_root() -> Path:
    return Path(current_app.config['JOBOOK_SETTINGS'].upload_dir)


def ensure_dirs(root: Path):
    for sub in SUBDIRS:
        (Path(root) / sub).mkdir(parents=True, exist_ok=True)


def _size(file: FileStorage) -> int:
    stream = file.stream
    pos = stream.tell()
    stream.seek(0, 2)
    size = stream.tell()
    stream.seek(pos)
    return size


def check_upload(file: Optional[FileStorage], max_bytes: int, allowed_ext: Optional[Iterable[str]] = None,
                 mimetypes: Optional[Iterable[str]] = None, mime_prefix: Optional[str] = None,
                 what: str = 'file') -> str:
    """Validate an uploaded file and return its lower-cased extension."""
    if file is None or not file.filename:
        raise ApiError(f'No {what} uploaded')
    ext = Path(secure_filename(file.filename)).suffix.lower()
    mimetype = (file.mimetype or '').lower()
    if allowed_ext is not None and ext not in allowed_ext:
        raise ApiError(f'Unsupported {what} type')
    if mimetypes is not None and mimetype not in mimetypes:
        raise ApiError(f'Unsupported {what} type')
    if mime_prefix is not None and not mimetype.startswith(mime_prefix):
        raise ApiError(f'Only image files are allowed for {what}')
    if _size(file) > max_bytes:
        raise ApiError(f'{what.capitalize()} is too large', 413)
    return ext


def save_upload(file: FileStorage, sub: str, prefix: str, ext: str) -> Tuple[str, Path]:
    """Store the upload under a fresh name; returns (public url, absolute path)."""
    folder = upload_root() / sub
    folder.mkdir(parents=True, exist_ok=True)
    name = f"{prefix}{int(time.time() * 1000)}-{random.randint(0, 10 ** 9)}{ext}"
    path = folder / name
    file.save(str(path))
    return public_url(sub, name), path


def public_url(sub: str, name: str) -> str:
    return f'/uploads/{sub}/{name}'


def resolve_public_url(url: Optional[str]) -> Optional[Path]:
    """Map '/uploads/...' (or any URL containing it) to a path inside the upload root."""
    if not url or '/uploads/' not in url:
        return None
    rel = url.split('/uploads/', 1)[1].lstrip('/')
    root = upload_root().resolve()
    path = (root / rel).resolve()
    if root not in path.parents:
        return None
    return path


def remove_public_file(url: Optional[str]) -> bool:
    path = resolve_public_url(url)
    if path is None or not path.exists():
        return False
    try:
        path.unlink()
    except OSError as e:
        log.warning('Failed to delete %s: %s', path, e)
        return False
    return True


def extract_text(path: Path) -> str:
    """Best-effort plain text of a .pdf, .docx or .txt file; '' on any failure."""
    path = Path(path)
    suffix = path.suffix.lower()
    try:
        if suffix == '.pdf':
            text = []
            with path.open('rb') as f:
                reader = PdfReader(f)
                for page in reader.pages:
                    text.append(page.extract_text() or '')
            return '\n'.join(text).strip()
        elif suffix == '.docx':
            doc = Document(str(path))
            return '\n'.join(p.text for p in doc.paragraphs).strip()
        elif suffix == '.txt':
            return path.read_text(encoding='utf-8', errors='ignore').strip()
    except Exception as e:
        log.warning('Text extraction failed for %s: %s', path.name, e)
        return ''
    return ''


def sidecar_path(path: Path) -> Path:
    return Path(path).with_suffix('.txt')


def write_sidecar(path: Path, text: str) -> Path:
    side = sidecar_path(path)
    side.write_text(text or '', encoding='utf-8')
    return side


def read_cv_text(file_url: Optional[str]) -> str:
    """CV text, preferring the sidecar written at upload time."""
    path = resolve_public_url(file_url)
    if path is None:
        return ''
    side = sidecar_path(path)
    if side.exists() and side != path:
        return side.read_text(encoding='utf-8', errors='ignore').strip()
    if not path.exists():
        return ''
    return extract_text(path)
