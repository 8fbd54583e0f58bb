from flask import Blueprint, current_app, jsonify, request, send_file

from .. import storage
from ..auth import current_user, login_required
from ..db import execute, fetch_all, fetch_one, row_dict, rows_dicts
from ..errors import ApiError
from . import body, now, settings, str_arg

bp = Blueprint('cvs', __name__, url_prefix='/cvs')

MIMETYPES = {
    '.pdf': 'application/pdf',
    '.docx': 'application/vnd.openxmlformats-officedocument.wordprocessingml.document',
}


def own_cv(cv_id: int):
    cv = row_dict(fetch_one('SELECT * FROM cvs WHERE id = ? AND user_id = ?', (cv_id, current_user()['id'])))
    if not cv:
        raise ApiError('CV not found', 404)
    return cv


@bp.get('')
@login_required
def list_cvs():
    rows = fetch_all('SELECT * FROM cvs WHERE user_id = ? ORDER BY created_at DESC', (current_user()['id'],))
    return jsonify({'cvs': rows_dicts(rows)})


@bp.post('/upload')
@login_required
def upload_cv():
    me = current_user()
    if me['account_type'] != 'candidate':
        raise ApiError('Only candidates can upload CVs', 403)
    file = request.files.get('cv')
    ext = storage.check_upload(file, settings().max_cv_bytes, allowed_ext=storage.CV_EXT, what='CV')
    url, path = storage.save_upload(file, storage.CVS, f"u{me['id']}-", ext)

    text = storage.extract_text(path)
    side = storage.write_sidecar(path, text)
    text_url = storage.public_url(storage.CVS, side.name)
    current_app.logger.info('CV %s uploaded by user %s (%d chars of text)', path.name, me['id'], len(text))

    name = str_arg(body().get('name'), 'name') or file.filename
    cur = execute(
        'INSERT INTO cvs (user_id, name, file_url, text_url, created_at) VALUES (?, ?, ?, ?, ?)',
        (me['id'], name, url, text_url, now()),
    )
    cv = row_dict(fetch_one('SELECT * FROM cvs WHERE id = ?', (cur.lastrowid,)))
    return jsonify({'message': 'CV uploaded successfully', 'cv': cv}), 201


@bp.patch('/<int:cv_id>/toggle')
@login_required
def toggle_cv(cv_id: int):
    own_cv(cv_id)
    execute('UPDATE cvs SET is_active = NOT is_active WHERE id = ?', (cv_id,))
    return jsonify({'cv': own_cv(cv_id)})


@bp.patch('/<int:cv_id>/name')
@login_required
def rename_cv(cv_id: int):
    own_cv(cv_id)
    name = str_arg(body().get('name'), 'name')
    if not name:
        raise ApiError('name is required')
    execute('UPDATE cvs SET name = ? WHERE id = ?', (name, cv_id))
    return jsonify({'cv': own_cv(cv_id)})


@bp.delete('/<int:cv_id>')
@login_required
def delete_cv(cv_id: int):
    cv = own_cv(cv_id)
    execute('DELETE FROM cvs WHERE id = ?', (cv_id,))
    storage.remove_public_file(cv['file_url'])
    if cv['text_url'] and cv['text_url'] != cv['file_url']:
        storage.remove_public_file(cv['text_url'])
    return jsonify({'message': 'CV deleted successfully'})


@bp.get('/<int:cv_id>/file')
@login_required
def cv_file(cv_id: int):
    cv = own_cv(cv_id)
    path = storage.resolve_public_url(cv['file_url'])
    if path is None or not path.is_file():
        raise ApiError('File not found', 404)
    return send_file(path, mimetype=MIMETYPES.get(path.suffix.lower(), 'application/octet-stream'))


@bp.get('/<int:cv_id>/text')
@login_required
def cv_text(cv_id: int):
    cv = own_cv(cv_id)
    return jsonify({'cv_id': cv_id, 'text': storage.read_cv_text(cv['file_url'])})
