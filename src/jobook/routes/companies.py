import secrets

from flask import Blueprint, current_app, jsonify, request

from .. import storage
from ..auth import admin_required, current_user, login_required
from ..db import execute, fetch_all, fetch_one, row_dict, rows_dicts
from ..errors import ApiError
from . import body, now, settings, str_arg

bp = Blueprint('companies', __name__, url_prefix='/companies')

COMPANY_COLUMNS = ('id, name, legal_name, tax_code, code, email, address, contact_phone, logo_url, status, '
                   'reviewed_by_user_id, review_note, reviewed_at, created_at')
PUBLIC_COLUMNS = 'id, name, legal_name, tax_code, address, contact_phone, logo_url, status'
REVIEW_STATUSES = ('accepted', 'rejected', 'pending')


def _get_company(company_id: int, columns: str = COMPANY_COLUMNS):
    company = row_dict(fetch_one(f'SELECT {columns} FROM companies WHERE id = ?', (company_id,)))
    if not company:
        raise ApiError('Company not found', 404)
    return company


def _new_code() -> str:
    # short code employees use to join the company at registration
    while True:
        code = secrets.token_hex(4).upper()
        if not fetch_one('SELECT id FROM companies WHERE code = ?', (code,)):
            return code


@bp.post('/upload-logo')
def upload_logo():
    file = request.files.get('logo')
    ext = storage.check_upload(file, settings().max_logo_bytes, mimetypes=storage.LOGO_MIMETYPES, what='logo')
    url, _path = storage.save_upload(file, storage.COMPANIES, 'logo-', ext)
    return jsonify({'message': 'Logo uploaded', 'file_url': url}), 201


@bp.post('')
def create_company():
    data = body()
    name = str_arg(data.get('name'), 'name')
    tax_code = str_arg(data.get('tax_code'), 'tax_code')
    address = str_arg(data.get('address'), 'address')
    if not name or not tax_code or not address:
        raise ApiError('name, tax_code, address are required')
    if fetch_one('SELECT id FROM companies WHERE tax_code = ?', (tax_code,)):
        raise ApiError('Company with this tax_code already exists', 409)
    ts = now()
    cur = execute(
        'INSERT INTO companies (name, legal_name, tax_code, code, email, address, contact_phone, logo_url, '
        'created_at, updated_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)',
        (name, str_arg(data.get('legal_name'), 'legal_name') or None, tax_code,
         str_arg(data.get('code'), 'code') or _new_code(), str_arg(data.get('email'), 'email') or None, address,
         str_arg(data.get('contact_phone'), 'contact_phone') or None,
         str_arg(data.get('logo_url'), 'logo_url') or None, ts, ts),
    )
    return jsonify({'message': 'Company created, pending review', 'company': _get_company(cur.lastrowid)}), 201


@bp.get('')
@login_required
def list_companies():
    status = request.args.get('status', 'accepted')
    if status != 'accepted' and current_user()['account_type'] != 'admin':
        raise ApiError('Admin only', 403)
    if status == 'all':
        rows = fetch_all(f'SELECT {COMPANY_COLUMNS} FROM companies ORDER BY created_at DESC')
    else:
        rows = fetch_all(f'SELECT {COMPANY_COLUMNS} FROM companies WHERE status = ? ORDER BY created_at DESC',
                         (status,))
    return jsonify({'companies': rows_dicts(rows)})


@bp.get('/by-tax/<tax_code>')
def by_tax(tax_code: str):
    company = row_dict(fetch_one(
        'SELECT id, name, legal_name, tax_code, status FROM companies WHERE tax_code = ?', (tax_code,)))
    if not company:
        raise ApiError('Company not found', 404)
    return jsonify({'company': company})


@bp.get('/<int:company_id>')
def get_company(company_id: int):
    return jsonify({'company': _get_company(company_id, PUBLIC_COLUMNS)})


@bp.patch('/<int:company_id>/review')
@admin_required
def review_company(company_id: int):
    data = body()
    status = data.get('status')
    if status not in REVIEW_STATUSES:
        raise ApiError('Invalid status')
    _get_company(company_id)
    ts = now()
    execute(
        'UPDATE companies SET status = ?, reviewed_by_user_id = ?, review_note = ?, reviewed_at = ?, updated_at = ? '
        'WHERE id = ?',
        (status, current_user()['id'], str_arg(data.get('review_note'), 'review_note') or None, ts, ts, company_id),
    )
    current_app.logger.info('Company %s reviewed as %s', company_id, status)
    return jsonify({'message': 'Company reviewed', 'company': _get_company(company_id)})


@bp.patch('/<int:company_id>')
@admin_required
def update_company(company_id: int):
    data = body()
    current = _get_company(company_id)
    fields = {key: str_arg(data.get(key), key) or None
              for key in ('name', 'legal_name', 'tax_code', 'address', 'contact_phone')}
    tax_code = fields['tax_code']
    if tax_code and tax_code != current['tax_code']:
        if fetch_one('SELECT id FROM companies WHERE tax_code = ? AND id <> ?', (tax_code, company_id)):
            raise ApiError('Tax code already exists', 409)

    old_logo = current['logo_url']
    new_logo = old_logo if 'logo_url' not in data else (str_arg(data.get('logo_url'), 'logo_url') or None)
    execute(
        """
        UPDATE companies
        SET name = COALESCE(?, name),
            legal_name = COALESCE(?, legal_name),
            tax_code = COALESCE(?, tax_code),
            address = COALESCE(?, address),
            contact_phone = COALESCE(?, contact_phone),
            logo_url = ?,
            updated_at = ?
        WHERE id = ?
        """,
        (fields['name'], fields['legal_name'], tax_code, fields['address'],
         fields['contact_phone'], new_logo, now(), company_id),
    )
    if old_logo and new_logo != old_logo:
        storage.remove_public_file(old_logo)
    return jsonify({'message': 'Company updated', 'company': _get_company(company_id)})


@bp.delete('/<int:company_id>')
@admin_required
def delete_company(company_id: int):
    company = _get_company(company_id)
    users = fetch_one('SELECT COUNT(*) AS n FROM users WHERE company_id = ?', (company_id,))['n']
    posts = fetch_one('SELECT COUNT(*) AS n FROM posts WHERE company_id = ?', (company_id,))['n']
    if users + posts > 0:
        raise ApiError('Cannot delete a company that is referenced by users or posts')
    execute('DELETE FROM companies WHERE id = ?', (company_id,))
    storage.remove_public_file(company['logo_url'])
    return jsonify({'message': 'Company deleted'})
