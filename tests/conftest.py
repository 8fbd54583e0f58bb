import io
import time
from unittest.mock import MagicMock

import pytest
from docx import Document

from jobook.app import create_app
from jobook.auth import hash_password
from jobook.config import Settings
from jobook.db import connect
from jobook.gemini_client import GeminiClient, GeminiError

PASSWORD = 'secret123'


def auth(token: str) -> dict:
    return {'Authorization': f'Bearer {token}'}


def make_docx(*paragraphs: str) -> io.BytesIO:
    """In-memory .docx with one paragraph per argument."""
    doc = Document()
    for text in paragraphs:
        doc.add_paragraph(text)
    buf = io.BytesIO()
    doc.save(buf)
    buf.seek(0)
    return buf


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(data_dir=tmp_path / 'data', secret_key='test-secret', log_level='WARNING',
                    server_url='http://testserver')


@pytest.fixture
def gemini():
    """Gemini stand-in that is unavailable until a test scripts it."""
    client = MagicMock(spec=GeminiClient)
    client.enabled.return_value = False
    client.generate_text.side_effect = GeminiError('Gemini not configured')
    client.generate_json.side_effect = GeminiError('Gemini not configured')
    return client


@pytest.fixture
def app(settings, gemini):
    app = create_app(settings, gemini=gemini)
    app.config['TESTING'] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def db_con(settings):
    """Direct connection for arranging rows the API will not create."""
    con = connect(settings.db_path)
    yield con
    con.close()


@pytest.fixture
def register(client):
    def _register(email, account_type='candidate', **extra):
        payload = {'full_name': email.split('@')[0], 'email': email, 'password': PASSWORD,
                   'account_type': account_type}
        payload.update(extra)
        r = client.post('/api/auth/register', json=payload)
        assert r.status_code == 201, r.get_json()
        data = r.get_json()
        return data['token'], data['user']
    return _register


@pytest.fixture
def admin_token(client, db_con):
    ts = time.time()
    db_con.execute(
        'INSERT INTO users (full_name, email, password_hash, account_type, created_at, updated_at) '
        'VALUES (?, ?, ?, ?, ?, ?)',
        ('Admin', 'admin@jobook.test', hash_password('adminpass'), 'admin', ts, ts),
    )
    db_con.commit()
    r = client.post('/api/auth/login', json={'email': 'admin@jobook.test', 'password': 'adminpass'})
    return r.get_json()['token']


@pytest.fixture
def accepted_company(client, admin_token):
    r = client.post('/api/companies', json={'name': 'Acme', 'tax_code': '0101234567', 'address': 'Hanoi'})
    company = r.get_json()['company']
    r = client.patch(f"/api/companies/{company['id']}/review", json={'status': 'accepted'},
                     headers=auth(admin_token))
    assert r.status_code == 200
    return r.get_json()['company']


@pytest.fixture
def recruiter(register, accepted_company):
    token, user = register('hr@acme.test', 'company', code=accepted_company['code'])
    return token, user


@pytest.fixture
def candidate(register):
    return register('dev@mail.test')


@pytest.fixture
def upload_cv(client):
    def _upload(token, *paragraphs, name='Backend CV', filename='cv.docx'):
        data = {'cv': (make_docx(*paragraphs), filename), 'name': name}
        r = client.post('/api/cvs/upload', data=data, content_type='multipart/form-data', headers=auth(token))
        assert r.status_code == 201, r.get_json()
        return r.get_json()['cv']
    return _upload


@pytest.fixture
def create_post(client):
    def _create(token, **fields):
        r = client.post('/api/posts', json=fields, headers=auth(token))
        assert r.status_code == 201, r.get_json()
        return r.get_json()['post']
    return _create


@pytest.fixture
def recruiting_post(create_post):
    def _create(token, title, description='', days=30):
        return create_post(token, post_type='find_candidate', title=title, description=description,
                           end_at=time.time() + days * 86400)
    return _create


@pytest.fixture
def auth_headers():
    return auth


@pytest.fixture
def docx_file():
    return make_docx
