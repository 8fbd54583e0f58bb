import io
import time


def test_upload_cv_writes_sidecar(client, candidate, upload_cv, auth_headers, settings):
    token, user = candidate
    cv = upload_cv(token, 'Backend developer', 'Python, Flask, 4 years')
    assert cv['name'] == 'Backend CV'
    assert cv['is_active'] is True
    assert cv['file_url'].startswith(f"/uploads/cvs/u{user['id']}-")
    assert cv['text_url'].endswith('.txt')
    sidecar = settings.upload_dir / 'cvs' / cv['text_url'].rsplit('/', 1)[1]
    assert sidecar.read_text(encoding='utf-8') == 'Backend developer\nPython, Flask, 4 years'

    text = client.get(f"/api/cvs/{cv['id']}/text", headers=auth_headers(token)).get_json()['text']
    assert 'Python, Flask' in text
    r = client.get(f"/api/cvs/{cv['id']}/file", headers=auth_headers(token))
    assert r.status_code == 200
    assert r.mimetype.endswith('wordprocessingml.document')


def test_upload_rules(client, candidate, recruiter, auth_headers):
    r = client.post('/api/cvs/upload', data={'cv': (io.BytesIO(b'x'), 'cv.exe')},
                    content_type='multipart/form-data', headers=auth_headers(candidate[0]))
    assert r.status_code == 400
    r = client.post('/api/cvs/upload', data={'cv': (io.BytesIO(b'x'), 'cv.pdf')},
                    content_type='multipart/form-data', headers=auth_headers(recruiter[0]))
    assert r.status_code == 403


def test_toggle_rename_delete(client, candidate, register, upload_cv, auth_headers, settings):
    token, _user = candidate
    cv = upload_cv(token, 'hello')
    url = f"/api/cvs/{cv['id']}"
    assert client.patch(f'{url}/toggle', headers=auth_headers(token)).get_json()['cv']['is_active'] is False
    r = client.patch(f'{url}/name', json={'name': 'Renamed'}, headers=auth_headers(token))
    assert r.get_json()['cv']['name'] == 'Renamed'

    other_token, _other = register('someone@mail.test')
    assert client.delete(url, headers=auth_headers(other_token)).status_code == 404

    assert client.delete(url, headers=auth_headers(token)).status_code == 200
    assert list((settings.upload_dir / 'cvs').iterdir()) == []
    assert client.get('/api/cvs', headers=auth_headers(token)).get_json()['cvs'] == []


def test_recruiting_post_rules(client, recruiter, candidate, auth_headers):
    token, user = recruiter
    base = {'post_type': 'find_candidate', 'title': 'Backend developer'}
    r = client.post('/api/posts', json=base, headers=auth_headers(token))
    assert r.status_code == 400
    r = client.post('/api/posts', json=dict(base, end_at=time.time() - 10), headers=auth_headers(token))
    assert r.status_code == 400
    r = client.post('/api/posts', json=dict(base, end_at=time.time() + 60, start_at=time.time()),
                    headers=auth_headers(token))
    assert r.status_code == 400
    r = client.post('/api/posts', json=dict(base, end_at='2999-01-01T00:00:00Z'), headers=auth_headers(token))
    assert r.status_code == 201
    post = r.get_json()['post']
    assert post['company_id'] == user['company_id']
    assert post['company_name'] == 'Acme'
    assert post['start_at'] is not None
    assert post['is_expired'] is False

    r = client.post('/api/posts', json=base, headers=auth_headers(candidate[0]))
    assert r.status_code == 400


def test_job_seeking_post_needs_own_cv(client, candidate, register, upload_cv, create_post, auth_headers):
    token, _user = candidate
    base = {'post_type': 'find_job', 'title': 'Looking for backend work'}
    assert client.post('/api/posts', json=base, headers=auth_headers(token)).status_code == 400

    other_token, _other = register('x@mail.test')
    foreign_cv = upload_cv(other_token, 'not mine')
    r = client.post('/api/posts', json=dict(base, attached_cv_id=foreign_cv['id']), headers=auth_headers(token))
    assert r.status_code == 400

    cv = upload_cv(token, 'mine')
    post = create_post(token, attached_cv_id=cv['id'], **base)
    assert post['cv_name'] == 'Backend CV'

    r = client.put(f"/api/posts/{post['id']}", json={'description': 'Remote only'}, headers=auth_headers(token))
    assert r.status_code == 200
    assert r.get_json()['post']['attached_cv_id'] == cv['id']
    assert r.get_json()['post']['description'] == 'Remote only'


def test_update_only_moves_end_date(client, recruiter, recruiting_post, auth_headers):
    token, _user = recruiter
    post = recruiting_post(token, 'QA engineer')
    url = f"/api/posts/{post['id']}"
    r = client.put(url, json={'end_at': post['start_at'] - 10}, headers=auth_headers(token))
    assert r.status_code == 400
    r = client.put(url, json={'start_at': time.time()}, headers=auth_headers(token))
    assert r.status_code == 400
    new_end = time.time() + 5 * 86400
    r = client.put(url, json={'title': 'Senior QA engineer', 'end_at': new_end}, headers=auth_headers(token))
    updated = r.get_json()['post']
    assert updated['title'] == 'Senior QA engineer'
    assert updated['end_at'] == new_end


def test_feed_ordering(client, recruiter, register, recruiting_post, auth_headers, db_con):
    token, user = recruiter
    fresh = recruiting_post(token, 'Fresh job')
    expired = recruiting_post(token, 'Old job')
    db_con.execute('UPDATE posts SET end_at = ? WHERE id = ?', (time.time() - 60, expired['id']))
    db_con.commit()

    reader_token, _reader = register('reader@mail.test')
    posts = client.get('/api/posts', headers=auth_headers(reader_token)).get_json()['posts']
    assert [p['id'] for p in posts] == [fresh['id'], expired['id']]
    assert posts[1]['is_expired'] is True

    client.post(f"/api/follows/{user['id']}", headers=auth_headers(reader_token))
    posts = client.get('/api/posts?type=find_candidate', headers=auth_headers(reader_token)).get_json()['posts']
    assert posts[0]['is_following_author'] is True


def test_delete_post_owner_only(client, recruiter, register, recruiting_post, auth_headers):
    token, _user = recruiter
    post = recruiting_post(token, 'Tester')
    other_token, _other = register('nosy@mail.test')
    assert client.delete(f"/api/posts/{post['id']}", headers=auth_headers(other_token)).status_code == 404
    assert client.delete(f"/api/posts/{post['id']}", headers=auth_headers(token)).status_code == 200
    assert client.get(f"/api/posts/{post['id']}", headers=auth_headers(token)).status_code == 404


def test_non_string_fields_are_rejected(client, recruiter, candidate, upload_cv, recruiting_post, auth_headers):
    token = recruiter[0]
    r = client.post('/api/posts', json={'post_type': 'find_candidate', 'title': 123, 'end_at': 9999999999},
                    headers=auth_headers(token))
    assert r.status_code == 400
    assert r.get_json() == {'message': 'Invalid title'}

    post = recruiting_post(token, 'QA engineer')
    r = client.put(f"/api/posts/{post['id']}", json={'description': ['x']}, headers=auth_headers(token))
    assert r.status_code == 400

    cv = upload_cv(candidate[0], 'hello')
    r = client.patch(f"/api/cvs/{cv['id']}/name", json={'name': 42}, headers=auth_headers(candidate[0]))
    assert r.status_code == 400
