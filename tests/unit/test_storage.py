from docx import Document

from jobook import storage


def test_extract_text_from_txt(tmp_path):
    path = tmp_path / 'cv.txt'
    path.write_text('Python developer\n', encoding='utf-8')
    assert storage.extract_text(path) == 'Python developer'


def test_extract_text_from_docx(tmp_path):
    doc = Document()
    doc.add_paragraph('Backend developer')
    doc.add_paragraph('Flask, 3 years')
    path = tmp_path / 'cv.docx'
    doc.save(str(path))
    assert storage.extract_text(path) == 'Backend developer\nFlask, 3 years'


def test_broken_or_unknown_files_yield_empty_text(tmp_path):
    broken = tmp_path / 'cv.pdf'
    broken.write_bytes(b'not a pdf')
    assert storage.extract_text(broken) == ''
    other = tmp_path / 'cv.odt'
    other.write_bytes(b'whatever')
    assert storage.extract_text(other) == ''


def test_sidecar_is_preferred(app, settings):
    folder = settings.upload_dir / storage.CVS
    cv = folder / 'u1-1-1.docx'
    cv.write_bytes(b'not really a docx')
    storage.write_sidecar(cv, 'text from sidecar')
    with app.app_context():
        assert storage.read_cv_text('/uploads/cvs/u1-1-1.docx') == 'text from sidecar'


def test_resolve_public_url_stays_inside_upload_root(app, settings):
    with app.app_context():
        assert storage.resolve_public_url('/uploads/../../etc/passwd') is None
        assert storage.resolve_public_url('https://cdn.example/img.png') is None
        full = storage.resolve_public_url('http://localhost:5001/uploads/avatars/a.png')
        assert full == (settings.upload_dir / 'avatars' / 'a.png').resolve()


def test_remove_public_file(app, settings):
    target = settings.upload_dir / storage.AVATARS / 'old.png'
    target.write_bytes(b'png')
    with app.app_context():
        assert storage.remove_public_file('/uploads/avatars/old.png')
        assert not storage.remove_public_file('/uploads/avatars/old.png')
    assert not target.exists()
