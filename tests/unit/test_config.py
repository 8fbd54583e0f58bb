from pathlib import Path

import pytest

from jobook.config import Settings, load_settings

ENV_NAMES = ('PORT', 'JOBOOK_PORT', 'JOBOOK_DATA_DIR', 'JOBOOK_DB_PATH', 'JOBOOK_UPLOAD_DIR',
             'GEMINI_MODEL', 'GEMINI_RANK_MODEL', 'SERVER_URL', 'JOBOOK_SERVER_URL')


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in ENV_NAMES:
        monkeypatch.delenv(name, raising=False)
    # keep any developer .env out of the way
    monkeypatch.chdir(tmp_path)


def test_defaults_derive_paths(tmp_path):
    s = Settings(data_dir=tmp_path)
    assert s.db_path == tmp_path / 'jobook.db'
    assert s.upload_dir == tmp_path / 'uploads'
    assert s.port == 5001
    assert s.public_url == 'http://localhost:5001'
    assert s.ranking_model == s.gemini_model


def test_yaml_then_env_then_overrides(tmp_path, monkeypatch):
    cfg = tmp_path / 'jobook.yaml'
    cfg.write_text('port: 6000\ngemini_model: gemini-yaml\nunknown_key: 1\n', encoding='utf-8')
    monkeypatch.setenv('JOBOOK_PORT', '7000')
    monkeypatch.setenv('JOBOOK_DATA_DIR', str(tmp_path / 'd'))

    s = load_settings(cfg, gemini_rank_model='gemini-rank')
    assert s.port == 7000
    assert s.gemini_model == 'gemini-yaml'
    assert s.ranking_model == 'gemini-rank'
    assert s.db_path == Path(tmp_path / 'd' / 'jobook.db')


def test_bad_env_value_is_ignored(monkeypatch, tmp_path):
    monkeypatch.setenv('JOBOOK_PORT', 'not-a-port')
    assert load_settings(tmp_path / 'missing.yaml').port == 5001
