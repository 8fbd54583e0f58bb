from unittest.mock import MagicMock, patch

import pytest
import requests

from jobook.gemini_client import GeminiClient, GeminiError, parse_json_text, strip_fences


def _response(payload):
    resp = MagicMock()
    resp.raise_for_status.return_value = None
    resp.json.return_value = payload
    return resp


def _answer(text):
    return {'candidates': [{'content': {'parts': [{'text': text}]}}]}


@pytest.fixture
def client():
    return GeminiClient(api_key='secret-key', model='gemini-test', endpoint='https://gemini.test/models',
                        timeout=5)


def test_generate_text_posts_to_model_endpoint(client):
    with patch('jobook.gemini_client.requests.post', return_value=_response(_answer('hello'))) as post:
        assert client.generate_text('hi', generation_config={'temperature': 0.3}) == 'hello'
    args, kwargs = post.call_args
    assert args[0] == 'https://gemini.test/models/gemini-test:generateContent'
    assert kwargs['headers']['x-goog-api-key'] == 'secret-key'
    assert kwargs['json']['generationConfig'] == {'temperature': 0.3}
    assert kwargs['timeout'] == 5


def test_model_override(client):
    with patch('jobook.gemini_client.requests.post', return_value=_response(_answer('ok'))) as post:
        client.generate_text('hi', model='gemini-pro')
    assert post.call_args[0][0].endswith('/gemini-pro:generateContent')


def test_missing_key_raises():
    with pytest.raises(GeminiError):
        GeminiClient(api_key='').generate_text('hi')


def test_transport_error_does_not_leak_key(client):
    err = requests.ConnectionError('boom secret-key')
    with patch('jobook.gemini_client.requests.post', side_effect=err):
        with pytest.raises(GeminiError) as exc:
            client.generate_text('hi')
    assert 'secret-key' not in str(exc.value)


def test_empty_answer_raises(client):
    with patch('jobook.gemini_client.requests.post', return_value=_response({'candidates': []})):
        with pytest.raises(GeminiError):
            client.generate_text('hi')


def test_generate_json_parses_fenced_output(client):
    text = '```json\n{"summary": "ok", "scores": []}\n```'
    with patch('jobook.gemini_client.requests.post', return_value=_response(_answer(text))):
        assert client.generate_json('rank') == {'summary': 'ok', 'scores': []}


def test_parse_json_text_falls_back_to_braces():
    assert parse_json_text('Sure! {"a": 1} Hope that helps') == {'a': 1}
    with pytest.raises(GeminiError):
        parse_json_text('no json here')


def test_strip_fences():
    assert strip_fences('```sql\nSELECT 1\n```') == 'SELECT 1'
