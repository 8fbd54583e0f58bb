import pytest

from jobook.gemini_client import GeminiError, parse_json_text
from jobook.matching import CandidateProfile, PostLite
from jobook.recommender import FALLBACK_SUMMARY, Recommender, build_prompt, parse_ranking, truncate

PROFILE = CandidateProfile(cv_name='Backend CV', cv_text='Backend developer, Python, Flask, 4 years')
POSTS = [
    PostLite(id=1, title='Barista', description='coffee shop', post_type='find_candidate'),
    PostLite(id=2, title='Backend Python developer', description='Flask, 3 years', post_type='find_candidate'),
]


class FakeClient:
    def __init__(self, payload=None, error=None):
        self.payload = payload
        self.error = error
        self.calls = []

    def generate_json(self, prompt, model=None, generation_config=None):
        self.calls.append((prompt, model, generation_config))
        if self.error:
            raise self.error
        return self.payload


def test_fallback_when_gemini_fails():
    rec = Recommender(FakeClient(error=GeminiError('down'))).recommend(PROFILE, POSTS)
    assert rec.used_fallback
    assert rec.summary == FALLBACK_SUMMARY
    assert [r.post_id for r in rec.results] == [2, 1]
    assert all(r.reason for r in rec.results)


def test_malformed_ranking_uses_fallback():
    rec = Recommender(FakeClient(payload={'summary': 'x'})).recommend(PROFILE, POSTS)
    assert rec.used_fallback


def test_ai_ranking_is_merged():
    payload = {
        'summary': '- Python backend developer',
        'scores': [
            {'post_id': 1, 'score': 'n/a'},
            {'post_id': '2', 'score': 70, 'reason': 'Strong Python match', 'highlights': ['Python', 7]},
        ],
    }
    client = FakeClient(payload=payload)
    rec = Recommender(client, model='gemini-rank').recommend(PROFILE, POSTS, {'full_name': 'Dev'})
    assert not rec.used_fallback
    assert rec.summary == '- Python backend developer'
    top = rec.results[0]
    assert top.post_id == 2
    assert top.reason.startswith('Strong Python match')
    assert top.highlights == ['Python']
    _prompt, model, config = client.calls[0]
    assert model == 'gemini-rank'
    assert config['temperature'] == 0.3


def test_parse_ranking_rejects_non_dict():
    with pytest.raises(GeminiError):
        parse_ranking(['not', 'a', 'dict'])


def test_prompt_is_truncated():
    long_cv = CandidateProfile(cv_name='CV', cv_text='x' * 20000, bio='y' * 5000)
    prompt = build_prompt(long_cv, POSTS, {})
    assert 'x' * 8000 in prompt
    assert 'x' * 8001 not in prompt
    assert 'y' * 1001 not in prompt


def test_truncate():
    assert truncate('abc', 5) == 'abc'
    assert truncate('abcdef', 3).startswith('abc\n... (truncated, 6 characters total)')
    assert truncate(None) == ''


@pytest.mark.parametrize('score', [float('nan'), float('inf'), float('-inf'), 'inf', 'NaN'])
def test_non_finite_scores_count_as_zero(score):
    _summary, scores = parse_ranking({'summary': 's', 'scores': [{'post_id': 2, 'score': score}]})
    assert scores[2].score == 0

    rec = Recommender(FakeClient(payload={'summary': 's', 'scores': [{'post_id': 2, 'score': score}]})).recommend(
        PROFILE, POSTS)
    assert not rec.used_fallback
    assert all(0 <= r.score <= 100 for r in rec.results)


def test_non_finite_literals_in_model_json():
    payload = parse_json_text('{"summary": "s", "scores": [{"post_id": 1, "score": NaN}, '
                              '{"post_id": 2, "score": Infinity}]}')
    _summary, scores = parse_ranking(payload)
    assert scores[1].score == 0
    assert scores[2].score == 0
