import pytest

from jobook.matching import QueryTokens, build_like_params, compute_query_score, extract_query_tokens
from jobook.matching.query import extract_query_years


def test_extract_query_tokens():
    tokens = extract_query_tokens('Senior React developer remote 5 năm fintech')
    assert {'react', 'remote', 'fintech'} <= set(tokens.skills)
    assert {'senior', 'developer'} <= set(tokens.roles)
    assert tokens.years == 5


@pytest.mark.parametrize('query, years', [
    ('3 yrs python', 3),
    ('40 years', 30),
    ('intern java', 0),
    ('junior tester', 1),
    ('mid level', 2),
    ('senior architect', 3),
    ('python', None),
])
def test_extract_query_years(query, years):
    assert extract_query_years(query) == years


def test_like_params_are_deduplicated():
    tokens = QueryTokens(skills=['react', 'go'], roles=['react'])
    assert build_like_params(tokens) == ['%react%', '%go%']


def test_compute_query_score():
    tokens = QueryTokens(skills=['react'], roles=['developer'], years=5)
    # skill 3 + role 2 + seniority bonus 2
    assert compute_query_score('React developer, senior', tokens) == 7
    assert compute_query_score('', tokens) == 0


def test_to_dict():
    assert QueryTokens(skills=['go']).to_dict() == {'skills': ['go'], 'roles': [], 'years': None}
