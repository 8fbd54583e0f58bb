from jobook.matching import CandidateProfile, Contribution, PostLite, ScoreResult, merge_result, rank_posts
from jobook.matching.merge import clean_highlights, title_boost

BACKEND_CV = CandidateProfile(
    cv_name='Backend CV',
    cv_text='Backend developer with 5 years of experience in Python and Flask. Bachelor degree. IELTS 7.0',
)
BACKEND_POST = PostLite(
    id=1,
    title='Backend Engineer',
    description='Python and Flask, 3 years experience, English communication',
    post_type='find_candidate',
)


def test_cross_domain_caps_upstream_score():
    cv = CandidateProfile(cv_name='Firmware CV', cv_text='Embedded firmware engineer, C and RTOS on STM32')
    post = PostLite(id=1, title='React frontend developer', description='React and TypeScript',
                    post_type='find_candidate')
    upstream = ScoreResult(post_id=1, score=90, contributions=[Contribution('upstream', 'Great fit')],
                           highlights=['React', 'frontend'])
    result = merge_result(cv, post, upstream)
    assert result.score == 50
    assert result.reason == 'Great fit | Different domain: CV embedded vs post web (score capped)'
    # role tokens never highlight a cross-domain pair
    assert result.highlights == ['React']


def test_expired_penalty_is_floored():
    post = PostLite(id=2, title='Anything', post_type='find_job', is_expired=True)
    assert merge_result(CandidateProfile(), post, ScoreResult(post_id=2, score=30)).score == 5
    result = merge_result(CandidateProfile(), post, ScoreResult(post_id=2, score=10))
    assert result.score == 0
    assert result.reason == 'Post has expired (penalized)'


def test_title_boost_from_cv_name_and_roles():
    cv = CandidateProfile(cv_name='Python Backend', cv_text='backend python')
    post = PostLite(id=3, title='Python Backend Developer', post_type='find_job')
    result = merge_result(cv, post, ScoreResult(post_id=3, score=50))
    assert result.score == 76
    assert 'Title mentions python, backend (+26)' in result.reason


def test_title_boost_is_capped():
    assert title_boost('react native mobile', 'Mobile developer', ['mobile']) == (18, ['mobile'])
    boost, _hits = title_boost('aa bb cc dd ee', 'aa bb cc dd ee', [])
    assert boost == 30


def test_without_upstream_rebuilds_reason_and_highlights():
    result = merge_result(BACKEND_CV, BACKEND_POST)
    # title boost 8 (cv name) + 10 (role), recruiting bonus 5
    assert result.score == 23
    assert result.reason.startswith('Role match: backend; Tech match: python, flask')
    assert result.highlights == ['backend', 'python', 'flask', 'english',
                                 '3 năm', '3+ năm', '3 years', '3+ years']


def test_clean_highlights():
    long_term = 'a' * 100
    cleaned = clean_highlights(['  React ', 'react', 'x', '', None, long_term, 'Go'])
    assert cleaned == ['React', 'a' * 80, 'Go']
    assert len(clean_highlights([f'term{i}' for i in range(20)])) == 12


def test_rank_posts_sorts_descending_and_is_stable():
    posts = [PostLite(id=i, title=t) for i, t in ((1, 'Hello'), (2, 'World'), (3, 'Third'))]
    ranked = rank_posts(CandidateProfile(), posts, {2: ScoreResult(post_id=2, score=40)})
    assert [r.post_id for r in ranked] == [2, 1, 3]
    assert rank_posts(CandidateProfile(), posts) == rank_posts(CandidateProfile(), posts)


def test_merge_bounds():
    result = merge_result(BACKEND_CV, BACKEND_POST, ScoreResult(post_id=1, score=250, highlights=['x'] * 30))
    assert result.score == 100
    assert len(result.highlights) <= 12
