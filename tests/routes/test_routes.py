from datetime import datetime

import pytest

import interview_logic
import routes


def _freeze(monkeypatch, *args):
    monkeypatch.setattr(routes, '_now', lambda: datetime(*args))


def _create(client, interview_payload, **overrides):
    rv = client.post('/api/interviews', json=interview_payload(**overrides))
    assert rv.status_code == 201, rv.get_json()
    return rv.get_json()['data']


def test_create_interview_and_fetch_it(client, interview_payload):
    created = _create(client, interview_payload)

    assert created['interviewLink'].split('/interview/')[1]
    assert created['accessToken']
    assert created['timeSlot'] == '14:00 - 15:00'
    assert created['questions'] == []  # AI disabled in tests

    rv = client.get(f"/api/interviews/{created['id']}")
    assert rv.status_code == 200
    assert rv.get_json()['data']['applicantName'] == 'Ada Lovelace'

    slug = created['interviewLink'].rsplit('/', 1)[-1]
    rv = client.get(f"/api/interviews/link/{slug}")
    assert rv.get_json()['data']['id'] == created['id']


def test_validation_and_quota_errors_are_json(client, interview_payload):
    rv = client.post('/api/interviews', json=interview_payload(startTime='16:00'))
    assert rv.status_code == 400
    assert rv.get_json() == {'success': False, 'error': 'Interview start time must be before end time'}

    for _ in range(3):
        _create(client, interview_payload)
    rv = client.post('/api/interviews', json=interview_payload())
    body = rv.get_json()
    assert rv.status_code == 403
    assert body['success'] is False
    assert '3 interviews' in body['error']
    assert body['plan'] == 'Free'


def test_verify_token_across_the_window(client, interview_payload, monkeypatch):
    created = _create(client, interview_payload)
    creds = {'interviewLink': created['interviewLink'], 'accessToken': created['accessToken']}

    _freeze(monkeypatch, 2024, 1, 1, 13, 50)
    rv = client.post('/api/interviews/verify-token', json=creds)
    assert rv.status_code == 403
    assert rv.get_json()['interviewDetails']['startTime'] == '13:55'

    _freeze(monkeypatch, 2024, 1, 1, 13, 56)
    rv = client.post('/api/interviews/verify-token', json=creds)
    assert rv.status_code == 200
    assert rv.get_json() == {'success': True, 'message': 'Access granted', 'interviewId': created['id']}

    _freeze(monkeypatch, 2024, 1, 1, 15, 1)
    rv = client.post('/api/interviews/verify-token', json=creds)
    assert rv.status_code == 410
    assert client.get(f"/api/interviews/{created['id']}").get_json()['data']['status'] == 'expired'


def test_verify_token_with_wrong_token(client, interview_payload, monkeypatch):
    created = _create(client, interview_payload)
    _freeze(monkeypatch, 2024, 1, 1, 14, 0)

    rv = client.post('/api/interviews/verify-token',
                     json={'interviewLink': created['interviewLink'], 'accessToken': 'guess'})
    assert rv.status_code == 404
    assert rv.get_json()['error'] == 'Invalid interview link or access token'


def test_lifecycle_endpoints(client, interview_payload, monkeypatch):
    created = _create(client, interview_payload)
    _freeze(monkeypatch, 2024, 1, 1, 14, 40)

    rv = client.put(f"/api/interviews/{created['id']}/complete", json={'score': 75})
    assert rv.status_code == 409

    assert client.put(f"/api/interviews/{created['id']}/start").status_code == 200
    rv = client.put(f"/api/interviews/{created['id']}/complete", json={'score': 75})
    data = rv.get_json()['data']
    assert data['status'] == 'completed'
    assert data['score'] == 75
    assert data['completedAt'] == '2024-01-01T14:40:00'

    slug = created['interviewLink'].rsplit('/', 1)[-1]
    rv = client.put(f"/api/interviews/{slug}/status", json={'status': 'not_started'})
    assert rv.get_json()['data']['status'] == 'not_started'


def test_question_edits(client, interview_payload):
    created = _create(client, interview_payload)
    url = f"/api/interviews/{created['id']}/questions"

    rv = client.put(url, json={'action': 'add', 'question': 'Why us?'})
    assert rv.get_json()['data']['customQuestions'] == ['Why us?']

    rv = client.put(url, json={'action': 'delete', 'question': 'Why us?'})
    assert rv.get_json()['data']['questions'] == []

    assert client.put(url, json={'action': 'add'}).status_code == 400


def test_list_and_validate_interviews(client, interview_payload, monkeypatch):
    first = _create(client, interview_payload, applicantName='Amy')
    _create(client, interview_payload, applicantName='Zed', interviewDate='2024-02-01')

    rv = client.get('/api/interviews?email=recruiter@example.com&sortBy=applicantName&sortOrder=asc')
    body = rv.get_json()
    assert body['count'] == 2
    assert [i['applicantName'] for i in body['data']] == ['Amy', 'Zed']

    _freeze(monkeypatch, 2024, 1, 10, 9, 0)
    rv = client.get('/api/interviews/validate?email=recruiter@example.com')
    assert rv.get_json() == {'success': True, 'updatedCount': 1, 'expiredInterviews': [first['id']]}

    assert client.get('/api/interviews').status_code == 400


def test_plan_endpoints(client):
    rv = client.get('/api/user/plan?email=new@example.com')
    body = rv.get_json()
    assert body['plan'] == 'Free'
    assert body['limits']['maxInterviews'] == 3

    rv = client.put('/api/user/plan', json={'email': 'new@example.com', 'plan': 'Pro'})
    assert rv.status_code == 200
    assert rv.get_json()['data']['plan'] == 'Pro'

    rv = client.post('/api/user/plan', json={'email': 'new@example.com'})
    assert rv.get_json()['plan'] == 'Pro'

    rv = client.put('/api/user/plan', json={'email': 'new@example.com', 'plan': 'Gold'})
    assert rv.status_code == 400
    assert rv.get_json()['error'] == 'Invalid plan specified'

    assert client.get('/api/user/plan').status_code == 400


def test_question_bank_endpoints(client):
    rv = client.get('/api/question-banks/job-title/Backend%20Engineer?category=technical',
                    headers={'X-User-Email': 'free@example.com'})
    body = rv.get_json()
    assert rv.status_code == 200
    assert body['meta']['userPlan'] == 'Free'
    assert len(body['data']) == 3  # one Free-tier bank per difficulty
    bank_id = body['data'][0]['id']

    for rating in (5, 3, 4):
        rv = client.post(f'/api/question-banks/rate/{bank_id}', json={'rating': rating})
    assert rv.get_json()['data']['ratings'] == {'average': 4, 'count': 3}
    assert client.post(f'/api/question-banks/rate/{bank_id}', json={'rating': 9}).status_code == 400
    assert client.post('/api/question-banks/rate/99999', json={'rating': 3}).status_code == 404

    rv = client.get('/api/question-banks/category/technical?jobTitle=backend')
    assert rv.get_json()['meta']['totalQuestions'] == 45

    rv = client.get('/api/question-banks/search?q=backend')
    assert rv.get_json()['meta']['totalResults'] >= 1
    assert client.get('/api/question-banks/search').status_code == 400

    assert client.get('/api/question-banks/popular?limit=2').get_json()['meta']['totalBanks'] == 2

    titles = client.get('/api/question-banks/job-titles').get_json()['data']
    assert [t['title'] for t in titles] == ['Backend Engineer']


def test_generate_banks_endpoint(client):
    client.put('/api/user/plan', json={'email': 'pro@example.com', 'plan': 'Pro'})

    rv = client.post('/api/question-banks/generate',
                     json={'email': 'pro@example.com', 'jobTitle': 'Designer', 'difficulty': 'beginner'})
    body = rv.get_json()
    assert rv.status_code == 201
    assert len(body['data']) == 8
    assert {b['difficulty'] for b in body['data']} == {'beginner'}

    assert client.post('/api/question-banks/generate', json={}).status_code == 400


def test_interview_record_endpoints(client, interview_payload):
    created = _create(client, interview_payload)
    slug = created['interviewLink'].rsplit('/', 1)[-1]

    rv = client.post('/api/interview-records', json={
        'interviewLink': created['interviewLink'],
        'responses': [{'question': 'Q1', 'answer': 'A1'}],
        'score': 64,
    })
    assert rv.status_code == 201
    # AI disabled: every answer gets the neutral 5/10
    assert rv.get_json()['data']['questions'][0]['score'] == 50

    assert len(client.get(f'/api/interview-records/{slug}').get_json()['data']) == 1
    assert client.get('/api/interview-records?limit=5').get_json()['pagination']['total'] == 1
    assert client.get('/api/interview-records/unknown').status_code == 404


def test_unexpected_errors_become_generic_500(client, monkeypatch):
    def _boom(*a, **k):
        raise RuntimeError('database on fire')

    monkeypatch.setattr(interview_logic, 'list_interviews', _boom)
    rv = client.get('/api/interviews?email=a@example.com')
    assert rv.status_code == 500
    assert rv.get_json() == {'success': False, 'error': 'Internal server error'}


def test_unknown_route_is_a_plain_404(client):
    assert client.get('/api/nothing-here').status_code == 404


@pytest.mark.parametrize('body', ['[1, 2]', '"text"'])
def test_non_object_json_body_is_rejected(client, body):
    rv = client.post('/api/interviews', data=body, content_type='application/json')
    assert rv.status_code == 400


def test_non_string_fields_are_a_400(client, interview_payload):
    rv = client.post('/api/interviews', json=interview_payload(applicantName=123))
    assert rv.status_code == 400
    assert rv.get_json() == {'success': False, 'error': 'applicantName must be a non-empty string'}
