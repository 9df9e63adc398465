import json

import pytest
import redis
import requests

from errors import ThrottledError, UpstreamGenerationError
import utilities.llm as llm
from question_generator import QuestionBankGenerator, acceptance_threshold, seeded_question_count
from utilities.fallback_questions import synthesize_fallback_questions
from utilities.rate_limit import RedisRateLimiter


class FakeClient:
    def __init__(self, reply=None, error=None):
        self.reply = reply
        self.error = error
        self.prompts = []

    def generate(self, prompt, system_instruction=None):
        self.prompts.append((prompt, system_instruction))
        if self.error is not None:
            raise self.error
        return self.reply


def _ai_questions(n, with_tips=True):
    return json.dumps([
        {'question': f'AI question {i}', 'expectedAnswer': 'Good answer',
         'tips': ['Be clear'] if with_tips else [], 'keywords': ['design']}
        for i in range(n)
    ])


def test_disabled_ai_uses_fallback():
    client = FakeClient(reply=_ai_questions(35))
    result = QuestionBankGenerator(client, ai_enabled=False).generate_questions(
        'Backend Engineer', 'technical', 'advanced', 'Pro')

    assert result.is_ai_generated is False
    assert len(result.questions) == 35
    assert all('Backend Engineer' in q['question'] for q in result.questions)
    assert client.prompts == []


def test_free_tier_never_calls_the_ai():
    client = FakeClient(reply=_ai_questions(15))
    result = QuestionBankGenerator(client, ai_enabled=True).generate_questions(
        'Backend Engineer', 'hr', 'beginner', 'Free')

    assert result.is_ai_generated is False
    assert len(result.questions) == 15
    assert client.prompts == []


def test_ai_questions_are_completed():
    client = FakeClient(reply='```json\n' + _ai_questions(35, with_tips=False) + '\n```')
    result = QuestionBankGenerator(client, ai_enabled=True).generate_questions(
        'Backend Engineer', 'behavioral', 'intermediate', 'Pro', industry='Fintech', skills=['python'])

    assert result.is_ai_generated is True
    assert len(result.questions) == 35
    first = result.questions[0]
    assert first['question'] == 'AI question 0'
    assert first['tips'] == ['Use the STAR method']
    assert first['keywords'] == ['design', 'backend engineer', 'intermediate']

    prompt, _ = client.prompts[0]
    assert 'Generate 35 behavioral interview questions for a Backend Engineer position' in prompt
    assert 'Industry: Fintech' in prompt
    assert 'Required Skills: python' in prompt


def test_short_ai_answer_is_topped_up_from_fallback():
    client = FakeClient(reply=_ai_questions(12))
    result = QuestionBankGenerator(client, ai_enabled=True).generate_questions(
        'Backend Engineer', 'technical', 'advanced', 'Pro')

    assert result.is_ai_generated is True
    assert len(result.questions) == 35
    assert [q['question'] for q in result.questions[:12]] == [f'AI question {i}' for i in range(12)]
    assert result.questions[12:] == synthesize_fallback_questions('Backend Engineer', 'technical', 'advanced', 35)[12:]


def test_too_few_ai_questions_falls_back_entirely():
    client = FakeClient(reply=_ai_questions(9))
    result = QuestionBankGenerator(client, ai_enabled=True).generate_questions(
        'Backend Engineer', 'technical', 'advanced', 'Pro')

    assert result.is_ai_generated is False
    assert result.questions == synthesize_fallback_questions('Backend Engineer', 'technical', 'advanced', 35)


@pytest.mark.parametrize('client', [
    FakeClient(error=ThrottledError('429')),
    FakeClient(error=UpstreamGenerationError('boom')),
    FakeClient(reply='I cannot help with that.'),
])
def test_upstream_trouble_never_escapes(client):
    result = QuestionBankGenerator(client, ai_enabled=True).generate_questions(
        'Data Scientist', 'situational', 'beginner', 'Enterprise')

    assert result.is_ai_generated is False
    assert len(result.questions) == 50


def test_acceptance_threshold():
    assert acceptance_threshold(5) == pytest.approx(3.5)
    assert acceptance_threshold(14) == pytest.approx(9.8)
    assert acceptance_threshold(15) == 10
    assert acceptance_threshold(50) == 10


@pytest.mark.parametrize('start, end, interview_type, expected', [
    ('14:00', '15:00', 'intermediate', 12),
    ('14:00', '15:00', 'basic', 9),
    ('14:00', '15:00', 'hard', 15),
    ('14:00', '14:10', 'basic', 5),
    ('09:00', '13:00', 'hard', 25),
])
def test_seeded_question_count(start, end, interview_type, expected):
    assert seeded_question_count(start, end, interview_type) == expected


def test_interview_questions_strip_list_markers():
    client = FakeClient(reply="What is a REST API?\n1. Numbered question\n\n- bullet\nHow do you test code?\n")
    generator = QuestionBankGenerator(client, ai_enabled=True)

    questions = generator.generate_interview_questions({
        'jobTitle': 'Backend Engineer', 'companyName': 'Acme', 'startTime': '14:00', 'endTime': '15:00',
        'interviewType': 'intermediate', 'skills': ['python'], 'jobDescription': 'APIs',
    })

    assert questions == ['What is a REST API?', 'How do you test code?']
    prompt, instruction = client.prompts[0]
    assert 'Generate 12 interview questions' in prompt
    assert instruction.startswith('You are an expert technical interviewer')


def test_interview_questions_empty_without_ai():
    client = FakeClient(error=UpstreamGenerationError('down'))
    data = {'startTime': '14:00', 'endTime': '15:00'}
    assert QuestionBankGenerator(client, ai_enabled=False).generate_interview_questions(data) == []
    assert QuestionBankGenerator(client, ai_enabled=True).generate_interview_questions(data) == []


@pytest.mark.parametrize('reply, expected', [
    ('8', 8),
    ('Score: 15', 10),
    ('0', 5),
    ('no idea', 5),
])
def test_evaluate_response(reply, expected):
    generator = QuestionBankGenerator(FakeClient(reply=reply), ai_enabled=True)
    assert generator.evaluate_response('Q', 'An answer', {'jobTitle': 'SRE', 'companyName': 'Acme'}) == expected


def test_evaluate_response_defaults():
    failing = QuestionBankGenerator(FakeClient(error=ThrottledError('429')), ai_enabled=True)
    assert failing.evaluate_response('Q', 'An answer', {}) == 5

    client = FakeClient(reply='9')
    assert QuestionBankGenerator(client, ai_enabled=True).evaluate_response('Q', '   ', {}) == 5
    assert client.prompts == []


class _DownRedis:
    def pipeline(self):
        raise redis.exceptions.ConnectionError('Redis went away')


def test_redis_outage_falls_back_instead_of_raising(monkeypatch):
    def _unreachable(*args, **kwargs):
        raise requests.exceptions.ConnectionError('no route to host')

    monkeypatch.setattr(llm.requests, 'post', _unreachable)
    client = llm.GeminiClient(api_key='k', api_url='https://gemini.test/generate',
                              rate_limiter=RedisRateLimiter(_DownRedis()), max_retries=0)
    generator = QuestionBankGenerator(client, ai_enabled=True)

    result = generator.generate_questions('Backend Engineer', 'technical', 'advanced', 'Pro')
    assert result.is_ai_generated is False
    assert len(result.questions) == 35

    assert generator.generate_interview_questions({'startTime': '14:00', 'endTime': '15:00'}) == []
