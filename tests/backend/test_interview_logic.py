from datetime import datetime

import pytest

import config
import interview_logic
from errors import InvalidTransitionError, NotFoundError, QuotaExceededError, ValidationError
from models import Interview


def test_create_interview_seeds_both_question_lists(db_session, interview_payload, fake_generator):
    interview = interview_logic.create_interview(interview_payload(), fake_generator)

    assert interview.id is not None
    assert interview.status == 'not_started'
    assert interview.ai_generated_questions == ['Tell me about yourself.', 'Describe a recent project.']
    assert interview.custom_questions == interview.ai_generated_questions
    assert interview.creator_email == 'recruiter@example.com'
    assert fake_generator.seed_calls[0]['startTime'] == '14:00'

    summary = interview_logic.creation_summary(interview)
    assert summary['timeSlot'] == '14:00 - 15:00'
    assert summary['accessToken'] == interview.access_token
    assert summary['questions'] == interview.ai_generated_questions


def test_links_and_tokens_are_unique(make_interview):
    first, second = make_interview(), make_interview()

    assert first.interview_link.startswith(f"{config.BASE_URL}/interview/")
    assert len(first.interview_link.rsplit('/', 1)[-1]) == interview_logic.LINK_SLUG_LENGTH
    assert first.interview_link != second.interview_link
    assert first.access_token != second.access_token
    assert len(first.access_token) >= 64


@pytest.mark.parametrize('overrides, message', [
    ({'applicantName': ''}, 'applicantName'),
    ({'skills': None}, 'skills'),
    ({'startTime': '15:00', 'endTime': '14:00'}, 'start time must be before end time'),
    ({'startTime': '14:00', 'endTime': '14:00'}, 'start time must be before end time'),
    ({'startTime': '25:00'}, 'Invalid time'),
    ({'interviewDate': '01/02/2024'}, 'Invalid interview date'),
    ({'interviewType': 'expert'}, 'Invalid interview type'),
    ({'email': 'nobody'}, 'Invalid email address'),
    ({'email': 42}, 'Invalid email address'),
    ({'applicantName': 123}, 'applicantName must be a non-empty string'),
    ({'companyName': ['Acme']}, 'companyName must be a non-empty string'),
    ({'jobTitle': '   '}, 'jobTitle must be a non-empty string'),
])
def test_create_interview_validation(db_session, interview_payload, overrides, message):
    with pytest.raises(ValidationError, match=message):
        interview_logic.create_interview(interview_payload(**overrides))
    assert Interview.query.count() == 0


def test_quota_is_checked_before_seeding_and_insert(db_session, interview_payload, fake_generator):
    for _ in range(3):
        interview_logic.create_interview(interview_payload(), fake_generator)

    with pytest.raises(QuotaExceededError, match='3 interviews') as exc:
        interview_logic.create_interview(interview_payload(), fake_generator)

    assert exc.value.status_code == 403
    assert exc.value.payload == {'plan': 'Free', 'limit': 3}
    assert len(fake_generator.seed_calls) == 3
    assert Interview.query.count() == 3


def test_state_machine_forward_path(make_interview):
    interview = make_interview()

    interview_logic.mark_in_progress(interview.id)
    assert interview.status == 'in_progress'
    # Starting twice is a no-op
    interview_logic.mark_in_progress(interview.interview_link)
    assert interview.status == 'in_progress'

    done_at = datetime(2024, 1, 1, 14, 45)
    interview_logic.complete_interview(interview.id, 82.5, done_at)
    assert interview.status == 'completed'
    assert interview.score == 82.5
    assert interview.completed_at == done_at


def test_terminal_states_reject_transitions(make_interview):
    interview = make_interview()
    interview_logic.mark_in_progress(interview.id)
    interview_logic.complete_interview(interview.id, 50, datetime(2024, 1, 1, 15, 0))

    with pytest.raises(InvalidTransitionError) as exc:
        interview_logic.mark_in_progress(interview.id)
    assert exc.value.status_code == 409
    assert not interview_logic.can_transition('expired', 'in_progress')
    assert not interview_logic.can_transition('completed', 'expired')


def test_complete_requires_in_progress(make_interview):
    interview = make_interview()
    with pytest.raises(InvalidTransitionError):
        interview_logic.complete_interview(interview.id, 70, datetime(2024, 1, 1, 14, 30))
    assert interview.status == 'not_started'


@pytest.mark.parametrize('score', [-1, 100.5, 'abc'])
def test_complete_rejects_bad_scores(make_interview, score):
    interview = make_interview()
    interview_logic.mark_in_progress(interview.id)
    with pytest.raises(ValidationError):
        interview_logic.complete_interview(interview.id, score, datetime(2024, 1, 1, 14, 30))


def test_status_override_bypasses_the_state_machine(make_interview):
    interview = make_interview()
    interview_logic.update_interview_status(interview.id, 'completed')
    interview_logic.update_interview_status(interview.interview_link, 'not_started')
    assert interview.status == 'not_started'

    with pytest.raises(ValidationError):
        interview_logic.update_interview_status(interview.id, 'paused')


def test_question_delete_removes_from_both_lists(db_session, interview_payload, fake_generator):
    interview = interview_logic.create_interview(interview_payload(), fake_generator)

    interview_logic.update_questions(interview.id, 'add', 'Why Python?')
    assert interview.custom_questions[-1] == 'Why Python?'
    assert 'Why Python?' not in interview.ai_generated_questions

    interview_logic.update_questions(interview.id, 'delete', 'Tell me about yourself.')
    refreshed = db_session.get(Interview, interview.id)
    assert 'Tell me about yourself.' not in refreshed.ai_generated_questions
    assert 'Tell me about yourself.' not in refreshed.custom_questions
    assert refreshed.custom_questions == ['Describe a recent project.', 'Why Python?']

    with pytest.raises(ValidationError):
        interview_logic.update_questions(interview.id, 'replace', 'x')


def test_lookup_by_id_link_and_slug(make_interview):
    interview = make_interview()
    slug = interview.interview_link.rsplit('/', 1)[-1]

    assert interview_logic.get_interview(str(interview.id)) is interview
    assert interview_logic.get_interview_by_link(interview.interview_link) is interview
    assert interview_logic.get_interview_by_link(slug) is interview
    assert interview_logic.find_interview(slug) is interview

    with pytest.raises(NotFoundError):
        interview_logic.get_interview(9999)
    with pytest.raises(NotFoundError):
        interview_logic.get_interview_by_link('missing')


def test_list_interviews_filters_and_sorts(make_interview):
    make_interview(applicantName='Zed', jobTitle='Data Engineer')
    make_interview(applicantName='Amy', jobTitle='Backend Engineer')
    make_interview(applicantName='Bob', jobTitle='backend engineer', email='other@example.com')

    names = [i.applicant_name for i in interview_logic.list_interviews(
        'recruiter@example.com', sort_by='applicantName', sort_order='asc')]
    assert names == ['Amy', 'Zed']

    filtered = interview_logic.list_interviews('recruiter@example.com', job_title='BACKEND')
    assert [i.applicant_name for i in filtered] == ['Amy']

    with pytest.raises(ValidationError):
        interview_logic.list_interviews('recruiter@example.com', sort_by='accessToken')
    with pytest.raises(ValidationError):
        interview_logic.list_interviews(None)


def test_update_interview_revalidates_schedule(make_interview):
    interview = make_interview()

    interview_logic.update_interview(interview.id, {'startTime': '16:00', 'endTime': '17:30', 'jobTitle': 'SRE'})
    assert interview.time_slot == '16:00 - 17:30'
    assert interview.job_title == 'SRE'

    with pytest.raises(ValidationError):
        interview_logic.update_interview(interview.id, {'endTime': '15:00'})
    with pytest.raises(ValidationError):
        interview_logic.update_interview(interview.id, {'applicantName': '   '})
