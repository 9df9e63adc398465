"""Completed interview attempts."""
import logging
import math
from datetime import datetime

from errors import ValidationError
from extensions import commit, db
from interview_logic import get_interview_by_link
from models import InterviewRecord
from time_window import combine
from utilities.constants import RECORD_STATUSES
from utilities.validators import parse_choice, parse_positive_int

logger = logging.getLogger(__name__)

SORT_FIELDS = {
    'createdAt': InterviewRecord.created_at,
    'overallScore': InterviewRecord.overall_score,
    'applicantName': InterviewRecord.applicant_name,
    'jobTitle': InterviewRecord.job_title,
    'companyName': InterviewRecord.company_name,
}


def _performance(score: float) -> str:
    if score >= 80:
        return 'excellent'
    if score >= 60:
        return 'good'
    return 'satisfactory'


def _parse_timestamp(value, default: datetime) -> datetime:
    if not value:
        return default
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).replace('Z', '+00:00')).replace(tzinfo=None)
    except ValueError:
        raise ValidationError(f"Invalid timestamp: {value!r}")


def create_record(payload: dict, generator, now: datetime) -> InterviewRecord:
    """Store the outcome of an interview attempt, scoring each answer with the generator."""
    payload = payload or {}
    if not payload.get('interviewLink'):
        raise ValidationError('Interview link is required')

    interview = get_interview_by_link(payload['interviewLink'])

    responses = payload.get('responses') or []
    if not isinstance(responses, list):
        raise ValidationError('Responses must be a list')
    try:
        overall = float(payload.get('score') or 0)
        duration = float(payload.get('duration') or 0)
    except (TypeError, ValueError):
        raise ValidationError('Score and duration must be numbers')
    if not 0 <= overall <= 100:
        raise ValidationError('Score must be between 0 and 100')

    job_context = {'jobTitle': interview.job_title, 'companyName': interview.company_name}
    questions = []
    for response in responses:
        if not isinstance(response, dict):
            raise ValidationError('Each response must be an object')
        question, answer = response.get('question', ''), response.get('answer', '')
        # AI score is 1-10; records store 0-100
        score = generator.evaluate_response(question, answer, job_context) * 10
        questions.append({
            'question': question,
            'answer': answer,
            'evaluation': response.get('feedback') or response.get('evaluation') or '',
            'score': score,
        })

    record = InterviewRecord(
        interview_link=interview.interview_link,
        applicant_name=interview.applicant_name,
        job_title=interview.job_title,
        company_name=interview.company_name,
        # Same local wall clock as the slot and `now`
        start_time=_parse_timestamp(payload.get('startedAt'), combine(interview.interview_date, interview.start_time)),
        end_time=_parse_timestamp(payload.get('completedAt'), now),
        duration=duration,
        questions=questions,
        overall_score=overall,
        feedback=(f"Interview completed with {len(questions)} questions answered. "
                  f"Overall performance was {_performance(overall)}."),
        status='completed',
    )
    db.session.add(record)
    commit()
    logger.info("Stored record %s for interview %s", record.id, interview.id)
    return record


def records_for_link(identifier: str):
    interview = get_interview_by_link(identifier)
    return (InterviewRecord.query
            .filter(InterviewRecord.interview_link == interview.interview_link)
            .order_by(InterviewRecord.created_at.desc(), InterviewRecord.id.desc())
            .all())


def list_records(page=1, limit=10, sort_by='createdAt', sort_order='desc',
                 status=None, job_title=None, company_name=None) -> dict:
    page = parse_positive_int(page, 1, 'page', maximum=10_000)
    limit = parse_positive_int(limit, 10, 'limit', maximum=100)
    if sort_by not in SORT_FIELDS:
        raise ValidationError(f"Invalid sort field: {sort_by}")

    query = InterviewRecord.query
    if status:
        parse_choice(status, RECORD_STATUSES, 'status')
        query = query.filter(InterviewRecord.status == status)
    if job_title:
        query = query.filter(InterviewRecord.job_title.icontains(job_title, autoescape=True))
    if company_name:
        query = query.filter(InterviewRecord.company_name.icontains(company_name, autoescape=True))

    total = query.count()
    column = SORT_FIELDS[sort_by]
    records = (query.order_by(column.asc() if sort_order == 'asc' else column.desc())
               .limit(limit).offset((page - 1) * limit).all())

    return {
        'data': [r.to_dict() for r in records],
        'pagination': {'page': page, 'limit': limit, 'total': total, 'pages': math.ceil(total / limit)},
    }
