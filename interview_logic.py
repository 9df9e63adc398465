"""Interview lifecycle: creation, lookup, question edits and the status state machine.

Status flow::

    not_started -> in_progress -> completed
         \\              \\
          +-> expired     +-> expired     (time expiry only)

``completed`` and ``expired`` are terminal. ``update_interview_status`` is the
recruiter override and may set any status directly.
"""
import logging
import secrets
from datetime import datetime

import config
from errors import InvalidTransitionError, NotFoundError, ValidationError
from extensions import commit, db
from models import Interview
from plans import check_interview_quota
from utilities.constants import (
    INTERVIEW_STATUSES, INTERVIEW_TYPES, STATUS_COMPLETED, STATUS_EXPIRED, STATUS_IN_PROGRESS,
    STATUS_NOT_STARTED,
)
from utilities.validators import (
    looks_like_email, normalize_email, parse_choice, parse_clock, parse_date, parse_skills, parse_text,
    require_fields,
)

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = (
    'applicantName', 'companyName', 'jobTitle', 'jobDescription', 'resumeText',
    'interviewDate', 'startTime', 'endTime', 'email', 'userId', 'interviewType', 'skills',
)

ALLOWED_TRANSITIONS = {
    STATUS_NOT_STARTED: {STATUS_IN_PROGRESS, STATUS_EXPIRED},
    STATUS_IN_PROGRESS: {STATUS_COMPLETED, STATUS_EXPIRED},
    STATUS_COMPLETED: set(),
    STATUS_EXPIRED: set(),
}

# camelCase sort keys accepted from clients -> model columns
SORT_FIELDS = {
    'createdAt': Interview.created_at,
    'interviewDate': Interview.interview_date,
    'jobTitle': Interview.job_title,
    'applicantName': Interview.applicant_name,
    'companyName': Interview.company_name,
    'status': Interview.status,
    'score': Interview.score,
}

# Fields a recruiter may edit after creation, with their column names
EDITABLE_FIELDS = {
    'applicantName': 'applicant_name',
    'companyName': 'company_name',
    'jobTitle': 'job_title',
    'jobDescription': 'job_description',
    'resumeText': 'resume_text',
    'additionalNotes': 'additional_notes',
}

LINK_SLUG_LENGTH = 12


def generate_interview_link() -> str:
    slug = secrets.token_urlsafe(16).replace('-', '').replace('_', '')[:LINK_SLUG_LENGTH]
    return f"{config.BASE_URL}/interview/{slug}"


def generate_access_token() -> str:
    return secrets.token_hex(32) + secrets.token_urlsafe(24)


def can_transition(current: str, target: str) -> bool:
    return target == current or target in ALLOWED_TRANSITIONS.get(current, set())


def transition(interview: Interview, target: str) -> bool:
    """Apply a state-machine transition in the session. Returns False when already in `target`."""
    if target == interview.status:
        return False
    if not can_transition(interview.status, target):
        raise InvalidTransitionError(
            f"Cannot change interview status from {interview.status} to {target}",
            payload={'status': interview.status},
        )
    interview.status = target
    return True


def _validate_schedule(day, start_time, end_time):
    interview_date = parse_date(day)
    start = parse_clock(start_time)
    end = parse_clock(end_time)
    if start >= end:
        raise ValidationError('Interview start time must be before end time')
    return interview_date, start, end


def create_interview(payload: dict, generator=None) -> Interview:
    """Validate, enforce the plan quota, seed AI questions (best effort) and store a new interview."""
    payload = payload or {}
    require_fields(payload, REQUIRED_FIELDS)
    interview_date, start, end = _validate_schedule(
        payload['interviewDate'], payload['startTime'], payload['endTime'])
    interview_type = parse_choice(payload['interviewType'], INTERVIEW_TYPES, 'interview type')
    applicant_name = parse_text(payload['applicantName'], 'applicantName')
    company_name = parse_text(payload['companyName'], 'companyName')
    job_title = parse_text(payload['jobTitle'], 'jobTitle')
    job_description = parse_text(payload['jobDescription'], 'jobDescription')
    resume_text = parse_text(payload['resumeText'], 'resumeText')
    skills = parse_skills(payload['skills'])
    creator_email = normalize_email(payload['email'])
    if not looks_like_email(creator_email):
        raise ValidationError(f"Invalid email address: {payload['email']!r}")

    check_interview_quota(creator_email)

    questions = []
    if generator is not None:
        seed_data = dict(payload, startTime=start, endTime=end, skills=skills, interviewType=interview_type)
        questions = generator.generate_interview_questions(seed_data)

    interview = Interview(
        applicant_name=applicant_name,
        company_name=company_name,
        job_title=job_title,
        job_description=job_description,
        resume_text=resume_text,
        additional_notes=payload.get('additionalNotes') or '',
        interview_link=generate_interview_link(),
        access_token=generate_access_token(),
        interview_date=interview_date,
        start_time=start,
        end_time=end,
        interview_type=interview_type,
        skills=skills,
        ai_generated_questions=list(questions),
        # AI questions double as the recruiter's initial editable list
        custom_questions=list(questions),
        status=STATUS_NOT_STARTED,
        created_by=str(payload['userId']),
        creator_email=creator_email,
    )
    db.session.add(interview)
    commit()
    logger.info("Created interview %s for %s (%d seeded questions)", interview.id, creator_email, len(questions))
    return interview


def creation_summary(interview: Interview) -> dict:
    return {
        'id': interview.id,
        'interviewLink': interview.interview_link,
        'accessToken': interview.access_token,
        'applicantName': interview.applicant_name,
        'companyName': interview.company_name,
        'jobTitle': interview.job_title,
        'interviewType': interview.interview_type,
        'skills': list(interview.skills or []),
        'questions': list(interview.ai_generated_questions or []),
        'interviewDate': interview.interview_date.isoformat(),
        'timeSlot': interview.time_slot,
        'status': interview.status,
    }


def list_interviews(creator_email, status=None, job_title=None, applicant_name=None,
                    company_name=None, interview_type=None, sort_by='createdAt', sort_order='desc'):
    creator_email = normalize_email(creator_email)
    if not creator_email:
        raise ValidationError('Email is required to fetch interviews')
    if sort_by not in SORT_FIELDS:
        raise ValidationError(f"Invalid sort field: {sort_by}")

    query = Interview.query.filter(Interview.creator_email == creator_email)
    if status:
        query = query.filter(Interview.status == status)
    if interview_type:
        query = query.filter(Interview.interview_type == interview_type)
    if job_title:
        query = query.filter(Interview.job_title.icontains(job_title, autoescape=True))
    if applicant_name:
        query = query.filter(Interview.applicant_name.icontains(applicant_name, autoescape=True))
    if company_name:
        query = query.filter(Interview.company_name.icontains(company_name, autoescape=True))

    column = SORT_FIELDS[sort_by]
    query = query.order_by(column.asc() if sort_order == 'asc' else column.desc(), Interview.id.desc())
    return query.all()


def get_interview(interview_id) -> Interview:
    try:
        interview = db.session.get(Interview, int(interview_id))
    except (TypeError, ValueError):
        interview = None
    if interview is None:
        raise NotFoundError('Interview not found')
    return interview


def get_interview_by_link(identifier: str) -> Interview:
    """Find an interview by its full link or by the slug at the end of it."""
    identifier = (identifier or '').strip().rstrip('/')
    if not identifier:
        raise NotFoundError('Interview not found')
    slug = identifier.rsplit('/', 1)[-1]
    interview = Interview.query.filter(
        db.or_(Interview.interview_link == identifier,
               Interview.interview_link.endswith(f"/interview/{slug}", autoescape=True))
    ).first()
    if interview is None:
        raise NotFoundError('Interview not found')
    return interview


def find_interview(identifier) -> Interview:
    """Resolve a numeric id or an interview link/slug."""
    if str(identifier).isdigit():
        return get_interview(identifier)
    return get_interview_by_link(str(identifier))


def interview_details(interview: Interview) -> dict:
    data = interview.to_dict()
    data['questions'] = data['aiGeneratedQuestions'] + data['customQuestions']
    data['timeSlot'] = interview.time_slot
    return data


def update_interview(interview_id, changes: dict) -> Interview:
    """Recruiter edit of descriptive and scheduling fields."""
    interview = get_interview(interview_id)
    changes = changes or {}

    updates = {}
    for key, column in EDITABLE_FIELDS.items():
        if key in changes:
            value = changes[key]
            if key != 'additionalNotes' and not (isinstance(value, str) and value.strip()):
                raise ValidationError(f"{key} cannot be empty")
            updates[column] = value
    if any(k in changes for k in ('interviewDate', 'startTime', 'endTime')):
        day, start, end = _validate_schedule(
            changes.get('interviewDate', interview.interview_date),
            changes.get('startTime', interview.start_time),
            changes.get('endTime', interview.end_time),
        )
        updates.update(interview_date=day, start_time=start, end_time=end)
    if 'interviewType' in changes:
        updates['interview_type'] = parse_choice(changes['interviewType'], INTERVIEW_TYPES, 'interview type')
    if 'skills' in changes:
        updates['skills'] = parse_skills(changes['skills'] or [])

    for column, value in updates.items():
        setattr(interview, column, value)
    commit()
    return interview


def update_questions(interview_id, action: str, question: str) -> Interview:
    """`add` appends to the custom list; `delete` removes exact matches from both lists."""
    if action not in ('add', 'delete'):
        raise ValidationError("Action must be 'add' or 'delete'")
    if not isinstance(question, str) or not question.strip():
        raise ValidationError('Question text is required')

    interview = get_interview(interview_id)
    ai_questions = list(interview.ai_generated_questions or [])
    custom_questions = list(interview.custom_questions or [])

    if action == 'add':
        custom_questions.append(question)
    else:
        # A question may have been copied between lists, so it goes from both
        ai_questions = [q for q in ai_questions if q != question]
        custom_questions = [q for q in custom_questions if q != question]

    interview.ai_generated_questions = ai_questions
    interview.custom_questions = custom_questions
    commit()
    return interview


def update_interview_status(identifier, status: str) -> Interview:
    """Recruiter override: set any valid status, bypassing the state machine."""
    parse_choice(status, INTERVIEW_STATUSES, 'status')
    interview = find_interview(identifier)
    if interview.status != status:
        logger.info("Status override on interview %s: %s -> %s", interview.id, interview.status, status)
        interview.status = status
        commit()
    return interview


def mark_in_progress(identifier) -> Interview:
    """Called by the client once the candidate's session is actually set up."""
    interview = find_interview(identifier)
    if transition(interview, STATUS_IN_PROGRESS):
        commit()
    return interview


def complete_interview(identifier, score, now: datetime) -> Interview:
    try:
        score = float(score if score is not None else 0)
    except (TypeError, ValueError):
        raise ValidationError('Score must be a number')
    if not 0 <= score <= 100:
        raise ValidationError('Score must be between 0 and 100')

    interview = find_interview(identifier)
    transition(interview, STATUS_COMPLETED)
    interview.score = score
    interview.completed_at = now
    commit()
    return interview
