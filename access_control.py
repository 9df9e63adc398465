"""Candidate access to interviews and the lazy expiry sweep."""
import logging
from datetime import datetime

from errors import ExpiredError, NotFoundError, NotYetAvailableError, PersistenceError, ValidationError
from extensions import commit
from interview_logic import can_transition
from models import Interview
from time_window import WindowState, evaluate, format_clock, has_ended
from utilities.constants import STATUS_EXPIRED, STATUS_NOT_STARTED
from utilities.validators import normalize_email

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = 'Invalid interview link or access token'


def _expire(interview: Interview) -> None:
    """Persist the expiry flip. A failed write is logged, never raised."""
    if interview.status == STATUS_EXPIRED or not can_transition(interview.status, STATUS_EXPIRED):
        return
    interview.status = STATUS_EXPIRED
    try:
        commit()
        logger.info("Interview %s expired on access attempt", interview.id)
    except PersistenceError:
        logger.error("Could not persist expiry of interview %s", interview.id)


def verify_access(interview_link: str, access_token: str, now: datetime) -> Interview:
    """Admit a candidate holding (link, token) if the interview window is open.

    Raises NotFoundError for any unknown link/token combination (the message
    never says which part was wrong), NotYetAvailableError before the window,
    ExpiredError after it. Admission does not change the interview status.
    """
    if not interview_link or not access_token:
        raise ValidationError('Both interview link and access token are required')

    interview = Interview.query.filter_by(interview_link=interview_link, access_token=access_token).first()
    if interview is None:
        raise NotFoundError(INVALID_CREDENTIALS)

    window = evaluate(interview.interview_date, interview.start_time, interview.end_time, now)
    day = interview.interview_date.isoformat()

    if window.state is WindowState.EXPIRED:
        _expire(interview)
        raise ExpiredError(
            'This interview link has expired',
            payload={'interviewDetails': {
                'date': day,
                'startTime': interview.start_time,
                'endTime': interview.end_time,
            }},
        )

    if window.state is WindowState.TOO_EARLY:
        opens, closes = format_clock(window.window_start), format_clock(window.window_end)
        raise NotYetAvailableError(
            f"Interview is not available yet. Please join between {opens} and {closes} on {day}",
            payload={'interviewDetails': {
                'date': day,
                'startTime': opens,
                'endTime': closes,
                'currentTime': format_clock(now),
            }},
        )

    return interview


def validate_batch(creator_email, now: datetime) -> dict:
    """Expire every not-started interview of `creator_email` whose scheduled end has passed.

    Runs on demand (dashboard load); a scheduler may call it just the same.
    """
    creator_email = normalize_email(creator_email)
    if not creator_email:
        raise ValidationError('Email is required to validate interviews')

    candidates = Interview.query.filter_by(creator_email=creator_email, status=STATUS_NOT_STARTED).all()
    expired = [i for i in candidates if has_ended(i.interview_date, i.end_time, now)]
    for interview in expired:
        interview.status = STATUS_EXPIRED
    if expired:
        commit()
        logger.info("Expired %d interviews for %s", len(expired), creator_email)

    return {'updatedCount': len(expired), 'expiredInterviews': [i.id for i in expired]}
