"""Interview scheduling windows.

An interview is stored as a calendar date plus local ``HH:MM`` start and end
times. Everything here combines those into full ``datetime`` instants before
comparing, and takes ``now`` as an argument so callers (and tests) decide what
the current time is.
"""
import enum
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from utilities.constants import ADMISSION_LEAD_MINUTES


class WindowState(str, enum.Enum):
    TOO_EARLY = 'TOO_EARLY'
    ADMITTED = 'ADMITTED'
    EXPIRED = 'EXPIRED'


@dataclass(frozen=True)
class WindowEvaluation:
    state: WindowState
    window_start: datetime      # admission opens
    window_end: datetime        # scheduled end
    interview_start: datetime


def parse_time_of_day(value: str) -> time:
    hours, minutes = str(value).strip().split(':')[:2]
    return time(int(hours), int(minutes))


def combine(day: date, time_of_day: str) -> datetime:
    if isinstance(day, datetime):
        day = day.date()
    return datetime.combine(day, parse_time_of_day(time_of_day))


def format_clock(moment: datetime) -> str:
    return moment.strftime('%H:%M')


def duration_minutes(start_time: str, end_time: str) -> int:
    """Scheduled length in minutes; negative when end precedes start."""
    start = parse_time_of_day(start_time)
    end = parse_time_of_day(end_time)
    return (end.hour * 60 + end.minute) - (start.hour * 60 + start.minute)


def admission_window(day: date, start_time: str, end_time: str):
    interview_start = combine(day, start_time)
    interview_end = combine(day, end_time)
    admission_open = interview_start - timedelta(minutes=ADMISSION_LEAD_MINUTES)
    return admission_open, interview_start, interview_end


def evaluate(day: date, start_time: str, end_time: str, now: datetime) -> WindowEvaluation:
    """Classify ``now`` against the admission window ``[start - 5min, end]``.

    The three states partition time: before the window is TOO_EARLY, both
    bounds are inclusive for ADMITTED, anything after the end is EXPIRED.
    """
    admission_open, interview_start, interview_end = admission_window(day, start_time, end_time)

    if now < admission_open:
        state = WindowState.TOO_EARLY
    elif now > interview_end:
        state = WindowState.EXPIRED
    else:
        state = WindowState.ADMITTED

    return WindowEvaluation(
        state=state,
        window_start=admission_open,
        window_end=interview_end,
        interview_start=interview_start,
    )


def has_ended(day: date, end_time: str, now: datetime) -> bool:
    return now > combine(day, end_time)
