"""Subscription plans: tier lookup, quota table and question-bank visibility."""
import logging
from dataclasses import asdict, dataclass

from extensions import commit, db
from errors import QuotaExceededError, ValidationError
from models import Interview, UserPlan
from utilities.constants import (
    PLAN_ENTERPRISE, PLAN_FREE, PLAN_PRO, PLAN_TYPES, UNLIMITED, UNLIMITED_GENERATION_COUNT,
)
from utilities.validators import normalize_email

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlanLimits:
    max_interviews: int
    questions_per_bank: int
    questions_per_category: int
    max_job_titles: int
    has_ai_generation: bool
    has_detailed_answers: bool

    def to_dict(self):
        data = asdict(self)
        return {
            'maxInterviews': data['max_interviews'],
            'questionsPerBank': data['questions_per_bank'],
            'questionsPerCategory': data['questions_per_category'],
            'maxJobTitles': data['max_job_titles'],
            'hasAIGeneration': data['has_ai_generation'],
            'hasDetailedAnswers': data['has_detailed_answers'],
        }


PLAN_LIMITS = {
    PLAN_FREE: PlanLimits(
        max_interviews=3, questions_per_bank=15, questions_per_category=15,
        max_job_titles=10, has_ai_generation=False, has_detailed_answers=False,
    ),
    PLAN_PRO: PlanLimits(
        max_interviews=15, questions_per_bank=35, questions_per_category=35,
        max_job_titles=50, has_ai_generation=True, has_detailed_answers=True,
    ),
    PLAN_ENTERPRISE: PlanLimits(
        max_interviews=UNLIMITED, questions_per_bank=UNLIMITED, questions_per_category=UNLIMITED,
        max_job_titles=UNLIMITED, has_ai_generation=True, has_detailed_answers=True,
    ),
}

_ACCESSIBLE_TIERS = {
    PLAN_FREE: (PLAN_FREE,),
    PLAN_PRO: (PLAN_FREE, PLAN_PRO),
    PLAN_ENTERPRISE: (PLAN_FREE, PLAN_PRO, PLAN_ENTERPRISE),
}


def get_plan_limits(plan: str) -> PlanLimits:
    return PLAN_LIMITS.get(plan, PLAN_LIMITS[PLAN_FREE])


def get_accessible_tiers(plan: str) -> list:
    """Tiers whose question banks a user on `plan` may read (own tier and below)."""
    return list(_ACCESSIBLE_TIERS.get(plan, _ACCESSIBLE_TIERS[PLAN_FREE]))


def generation_count(plan: str) -> int:
    """Number of questions to generate for one bank of `plan`."""
    per_category = get_plan_limits(plan).questions_per_category
    return UNLIMITED_GENERATION_COUNT if per_category == UNLIMITED else per_category


def truncate(items: list, limit: int) -> list:
    return list(items) if limit == UNLIMITED else list(items)[:limit]


def resolve_plan(email) -> str:
    """Plan name for `email`; Free when unknown. Never writes."""
    email = normalize_email(email)
    if not email:
        return PLAN_FREE
    record = UserPlan.query.filter_by(email=email).first()
    return record.plan if record else PLAN_FREE


def get_user_plan(email) -> str:
    """Plan name for `email`, creating a Free record on first fetch."""
    email = normalize_email(email)
    if not email:
        return PLAN_FREE
    record = UserPlan.query.filter_by(email=email).first()
    if record is None:
        record = UserPlan(email=email, plan=PLAN_FREE)
        db.session.add(record)
        commit()
        logger.info("Created Free plan record for %s", email)
    return record.plan


def set_user_plan(email, plan) -> UserPlan:
    email = normalize_email(email)
    if not email:
        raise ValidationError('Email is required')
    if plan not in PLAN_TYPES:
        raise ValidationError('Invalid plan specified')

    record = UserPlan.query.filter_by(email=email).first()
    if record is None:
        record = UserPlan(email=email, plan=plan)
        db.session.add(record)
    else:
        record.plan = plan
    commit()
    logger.info("Plan for %s set to %s", email, plan)
    return record


def check_interview_quota(email) -> str:
    """Raise QuotaExceededError when `email` already owns its plan's maximum of interviews.

    All interviews count regardless of status or date. Returns the resolved plan.
    """
    email = normalize_email(email)
    plan = resolve_plan(email)
    limits = get_plan_limits(plan)
    if limits.max_interviews == UNLIMITED:
        return plan

    count = Interview.query.filter_by(creator_email=email).count()
    if count >= limits.max_interviews:
        raise QuotaExceededError(
            f"Maximum interview limit reached for {plan} plan ({limits.max_interviews} interviews)",
            payload={'plan': plan, 'limit': limits.max_interviews},
        )
    return plan
