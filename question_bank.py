"""Question bank storage, plan-filtered serving, popularity and ratings.

Every read is restricted to the tiers the caller's plan can see
(``plans.get_accessible_tiers``) and trimmed to the plan's per-bank or
per-category quota. Serving a bank bumps its popularity; that bump is
best-effort and never fails the read.
"""
import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from errors import NotFoundError, ValidationError
from extensions import commit, db
from models import Interview, QuestionBank
from plans import get_accessible_tiers, get_plan_limits, truncate
from utilities.constants import (
    DIFFICULTIES, GENERATION_CATEGORIES, QUESTION_CATEGORIES, UNLIMITED,
)
from utilities.validators import normalize_email, parse_choice, parse_positive_int

logger = logging.getLogger(__name__)


def _escape_like(value: str) -> str:
    return value.replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_')


def _contains(column, text: str):
    return column.ilike(f"%{_escape_like(text)}%", escape='\\')


def _fuzzy(column, text: str):
    """Every whitespace-separated token, in order, anywhere in the column."""
    tokens = [_escape_like(t) for t in text.split()]
    return column.ilike('%' + '%'.join(tokens) + '%', escape='\\')


def job_title_filter(job_title: str):
    return db.or_(_contains(QuestionBank.job_title, job_title), _fuzzy(QuestionBank.job_title, job_title))


class QuestionBankRepository:
    def __init__(self, generator):
        self.generator = generator

    # -- generation / caching -------------------------------------------------

    def find_existing(self, job_title, category, difficulty, plan_type) -> Optional[QuestionBank]:
        return (QuestionBank.query
                .filter(db.func.lower(QuestionBank.job_title) == job_title.strip().lower(),
                        QuestionBank.category == category,
                        QuestionBank.difficulty == difficulty,
                        QuestionBank.plan_type == plan_type)
                .order_by(QuestionBank.popularity.desc(), QuestionBank.id.asc())
                .first())

    def get_or_create_bank(self, job_title, category, difficulty, plan_type, industry=None, skills=None):
        """Cached bank for the tuple, or a freshly generated one added to the session.

        Returns (bank, created). The caller commits.
        """
        existing = self.find_existing(job_title, category, difficulty, plan_type)
        if existing is not None:
            return existing, False

        result = self.generator.generate_questions(job_title, category, difficulty, plan_type, industry, skills)
        bank = QuestionBank(
            job_title=job_title.strip(),
            category=category,
            difficulty=difficulty,
            plan_type=plan_type,
            questions=result.questions,
            industry=industry,
            skills=list(skills or []),
            is_ai_generated=result.is_ai_generated,
        )
        db.session.add(bank)
        db.session.flush()
        return bank, True

    def warm_job_title(self, job_title: str, plan: str) -> int:
        """Generate every missing bank for `job_title` across the plan's tiers, categories and difficulties.

        Triggered by a job-title lookup that found nothing. Fallback generation
        keeps this bounded even when the AI is unavailable.
        """
        created = 0
        for plan_type in get_accessible_tiers(plan):
            for category in GENERATION_CATEGORIES:
                for difficulty in DIFFICULTIES:
                    _, was_created = self.get_or_create_bank(job_title, category, difficulty, plan_type)
                    created += was_created
        commit()
        logger.info("Warmed %d question banks for %s (%s plan)", created, job_title, plan)
        return created

    def generate_for_job_title(self, job_title, plan, industry=None, skills=None, difficulty='intermediate'):
        job_title = (job_title or '').strip()
        if not job_title:
            raise ValidationError('Job title is required')
        parse_choice(difficulty, DIFFICULTIES, 'difficulty')
        if skills is not None and not isinstance(skills, list):
            raise ValidationError('Skills must be a list of strings')

        banks, created = [], 0
        for plan_type in get_accessible_tiers(plan):
            for category in GENERATION_CATEGORIES:
                bank, was_created = self.get_or_create_bank(
                    job_title, category, difficulty, plan_type, industry, skills)
                banks.append(bank)
                created += was_created
        commit()
        logger.info("Generated %d new of %d question banks for %s", created, len(banks), job_title)
        return banks

    # -- serving ------------------------------------------------------------

    def _increment_popularity(self, banks) -> None:
        ids = [b.id for b in banks]
        if not ids:
            return
        try:
            (QuestionBank.query
             .filter(QuestionBank.id.in_(ids))
             .update({QuestionBank.popularity: QuestionBank.popularity + 1}, synchronize_session=False))
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.warning("Popularity update failed for banks %s: %s", ids, e)

    @staticmethod
    def present(bank: QuestionBank, plan: str) -> dict:
        limits = get_plan_limits(plan)
        data = bank.to_dict()
        limited = truncate(data['questions'], limits.questions_per_bank)
        data.update(
            questions=limited,
            totalQuestions=len(limited),
            originalTotalQuestions=len(data['questions']),
            planAccess={
                'current': plan,
                'maxQuestions': limits.questions_per_bank,
                'hasFullAccess': limits.questions_per_bank == UNLIMITED,
                'canViewMore': len(data['questions']) > len(limited),
                'hasDetailedAnswers': limits.has_detailed_answers,
            },
        )
        return data

    def find_by_job_title(self, job_title, plan, category=None, difficulty=None, limit=50) -> dict:
        job_title = (job_title or '').strip()
        if not job_title:
            raise ValidationError('Job title is required')
        if category:
            parse_choice(category, QUESTION_CATEGORIES, 'category')
        if difficulty:
            parse_choice(difficulty, DIFFICULTIES, 'difficulty')
        limit = parse_positive_int(limit, 50, 'limit')

        def run_query():
            query = QuestionBank.query.filter(
                job_title_filter(job_title),
                QuestionBank.plan_type.in_(get_accessible_tiers(plan)),
            )
            if category:
                query = query.filter(QuestionBank.category == category)
            if difficulty:
                query = query.filter(QuestionBank.difficulty == difficulty)
            return (query.order_by(QuestionBank.popularity.desc(), QuestionBank.generated_at.desc(),
                                   QuestionBank.id.desc())
                    .limit(limit).all())

        banks = run_query()
        if not banks:
            logger.info("No question banks found for %s, generating...", job_title)
            self.warm_job_title(job_title, plan)
            banks = run_query()

        data = [self.present(bank, plan) for bank in banks]
        self._increment_popularity(banks)
        return {
            'data': data,
            'meta': {
                'jobTitle': job_title,
                'userPlan': plan,
                'totalBanks': len(data),
                'planLimits': get_plan_limits(plan).to_dict(),
            },
        }

    def find_by_category(self, category, plan, job_title=None, difficulty=None, limit=20) -> dict:
        parse_choice(category, QUESTION_CATEGORIES, 'category')
        if difficulty:
            parse_choice(difficulty, DIFFICULTIES, 'difficulty')
        limit = parse_positive_int(limit, 20, 'limit')

        query = QuestionBank.query.filter(
            QuestionBank.category == category,
            QuestionBank.plan_type.in_(get_accessible_tiers(plan)),
        )
        if job_title:
            query = query.filter(_contains(QuestionBank.job_title, job_title))
        if difficulty:
            query = query.filter(QuestionBank.difficulty == difficulty)
        banks = query.order_by(QuestionBank.popularity.desc(), QuestionBank.id.desc()).limit(limit).all()

        per_category = get_plan_limits(plan).questions_per_category
        questions = [
            dict(q, jobTitle=bank.job_title, difficulty=bank.difficulty, source=bank.id)
            for bank in banks
            for q in truncate(bank.questions or [], per_category)
        ]
        self._increment_popularity(banks)
        return {
            'data': questions,
            'meta': {
                'category': category,
                'totalQuestions': len(questions),
                'userPlan': plan,
                'planLimits': get_plan_limits(plan).to_dict(),
            },
        }

    def search(self, text, plan, category=None, difficulty=None, limit=20) -> dict:
        text = (text or '').strip()
        if not text:
            raise ValidationError('Search query is required')
        limit = parse_positive_int(limit, 20, 'limit')

        query = QuestionBank.query.filter(
            QuestionBank.plan_type.in_(get_accessible_tiers(plan)),
            db.or_(
                _contains(QuestionBank.job_title, text),
                _contains(QuestionBank.industry, text),
                _contains(db.cast(QuestionBank.skills, db.Text), text),
                _contains(db.cast(QuestionBank.questions, db.Text), text),
                _fuzzy(QuestionBank.job_title, text),
            ),
        )
        if category:
            query = query.filter(QuestionBank.category == category)
        if difficulty:
            query = query.filter(QuestionBank.difficulty == difficulty)
        banks = query.order_by(QuestionBank.popularity.desc(), QuestionBank.id.desc()).limit(limit).all()

        data = [self.present(bank, plan) for bank in banks]
        self._increment_popularity(banks)
        return {'data': data, 'meta': {'searchQuery': text, 'totalResults': len(data), 'userPlan': plan}}

    def popular(self, plan, limit=10) -> dict:
        limit = parse_positive_int(limit, 10, 'limit')
        banks = (QuestionBank.query
                 .filter(QuestionBank.plan_type.in_(get_accessible_tiers(plan)))
                 .order_by(QuestionBank.popularity.desc(), QuestionBank.ratings_average.desc(),
                           QuestionBank.id.desc())
                 .limit(limit).all())
        data = [self.present(bank, plan) for bank in banks]
        return {'data': data, 'meta': {'userPlan': plan, 'totalBanks': len(data)}}

    def job_titles(self, plan, email=None) -> dict:
        """Known job titles (banks the plan can see plus the recruiter's interviews) with usage stats."""
        banks = QuestionBank.query.filter(QuestionBank.plan_type.in_(get_accessible_tiers(plan))).all()
        stats = {}
        for bank in banks:
            entry = stats.setdefault(bank.job_title.lower(), {
                'title': bank.job_title, 'popularity': 0, 'questionCount': 0, 'categories': set(),
            })
            entry['popularity'] += bank.popularity
            entry['questionCount'] += bank.total_questions
            entry['categories'].add(bank.category)

        email = normalize_email(email)
        if email:
            rows = (db.session.query(Interview.job_title)
                    .filter(Interview.creator_email == email).distinct().all())
            for (title,) in rows:
                stats.setdefault(title.lower(), {
                    'title': title, 'popularity': 0, 'questionCount': 0, 'categories': set(),
                })

        titles = [
            dict(entry, categories=sorted(entry['categories']), hasQuestions=bool(entry['categories']))
            for entry in stats.values()
        ]
        titles.sort(key=lambda t: (-t['popularity'], t['title'].lower()))
        return {'data': titles, 'meta': {'totalTitles': len(titles), 'userPlan': plan}}

    # -- ratings ------------------------------------------------------------

    def rate(self, bank_id, rating) -> dict:
        if isinstance(rating, bool) or not isinstance(rating, (int, float)) or not 1 <= rating <= 5:
            raise ValidationError('Rating must be between 1 and 5')
        try:
            bank = db.session.get(QuestionBank, int(bank_id))
        except (TypeError, ValueError):
            bank = None
        if bank is None:
            raise NotFoundError('Question bank not found')

        total = bank.ratings_average * bank.ratings_count
        bank.ratings_count += 1
        bank.ratings_average = (total + rating) / bank.ratings_count
        commit()
        return {'average': bank.ratings_average, 'count': bank.ratings_count}
