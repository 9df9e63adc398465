from datetime import datetime

from sqlalchemy import event

from extensions import db
from utilities.constants import PLAN_FREE, STATUS_NOT_STARTED

# Note: The db instance is created in extensions.py
# and initialized in the app factory to avoid circular imports.


def _iso(value):
    return value.isoformat() if value else None


class Interview(db.Model):
    """A scheduled, link-addressable interview owned by a recruiter."""
    __tablename__ = 'interviews'

    id = db.Column(db.Integer, primary_key=True)
    applicant_name = db.Column(db.String(200), nullable=False)
    company_name = db.Column(db.String(200), nullable=False)
    job_title = db.Column(db.String(200), nullable=False, index=True)
    job_description = db.Column(db.Text, nullable=False)
    resume_text = db.Column(db.Text, nullable=False)
    additional_notes = db.Column(db.Text, nullable=False, default='')

    interview_link = db.Column(db.String(300), nullable=False, unique=True)
    access_token = db.Column(db.String(128), nullable=False, unique=True)

    interview_date = db.Column(db.Date, nullable=False, index=True)
    start_time = db.Column(db.String(5), nullable=False)
    end_time = db.Column(db.String(5), nullable=False)
    interview_type = db.Column(db.String(20), nullable=False)

    skills = db.Column(db.JSON, nullable=False, default=list)
    ai_generated_questions = db.Column(db.JSON, nullable=False, default=list)
    custom_questions = db.Column(db.JSON, nullable=False, default=list)

    status = db.Column(db.String(20), nullable=False, default=STATUS_NOT_STARTED)
    score = db.Column(db.Float, nullable=False, default=0)
    completed_at = db.Column(db.DateTime, nullable=True)

    created_by = db.Column(db.String(200), nullable=False)
    creator_email = db.Column(db.String(200), nullable=False, index=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        db.Index('ix_interviews_creator_status', 'creator_email', 'status'),
    )

    @property
    def time_slot(self):
        return f"{self.start_time} - {self.end_time}"

    def to_dict(self):
        return {
            'id': self.id,
            'applicantName': self.applicant_name,
            'companyName': self.company_name,
            'jobTitle': self.job_title,
            'jobDescription': self.job_description,
            'resumeText': self.resume_text,
            'additionalNotes': self.additional_notes,
            'interviewLink': self.interview_link,
            'interviewDate': _iso(self.interview_date),
            'startTime': self.start_time,
            'endTime': self.end_time,
            'interviewType': self.interview_type,
            'skills': list(self.skills or []),
            'aiGeneratedQuestions': list(self.ai_generated_questions or []),
            'customQuestions': list(self.custom_questions or []),
            'status': self.status,
            'score': self.score,
            'completedAt': _iso(self.completed_at),
            'createdBy': self.created_by,
            'creatorEmail': self.creator_email,
            'createdAt': _iso(self.created_at),
            'accessToken': self.access_token,
        }

    def __repr__(self):
        return f'<Interview {self.id} for {self.applicant_name} ({self.status})>'


class InterviewRecord(db.Model):
    """Outcome of one completed interview attempt. Written once, never updated."""
    __tablename__ = 'interview_records'

    id = db.Column(db.Integer, primary_key=True)
    interview_link = db.Column(db.String(300), nullable=False, index=True)
    applicant_name = db.Column(db.String(200), nullable=False)
    job_title = db.Column(db.String(200), nullable=False)
    company_name = db.Column(db.String(200), nullable=False)
    start_time = db.Column(db.DateTime, nullable=False)
    end_time = db.Column(db.DateTime, nullable=True)
    duration = db.Column(db.Float, nullable=False, default=0)  # minutes
    questions = db.Column(db.JSON, nullable=False, default=list)
    overall_score = db.Column(db.Float, nullable=False, default=0)
    feedback = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(20), nullable=False, default='scheduled')
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'interviewLink': self.interview_link,
            'applicantName': self.applicant_name,
            'jobTitle': self.job_title,
            'companyName': self.company_name,
            'startTime': _iso(self.start_time),
            'endTime': _iso(self.end_time),
            'duration': self.duration,
            'questions': list(self.questions or []),
            'overallScore': self.overall_score,
            'feedback': self.feedback,
            'status': self.status,
            'createdAt': _iso(self.created_at),
        }

    def __repr__(self):
        return f'<InterviewRecord {self.id} for {self.interview_link}>'


class UserPlan(db.Model):
    """Subscription tier of a recruiter, keyed by lowercase email."""
    __tablename__ = 'user_plans'

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(200), nullable=False, unique=True)
    plan = db.Column(db.String(20), nullable=False, default=PLAN_FREE)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {'email': self.email, 'plan': self.plan, 'updatedAt': _iso(self.updated_at)}

    def __repr__(self):
        return f'<UserPlan {self.email}: {self.plan}>'


class QuestionBank(db.Model):
    """Cached questions for one (job title, category, difficulty, plan tier)."""
    __tablename__ = 'question_banks'

    id = db.Column(db.Integer, primary_key=True)
    job_title = db.Column(db.String(200), nullable=False, index=True)
    category = db.Column(db.String(20), nullable=False)
    difficulty = db.Column(db.String(20), nullable=False)
    plan_type = db.Column(db.String(20), nullable=False, default=PLAN_FREE)
    questions = db.Column(db.JSON, nullable=False, default=list)
    industry = db.Column(db.String(200), nullable=True, index=True)
    skills = db.Column(db.JSON, nullable=False, default=list)
    total_questions = db.Column(db.Integer, nullable=False, default=0)
    is_ai_generated = db.Column(db.Boolean, nullable=False, default=True)
    generated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    last_updated = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    popularity = db.Column(db.Integer, nullable=False, default=0)
    ratings_average = db.Column(db.Float, nullable=False, default=0)
    ratings_count = db.Column(db.Integer, nullable=False, default=0)

    __table_args__ = (
        db.Index('ix_question_banks_lookup', 'job_title', 'plan_type', 'difficulty'),
        db.Index('ix_question_banks_industry_plan', 'industry', 'plan_type'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'jobTitle': self.job_title,
            'category': self.category,
            'difficulty': self.difficulty,
            'planType': self.plan_type,
            'questions': [dict(q) for q in (self.questions or [])],
            'industry': self.industry,
            'skills': list(self.skills or []),
            'totalQuestions': self.total_questions,
            'isAIGenerated': self.is_ai_generated,
            'generatedAt': _iso(self.generated_at),
            'lastUpdated': _iso(self.last_updated),
            'popularity': self.popularity,
            'ratings': {'average': self.ratings_average, 'count': self.ratings_count},
        }

    def __repr__(self):
        return f'<QuestionBank {self.id} {self.job_title}/{self.category}/{self.difficulty}/{self.plan_type}>'


@event.listens_for(QuestionBank, 'before_insert')
@event.listens_for(QuestionBank, 'before_update')
def _recount_questions(mapper, connection, bank):
    bank.total_questions = len(bank.questions or [])
    bank.last_updated = datetime.utcnow()
