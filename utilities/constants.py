# Interview lifecycle
STATUS_NOT_STARTED = 'not_started'
STATUS_IN_PROGRESS = 'in_progress'
STATUS_COMPLETED = 'completed'
STATUS_EXPIRED = 'expired'
INTERVIEW_STATUSES = (STATUS_NOT_STARTED, STATUS_IN_PROGRESS, STATUS_COMPLETED, STATUS_EXPIRED)

INTERVIEW_TYPES = ('basic', 'intermediate', 'hard')

# Candidates may join this many minutes before the scheduled start
ADMISSION_LEAD_MINUTES = 5

RECORD_STATUSES = ('scheduled', 'in_progress', 'completed', 'cancelled')

# Subscription tiers, lowest first
PLAN_FREE = 'Free'
PLAN_PRO = 'Pro'
PLAN_ENTERPRISE = 'Enterprise'
PLAN_TYPES = (PLAN_FREE, PLAN_PRO, PLAN_ENTERPRISE)

UNLIMITED = -1

# Question banks
GENERATION_CATEGORIES = ('technical', 'behavioral', 'situational', 'hr')
QUESTION_CATEGORIES = GENERATION_CATEGORIES + ('general',)
DIFFICULTIES = ('beginner', 'intermediate', 'advanced')

# Minimum share of the requested count an AI answer must yield to be used
AI_ACCEPTANCE_RATIO = 0.7
AI_ACCEPTANCE_CAP = 10

# Questions generated for a tier whose per-category quota is unlimited
UNLIMITED_GENERATION_COUNT = 50

# Interview seeding: questions per minute by interview type, clamped
QUESTIONS_PER_MINUTE = {
    'basic': 0.15,
    'intermediate': 0.2,
    'hard': 0.25,
}
MIN_SEEDED_QUESTIONS = 5
MAX_SEEDED_QUESTIONS = 25
