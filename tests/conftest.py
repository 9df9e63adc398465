import os
import sys
import pytest
import fakeredis

# Ensure repo root is on sys.path so tests can import top-level modules (e.g., interview_logic.py)
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

# Ensure env for create_app
os.environ.setdefault('DATABASE_URL', 'sqlite:///:memory:')
os.environ.setdefault('REDIS_URL', 'redis://localhost:6379/0')
os.environ.setdefault('DISABLE_AI', 'true')


@pytest.fixture()
def fake_redis_server():
    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture(autouse=True)
def patch_redis(monkeypatch, fake_redis_server):
    import redis
    monkeypatch.setattr(redis, 'from_url', lambda *args, **kwargs: fake_redis_server)
    yield


@pytest.fixture()
def app():
    from app import create_app
    application = create_app({
        'TESTING': True,
        'AI_ENABLED': False,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
    })
    return application


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def db_session(app):
    from extensions import db
    with app.app_context():
        yield db.session


class FakeGenerator:
    """Stands in for QuestionBankGenerator where only interview seeding and scoring matter."""

    def __init__(self, questions=None, score=7):
        self.questions = questions or []
        self.score = score
        self.seed_calls = []

    def generate_interview_questions(self, interview_data):
        self.seed_calls.append(interview_data)
        return list(self.questions)

    def evaluate_response(self, question, answer, job_context):
        return self.score


@pytest.fixture()
def fake_generator():
    return FakeGenerator(questions=['Tell me about yourself.', 'Describe a recent project.'])


def _interview_payload(**overrides):
    payload = {
        'applicantName': 'Ada Lovelace',
        'companyName': 'Analytical Engines',
        'jobTitle': 'Backend Engineer',
        'jobDescription': 'Build and operate APIs.',
        'resumeText': 'Ten years of Python.',
        'interviewDate': '2024-01-01',
        'startTime': '14:00',
        'endTime': '15:00',
        'email': 'recruiter@example.com',
        'userId': 'user-1',
        'interviewType': 'intermediate',
        'skills': ['python', 'sql'],
    }
    payload.update(overrides)
    return payload


@pytest.fixture()
def interview_payload():
    return _interview_payload


@pytest.fixture()
def make_interview(db_session):
    """Create interviews through the real service, bypassing the AI."""
    import interview_logic

    def _make(**overrides):
        return interview_logic.create_interview(_interview_payload(**overrides))
    return _make
