import logging
import os

import redis
from dotenv import load_dotenv
from flask import Flask
from flask_cors import CORS

load_dotenv()  # Load environment variables from .env file BEFORE importing config and routes

import config
import routes
from extensions import db
from question_generator import QuestionBankGenerator
from utilities.llm import GeminiClient
from utilities.rate_limit import RedisRateLimiter, TokenBucket

logger = logging.getLogger(__name__)


def _connect_redis(redis_url):
    try:
        r = redis.from_url(redis_url, decode_responses=True)
        r.ping()  # Check connection
        logger.info("Successfully connected to Redis.")
        return r
    except (redis.exceptions.RedisError, TypeError, ValueError) as e:
        logger.warning("Could not connect to Redis, falling back to in-process rate limiting: %s", e)
        return None


def _build_rate_limiter(redis_conn):
    # One limiter per app; Redis-backed when available so every worker shares the budget
    if redis_conn is not None:
        return RedisRateLimiter(redis_conn, limit=config.AI_RATE_LIMIT,
                                window_seconds=config.AI_RATE_WINDOW_SECONDS)
    return TokenBucket(capacity=config.AI_RATE_LIMIT, refill_seconds=float(config.AI_RATE_WINDOW_SECONDS))


def create_app(test_config=None):
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    app = Flask(__name__)
    CORS(app)

    app.config['AI_ENABLED'] = not config.DISABLE_AI
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    if test_config:
        app.config.update(test_config)

    # Configure the database from the environment variable
    database_url = app.config.get('SQLALCHEMY_DATABASE_URI') or os.environ.get('DATABASE_URL')
    if not database_url:
        raise RuntimeError("DATABASE_URL is not set. Please create a .env file or set the environment variable.")

    # Heroku/Render use postgres://, but SQLAlchemy needs postgresql://
    if database_url.startswith("postgres://"):
        database_url = database_url.replace("postgres://", "postgresql://", 1)
    app.config['SQLALCHEMY_DATABASE_URI'] = database_url

    db.init_app(app)

    r = _connect_redis(os.environ.get('REDIS_URL', config.REDIS_URL))

    client = GeminiClient(rate_limiter=_build_rate_limiter(r))
    generator = QuestionBankGenerator(client, ai_enabled=app.config['AI_ENABLED'])
    if not generator.ai_enabled:
        logger.info("AI generation disabled; serving fallback questions only.")

    routes.init_app(app, r, db, generator)

    # Create database tables if they don't exist
    with app.app_context():
        db.create_all()

    return app


if __name__ == '__main__':
    app = create_app()
    app.run(port=5001, debug=True)
