import logging

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy.exc import SQLAlchemyError

from errors import PersistenceError

logger = logging.getLogger(__name__)

# Created here and bound in the app factory so models and services can import
# it without a circular import through app.py.
db = SQLAlchemy()


def commit():
    """Commit the current session, turning storage failures into PersistenceError."""
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error("Database commit failed: %s", e)
        raise PersistenceError() from e
