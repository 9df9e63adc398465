"""Error taxonomy shared by the services and the HTTP layer.

Every error a caller may observe derives from ``ServiceError`` and carries the
HTTP status it maps to plus an optional payload merged into the JSON body.
``UpstreamGenerationError`` is the exception: it is internal to question
generation and is always converted into fallback output.
"""
from typing import Optional


class ServiceError(Exception):
    status_code = 500

    def __init__(self, message: str, payload: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.payload = payload or {}

    def to_dict(self):
        return {'success': False, 'error': self.message, **self.payload}


class ValidationError(ServiceError):
    """Missing or malformed input. Raised before any write."""
    status_code = 400


class InvalidTransitionError(ValidationError):
    """Requested status change is not allowed by the interview state machine."""
    status_code = 409


class NotFoundError(ServiceError):
    status_code = 404


class QuotaExceededError(ServiceError):
    status_code = 403


class NotYetAvailableError(ServiceError):
    """Access attempted before the admission window opened."""
    status_code = 403


class ExpiredError(ServiceError):
    """Access attempted after the interview window closed."""
    status_code = 410


class PersistenceError(ServiceError):
    status_code = 500

    def __init__(self, message: str = 'Internal storage error', payload: Optional[dict] = None):
        super().__init__(message, payload)


class UpstreamGenerationError(Exception):
    """AI backend failure or unusable AI output. Never surfaced to callers."""


class ThrottledError(UpstreamGenerationError):
    """Upstream AI signalled throttling (HTTP 429) and retries were exhausted."""
