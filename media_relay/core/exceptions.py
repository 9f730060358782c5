"""Exceptions raised by the request engine and its backends."""
from typing import Optional


class MediaRelayError(Exception):
    """Base error for the service."""


class ConfigurationError(MediaRelayError):
    """Missing or invalid configuration."""


class ServiceError(MediaRelayError):
    """A downstream backend call failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class SubmissionError(MediaRelayError):
    """The request cannot be submitted to its backend (missing id, no server...)."""


class RequestNotFoundError(MediaRelayError):
    def __init__(self, request_id: int):
        super().__init__(f"Request {request_id} not found")
        self.request_id = request_id


class InvalidTransitionError(MediaRelayError):
    """Status change not allowed by the request lifecycle."""
