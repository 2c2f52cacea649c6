from __future__ import annotations
from typing import Optional


class InferenceError(Exception):
    """Base class for alt text inference failures."""


class InferenceTransientError(InferenceError):
    """
    Retryable, per attempt: rate limits, non-2xx replies, network hiccups.
    Absorbed by the retry loop until the attempt budget runs out.
    """


class RateLimited(InferenceTransientError):
    def __init__(self, status_code: int = 429):
        super().__init__(f"Endpoint rate limited the request (HTTP {status_code})")
        self.status_code = status_code


class NonSuccessStatus(InferenceTransientError):
    def __init__(self, status_code: int, reason: str = ""):
        super().__init__(f"API error: {status_code} {reason}".rstrip())
        self.status_code = status_code
        self.reason = reason


class TransportFailure(InferenceTransientError):
    def __init__(self, cause: Exception):
        super().__init__(f"Transport failure: {cause!r}")
        self.cause = cause


class RetriesExhausted(InferenceError):
    """Terminal: the attempt budget ran out."""

    def __init__(self, message: str, last_error: Optional[InferenceError] = None):
        super().__init__(message)
        self.last_error = last_error


class RateLimitExhausted(RetriesExhausted):
    pass


class TransportFailureExhausted(RetriesExhausted):
    pass


class NoResponseObtained(RetriesExhausted):
    pass


class NoDescriptionProduced(InferenceError):
    """
    Terminal, never retried: the endpoint answered 2xx but the reply holds no
    generated text (missing field, empty string or a body that is not JSON).
    """


EmptyDescription = NoDescriptionProduced


class SecretNotFound(InferenceError):
    """No credential resolved for an endpoint that needs one."""
