# Typed failures raised by domain code.
# Only the exception handlers in main.py turn these into HTTP responses ({"error": message}).
from typing import Dict, Optional


class ApiError(Exception):
    """Base class; subclasses pin the status code."""

    status_code: int = 500

    def __init__(self, message: str, headers: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.message = message
        self.headers = headers


class ValidationError(ApiError):
    status_code = 400


class Unauthenticated(ApiError):
    status_code = 401

    def __init__(self, message: str = "Missing token"):
        super().__init__(message, headers={"WWW-Authenticate": "Bearer"})


class Forbidden(ApiError):
    status_code = 403

    def __init__(self, message: str = "Forbidden"):
        super().__init__(message)


class NotFound(ApiError):
    status_code = 404


class Conflict(ApiError):
    status_code = 409


class RateLimited(ApiError):
    status_code = 429

    def __init__(self, scope: str, retry_after: int):
        super().__init__(f"Too many requests ({scope}); retry in {retry_after}s", headers={"Retry-After": str(retry_after)})
        self.scope = scope
        self.retry_after = retry_after


class InternalError(ApiError):
    status_code = 500

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)
