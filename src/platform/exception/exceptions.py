class CustomBaseError(Exception):
    """Base class for all custom exceptions - controls logging behavior in @Logger.io"""

    error_code = 'INTERNAL_ERROR'

    def __init__(self, message: str, status_code: int = 500) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class DomainError(CustomBaseError):
    error_code = 'DOMAIN_ERROR'

    def __init__(self, message: str, status_code: int = 400) -> None:
        super().__init__(message, status_code)


class NotFoundError(CustomBaseError):
    error_code = 'NOT_FOUND'

    def __init__(self, message: str) -> None:
        super().__init__(message, 404)


class ConflictError(CustomBaseError):
    error_code = 'CONFLICT'

    def __init__(self, message: str) -> None:
        super().__init__(message, 409)


class RateLimitExceededError(CustomBaseError):
    error_code = 'RATE_LIMIT_EXCEEDED'

    def __init__(self, message: str = 'Too many requests, please try again later') -> None:
        super().__init__(message, 429)


class BookingUnavailableError(CustomBaseError):
    """Lock wait or transaction timed out; nothing was written and the caller may retry."""

    error_code = 'BOOKING_UNAVAILABLE'

    def __init__(self, message: str = 'Booking is temporarily unavailable, please retry') -> None:
        super().__init__(message, 503)


class PermanentJobError(CustomBaseError):
    """Job can never succeed (unknown kind, signup gone); escalate without retrying."""

    error_code = 'PERMANENT_JOB_FAILURE'

    def __init__(self, message: str) -> None:
        super().__init__(message, 422)
