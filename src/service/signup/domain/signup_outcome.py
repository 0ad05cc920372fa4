"""
Typed results of reserve and cancel.

Expected failures (full, duplicate, bad token, ...) come back as an outcome
with `error` set; exceptions are left for infrastructure faults.
"""

import attrs

from src.service.signup.domain.entity.signup_entity import Signup
from src.service.signup.domain.enum.signup_status import SignupErrorKind


ERROR_MESSAGES: dict[SignupErrorKind, str] = {
    SignupErrorKind.SLOT_NOT_FOUND: 'Slot not found',
    SignupErrorKind.SLOT_FULL: 'This slot is full',
    SignupErrorKind.SLOT_CLOSED: 'This slot is closed for signups',
    SignupErrorKind.DAY_CLOSED: 'Signups for this day are closed',
    SignupErrorKind.DUPLICATE_SIGNUP: 'You are already signed up for this slot',
    SignupErrorKind.INVALID_INPUT: 'Invalid input',
    SignupErrorKind.INVALID_TOKEN: 'Cancellation link is not valid',
    SignupErrorKind.ALREADY_CANCELLED: 'This signup was already cancelled',
}


@attrs.define(frozen=True)
class ReserveOutcome:
    signup: Signup | None = None
    cancel_token: str | None = None
    error: SignupErrorKind | None = None
    message: str = ''

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, *, signup: Signup, cancel_token: str) -> 'ReserveOutcome':
        return cls(signup=signup, cancel_token=cancel_token)

    @classmethod
    def failure(cls, error: SignupErrorKind, message: str | None = None) -> 'ReserveOutcome':
        return cls(error=error, message=message or ERROR_MESSAGES[error])


@attrs.define(frozen=True)
class CancelOutcome:
    signup: Signup | None = None
    error: SignupErrorKind | None = None
    message: str = ''

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, *, signup: Signup) -> 'CancelOutcome':
        return cls(signup=signup)

    @classmethod
    def failure(cls, error: SignupErrorKind, message: str | None = None) -> 'CancelOutcome':
        return cls(error=error, message=message or ERROR_MESSAGES[error])
