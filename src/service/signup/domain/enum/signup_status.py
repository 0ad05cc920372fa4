from enum import StrEnum


class SlotStatus(StrEnum):
    ACTIVE = 'ACTIVE'
    FULL = 'FULL'
    CLOSED = 'CLOSED'


class SignupStatus(StrEnum):
    CONFIRMED = 'CONFIRMED'
    CANCELLED = 'CANCELLED'


class SignupErrorKind(StrEnum):
    SLOT_NOT_FOUND = 'SLOT_NOT_FOUND'
    SLOT_FULL = 'SLOT_FULL'
    SLOT_CLOSED = 'SLOT_CLOSED'
    DAY_CLOSED = 'DAY_CLOSED'
    DUPLICATE_SIGNUP = 'DUPLICATE_SIGNUP'
    INVALID_INPUT = 'INVALID_INPUT'
    INVALID_TOKEN = 'INVALID_TOKEN'
    ALREADY_CANCELLED = 'ALREADY_CANCELLED'
