from datetime import date

import attrs

from src.service.signup.domain.enum.signup_status import SignupErrorKind, SlotStatus


@attrs.define
class Event:
    id: int
    public_id: str
    name: str
    timezone: str = 'UTC'
    shift_label: str = ''
    roster_spreadsheet_id: str | None = None


@attrs.define
class SevaType:
    id: int
    event_id: int
    name: str
    description: str = ''


@attrs.define
class Day:
    id: int
    event_id: int
    date: date
    is_closed: bool = False


@attrs.define
class Slot:
    """
    Capacity-limited unit of volunteer work.

    filled_count never exceeds capacity, and status is FULL exactly when
    filled_count == capacity unless the slot was administratively CLOSED.
    A cancellation always reopens the slot to ACTIVE.
    Only mutated while the slot row is locked.
    """

    id: int
    day_id: int
    seva_type_id: int
    capacity: int
    filled_count: int = 0
    status: SlotStatus = SlotStatus.ACTIVE
    label: str = ''

    @property
    def remaining(self) -> int:
        return max(self.capacity - self.filled_count, 0)

    def booking_error(self) -> SignupErrorKind | None:
        # Full wins over closed so a full slot always reports SLOT_FULL
        if self.filled_count >= self.capacity:
            return SignupErrorKind.SLOT_FULL
        if self.status != SlotStatus.ACTIVE:
            return SignupErrorKind.SLOT_CLOSED
        return None

    def take_one(self) -> 'Slot':
        filled = self.filled_count + 1
        if filled > self.capacity:
            raise ValueError(f'Slot {self.id} would exceed capacity {self.capacity}')
        status = SlotStatus.FULL if filled == self.capacity else self.status
        return attrs.evolve(self, filled_count=filled, status=status)

    def release_one(self) -> 'Slot':
        return attrs.evolve(
            self, filled_count=max(self.filled_count - 1, 0), status=SlotStatus.ACTIVE
        )
