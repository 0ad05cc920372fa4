from datetime import datetime, timezone
from uuid import UUID

import attrs

from src.platform.types.uuid7 import new_uuid7
from src.service.signup.domain.entity.slot_entity import Day, Event, SevaType, Slot
from src.service.signup.domain.enum.signup_status import SignupStatus
from src.service.signup.domain.value_object.volunteer import Volunteer


@attrs.define
class Signup:
    id: UUID
    slot_id: int
    name: str
    email: str
    cancel_token_hash: str
    phone: str | None = None
    notes: str | None = None
    status: SignupStatus = SignupStatus.CONFIRMED
    created_at: datetime | None = None
    cancelled_at: datetime | None = None

    @classmethod
    def create(cls, *, slot_id: int, volunteer: Volunteer, cancel_token_hash: str) -> 'Signup':
        return cls(
            id=new_uuid7(),
            slot_id=slot_id,
            name=volunteer.name,
            email=volunteer.email,
            phone=volunteer.phone,
            notes=volunteer.notes,
            cancel_token_hash=cancel_token_hash,
            status=SignupStatus.CONFIRMED,
            created_at=datetime.now(timezone.utc),
        )

    @property
    def is_cancelled(self) -> bool:
        return self.status == SignupStatus.CANCELLED

    def cancel(self) -> 'Signup':
        if self.is_cancelled:
            raise ValueError(f'Signup {self.id} is already cancelled')
        return attrs.evolve(
            self, status=SignupStatus.CANCELLED, cancelled_at=datetime.now(timezone.utc)
        )


@attrs.define
class SignupDetail:
    """A signup together with everything the roster row and emails need."""

    signup: Signup
    slot: Slot
    day: Day
    event: Event
    seva_type: SevaType


@attrs.define(frozen=True)
class SlotView:
    slot_id: int
    seva_name: str
    label: str
    capacity: int
    filled_count: int
    remaining: int
    status: str
