"""
Slot Command Repository Interface

Lives inside a unit of work: every call shares the UoW transaction, and
`get_for_update` holds the slot row lock until commit or rollback.
"""

from abc import ABC, abstractmethod

from src.service.signup.domain.entity.slot_entity import Day, Slot


class ISlotCommandRepo(ABC):
    @abstractmethod
    async def get_for_update(self, *, slot_id: int) -> Slot | None:
        """
        Lock and read the slot row (SELECT ... FOR UPDATE).

        Raises:
            BookingUnavailableError: lock could not be acquired in time
        """
        pass

    @abstractmethod
    async def get_day(self, *, day_id: int) -> Day | None:
        pass

    @abstractmethod
    async def save(self, *, slot: Slot) -> None:
        """Persist filled_count and status of a locked slot"""
        pass
