from abc import ABC, abstractmethod
from datetime import date
from uuid import UUID

from src.service.signup.domain.entity.signup_entity import SignupDetail, SlotView


class ISignupQueryRepo(ABC):
    @abstractmethod
    async def get_detail(self, *, signup_id: UUID) -> SignupDetail | None:
        """Signup with its slot, day, event and seva type, read fresh"""
        pass

    @abstractmethod
    async def list_day_slots(self, *, event_public_id: str, day: date) -> list[SlotView]:
        pass

    @abstractmethod
    async def set_roster_spreadsheet_id(self, *, event_id: int, spreadsheet_id: str) -> str:
        """Store the id unless one is already set. Returns the id that ended up stored."""
        pass
