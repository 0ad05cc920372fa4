from abc import ABC, abstractmethod

from src.service.signup.domain.entity.signup_entity import SignupDetail
from src.service.signup.domain.entity.slot_entity import Event


class IRosterSyncClient(ABC):
    @abstractmethod
    async def ensure_spreadsheet(self, *, event: Event) -> tuple[str, bool]:
        """Spreadsheet id for the event's roster, and whether it was just created."""
        pass

    @abstractmethod
    async def upsert(self, *, spreadsheet_id: str, detail: SignupDetail) -> str:
        """Find-or-create the signup's roster row. Returns the row reference."""
        pass

    @abstractmethod
    async def mark_cancelled(self, *, spreadsheet_id: str, detail: SignupDetail) -> None:
        pass
