from abc import ABC, abstractmethod
from uuid import UUID

from src.service.signup.domain.entity.signup_entity import Signup


class ISignupCommandRepo(ABC):
    @abstractmethod
    async def find_confirmed(self, *, slot_id: int, email: str) -> Signup | None:
        """CONFIRMED signup for this slot and normalized email, if any"""
        pass

    @abstractmethod
    async def get_by_token_hash(self, *, cancel_token_hash: str) -> Signup | None:
        pass

    @abstractmethod
    async def get_by_id(self, *, signup_id: UUID) -> Signup | None:
        pass

    @abstractmethod
    async def add(self, *, signup: Signup) -> None:
        pass

    @abstractmethod
    async def save(self, *, signup: Signup) -> None:
        pass
