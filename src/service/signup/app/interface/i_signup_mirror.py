from abc import ABC, abstractmethod

from src.service.signup.domain.entity.signup_entity import SignupDetail


class ISignupMirror(ABC):
    @abstractmethod
    async def mirror(self, *, detail: SignupDetail) -> str:
        """Write the signup snapshot to object storage. Returns the storage key."""
        pass
