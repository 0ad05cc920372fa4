from abc import ABC, abstractmethod

from src.service.signup.domain.entity.signup_entity import SignupDetail


class INotificationClient(ABC):
    @abstractmethod
    async def send_confirmation(
        self, *, detail: SignupDetail, cancel_url: str | None = None
    ) -> str:
        """Returns the provider message id"""
        pass

    @abstractmethod
    async def send_cancellation(self, *, detail: SignupDetail) -> str:
        pass
