from datetime import date
from typing import Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.service.signup.app.interface.i_signup_query_repo import ISignupQueryRepo
from src.service.signup.domain.entity.signup_entity import SlotView


class ListDaySlotsUseCase:
    def __init__(self, signup_query_repo: ISignupQueryRepo):
        self.signup_query_repo = signup_query_repo

    @classmethod
    @inject
    def depends(
        cls,
        signup_query_repo: ISignupQueryRepo = Depends(Provide[Container.signup_query_repo]),
    ) -> Self:
        return cls(signup_query_repo=signup_query_repo)

    @Logger.io
    async def list_slots(self, *, event_public_id: str, day: date) -> list[SlotView]:
        """Unknown event or day yields an empty list"""
        return await self.signup_query_repo.list_day_slots(
            event_public_id=event_public_id, day=day
        )
