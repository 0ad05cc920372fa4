from typing import Self
from uuid import UUID

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.service.signup.app.interface.i_signup_query_repo import ISignupQueryRepo
from src.service.signup.domain.entity.signup_entity import SignupDetail


class GetSignupDetailUseCase:
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
    async def get_detail(self, *, signup_id: UUID) -> SignupDetail | None:
        return await self.signup_query_repo.get_detail(signup_id=signup_id)
