"""
Unit of Work Pattern - one database transaction shared by the booking repositories

Architecture:
- UoW owns the session lifecycle and the transaction
- Repositories receive the shared session from the UoW
- Leaving the block without commit rolls back, which also releases row locks
"""

from __future__ import annotations

import abc
from contextlib import AbstractAsyncContextManager
from typing import TYPE_CHECKING, Callable

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.config.core_setting import settings


if TYPE_CHECKING:
    from src.service.signup.app.interface.i_signup_command_repo import ISignupCommandRepo
    from src.service.signup.app.interface.i_slot_command_repo import ISlotCommandRepo


class AbstractUnitOfWork(abc.ABC):
    """
    Usage:
        async with uow_factory() as uow:
            slot = await uow.slot_repo.get_for_update(slot_id=...)
            await uow.commit()
    """

    slot_repo: ISlotCommandRepo
    signup_repo: ISignupCommandRepo

    async def __aenter__(self) -> AbstractUnitOfWork:
        return self

    async def __aexit__(self, *args) -> None:
        await self.rollback()

    async def commit(self) -> None:
        await self._commit()

    @abc.abstractmethod
    async def _commit(self) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    async def rollback(self) -> None:
        raise NotImplementedError


class SqlAlchemyUnitOfWork(AbstractUnitOfWork):
    """
    Opens its own session on enter and closes it on exit, so each
    `async with` is exactly one transaction.
    """

    def __init__(
        self,
        session_factory: Callable[[], AbstractAsyncContextManager[AsyncSession]],
        *,
        lock_timeout_ms: int | None = None,
    ) -> None:
        self.session_factory = session_factory
        self.lock_timeout_ms = lock_timeout_ms or settings.BOOKING_LOCK_TIMEOUT_MS
        self._session_cm: AbstractAsyncContextManager[AsyncSession] | None = None
        self.session: AsyncSession | None = None

    async def __aenter__(self) -> SqlAlchemyUnitOfWork:
        from src.service.signup.driven_adapter.repo.signup_command_repo_impl import (
            SignupCommandRepoImpl,
        )
        from src.service.signup.driven_adapter.repo.slot_command_repo_impl import (
            SlotCommandRepoImpl,
        )

        self._session_cm = self.session_factory()
        self.session = await self._session_cm.__aenter__()

        if self.session.bind.dialect.name == 'postgresql':
            # SET LOCAL only lives for this transaction
            timeout_ms = int(self.lock_timeout_ms)
            await self.session.execute(text(f'SET LOCAL lock_timeout = {timeout_ms}'))
            await self.session.execute(
                text(
                    'SET LOCAL statement_timeout = '
                    f'{int(settings.BOOKING_TX_TIMEOUT_SECONDS * 1000)}'
                )
            )

        self.slot_repo = SlotCommandRepoImpl(session=self.session)
        self.signup_repo = SignupCommandRepoImpl(session=self.session)
        await super().__aenter__()
        return self

    async def __aexit__(self, *args) -> None:
        try:
            await super().__aexit__(*args)
        finally:
            if self._session_cm is not None:
                await self._session_cm.__aexit__(*args)
            self._session_cm = None
            self.session = None

    async def _commit(self) -> None:
        assert self.session is not None
        await self.session.commit()

    async def rollback(self) -> None:
        if self.session is not None:
            await self.session.rollback()
