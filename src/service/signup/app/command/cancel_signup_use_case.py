from typing import Callable, Self

import anyio
from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace

from src.platform.config.core_setting import settings
from src.platform.config.di import Container
from src.platform.database.unit_of_work import AbstractUnitOfWork
from src.platform.exception.exceptions import BookingUnavailableError
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.signup_metrics import metrics
from src.service.shared_kernel.domain.enum.job_kind import JobKind, LedgerKind
from src.service.signup.app.command.signup_side_effects import SignupSideEffects
from src.service.signup.domain.enum.signup_status import SignupErrorKind
from src.service.signup.domain.signup_outcome import CancelOutcome
from src.service.signup.domain.value_object.cancel_token import CancelToken


class CancelSignupUseCase:
    """
    Cancel by secret token and give the place back.

    The signup is re-read after the slot lock is taken, so two concurrent
    cancels of one signup decrement filled_count once.
    """

    def __init__(
        self,
        *,
        uow_factory: Callable[[], AbstractUnitOfWork],
        side_effects: SignupSideEffects,
        tx_timeout_seconds: float | None = None,
    ) -> None:
        self.uow_factory = uow_factory
        self.side_effects = side_effects
        self.tx_timeout_seconds = tx_timeout_seconds or settings.BOOKING_TX_TIMEOUT_SECONDS
        self.tracer = trace.get_tracer(__name__)

    @classmethod
    @inject
    def depends(
        cls,
        uow_factory: Callable[[], AbstractUnitOfWork] = Depends(
            Provide[Container.unit_of_work.provider]
        ),
        side_effects: SignupSideEffects = Depends(Provide[Container.signup_side_effects]),
    ) -> Self:
        return cls(uow_factory=uow_factory, side_effects=side_effects)

    @Logger.io
    async def cancel(self, *, cancel_token: str) -> CancelOutcome:
        if not cancel_token:
            metrics.record_cancellation(result=SignupErrorKind.INVALID_TOKEN.value)
            return CancelOutcome.failure(SignupErrorKind.INVALID_TOKEN)

        with self.tracer.start_as_current_span('use_case.cancel_signup'):
            try:
                with anyio.fail_after(self.tx_timeout_seconds):
                    outcome = await self._cancel_locked(digest=CancelToken.hash(cancel_token))
            except TimeoutError as e:
                metrics.record_cancellation(result='unavailable')
                raise BookingUnavailableError() from e

            metrics.record_cancellation(result=outcome.error.value if outcome.error else 'success')
            if not outcome.ok:
                Logger.base.info(f'[CANCEL] rejected: {outcome.error}')
                return outcome

            assert outcome.signup is not None
            await self.side_effects.after_commit(
                signup_id=outcome.signup.id,
                job_kinds=(JobKind.MARK_EXTERNAL_CANCELLED, JobKind.SEND_CANCELLATION),
                mirror_kind=LedgerKind.MIRROR_CANCELLATION,
            )
            return outcome

    async def _cancel_locked(self, *, digest: str) -> CancelOutcome:
        async with self.uow_factory() as uow:
            signup = await uow.signup_repo.get_by_token_hash(cancel_token_hash=digest)
            if signup is None:
                return CancelOutcome.failure(SignupErrorKind.INVALID_TOKEN)
            if signup.is_cancelled:
                return CancelOutcome.failure(SignupErrorKind.ALREADY_CANCELLED)

            slot = await uow.slot_repo.get_for_update(slot_id=signup.slot_id)

            # A concurrent cancel may have won while we waited for the lock
            current = await uow.signup_repo.get_by_id(signup_id=signup.id)
            if current is None or current.is_cancelled:
                return CancelOutcome.failure(SignupErrorKind.ALREADY_CANCELLED)

            cancelled = current.cancel()
            await uow.signup_repo.save(signup=cancelled)
            if slot is not None:
                await uow.slot_repo.save(slot=slot.release_one())
            await uow.commit()

        return CancelOutcome.success(signup=cancelled)
