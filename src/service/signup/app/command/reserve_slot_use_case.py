import time
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
from src.service.shared_kernel.domain.enum.job_kind import JobKind
from src.service.signup.app.command.signup_side_effects import SignupSideEffects
from src.service.signup.domain.entity.signup_entity import Signup
from src.service.signup.domain.enum.signup_status import SignupErrorKind
from src.service.signup.domain.signup_outcome import ReserveOutcome
from src.service.signup.domain.value_object.cancel_token import CancelToken
from src.service.signup.domain.value_object.volunteer import Volunteer


class ReserveSlotUseCase:
    """
    Reserve one place in a slot without ever overbooking it.

    Flow:
    1. Validate contact data (no transaction opened on failure)
    2. Lock the slot row, re-check capacity, status, day and duplicates
    3. Insert the signup, bump filled_count, commit
    4. After commit: mirror + enqueue UPSERT_EXTERNAL_RECORD and SEND_CONFIRMATION

    Concurrent reserves on one slot serialize on the row lock, so with
    capacity C exactly C of them see room.
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
    async def reserve(
        self,
        *,
        slot_id: int,
        name: str,
        email: str,
        phone: str | None = None,
        notes: str | None = None,
    ) -> ReserveOutcome:
        volunteer = Volunteer.normalize(name=name, email=email, phone=phone, notes=notes)
        if error_message := volunteer.validation_error():
            metrics.record_reservation(result=SignupErrorKind.INVALID_INPUT.value)
            return ReserveOutcome.failure(SignupErrorKind.INVALID_INPUT, error_message)

        with self.tracer.start_as_current_span(
            'use_case.reserve_slot', attributes={'slot.id': slot_id}
        ):
            started = time.perf_counter()
            try:
                with anyio.fail_after(self.tx_timeout_seconds):
                    outcome = await self._reserve_locked(slot_id=slot_id, volunteer=volunteer)
            except TimeoutError as e:
                metrics.record_reservation(result='unavailable')
                raise BookingUnavailableError() from e
            finally:
                metrics.reservation_duration.observe(time.perf_counter() - started)

            metrics.record_reservation(result=outcome.error.value if outcome.error else 'success')
            if not outcome.ok:
                Logger.base.info(f'[RESERVE] slot {slot_id} rejected: {outcome.error}')
                return outcome

            assert outcome.signup is not None
            await self.side_effects.after_commit(
                signup_id=outcome.signup.id,
                job_kinds=(JobKind.UPSERT_EXTERNAL_RECORD, JobKind.SEND_CONFIRMATION),
            )
            return outcome

    async def _reserve_locked(self, *, slot_id: int, volunteer: Volunteer) -> ReserveOutcome:
        async with self.uow_factory() as uow:
            slot = await uow.slot_repo.get_for_update(slot_id=slot_id)
            if slot is None:
                return ReserveOutcome.failure(SignupErrorKind.SLOT_NOT_FOUND)

            if error := slot.booking_error():
                return ReserveOutcome.failure(error)

            day = await uow.slot_repo.get_day(day_id=slot.day_id)
            if day is None:
                return ReserveOutcome.failure(SignupErrorKind.SLOT_NOT_FOUND)
            if day.is_closed:
                return ReserveOutcome.failure(SignupErrorKind.DAY_CLOSED)

            if await uow.signup_repo.find_confirmed(slot_id=slot_id, email=volunteer.email):
                return ReserveOutcome.failure(SignupErrorKind.DUPLICATE_SIGNUP)

            token = CancelToken.generate()
            signup = Signup.create(
                slot_id=slot_id, volunteer=volunteer, cancel_token_hash=token.digest
            )
            await uow.signup_repo.add(signup=signup)
            await uow.slot_repo.save(slot=slot.take_one())
            await uow.commit()

        return ReserveOutcome.success(signup=signup, cancel_token=token.secret)
