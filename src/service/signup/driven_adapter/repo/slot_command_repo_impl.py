from sqlalchemy import select, update
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.exception.exceptions import BookingUnavailableError
from src.platform.logging.loguru_io import Logger
from src.service.signup.app.interface.i_slot_command_repo import ISlotCommandRepo
from src.service.signup.domain.entity.slot_entity import Day, Slot
from src.service.signup.domain.enum.signup_status import SlotStatus
from src.service.signup.driven_adapter.model.day_model import DayModel
from src.service.signup.driven_adapter.model.slot_model import SlotModel


# lock_not_available / query_canceled (lock_timeout, statement_timeout)
_LOCK_TIMEOUT_SQLSTATES = {'55P03', '57014'}


def _sqlstate(error: DBAPIError) -> str | None:
    orig = error.orig
    return getattr(orig, 'sqlstate', None) or getattr(orig, 'pgcode', None)


class SlotCommandRepoImpl(ISlotCommandRepo):
    def __init__(self, *, session: AsyncSession) -> None:
        self.session = session

    @staticmethod
    def _to_entity(row: SlotModel) -> Slot:
        return Slot(
            id=row.id,
            day_id=row.day_id,
            seva_type_id=row.seva_type_id,
            capacity=row.capacity,
            filled_count=row.filled_count,
            status=SlotStatus(row.status),
            label=row.label,
        )

    @Logger.io
    async def get_for_update(self, *, slot_id: int) -> Slot | None:
        try:
            result = await self.session.execute(
                select(SlotModel)
                .where(SlotModel.id == slot_id)
                .with_for_update()
                .execution_options(populate_existing=True)
            )
        except DBAPIError as e:
            if _sqlstate(e) in _LOCK_TIMEOUT_SQLSTATES:
                raise BookingUnavailableError() from e
            raise
        row = result.scalar_one_or_none()
        return self._to_entity(row) if row else None

    @Logger.io
    async def get_day(self, *, day_id: int) -> Day | None:
        row = await self.session.get(DayModel, day_id)
        if row is None:
            return None
        return Day(id=row.id, event_id=row.event_id, date=row.date, is_closed=row.is_closed)

    @Logger.io
    async def save(self, *, slot: Slot) -> None:
        await self.session.execute(
            update(SlotModel)
            .where(SlotModel.id == slot.id)
            .values(filled_count=slot.filled_count, status=slot.status.value)
        )
