from datetime import date
from typing import AsyncContextManager, Callable
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.logging.loguru_io import Logger
from src.service.signup.app.interface.i_signup_query_repo import ISignupQueryRepo
from src.service.signup.domain.entity.signup_entity import Signup, SignupDetail, SlotView
from src.service.signup.domain.entity.slot_entity import Day, Event, SevaType, Slot
from src.service.signup.domain.enum.signup_status import SignupStatus, SlotStatus
from src.service.signup.driven_adapter.model.day_model import DayModel
from src.service.signup.driven_adapter.model.event_model import EventModel
from src.service.signup.driven_adapter.model.seva_type_model import SevaTypeModel
from src.service.signup.driven_adapter.model.signup_model import SignupModel
from src.service.signup.driven_adapter.model.slot_model import SlotModel


class SignupQueryRepoImpl(ISignupQueryRepo):
    def __init__(self, session_factory: Callable[..., AsyncContextManager[AsyncSession]]):
        self.session_factory = session_factory

    @Logger.io
    async def get_detail(self, *, signup_id: UUID) -> SignupDetail | None:
        async with self.session_factory() as session:
            result = await session.execute(
                select(SignupModel, SlotModel, DayModel, EventModel, SevaTypeModel)
                .join(SlotModel, SlotModel.id == SignupModel.slot_id)
                .join(DayModel, DayModel.id == SlotModel.day_id)
                .join(EventModel, EventModel.id == DayModel.event_id)
                .join(SevaTypeModel, SevaTypeModel.id == SlotModel.seva_type_id)
                .where(SignupModel.id == signup_id)
            )
            row = result.one_or_none()

        if row is None:
            return None

        signup, slot, day, event, seva = row
        return SignupDetail(
            signup=Signup(
                id=signup.id,
                slot_id=signup.slot_id,
                name=signup.name,
                email=signup.email,
                phone=signup.phone,
                notes=signup.notes,
                status=SignupStatus(signup.status),
                cancel_token_hash=signup.cancel_token_hash,
                created_at=signup.created_at,
                cancelled_at=signup.cancelled_at,
            ),
            slot=Slot(
                id=slot.id,
                day_id=slot.day_id,
                seva_type_id=slot.seva_type_id,
                capacity=slot.capacity,
                filled_count=slot.filled_count,
                status=SlotStatus(slot.status),
                label=slot.label,
            ),
            day=Day(id=day.id, event_id=day.event_id, date=day.date, is_closed=day.is_closed),
            event=Event(
                id=event.id,
                public_id=event.public_id,
                name=event.name,
                timezone=event.timezone,
                shift_label=event.shift_label,
                roster_spreadsheet_id=event.roster_spreadsheet_id,
            ),
            seva_type=SevaType(
                id=seva.id, event_id=seva.event_id, name=seva.name, description=seva.description
            ),
        )

    @Logger.io
    async def list_day_slots(self, *, event_public_id: str, day: date) -> list[SlotView]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(SlotModel, SevaTypeModel.name)
                .join(DayModel, DayModel.id == SlotModel.day_id)
                .join(EventModel, EventModel.id == DayModel.event_id)
                .join(SevaTypeModel, SevaTypeModel.id == SlotModel.seva_type_id)
                .where(EventModel.public_id == event_public_id, DayModel.date == day)
                .order_by(SevaTypeModel.name, SlotModel.id)
            )
            rows = result.all()

        return [
            SlotView(
                slot_id=slot.id,
                seva_name=seva_name,
                label=slot.label,
                capacity=slot.capacity,
                filled_count=slot.filled_count,
                remaining=max(slot.capacity - slot.filled_count, 0),
                status=slot.status,
            )
            for slot, seva_name in rows
        ]

    @Logger.io
    async def set_roster_spreadsheet_id(self, *, event_id: int, spreadsheet_id: str) -> str:
        async with self.session_factory() as session:
            await session.execute(
                update(EventModel)
                .where(EventModel.id == event_id, EventModel.roster_spreadsheet_id.is_(None))
                .values(roster_spreadsheet_id=spreadsheet_id)
            )
            await session.commit()
            stored = await session.scalar(
                select(EventModel.roster_spreadsheet_id).where(EventModel.id == event_id)
            )
        return stored or spreadsheet_id
