from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.logging.loguru_io import Logger
from src.service.signup.app.interface.i_signup_command_repo import ISignupCommandRepo
from src.service.signup.domain.entity.signup_entity import Signup
from src.service.signup.domain.enum.signup_status import SignupStatus
from src.service.signup.driven_adapter.model.signup_model import SignupModel


class SignupCommandRepoImpl(ISignupCommandRepo):
    def __init__(self, *, session: AsyncSession) -> None:
        self.session = session

    @staticmethod
    def _to_entity(row: SignupModel) -> Signup:
        return Signup(
            id=row.id,
            slot_id=row.slot_id,
            name=row.name,
            email=row.email,
            phone=row.phone,
            notes=row.notes,
            status=SignupStatus(row.status),
            cancel_token_hash=row.cancel_token_hash,
            created_at=row.created_at,
            cancelled_at=row.cancelled_at,
        )

    @Logger.io
    async def find_confirmed(self, *, slot_id: int, email: str) -> Signup | None:
        result = await self.session.execute(
            select(SignupModel).where(
                SignupModel.slot_id == slot_id,
                SignupModel.email == email,
                SignupModel.status == SignupStatus.CONFIRMED.value,
            )
        )
        row = result.scalars().first()
        return self._to_entity(row) if row else None

    @Logger.io
    async def get_by_token_hash(self, *, cancel_token_hash: str) -> Signup | None:
        result = await self.session.execute(
            select(SignupModel).where(SignupModel.cancel_token_hash == cancel_token_hash)
        )
        row = result.scalar_one_or_none()
        return self._to_entity(row) if row else None

    @Logger.io
    async def get_by_id(self, *, signup_id: UUID) -> Signup | None:
        result = await self.session.execute(
            select(SignupModel)
            .where(SignupModel.id == signup_id)
            .execution_options(populate_existing=True)
        )
        row = result.scalar_one_or_none()
        return self._to_entity(row) if row else None

    @Logger.io
    async def add(self, *, signup: Signup) -> None:
        self.session.add(
            SignupModel(
                id=signup.id,
                slot_id=signup.slot_id,
                name=signup.name,
                email=signup.email,
                phone=signup.phone,
                notes=signup.notes,
                status=signup.status.value,
                cancel_token_hash=signup.cancel_token_hash,
                created_at=signup.created_at,
            )
        )
        await self.session.flush()

    @Logger.io
    async def save(self, *, signup: Signup) -> None:
        await self.session.execute(
            update(SignupModel)
            .where(SignupModel.id == signup.id)
            .values(status=signup.status.value, cancelled_at=signup.cancelled_at)
        )
