from datetime import datetime, timezone
from typing import Any, AsyncContextManager, Callable
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.logging.loguru_io import Logger
from src.service.shared_kernel.app.interface.i_ledger_repo import ILedgerRepo
from src.service.shared_kernel.domain.entity.ledger_entry import LedgerEntry
from src.service.shared_kernel.domain.enum.job_kind import LedgerKind, LedgerStatus
from src.service.shared_kernel.driven_adapter.model.sync_ledger_model import SyncLedgerModel


class LedgerRepoImpl(ILedgerRepo):
    """
    PostgreSQL sync ledger.

    Every write is `INSERT ... ON CONFLICT (signup_id, kind) DO UPDATE`, so
    concurrent workers converge on a single row per key. A SUCCESS row is
    never downgraded by a later failure write.
    """

    def __init__(self, session_factory: Callable[..., AsyncContextManager[AsyncSession]]):
        self.session_factory = session_factory

    @staticmethod
    def _to_entity(row: SyncLedgerModel) -> LedgerEntry:
        return LedgerEntry(
            signup_id=row.signup_id,
            kind=LedgerKind(row.kind),
            status=LedgerStatus(row.status),
            last_error=row.last_error,
            retry_count=row.retry_count,
            external_ref=row.external_ref,
            synced_at=row.synced_at,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    @Logger.io
    async def get(self, *, signup_id: UUID, kind: LedgerKind) -> LedgerEntry | None:
        async with self.session_factory() as session:
            result = await session.execute(
                select(SyncLedgerModel).where(
                    SyncLedgerModel.signup_id == signup_id,
                    SyncLedgerModel.kind == kind.value,
                )
            )
            row = result.scalar_one_or_none()
            return self._to_entity(row) if row else None

    async def _upsert(
        self, *, values: dict[str, Any], signup_id: UUID, kind: LedgerKind
    ) -> LedgerEntry:
        stmt = insert(SyncLedgerModel).values(signup_id=signup_id, kind=kind.value, **values)
        stmt = stmt.on_conflict_do_update(
            constraint='uq_sync_ledger_signup_kind',
            set_={**values, 'updated_at': func.now()},
            where=SyncLedgerModel.status != LedgerStatus.SUCCESS.value,
        ).returning(SyncLedgerModel)

        async with self.session_factory() as session:
            result = await session.execute(stmt)
            row = result.scalar_one_or_none()
            await session.commit()

        if row is None:
            # Conflict hit an existing SUCCESS row; it stays as it is
            existing = await self.get(signup_id=signup_id, kind=kind)
            assert existing is not None
            return existing
        return self._to_entity(row)

    @Logger.io
    async def record_success(
        self, *, signup_id: UUID, kind: LedgerKind, external_ref: str | None
    ) -> LedgerEntry:
        return await self._upsert(
            signup_id=signup_id,
            kind=kind,
            values={
                'status': LedgerStatus.SUCCESS.value,
                'external_ref': external_ref,
                'last_error': None,
                'synced_at': datetime.now(timezone.utc),
            },
        )

    @Logger.io
    async def record_failure(
        self, *, signup_id: UUID, kind: LedgerKind, error: str, retry_count: int
    ) -> LedgerEntry:
        return await self._upsert(
            signup_id=signup_id,
            kind=kind,
            values={
                'status': LedgerStatus.FAILED.value,
                'last_error': error[:2000],
                'retry_count': retry_count,
            },
        )
