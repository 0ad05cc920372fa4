"""
Sync Ledger Repository Interface

One row per (signup_id, kind). Writes are upserts, so a key never holds
more than one entry and never more than one SUCCESS.
"""

from abc import ABC, abstractmethod
from uuid import UUID

from src.service.shared_kernel.domain.entity.ledger_entry import LedgerEntry
from src.service.shared_kernel.domain.enum.job_kind import LedgerKind


class ILedgerRepo(ABC):
    @abstractmethod
    async def get(self, *, signup_id: UUID, kind: LedgerKind) -> LedgerEntry | None:
        pass

    @abstractmethod
    async def record_success(
        self, *, signup_id: UUID, kind: LedgerKind, external_ref: str | None
    ) -> LedgerEntry:
        pass

    @abstractmethod
    async def record_failure(
        self, *, signup_id: UUID, kind: LedgerKind, error: str, retry_count: int
    ) -> LedgerEntry:
        pass
