from datetime import datetime
from uuid import UUID

import attrs

from src.service.shared_kernel.domain.enum.job_kind import LedgerKind, LedgerStatus


@attrs.define
class LedgerEntry:
    signup_id: UUID
    kind: LedgerKind
    status: LedgerStatus
    last_error: str | None = None
    retry_count: int = 0
    external_ref: str | None = None
    synced_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_success(self) -> bool:
        return self.status == LedgerStatus.SUCCESS

    def is_escalated(self, *, max_retries: int) -> bool:
        return self.status == LedgerStatus.FAILED and self.retry_count >= max_retries
