"""Side-effect kinds carried by jobs and keyed in the sync ledger"""

from enum import StrEnum


class JobKind(StrEnum):
    UPSERT_EXTERNAL_RECORD = 'UPSERT_EXTERNAL_RECORD'
    MARK_EXTERNAL_CANCELLED = 'MARK_EXTERNAL_CANCELLED'
    SEND_CONFIRMATION = 'SEND_CONFIRMATION'
    SEND_CANCELLATION = 'SEND_CANCELLATION'


class LedgerKind(StrEnum):
    UPSERT_EXTERNAL_RECORD = JobKind.UPSERT_EXTERNAL_RECORD.value
    MARK_EXTERNAL_CANCELLED = JobKind.MARK_EXTERNAL_CANCELLED.value
    SEND_CONFIRMATION = JobKind.SEND_CONFIRMATION.value
    SEND_CANCELLATION = JobKind.SEND_CANCELLATION.value
    MIRROR_STORAGE = 'MIRROR_STORAGE'
    MIRROR_CANCELLATION = 'MIRROR_CANCELLATION'

    @classmethod
    def from_job_kind(cls, kind: JobKind) -> 'LedgerKind':
        return cls(kind.value)


class LedgerStatus(StrEnum):
    SUCCESS = 'SUCCESS'
    FAILED = 'FAILED'
