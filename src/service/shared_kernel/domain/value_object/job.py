from uuid import UUID

import attrs

from src.service.shared_kernel.domain.enum.job_kind import JobKind


@attrs.define(frozen=True)
class Job:
    """A unit of asynchronous side-effect work. Carries identifiers only."""

    kind: JobKind
    signup_id: UUID


@attrs.define(frozen=True)
class ReceivedJob:
    """
    A job as handed out by the queue.

    `job` is None when the message body could not be decoded; `decode_error`
    then says why and `raw_body` keeps the original payload for the dead letter.
    """

    job: Job | None
    handle: str
    approximate_delivery_count: int
    raw_body: str = ''
    decode_error: str | None = None

    @property
    def retry_attempt(self) -> int:
        # First delivery reports 1, which is attempt 0
        return max(self.approximate_delivery_count - 1, 0)
