"""
In-memory job queue for local development and tests.

Models the SQS contract closely enough for the worker to not notice:
- a polled message is hidden for `visibility_timeout_seconds`
- an unacknowledged message becomes visible again with delivery count + 1
- the first delivery reports a count of 1
- escalated messages land in `dead_letters`
"""

import time
from typing import Any, Callable
from uuid import uuid4

import anyio
import attrs

from src.platform.logging.loguru_io import Logger
from src.service.shared_kernel.app.interface.i_job_queue import IJobQueue
from src.service.shared_kernel.domain.value_object.job import Job, ReceivedJob
from src.service.shared_kernel.driven_adapter.message_queue.job_codec import (
    decode_received,
    encode_job,
)


@attrs.define
class _StoredMessage:
    message_id: str
    body: str
    receive_count: int = 0
    visible_at: float = 0.0
    receipt_handle: str | None = None


class InMemoryJobQueue(IJobQueue):
    def __init__(
        self,
        *,
        visibility_timeout_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
        poll_interval_seconds: float = 0.05,
    ) -> None:
        self.visibility_timeout_seconds = visibility_timeout_seconds
        self._clock = clock
        self._poll_interval_seconds = poll_interval_seconds
        self._messages: dict[str, _StoredMessage] = {}
        self._handles: dict[str, str] = {}
        self.dead_letters: list[dict[str, Any]] = []

    @property
    def pending_count(self) -> int:
        return len(self._messages)

    async def enqueue(self, *, job: Job) -> str | None:
        return self.enqueue_raw(encode_job(job))

    def enqueue_raw(self, body: str) -> str:
        message_id = str(uuid4())
        self._messages[message_id] = _StoredMessage(message_id=message_id, body=body)
        return message_id

    def _receive_visible(self, max_messages: int) -> list[ReceivedJob]:
        now = self._clock()
        received: list[ReceivedJob] = []
        for message in self._messages.values():
            if len(received) >= max_messages:
                break
            if message.visible_at > now:
                continue

            # Old handles stop working once the message is redelivered
            if message.receipt_handle:
                self._handles.pop(message.receipt_handle, None)

            message.receive_count += 1
            message.visible_at = now + self.visibility_timeout_seconds
            message.receipt_handle = str(uuid4())
            self._handles[message.receipt_handle] = message.message_id

            job, decode_error = decode_received(message.body)
            received.append(
                ReceivedJob(
                    job=job,
                    handle=message.receipt_handle,
                    approximate_delivery_count=message.receive_count,
                    raw_body=message.body,
                    decode_error=decode_error,
                )
            )
        return received

    async def poll(self, *, max_messages: int, wait_time_seconds: int) -> list[ReceivedJob]:
        received = self._receive_visible(max_messages)
        if received or wait_time_seconds <= 0:
            return received

        with anyio.move_on_after(wait_time_seconds):
            while not received:
                await anyio.sleep(self._poll_interval_seconds)
                received = self._receive_visible(max_messages)
        return received

    async def acknowledge(self, *, handle: str) -> None:
        message_id = self._handles.pop(handle, None)
        if message_id is None:
            Logger.base.warning(f'[QUEUE] Stale or unknown receipt handle: {handle}')
            return
        self._messages.pop(message_id, None)

    async def escalate(self, *, received: ReceivedJob, reason: str) -> None:
        self.dead_letters.append(build_dead_letter(received=received, reason=reason))
        Logger.base.warning(f'[DLQ] Escalated {received.job or received.raw_body!r}: {reason}')


def build_dead_letter(*, received: ReceivedJob, reason: str) -> dict[str, Any]:
    job = received.job
    return {
        'kind': job.kind.value if job else None,
        'signup_id': str(job.signup_id) if job else None,
        'error': reason,
        'delivery_count': received.approximate_delivery_count,
        'original_body': received.raw_body,
        'timestamp': time.time(),
    }
