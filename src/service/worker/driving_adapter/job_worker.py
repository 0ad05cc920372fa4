"""
Job-delivery worker loop.

Each cycle long-polls the queue, hands every message to the handler for its
kind and turns the handler's result into queue operations:

    SUCCESS / SKIPPED  -> acknowledge
    RETRY              -> leave alone, the visibility window redelivers it
    ESCALATE           -> dead-letter, then acknowledge

Shutdown stops polling at once; jobs already being handled get up to
`shutdown_timeout_seconds` to finish before they are cancelled and left
for redelivery.
"""

import time
from typing import Awaitable, Callable, Iterable

import anyio
from opentelemetry import trace

from src.platform.logging.loguru_io import Logger
from src.platform.metrics.signup_metrics import metrics
from src.service.shared_kernel.app.interface.i_job_queue import IJobQueue
from src.service.shared_kernel.domain.enum.job_kind import JobKind
from src.service.shared_kernel.domain.value_object.job import ReceivedJob
from src.service.worker.app.command.idempotent_job_handler import (
    IdempotentJobHandler,
    JobResult,
    JobResultStatus,
)


class JobWorker:
    def __init__(
        self,
        *,
        job_queue: IJobQueue,
        handlers: Iterable[IdempotentJobHandler],
        batch_size: int = 1,
        poll_wait_seconds: int = 20,
        poll_error_backoff_seconds: float = 5.0,
        shutdown_timeout_seconds: float = 30.0,
        instance_id: str = 'worker',
        sleep: Callable[[float], Awaitable[None]] = anyio.sleep,
    ) -> None:
        self.job_queue = job_queue
        self.batch_size = batch_size
        self.poll_wait_seconds = poll_wait_seconds
        self.poll_error_backoff_seconds = poll_error_backoff_seconds
        self.shutdown_timeout_seconds = shutdown_timeout_seconds
        self.instance_id = instance_id
        self._sleep = sleep
        self.tracer = trace.get_tracer(__name__)

        self._handlers: dict[JobKind, IdempotentJobHandler] = {}
        for handler in handlers:
            for kind in handler.handled_kinds:
                self._handlers[kind] = handler

        self.running = False
        self.in_flight = 0
        self.started_at = time.monotonic()
        self._stop_requested = False
        self._poll_scope: anyio.CancelScope | None = None
        self._process_scope: anyio.CancelScope | None = None

    @property
    def uptime_seconds(self) -> float:
        return time.monotonic() - self.started_at

    async def run(self) -> None:
        self.running = True
        Logger.base.info(
            f'[WORKER-{self.instance_id}] Started | batch={self.batch_size} '
            f'kinds={sorted(self._handlers)}'
        )
        try:
            while not self._stop_requested:
                await self.run_once()
        finally:
            self.running = False
            Logger.base.info(f'[WORKER-{self.instance_id}] Stopped')

    async def run_once(self) -> list[JobResult | None]:
        """One poll cycle. Returns a result per received message (None when handling crashed)."""
        received: list[ReceivedJob] = []
        with anyio.CancelScope() as poll_scope:
            self._poll_scope = poll_scope
            try:
                received = await self.job_queue.poll(
                    max_messages=self.batch_size, wait_time_seconds=self.poll_wait_seconds
                )
            except Exception as e:
                Logger.base.error(f'[WORKER-{self.instance_id}] Poll failed: {e}')
                await self._sleep(self.poll_error_backoff_seconds)
            finally:
                self._poll_scope = None

        if not received:
            return []

        results: list[JobResult | None] = [None] * len(received)

        async def _process_into(index: int, item: ReceivedJob) -> None:
            results[index] = await self.process(item)

        with anyio.CancelScope() as process_scope:
            self._process_scope = process_scope
            if self._stop_requested:
                process_scope.deadline = anyio.current_time() + self.shutdown_timeout_seconds
            try:
                async with anyio.create_task_group() as tg:
                    for index, item in enumerate(received):
                        tg.start_soon(_process_into, index, item)
            finally:
                self._process_scope = None

        if process_scope.cancelled_caught:
            Logger.base.warning(
                f'[WORKER-{self.instance_id}] Shutdown timeout hit, '
                'unfinished jobs will be redelivered'
            )
        return results

    def stop(self) -> None:
        """Stop polling now; give in-flight jobs the shutdown timeout to finish."""
        if self._stop_requested:
            return
        Logger.base.info(
            f'[WORKER-{self.instance_id}] Stopping, waiting for {self.in_flight} in-flight jobs'
        )
        self._stop_requested = True
        if self._poll_scope is not None:
            self._poll_scope.cancel()
        if self._process_scope is not None:
            self._process_scope.deadline = min(
                self._process_scope.deadline,
                anyio.current_time() + self.shutdown_timeout_seconds,
            )

    async def process(self, received: ReceivedJob) -> JobResult | None:
        kind = received.job.kind.value if received.job else 'UNDECODABLE'
        self.in_flight += 1
        metrics.in_flight_jobs.inc()
        started = time.perf_counter()
        try:
            with self.tracer.start_as_current_span(
                'worker.process',
                attributes={
                    'messaging.system': 'queue',
                    'job.kind': kind,
                    'job.delivery_count': received.approximate_delivery_count,
                },
            ):
                result = await self._dispatch(received)

                if result.status == JobResultStatus.ESCALATE:
                    await self.job_queue.escalate(
                        received=received, reason=result.error or 'unknown error'
                    )
                if result.should_acknowledge:
                    await self.job_queue.acknowledge(handle=received.handle)

            metrics.record_job(kind=kind, outcome=result.status.value)
            Logger.base.info(
                f'[WORKER-{self.instance_id}] {kind} '
                f'{received.job.signup_id if received.job else "-"} -> {result.status}'
                f' (delivery {received.approximate_delivery_count})'
            )
            return result
        except Exception as e:
            # Unacknowledged, so the queue hands it out again after the visibility window
            Logger.base.exception(f'[WORKER-{self.instance_id}] {kind} handling crashed: {e}')
            metrics.record_job(kind=kind, outcome='error')
            return None
        finally:
            self.in_flight -= 1
            metrics.in_flight_jobs.dec()
            metrics.job_duration.labels(kind=kind).observe(time.perf_counter() - started)

    async def _dispatch(self, received: ReceivedJob) -> JobResult:
        if received.job is None:
            return JobResult(
                status=JobResultStatus.ESCALATE,
                error=f'Undecodable message: {received.decode_error}',
            )

        handler = self._handlers.get(received.job.kind)
        if handler is None:
            return JobResult(
                status=JobResultStatus.ESCALATE,
                error=f'No handler registered for job kind {received.job.kind}',
            )

        return await handler.handle(job=received.job, retry_attempt=received.retry_attempt)
