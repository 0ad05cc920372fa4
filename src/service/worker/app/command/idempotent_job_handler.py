"""
Ledger-guarded job handling shared by every side-effect kind.

Per job:
1. ledger SUCCESS for (signup_id, kind) -> SKIPPED, nothing is re-applied
2. redelivery of a job whose ledger entry is FAILED with the budget spent
   -> SKIPPED; it was already escalated and only the acknowledge was lost
3. re-read the signup; gone -> ESCALATE right away
4. apply the effect under the local RetryPolicy
5. success -> ledger SUCCESS; failure -> ledger FAILED with retry_count,
   then RETRY while the delivery budget lasts, else ESCALATE. Permanent
   failures are recorded with the budget spent.

The caller turns the result into acknowledge / leave / escalate on the queue.
"""

from abc import ABC, abstractmethod
from enum import StrEnum

import attrs
from opentelemetry import trace

from src.platform.exception.exceptions import PermanentJobError
from src.platform.logging.loguru_io import Logger
from src.service.shared_kernel.app.interface.i_ledger_repo import ILedgerRepo
from src.service.shared_kernel.domain.enum.job_kind import JobKind, LedgerKind
from src.service.shared_kernel.domain.value_object.job import Job
from src.service.signup.app.interface.i_signup_query_repo import ISignupQueryRepo
from src.service.signup.domain.entity.signup_entity import SignupDetail
from src.service.worker.app.retry_policy import RetryPolicy


class JobResultStatus(StrEnum):
    SUCCESS = 'success'
    SKIPPED = 'skipped'  # already applied according to the ledger
    RETRY = 'retry'  # leave unacknowledged, the queue redelivers
    ESCALATE = 'escalated'  # dead-letter, then acknowledge


@attrs.define(frozen=True)
class JobResult:
    status: JobResultStatus
    external_ref: str | None = None
    error: str | None = None

    @property
    def should_acknowledge(self) -> bool:
        return self.status != JobResultStatus.RETRY


class IdempotentJobHandler(ABC):
    handled_kinds: tuple[JobKind, ...] = ()

    def __init__(
        self,
        *,
        ledger_repo: ILedgerRepo,
        signup_query_repo: ISignupQueryRepo,
        retry_policy: RetryPolicy,
        max_retries: int,
    ) -> None:
        self.ledger_repo = ledger_repo
        self.signup_query_repo = signup_query_repo
        self.retry_policy = retry_policy
        self.max_retries = max_retries
        self.tracer = trace.get_tracer(__name__)

    @abstractmethod
    async def apply(self, *, kind: JobKind, detail: SignupDetail) -> str | None:
        """Perform the external effect. Returns the external reference, if any."""
        pass

    @Logger.io
    async def handle(self, *, job: Job, retry_attempt: int) -> JobResult:
        ledger_kind = LedgerKind.from_job_kind(job.kind)

        with self.tracer.start_as_current_span(
            f'job.{job.kind.lower()}',
            attributes={'signup.id': str(job.signup_id), 'job.retry_attempt': retry_attempt},
        ):
            entry = await self.ledger_repo.get(signup_id=job.signup_id, kind=ledger_kind)
            if entry is not None and entry.is_success:
                Logger.base.info(f'[JOB] {job.kind} {job.signup_id} already applied, skipping')
                return JobResult(status=JobResultStatus.SKIPPED, external_ref=entry.external_ref)
            if (
                entry is not None
                and retry_attempt > 0
                and entry.is_escalated(max_retries=self.max_retries)
            ):
                Logger.base.warning(
                    f'[JOB] {job.kind} {job.signup_id} already escalated, acknowledging'
                )
                return JobResult(status=JobResultStatus.SKIPPED, error=entry.last_error)

            try:
                detail = await self.signup_query_repo.get_detail(signup_id=job.signup_id)
                if detail is None:
                    raise PermanentJobError(f'Signup {job.signup_id} not found')

                external_ref = await self.retry_policy.run(
                    lambda: self.apply(kind=job.kind, detail=detail),
                    description=f'{job.kind} {job.signup_id}',
                )
            except PermanentJobError as e:
                await self.ledger_repo.record_failure(
                    signup_id=job.signup_id,
                    kind=ledger_kind,
                    error=e.message,
                    retry_count=max(retry_attempt, self.max_retries),
                )
                return JobResult(status=JobResultStatus.ESCALATE, error=e.message)
            except Exception as e:
                error = f'{type(e).__name__}: {e}'
                await self.ledger_repo.record_failure(
                    signup_id=job.signup_id,
                    kind=ledger_kind,
                    error=error,
                    retry_count=retry_attempt,
                )
                if retry_attempt < self.max_retries:
                    return JobResult(status=JobResultStatus.RETRY, error=error)
                return JobResult(status=JobResultStatus.ESCALATE, error=error)

            await self.ledger_repo.record_success(
                signup_id=job.signup_id, kind=ledger_kind, external_ref=external_ref
            )
            return JobResult(status=JobResultStatus.SUCCESS, external_ref=external_ref)
