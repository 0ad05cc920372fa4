"""
Post-commit side effects of a booking change.

Runs strictly after the reservation transaction committed, so the slot lock
is never held across network I/O. Nothing here raises to the caller: a
failed mirror is ledgered as FAILED under its mirror kind (MIRROR_STORAGE
for a reservation, MIRROR_CANCELLATION for a cancellation) and a failed
enqueue is logged.
"""

from typing import Iterable
from uuid import UUID

from opentelemetry import trace

from src.platform.logging.loguru_io import Logger
from src.platform.metrics.signup_metrics import metrics
from src.service.shared_kernel.app.interface.i_ledger_repo import ILedgerRepo
from src.service.shared_kernel.domain.enum.job_kind import JobKind, LedgerKind
from src.service.signup.app.interface.i_job_publisher import IJobPublisher
from src.service.signup.app.interface.i_signup_mirror import ISignupMirror
from src.service.signup.app.interface.i_signup_query_repo import ISignupQueryRepo


class SignupSideEffects:
    def __init__(
        self,
        *,
        signup_query_repo: ISignupQueryRepo,
        signup_mirror: ISignupMirror,
        ledger_repo: ILedgerRepo,
        job_publisher: IJobPublisher,
    ) -> None:
        self.signup_query_repo = signup_query_repo
        self.signup_mirror = signup_mirror
        self.ledger_repo = ledger_repo
        self.job_publisher = job_publisher
        self.tracer = trace.get_tracer(__name__)

    async def after_commit(
        self,
        *,
        signup_id: UUID,
        job_kinds: Iterable[JobKind],
        mirror_kind: LedgerKind = LedgerKind.MIRROR_STORAGE,
    ) -> None:
        with self.tracer.start_as_current_span(
            'side_effects.after_commit', attributes={'signup.id': str(signup_id)}
        ):
            await self.mirror(signup_id=signup_id, kind=mirror_kind)
            for kind in job_kinds:
                await self.job_publisher.publish(kind=kind, signup_id=signup_id)

    async def mirror(
        self, *, signup_id: UUID, kind: LedgerKind = LedgerKind.MIRROR_STORAGE
    ) -> str | None:
        try:
            detail = await self.signup_query_repo.get_detail(signup_id=signup_id)
            if detail is None:
                raise LookupError(f'Signup {signup_id} vanished before mirroring')
            key = await self.signup_mirror.mirror(detail=detail)
        except Exception as e:
            metrics.record_side_effect_failure(effect='mirror')
            Logger.base.error(f'[MIRROR] signup {signup_id} failed: {e}')
            await self._ledger_mirror_failure(signup_id=signup_id, kind=kind, error=str(e))
            return None

        try:
            await self.ledger_repo.record_success(signup_id=signup_id, kind=kind, external_ref=key)
        except Exception as e:
            Logger.base.error(f'[MIRROR] ledger write for signup {signup_id} failed: {e}')
        return key

    async def _ledger_mirror_failure(
        self, *, signup_id: UUID, kind: LedgerKind, error: str
    ) -> None:
        try:
            await self.ledger_repo.record_failure(
                signup_id=signup_id, kind=kind, error=error, retry_count=0
            )
        except Exception as e:
            Logger.base.error(f'[MIRROR] ledger write for signup {signup_id} failed: {e}')
