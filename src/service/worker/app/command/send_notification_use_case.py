from src.platform.exception.exceptions import PermanentJobError
from src.service.shared_kernel.domain.enum.job_kind import JobKind
from src.service.signup.domain.entity.signup_entity import SignupDetail
from src.service.worker.app.command.idempotent_job_handler import IdempotentJobHandler
from src.service.worker.app.interface.i_notification_client import INotificationClient


SKIPPED_CANCELLED_REF = 'skipped:cancelled'


class SendNotificationUseCase(IdempotentJobHandler):
    """Confirmation and cancellation emails, sent at most once per signup and kind."""

    handled_kinds = (JobKind.SEND_CONFIRMATION, JobKind.SEND_CANCELLATION)

    def __init__(self, *, notification_client: INotificationClient, **kwargs) -> None:
        super().__init__(**kwargs)
        self.notification_client = notification_client

    async def apply(self, *, kind: JobKind, detail: SignupDetail) -> str | None:
        if kind == JobKind.SEND_CONFIRMATION:
            # Cancelled before the confirmation went out; the cancellation email covers it
            if detail.signup.is_cancelled:
                return SKIPPED_CANCELLED_REF
            return await self.notification_client.send_confirmation(detail=detail)
        if kind == JobKind.SEND_CANCELLATION:
            return await self.notification_client.send_cancellation(detail=detail)
        raise PermanentJobError(f'{type(self).__name__} cannot handle {kind}')
