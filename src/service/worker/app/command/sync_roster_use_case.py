from src.platform.exception.exceptions import PermanentJobError
from src.platform.logging.loguru_io import Logger
from src.service.shared_kernel.domain.enum.job_kind import JobKind
from src.service.signup.domain.entity.signup_entity import SignupDetail
from src.service.worker.app.command.idempotent_job_handler import IdempotentJobHandler
from src.service.worker.app.interface.i_roster_sync_client import IRosterSyncClient


class SyncRosterUseCase(IdempotentJobHandler):
    """Mirror signups into the event's roster sheet (one row per signup)."""

    handled_kinds = (JobKind.UPSERT_EXTERNAL_RECORD, JobKind.MARK_EXTERNAL_CANCELLED)

    def __init__(self, *, roster_client: IRosterSyncClient, **kwargs) -> None:
        super().__init__(**kwargs)
        self.roster_client = roster_client

    async def _spreadsheet_id(self, detail: SignupDetail) -> str:
        spreadsheet_id, created = await self.roster_client.ensure_spreadsheet(event=detail.event)
        if created:
            # Another worker may have stored one first; use whichever won
            spreadsheet_id = await self.signup_query_repo.set_roster_spreadsheet_id(
                event_id=detail.event.id, spreadsheet_id=spreadsheet_id
            )
            Logger.base.info(f'[ROSTER] event {detail.event.public_id} -> {spreadsheet_id}')
        return spreadsheet_id

    async def apply(self, *, kind: JobKind, detail: SignupDetail) -> str | None:
        spreadsheet_id = await self._spreadsheet_id(detail)

        if kind == JobKind.UPSERT_EXTERNAL_RECORD:
            # Writes the current state, which may already be CANCELLED
            return await self.roster_client.upsert(spreadsheet_id=spreadsheet_id, detail=detail)
        if kind == JobKind.MARK_EXTERNAL_CANCELLED:
            await self.roster_client.mark_cancelled(spreadsheet_id=spreadsheet_id, detail=detail)
            return None
        raise PermanentJobError(f'{type(self).__name__} cannot handle {kind}')
