"""
Unit tests for the ledger-guarded job handlers

Test Focus:
1. Idempotency: the same job delivered three times applies the effect once
2. Bounded retry: local attempts, then RETRY while the delivery budget lasts, then ESCALATE
3. Permanent failures escalate immediately
4. A redelivered job that was already escalated is acknowledged, not re-applied
5. Roster spreadsheet is created once per event and persisted
6. Confirmation for an already-cancelled signup is recorded but not sent
"""

from uuid import UUID

import pytest

from src.platform.exception.exceptions import PermanentJobError
from src.service.shared_kernel.domain.enum.job_kind import JobKind, LedgerKind, LedgerStatus
from src.service.shared_kernel.domain.value_object.job import Job
from src.service.signup.domain.enum.signup_status import SignupStatus
from src.service.worker.app.command.idempotent_job_handler import JobResultStatus
from src.service.worker.app.command.send_notification_use_case import SKIPPED_CANCELLED_REF


async def _reserved_signup_id(store, reserve_use_case) -> UUID:
    slot = store.add_slot(capacity=3)
    outcome = await reserve_use_case.reserve(
        slot_id=slot.id, name='Asha Patel', email='asha@example.org'
    )
    return outcome.signup.id


@pytest.mark.unit
class TestSyncRosterIdempotency:
    @pytest.mark.asyncio
    async def test_three_deliveries_write_one_row(
        self, store, reserve_use_case, sync_roster_use_case, roster_client, ledger
    ):
        """
        Given: A confirmed signup
        When: Its UPSERT_EXTERNAL_RECORD job is handled three times
        Then: One roster row, one SUCCESS ledger entry, and the client was called once
        """
        # Arrange
        signup_id = await _reserved_signup_id(store, reserve_use_case)
        job = Job(kind=JobKind.UPSERT_EXTERNAL_RECORD, signup_id=signup_id)

        # Act
        results = [
            await sync_roster_use_case.handle(job=job, retry_attempt=attempt)
            for attempt in range(3)
        ]

        # Assert
        assert [r.status for r in results] == [
            JobResultStatus.SUCCESS,
            JobResultStatus.SKIPPED,
            JobResultStatus.SKIPPED,
        ]
        assert len(roster_client.rows) == 1
        assert roster_client.upsert_calls == 1
        entry = ledger.entries[(signup_id, LedgerKind.UPSERT_EXTERNAL_RECORD)]
        assert entry.status == LedgerStatus.SUCCESS
        assert entry.external_ref == 'Roster!A2:M2'
        assert all(r.should_acknowledge for r in results)

    @pytest.mark.asyncio
    async def test_spreadsheet_is_created_once_and_stored_on_the_event(
        self, store, reserve_use_case, sync_roster_use_case, roster_client
    ):
        first = await _reserved_signup_id(store, reserve_use_case)
        second = (
            await reserve_use_case.reserve(slot_id=1, name='Ravi Kumar', email='ravi@example.org')
        ).signup.id

        for signup_id in (first, second):
            await sync_roster_use_case.handle(
                job=Job(kind=JobKind.UPSERT_EXTERNAL_RECORD, signup_id=signup_id),
                retry_attempt=0,
            )

        assert roster_client.created_spreadsheets == ['sheet-diwali-2025-1']
        assert store.events[1].roster_spreadsheet_id == 'sheet-diwali-2025-1'

    @pytest.mark.asyncio
    async def test_mark_cancelled_writes_cancelled_status(
        self, store, reserve_use_case, cancel_use_case, sync_roster_use_case, roster_client
    ):
        slot = store.add_slot(capacity=3)
        reserved = await reserve_use_case.reserve(
            slot_id=slot.id, name='Asha Patel', email='asha@example.org'
        )
        await cancel_use_case.cancel(cancel_token=reserved.cancel_token)

        result = await sync_roster_use_case.handle(
            job=Job(kind=JobKind.MARK_EXTERNAL_CANCELLED, signup_id=reserved.signup.id),
            retry_attempt=0,
        )

        assert result.status == JobResultStatus.SUCCESS
        row = roster_client.rows[str(reserved.signup.id)]
        assert row[10] == SignupStatus.CANCELLED.value


@pytest.mark.unit
class TestBoundedRetry:
    @pytest.mark.asyncio
    async def test_transient_failure_recovers_within_local_attempts(
        self, store, reserve_use_case, sync_roster_use_case, roster_client, sleeps
    ):
        signup_id = await _reserved_signup_id(store, reserve_use_case)
        roster_client.failures = [ConnectionError('reset'), TimeoutError('slow')]

        result = await sync_roster_use_case.handle(
            job=Job(kind=JobKind.UPSERT_EXTERNAL_RECORD, signup_id=signup_id), retry_attempt=0
        )

        assert result.status == JobResultStatus.SUCCESS
        assert roster_client.upsert_calls == 3
        assert sleeps == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_exhausted_local_attempts_ask_for_redelivery(
        self, store, reserve_use_case, sync_roster_use_case, roster_client, ledger
    ):
        signup_id = await _reserved_signup_id(store, reserve_use_case)
        roster_client.always_fail = ConnectionError('sheets down')

        result = await sync_roster_use_case.handle(
            job=Job(kind=JobKind.UPSERT_EXTERNAL_RECORD, signup_id=signup_id), retry_attempt=2
        )

        assert result.status == JobResultStatus.RETRY
        assert not result.should_acknowledge
        assert roster_client.upsert_calls == 3
        entry = ledger.entries[(signup_id, LedgerKind.UPSERT_EXTERNAL_RECORD)]
        assert entry.status == LedgerStatus.FAILED
        assert entry.retry_count == 2
        assert 'sheets down' in entry.last_error

    @pytest.mark.asyncio
    async def test_escalates_once_delivery_budget_is_spent(
        self, store, reserve_use_case, sync_roster_use_case, roster_client, ledger
    ):
        signup_id = await _reserved_signup_id(store, reserve_use_case)
        roster_client.always_fail = ConnectionError('sheets down')

        result = await sync_roster_use_case.handle(
            job=Job(kind=JobKind.UPSERT_EXTERNAL_RECORD, signup_id=signup_id), retry_attempt=5
        )

        assert result.status == JobResultStatus.ESCALATE
        assert result.should_acknowledge
        assert 'sheets down' in result.error
        entry = ledger.entries[(signup_id, LedgerKind.UPSERT_EXTERNAL_RECORD)]
        assert entry.status == LedgerStatus.FAILED
        assert entry.retry_count == sync_roster_use_case.max_retries == 5

    @pytest.mark.asyncio
    async def test_permanent_error_escalates_without_retry(
        self, store, reserve_use_case, sync_roster_use_case, roster_client, sleeps
    ):
        signup_id = await _reserved_signup_id(store, reserve_use_case)
        roster_client.always_fail = PermanentJobError('spreadsheet was deleted')

        result = await sync_roster_use_case.handle(
            job=Job(kind=JobKind.UPSERT_EXTERNAL_RECORD, signup_id=signup_id), retry_attempt=0
        )

        assert result.status == JobResultStatus.ESCALATE
        assert roster_client.upsert_calls == 1
        assert sleeps == []

    @pytest.mark.asyncio
    async def test_redelivery_after_escalation_is_acknowledged_without_reapplying(
        self, store, reserve_use_case, sync_roster_use_case, roster_client, ledger
    ):
        """
        Given: A job escalated on its last delivery (retry_attempt == max_retries)
        When: The queue hands it out again because the acknowledge was lost
        Then: SKIPPED and acknowledged, the roster client is not called again,
              and the ledger entry is left as it was
        """
        # Arrange
        signup_id = await _reserved_signup_id(store, reserve_use_case)
        job = Job(kind=JobKind.UPSERT_EXTERNAL_RECORD, signup_id=signup_id)
        roster_client.always_fail = ConnectionError('sheets down')
        escalated = await sync_roster_use_case.handle(job=job, retry_attempt=5)
        calls_after_escalation = roster_client.upsert_calls

        # Act
        result = await sync_roster_use_case.handle(job=job, retry_attempt=6)

        # Assert
        assert escalated.status == JobResultStatus.ESCALATE
        assert result.status == JobResultStatus.SKIPPED
        assert result.should_acknowledge
        assert roster_client.upsert_calls == calls_after_escalation
        entry = ledger.entries[(signup_id, LedgerKind.UPSERT_EXTERNAL_RECORD)]
        assert entry.status == LedgerStatus.FAILED
        assert entry.retry_count == 5

    @pytest.mark.asyncio
    async def test_fresh_job_after_escalation_is_applied_again(
        self, store, reserve_use_case, sync_roster_use_case, roster_client, ledger
    ):
        signup_id = await _reserved_signup_id(store, reserve_use_case)
        job = Job(kind=JobKind.UPSERT_EXTERNAL_RECORD, signup_id=signup_id)
        roster_client.always_fail = ConnectionError('sheets down')
        await sync_roster_use_case.handle(job=job, retry_attempt=5)
        roster_client.always_fail = None

        result = await sync_roster_use_case.handle(job=job, retry_attempt=0)

        assert result.status == JobResultStatus.SUCCESS
        assert str(signup_id) in roster_client.rows
        assert ledger.entries[(signup_id, LedgerKind.UPSERT_EXTERNAL_RECORD)].is_success

    @pytest.mark.asyncio
    async def test_permanent_error_redelivery_is_not_reapplied(
        self, store, reserve_use_case, sync_roster_use_case, roster_client, ledger
    ):
        signup_id = await _reserved_signup_id(store, reserve_use_case)
        job = Job(kind=JobKind.UPSERT_EXTERNAL_RECORD, signup_id=signup_id)
        roster_client.always_fail = PermanentJobError('spreadsheet was deleted')

        first = await sync_roster_use_case.handle(job=job, retry_attempt=0)
        second = await sync_roster_use_case.handle(job=job, retry_attempt=1)

        assert first.status == JobResultStatus.ESCALATE
        assert second.status == JobResultStatus.SKIPPED
        assert roster_client.upsert_calls == 1
        assert ledger.entries[(signup_id, LedgerKind.UPSERT_EXTERNAL_RECORD)].retry_count == 5

    @pytest.mark.asyncio
    async def test_missing_signup_escalates(self, sync_roster_use_case, ledger):
        signup_id = UUID(int=42)

        result = await sync_roster_use_case.handle(
            job=Job(kind=JobKind.UPSERT_EXTERNAL_RECORD, signup_id=signup_id), retry_attempt=0
        )

        assert result.status == JobResultStatus.ESCALATE
        assert ledger.entries[(signup_id, LedgerKind.UPSERT_EXTERNAL_RECORD)].status == (
            LedgerStatus.FAILED
        )


@pytest.mark.unit
class TestSendNotification:
    @pytest.mark.asyncio
    async def test_confirmation_is_sent_once(
        self, store, reserve_use_case, send_notification_use_case, notification_client
    ):
        signup_id = await _reserved_signup_id(store, reserve_use_case)
        job = Job(kind=JobKind.SEND_CONFIRMATION, signup_id=signup_id)

        for attempt in range(3):
            await send_notification_use_case.handle(job=job, retry_attempt=attempt)

        assert notification_client.sent == [('confirmation', 'asha@example.org')]

    @pytest.mark.asyncio
    async def test_confirmation_for_cancelled_signup_is_skipped(
        self,
        store,
        reserve_use_case,
        cancel_use_case,
        send_notification_use_case,
        notification_client,
        ledger,
    ):
        slot = store.add_slot(capacity=3)
        reserved = await reserve_use_case.reserve(
            slot_id=slot.id, name='Asha Patel', email='asha@example.org'
        )
        await cancel_use_case.cancel(cancel_token=reserved.cancel_token)

        result = await send_notification_use_case.handle(
            job=Job(kind=JobKind.SEND_CONFIRMATION, signup_id=reserved.signup.id),
            retry_attempt=0,
        )

        assert result.status == JobResultStatus.SUCCESS
        assert notification_client.sent == []
        entry = ledger.entries[(reserved.signup.id, LedgerKind.SEND_CONFIRMATION)]
        assert entry.external_ref == SKIPPED_CANCELLED_REF

    @pytest.mark.asyncio
    async def test_cancellation_email(
        self, store, reserve_use_case, send_notification_use_case, notification_client
    ):
        signup_id = await _reserved_signup_id(store, reserve_use_case)

        result = await send_notification_use_case.handle(
            job=Job(kind=JobKind.SEND_CANCELLATION, signup_id=signup_id), retry_attempt=0
        )

        assert result.status == JobResultStatus.SUCCESS
        assert result.external_ref == 'msg-1'
        assert notification_client.sent == [('cancellation', 'asha@example.org')]

    @pytest.mark.asyncio
    async def test_wrong_handler_for_kind_escalates(
        self, store, reserve_use_case, send_notification_use_case
    ):
        signup_id = await _reserved_signup_id(store, reserve_use_case)

        result = await send_notification_use_case.handle(
            job=Job(kind=JobKind.UPSERT_EXTERNAL_RECORD, signup_id=signup_id), retry_attempt=0
        )

        assert result.status == JobResultStatus.ESCALATE
