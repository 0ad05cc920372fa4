"""
Test Configuration and Fixtures

Every test here runs against in-memory fakes:
- FakeBookingStore: slots/signups plus a per-slot asyncio.Lock standing in for the row lock
- FakeUnitOfWork: stages writes, applies them on commit, releases locks on commit/rollback
- FakeLedgerRepo / FakeMirror / FakeRosterClient / FakeNotificationClient
- InMemoryJobQueue driven by a FakeClock

No PostgreSQL, Redis or AWS is needed.
"""

# =============================================================================
# Environment setup MUST happen before any application import
# (settings and the loguru sinks are built at import time)
# =============================================================================
import os
from pathlib import Path


def _early_setup_test_environment() -> None:
    test_log_dir = Path(__file__).parent / 'test_log'
    test_log_dir.mkdir(exist_ok=True)
    os.environ['TEST_LOG_DIR'] = str(test_log_dir)

    os.environ.setdefault('SERVICE_NAME', 'signup-test')
    os.environ['QUEUE_BACKEND'] = 'memory'
    os.environ['RATE_LIMIT_BACKEND'] = 'memory'
    os.environ['MIRROR_DISABLED'] = 'true'
    os.environ['ROSTER_SYNC_DISABLED'] = 'true'
    os.environ['EMAIL_DISABLED'] = 'true'


_early_setup_test_environment()

import asyncio  # noqa: E402
from collections import defaultdict  # noqa: E402
from collections.abc import Callable  # noqa: E402
from datetime import date, datetime, timezone  # noqa: E402
from typing import Any  # noqa: E402
from uuid import UUID  # noqa: E402

import anyio  # noqa: E402
import attrs  # noqa: E402
import pytest  # noqa: E402

from src.platform.database.unit_of_work import AbstractUnitOfWork  # noqa: E402
from src.service.shared_kernel.app.interface.i_ledger_repo import ILedgerRepo  # noqa: E402
from src.service.shared_kernel.domain.entity.ledger_entry import LedgerEntry  # noqa: E402
from src.service.shared_kernel.domain.enum.job_kind import (  # noqa: E402
    LedgerKind,
    LedgerStatus,
)
from src.service.shared_kernel.driven_adapter.message_queue.in_memory_job_queue import (  # noqa: E402
    InMemoryJobQueue,
)
from src.service.signup.app.command.cancel_signup_use_case import (  # noqa: E402
    CancelSignupUseCase,
)
from src.service.signup.app.command.reserve_slot_use_case import (  # noqa: E402
    ReserveSlotUseCase,
)
from src.service.signup.app.command.signup_side_effects import SignupSideEffects  # noqa: E402
from src.service.signup.app.interface.i_signup_command_repo import (  # noqa: E402
    ISignupCommandRepo,
)
from src.service.signup.app.interface.i_signup_mirror import ISignupMirror  # noqa: E402
from src.service.signup.app.interface.i_signup_query_repo import (  # noqa: E402
    ISignupQueryRepo,
)
from src.service.signup.app.interface.i_slot_command_repo import (  # noqa: E402
    ISlotCommandRepo,
)
from src.service.signup.domain.entity.signup_entity import (  # noqa: E402
    Signup,
    SignupDetail,
    SlotView,
)
from src.service.signup.domain.entity.slot_entity import (  # noqa: E402
    Day,
    Event,
    SevaType,
    Slot,
)
from src.service.signup.domain.enum.signup_status import (  # noqa: E402
    SignupStatus,
    SlotStatus,
)
from src.service.signup.driven_adapter.message_queue.job_publisher_impl import (  # noqa: E402
    JobPublisherImpl,
)
from src.service.signup.driven_adapter.storage.s3_signup_mirror import (  # noqa: E402
    build_storage_key,
)
from src.service.worker.app.command.send_notification_use_case import (  # noqa: E402
    SendNotificationUseCase,
)
from src.service.worker.app.command.sync_roster_use_case import (  # noqa: E402
    SyncRosterUseCase,
)
from src.service.worker.app.interface.i_notification_client import (  # noqa: E402
    INotificationClient,
)
from src.service.worker.app.interface.i_roster_sync_client import (  # noqa: E402
    IRosterSyncClient,
)
from src.service.worker.app.retry_policy import RetryPolicy  # noqa: E402
from src.service.worker.driven_adapter.roster.google_sheets_roster_client import (  # noqa: E402
    build_roster_row,
)


EVENT_PUBLIC_ID = 'diwali-2025'
EVENT_DAY = date(2025, 10, 20)


# =============================================================================
# Clock
# =============================================================================
class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# =============================================================================
# Booking store + Unit of Work
# =============================================================================
class FakeBookingStore(ISignupQueryRepo):
    """Committed state. Doubles as the signup query repository."""

    def __init__(self) -> None:
        self.events: dict[int, Event] = {
            1: Event(id=1, public_id=EVENT_PUBLIC_ID, name='Diwali Mela', shift_label='Morning')
        }
        self.seva_types: dict[int, SevaType] = {
            1: SevaType(id=1, event_id=1, name='Kitchen'),
            2: SevaType(id=2, event_id=1, name='Parking'),
        }
        self.days: dict[int, Day] = {1: Day(id=1, event_id=1, date=EVENT_DAY)}
        self.slots: dict[int, Slot] = {}
        self.signups: dict[UUID, Signup] = {}
        self.locks: defaultdict[int, asyncio.Lock] = defaultdict(asyncio.Lock)
        self.commits = 0

    def add_slot(
        self,
        *,
        capacity: int = 2,
        filled_count: int = 0,
        status: SlotStatus = SlotStatus.ACTIVE,
        day_closed: bool = False,
        seva_type_id: int = 1,
        label: str = '9:00-12:00',
    ) -> Slot:
        slot_id = len(self.slots) + 1
        day_id = 1
        if day_closed:
            day_id = len(self.days) + 1
            self.days[day_id] = Day(id=day_id, event_id=1, date=EVENT_DAY, is_closed=True)
        slot = Slot(
            id=slot_id,
            day_id=day_id,
            seva_type_id=seva_type_id,
            capacity=capacity,
            filled_count=filled_count,
            status=status,
            label=label,
        )
        self.slots[slot_id] = slot
        return slot

    def confirmed_signups(self, slot_id: int) -> list[Signup]:
        return [
            s
            for s in self.signups.values()
            if s.slot_id == slot_id and s.status == SignupStatus.CONFIRMED
        ]

    async def get_detail(self, *, signup_id: UUID) -> SignupDetail | None:
        signup = self.signups.get(signup_id)
        if signup is None:
            return None
        slot = self.slots[signup.slot_id]
        day = self.days[slot.day_id]
        return SignupDetail(
            signup=attrs.evolve(signup),
            slot=attrs.evolve(slot),
            day=day,
            event=attrs.evolve(self.events[day.event_id]),
            seva_type=self.seva_types[slot.seva_type_id],
        )

    async def list_day_slots(self, *, event_public_id: str, day: date) -> list[SlotView]:
        event_ids = {e.id for e in self.events.values() if e.public_id == event_public_id}
        day_ids = {d.id for d in self.days.values() if d.event_id in event_ids and d.date == day}
        return [
            SlotView(
                slot_id=slot.id,
                seva_name=self.seva_types[slot.seva_type_id].name,
                label=slot.label,
                capacity=slot.capacity,
                filled_count=slot.filled_count,
                remaining=slot.remaining,
                status=slot.status.value,
            )
            for slot in sorted(self.slots.values(), key=lambda s: s.id)
            if slot.day_id in day_ids
        ]

    async def set_roster_spreadsheet_id(self, *, event_id: int, spreadsheet_id: str) -> str:
        event = self.events[event_id]
        if not event.roster_spreadsheet_id:
            event.roster_spreadsheet_id = spreadsheet_id
        return event.roster_spreadsheet_id


class FakeSlotRepo(ISlotCommandRepo):
    def __init__(self, uow: 'FakeUnitOfWork') -> None:
        self.uow = uow

    async def get_for_update(self, *, slot_id: int) -> Slot | None:
        lock = self.uow.store.locks[slot_id]
        await lock.acquire()
        self.uow.held_locks.append(lock)
        await asyncio.sleep(0)  # let competing transactions queue up on the lock
        slot = self.uow.store.slots.get(slot_id)
        return attrs.evolve(slot) if slot else None

    async def get_day(self, *, day_id: int) -> Day | None:
        return self.uow.store.days.get(day_id)

    async def save(self, *, slot: Slot) -> None:
        self.uow.pending_slots[slot.id] = slot


class FakeSignupRepo(ISignupCommandRepo):
    def __init__(self, uow: 'FakeUnitOfWork') -> None:
        self.uow = uow

    async def find_confirmed(self, *, slot_id: int, email: str) -> Signup | None:
        for signup in self.uow.store.confirmed_signups(slot_id):
            if signup.email == email:
                return signup
        return None

    async def get_by_token_hash(self, *, cancel_token_hash: str) -> Signup | None:
        for signup in self.uow.store.signups.values():
            if signup.cancel_token_hash == cancel_token_hash:
                return attrs.evolve(signup)
        return None

    async def get_by_id(self, *, signup_id: UUID) -> Signup | None:
        signup = self.uow.store.signups.get(signup_id)
        return attrs.evolve(signup) if signup else None

    async def add(self, *, signup: Signup) -> None:
        self.uow.pending_signups[signup.id] = signup

    async def save(self, *, signup: Signup) -> None:
        self.uow.pending_signups[signup.id] = signup


class FakeUnitOfWork(AbstractUnitOfWork):
    def __init__(self, store: FakeBookingStore) -> None:
        self.store = store
        self.slot_repo = FakeSlotRepo(self)
        self.signup_repo = FakeSignupRepo(self)
        self.held_locks: list[asyncio.Lock] = []
        self.pending_slots: dict[int, Slot] = {}
        self.pending_signups: dict[UUID, Signup] = {}

    async def _commit(self) -> None:
        self.store.slots.update(self.pending_slots)
        self.store.signups.update(self.pending_signups)
        self.store.commits += 1
        self._discard()

    async def rollback(self) -> None:
        self._discard()

    def _discard(self) -> None:
        self.pending_slots.clear()
        self.pending_signups.clear()
        for lock in self.held_locks:
            lock.release()
        self.held_locks.clear()


# =============================================================================
# Ledger and external clients
# =============================================================================
class FakeLedgerRepo(ILedgerRepo):
    """Same upsert rule as the SQL repo: a SUCCESS row is never downgraded."""

    def __init__(self) -> None:
        self.entries: dict[tuple[UUID, LedgerKind], LedgerEntry] = {}

    async def get(self, *, signup_id: UUID, kind: LedgerKind) -> LedgerEntry | None:
        return self.entries.get((signup_id, kind))

    async def record_success(
        self, *, signup_id: UUID, kind: LedgerKind, external_ref: str | None
    ) -> LedgerEntry:
        existing = self.entries.get((signup_id, kind))
        if existing is not None and existing.is_success:
            return existing
        entry = LedgerEntry(
            signup_id=signup_id,
            kind=kind,
            status=LedgerStatus.SUCCESS,
            external_ref=external_ref,
            retry_count=existing.retry_count if existing else 0,
            synced_at=datetime.now(timezone.utc),
        )
        self.entries[(signup_id, kind)] = entry
        return entry

    async def record_failure(
        self, *, signup_id: UUID, kind: LedgerKind, error: str, retry_count: int
    ) -> LedgerEntry:
        existing = self.entries.get((signup_id, kind))
        if existing is not None and existing.is_success:
            return existing
        entry = LedgerEntry(
            signup_id=signup_id,
            kind=kind,
            status=LedgerStatus.FAILED,
            last_error=error,
            retry_count=retry_count,
        )
        self.entries[(signup_id, kind)] = entry
        return entry


class FakeMirror(ISignupMirror):
    def __init__(self) -> None:
        self.fail = False
        self.keys: list[str] = []

    async def mirror(self, *, detail: SignupDetail) -> str:
        if self.fail:
            raise ConnectionError('object storage unreachable')
        key = build_storage_key(detail)
        self.keys.append(key)
        return key


class FakeRosterClient(IRosterSyncClient):
    """Rows keyed by signup id. `failures` are raised one per call before anything is written."""

    def __init__(self) -> None:
        self.rows: dict[str, list[Any]] = {}
        self.failures: list[Exception] = []
        self.always_fail: Exception | None = None
        self.delay = 0.0
        self.upsert_calls = 0
        self.created_spreadsheets: list[str] = []

    async def _before_call(self) -> None:
        if self.delay:
            await anyio.sleep(self.delay)
        if self.always_fail is not None:
            raise self.always_fail
        if self.failures:
            raise self.failures.pop(0)

    async def ensure_spreadsheet(self, *, event: Event) -> tuple[str, bool]:
        if event.roster_spreadsheet_id:
            return event.roster_spreadsheet_id, False
        spreadsheet_id = f'sheet-{event.public_id}-{len(self.created_spreadsheets) + 1}'
        self.created_spreadsheets.append(spreadsheet_id)
        return spreadsheet_id, True

    async def upsert(self, *, spreadsheet_id: str, detail: SignupDetail) -> str:
        self.upsert_calls += 1
        await self._before_call()
        key = str(detail.signup.id)
        if key not in self.rows:
            self.rows[key] = []
        self.rows[key] = build_roster_row(detail)
        row = list(self.rows).index(key) + 2
        return f'Roster!A{row}:M{row}'

    async def mark_cancelled(self, *, spreadsheet_id: str, detail: SignupDetail) -> None:
        await self._before_call()
        self.rows[str(detail.signup.id)] = build_roster_row(detail)


class FakeNotificationClient(INotificationClient):
    def __init__(self) -> None:
        self.sent: list[tuple[str, str]] = []
        self.failures: list[Exception] = []

    async def send_confirmation(
        self, *, detail: SignupDetail, cancel_url: str | None = None
    ) -> str:
        if self.failures:
            raise self.failures.pop(0)
        self.sent.append(('confirmation', detail.signup.email))
        return f'msg-{len(self.sent)}'

    async def send_cancellation(self, *, detail: SignupDetail) -> str:
        if self.failures:
            raise self.failures.pop(0)
        self.sent.append(('cancellation', detail.signup.email))
        return f'msg-{len(self.sent)}'


# =============================================================================
# Fixtures
# =============================================================================
@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> FakeBookingStore:
    return FakeBookingStore()


@pytest.fixture
def uow_factory(store: FakeBookingStore) -> Callable[[], FakeUnitOfWork]:
    return lambda: FakeUnitOfWork(store)


@pytest.fixture
def ledger() -> FakeLedgerRepo:
    return FakeLedgerRepo()


@pytest.fixture
def mirror() -> FakeMirror:
    return FakeMirror()


@pytest.fixture
def job_queue(clock: FakeClock) -> InMemoryJobQueue:
    return InMemoryJobQueue(visibility_timeout_seconds=30, clock=clock, poll_interval_seconds=0.01)


@pytest.fixture
def side_effects(
    store: FakeBookingStore,
    mirror: FakeMirror,
    ledger: FakeLedgerRepo,
    job_queue: InMemoryJobQueue,
) -> SignupSideEffects:
    return SignupSideEffects(
        signup_query_repo=store,
        signup_mirror=mirror,
        ledger_repo=ledger,
        job_publisher=JobPublisherImpl(job_queue=job_queue),
    )


@pytest.fixture
def reserve_use_case(
    uow_factory: Callable[[], FakeUnitOfWork], side_effects: SignupSideEffects
) -> ReserveSlotUseCase:
    return ReserveSlotUseCase(uow_factory=uow_factory, side_effects=side_effects)


@pytest.fixture
def cancel_use_case(
    uow_factory: Callable[[], FakeUnitOfWork], side_effects: SignupSideEffects
) -> CancelSignupUseCase:
    return CancelSignupUseCase(uow_factory=uow_factory, side_effects=side_effects)


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def retry_policy(sleeps: list[float]) -> RetryPolicy:
    async def _record_sleep(seconds: float) -> None:
        sleeps.append(seconds)

    return RetryPolicy(attempts=3, base_delay_seconds=1.0, sleep=_record_sleep)


@pytest.fixture
def roster_client() -> FakeRosterClient:
    return FakeRosterClient()


@pytest.fixture
def notification_client() -> FakeNotificationClient:
    return FakeNotificationClient()


@pytest.fixture
def sync_roster_use_case(
    roster_client: FakeRosterClient,
    ledger: FakeLedgerRepo,
    store: FakeBookingStore,
    retry_policy: RetryPolicy,
) -> SyncRosterUseCase:
    return SyncRosterUseCase(
        roster_client=roster_client,
        ledger_repo=ledger,
        signup_query_repo=store,
        retry_policy=retry_policy,
        max_retries=5,
    )


@pytest.fixture
def send_notification_use_case(
    notification_client: FakeNotificationClient,
    ledger: FakeLedgerRepo,
    store: FakeBookingStore,
    retry_policy: RetryPolicy,
) -> SendNotificationUseCase:
    return SendNotificationUseCase(
        notification_client=notification_client,
        ledger_repo=ledger,
        signup_query_repo=store,
        retry_policy=retry_policy,
        max_retries=5,
    )


@pytest.fixture
def signup_detail() -> SignupDetail:
    """A confirmed signup with its joined rows, for adapter-level tests."""
    return SignupDetail(
        signup=Signup(
            id=UUID('01890a5d-ac96-774b-bcce-b302099a8057'),
            slot_id=7,
            name='Asha Patel',
            email='asha@example.org',
            cancel_token_hash='f' * 64,
            phone='+1 555 0100',
            created_at=datetime(2025, 10, 1, 9, 30, tzinfo=timezone.utc),
        ),
        slot=Slot(id=7, day_id=1, seva_type_id=1, capacity=4, filled_count=2, label='9:00-12:00'),
        day=Day(id=1, event_id=1, date=EVENT_DAY),
        event=Event(id=1, public_id=EVENT_PUBLIC_ID, name='Diwali Mela', shift_label='Morning'),
        seva_type=SevaType(id=1, event_id=1, name='Kitchen'),
    )
