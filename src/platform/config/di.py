"""
https://python-dependency-injector.ets-labs.org/index.html
https://python-dependency-injector.ets-labs.org/examples/fastapi-sqlalchemy.html
"""

from dependency_injector import containers, providers

from src.platform.config.core_setting import Settings
from src.platform.database.orm_db_setting import Database
from src.platform.database.unit_of_work import SqlAlchemyUnitOfWork
from src.platform.state.fixed_window_rate_limiter import (
    InMemoryFixedWindowRateLimiter,
    RedisFixedWindowRateLimiter,
)
from src.platform.state.redis_client import RedisClient
from src.service.shared_kernel.driven_adapter.message_queue.in_memory_job_queue import (
    InMemoryJobQueue,
)
from src.service.shared_kernel.driven_adapter.message_queue.sqs_job_queue import SqsJobQueue
from src.service.shared_kernel.driven_adapter.repo.ledger_repo_impl import LedgerRepoImpl
from src.service.signup.app.command.signup_side_effects import SignupSideEffects
from src.service.signup.driven_adapter.message_queue.job_publisher_impl import JobPublisherImpl
from src.service.signup.driven_adapter.repo.signup_query_repo_impl import SignupQueryRepoImpl
from src.service.signup.driven_adapter.storage.s3_signup_mirror import S3SignupMirror
from src.service.worker.app.command.send_notification_use_case import SendNotificationUseCase
from src.service.worker.app.command.sync_roster_use_case import SyncRosterUseCase
from src.service.worker.app.retry_policy import RetryPolicy
from src.service.worker.driven_adapter.notification.ses_notification_client import (
    SesNotificationClient,
)
from src.service.worker.driven_adapter.roster.google_sheets_roster_client import (
    GoogleSheetsRosterClient,
)
from src.service.worker.driving_adapter.job_worker import JobWorker


class Container(containers.DeclarativeContainer):
    # Configuration
    config_service = providers.Singleton(Settings)

    # Database
    database = providers.Singleton(Database)

    # One UoW (one transaction) per reserve/cancel call
    unit_of_work = providers.Factory(
        SqlAlchemyUnitOfWork,
        session_factory=database.provided.session,
        lock_timeout_ms=config_service.provided.BOOKING_LOCK_TIMEOUT_MS,
    )

    # Repositories (stateless - use session_factory per call)
    signup_query_repo = providers.Singleton(
        SignupQueryRepoImpl, session_factory=database.provided.session
    )
    ledger_repo = providers.Singleton(LedgerRepoImpl, session_factory=database.provided.session)

    # Redis (rate limit counters); initialized in lifespan when RATE_LIMIT_BACKEND=redis
    redis_client = providers.Singleton(RedisClient)

    rate_limiter = providers.Selector(
        config_service.provided.RATE_LIMIT_BACKEND,
        memory=providers.Singleton(
            InMemoryFixedWindowRateLimiter,
            limit=config_service.provided.SIGNUP_RATE_LIMIT,
            window_seconds=config_service.provided.SIGNUP_RATE_WINDOW_SECONDS,
        ),
        redis=providers.Singleton(
            RedisFixedWindowRateLimiter,
            client=redis_client.provided.get_client.call(),
            limit=config_service.provided.SIGNUP_RATE_LIMIT,
            window_seconds=config_service.provided.SIGNUP_RATE_WINDOW_SECONDS,
        ),
    )

    # Message queue
    job_queue = providers.Selector(
        config_service.provided.QUEUE_BACKEND,
        sqs=providers.Singleton(
            SqsJobQueue,
            queue_url=config_service.provided.SQS_QUEUE_URL,
            dlq_url=config_service.provided.SQS_DLQ_URL,
            region=config_service.provided.AWS_REGION,
            endpoint_url=config_service.provided.AWS_ENDPOINT_URL,
        ),
        memory=providers.Singleton(
            InMemoryJobQueue,
            visibility_timeout_seconds=config_service.provided.QUEUE_VISIBILITY_TIMEOUT_SECONDS,
        ),
    )
    job_publisher = providers.Singleton(JobPublisherImpl, job_queue=job_queue)

    # Object storage mirror
    signup_mirror = providers.Singleton(
        S3SignupMirror,
        bucket=config_service.provided.S3_BUCKET_NAME,
        region=config_service.provided.S3_BUCKET_REGION,
        endpoint_url=config_service.provided.AWS_ENDPOINT_URL,
        disabled=config_service.provided.MIRROR_DISABLED,
        timeout_seconds=config_service.provided.EXTERNAL_CALL_TIMEOUT_SECONDS,
    )

    signup_side_effects = providers.Singleton(
        SignupSideEffects,
        signup_query_repo=signup_query_repo,
        signup_mirror=signup_mirror,
        ledger_repo=ledger_repo,
        job_publisher=job_publisher,
    )

    # External clients (worker)
    roster_client = providers.Singleton(
        GoogleSheetsRosterClient,
        base_url=config_service.provided.GOOGLE_SHEETS_API_URL,
        access_token=config_service.provided.GOOGLE_SHEETS_ACCESS_TOKEN.get_secret_value.call(),
        tab=config_service.provided.ROSTER_SHEET_TAB,
        default_spreadsheet_id=config_service.provided.GOOGLE_SHEETS_SPREADSHEET_ID,
        timeout_seconds=config_service.provided.EXTERNAL_CALL_TIMEOUT_SECONDS,
        disabled=config_service.provided.ROSTER_SYNC_DISABLED,
    )
    notification_client = providers.Singleton(
        SesNotificationClient,
        from_email=config_service.provided.SES_FROM_EMAIL,
        from_name=config_service.provided.SES_FROM_NAME,
        region=providers.Callable(
            lambda config: config.SES_REGION or config.AWS_REGION, config_service
        ),
        endpoint_url=config_service.provided.AWS_ENDPOINT_URL,
        public_base_url=config_service.provided.PUBLIC_BASE_URL,
        timeout_seconds=config_service.provided.EXTERNAL_CALL_TIMEOUT_SECONDS,
        disabled=config_service.provided.EMAIL_DISABLED,
    )

    # Worker
    retry_policy = providers.Singleton(
        RetryPolicy,
        attempts=config_service.provided.WORKER_LOCAL_ATTEMPTS,
        base_delay_seconds=config_service.provided.WORKER_RETRY_BACKOFF_SECONDS,
    )
    sync_roster_use_case = providers.Singleton(
        SyncRosterUseCase,
        roster_client=roster_client,
        ledger_repo=ledger_repo,
        signup_query_repo=signup_query_repo,
        retry_policy=retry_policy,
        max_retries=config_service.provided.WORKER_MAX_RETRIES,
    )
    send_notification_use_case = providers.Singleton(
        SendNotificationUseCase,
        notification_client=notification_client,
        ledger_repo=ledger_repo,
        signup_query_repo=signup_query_repo,
        retry_policy=retry_policy,
        max_retries=config_service.provided.WORKER_MAX_RETRIES,
    )
    job_worker = providers.Singleton(
        JobWorker,
        job_queue=job_queue,
        handlers=providers.List(sync_roster_use_case, send_notification_use_case),
        batch_size=config_service.provided.WORKER_BATCH_SIZE,
        poll_wait_seconds=config_service.provided.WORKER_POLL_WAIT_SECONDS,
        poll_error_backoff_seconds=config_service.provided.WORKER_POLL_ERROR_BACKOFF_SECONDS,
        shutdown_timeout_seconds=config_service.provided.WORKER_SHUTDOWN_TIMEOUT_SECONDS,
        instance_id=config_service.provided.WORKER_INSTANCE_ID,
    )


container = Container()
