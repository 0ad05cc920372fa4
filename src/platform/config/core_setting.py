import os
from pathlib import Path
from typing import Annotated, List, Literal

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


_PROJECT_ROOT = Path(__file__).resolve().parents[3]
_ENV_PATH = _PROJECT_ROOT / '.env'
_ENV_FILE = _ENV_PATH if _ENV_PATH.exists() else (_PROJECT_ROOT / '.env.example')


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_ignore_empty=True,
        extra='ignore',
    )

    PROJECT_NAME: str = 'Volunteer Signup'
    VERSION: str = '0.1.0'
    DEBUG: bool = False
    PUBLIC_BASE_URL: str = 'http://localhost:8000'

    # CORS
    BACKEND_CORS_ORIGINS: Annotated[List[str], NoDecode] = []

    @field_validator('BACKEND_CORS_ORIGINS', mode='before')
    @classmethod
    def assemble_cors_origins(cls, v: str | List[str]) -> List[str]:
        if isinstance(v, str) and not v.startswith('['):
            return [i.strip() for i in v.split(',') if i.strip()]
        elif isinstance(v, list):
            return v
        return []

    # PostgreSQL
    POSTGRES_SERVER: str = 'localhost'
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = 'postgres'
    POSTGRES_PASSWORD: SecretStr = SecretStr('postgres')
    POSTGRES_DB: str = 'volunteer_signup'
    DATABASE_URL: str = ''  # Full override, e.g. postgresql+asyncpg://user:pw@host/db

    # Connection pool
    DB_POOL_SIZE: int = 10
    DB_POOL_MAX_OVERFLOW: int = 5
    DB_POOL_TIMEOUT: int = 10  # Seconds to wait for a pooled connection
    DB_POOL_RECYCLE: int = 1800
    DB_POOL_PRE_PING: bool = True

    # Booking transaction
    BOOKING_TX_TIMEOUT_SECONDS: float = 10.0
    BOOKING_LOCK_TIMEOUT_MS: int = 5000
    AUTO_CREATE_TABLES: bool = False  # create_all on startup (dev, LocalStack)

    @property
    def DATABASE_URL_ASYNC(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f'postgresql+asyncpg://{self.POSTGRES_USER}:'
            f'{self.POSTGRES_PASSWORD.get_secret_value()}@'
            f'{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}'
        )

    # Redis (rate limit counters)
    REDIS_HOST: str = 'localhost'
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    REDIS_PASSWORD: str = ''
    REDIS_SOCKET_TIMEOUT: int = 5

    # Rate limit (fixed window, per client identity)
    RATE_LIMIT_BACKEND: Literal['memory', 'redis'] = 'memory'
    SIGNUP_RATE_LIMIT: int = 10
    SIGNUP_RATE_WINDOW_SECONDS: int = 60

    # AWS
    AWS_REGION: str = 'us-east-1'
    AWS_ENDPOINT_URL: str = ''  # LocalStack etc.

    # Queue
    QUEUE_BACKEND: Literal['sqs', 'memory'] = 'memory'
    SQS_QUEUE_URL: str = ''
    SQS_DLQ_URL: str = ''
    QUEUE_VISIBILITY_TIMEOUT_SECONDS: int = 60

    # Object storage mirror
    MIRROR_DISABLED: bool = False
    S3_BUCKET_NAME: str = ''
    S3_BUCKET_REGION: str = ''

    # Email (SES)
    EMAIL_DISABLED: bool = False
    SES_REGION: str = ''
    SES_FROM_EMAIL: str = 'noreply@example.org'
    SES_FROM_NAME: str = 'Volunteer Signup'

    # Roster sheet (Google Sheets v4 REST)
    ROSTER_SYNC_DISABLED: bool = False
    GOOGLE_SHEETS_API_URL: str = 'https://sheets.googleapis.com/v4/spreadsheets'
    GOOGLE_SHEETS_ACCESS_TOKEN: SecretStr = SecretStr('')
    GOOGLE_SHEETS_SPREADSHEET_ID: str = ''  # Shared roster; empty creates one per event
    ROSTER_SHEET_TAB: str = 'Roster'

    # External calls
    EXTERNAL_CALL_TIMEOUT_SECONDS: float = 10.0

    # Worker
    WORKER_BATCH_SIZE: int = 1
    WORKER_POLL_WAIT_SECONDS: int = 20
    WORKER_POLL_ERROR_BACKOFF_SECONDS: float = 5.0
    WORKER_MAX_RETRIES: int = 5
    WORKER_LOCAL_ATTEMPTS: int = 3
    WORKER_RETRY_BACKOFF_SECONDS: float = 1.0
    WORKER_SHUTDOWN_TIMEOUT_SECONDS: float = 30.0
    WORKER_HEALTH_PORT: int = 3001
    WORKER_INSTANCE_ID: str = os.getenv('WORKER_INSTANCE_ID', f'worker-{os.getpid()}')


settings = Settings()  # type: ignore
