"""
Signup API - Main Application
Public slot signup, cancellation and slot listing.

Run: uvicorn src.service.signup.main:app
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from src.platform.app_factory import create_app
from src.platform.config.core_setting import settings
from src.platform.config.di import container
from src.platform.config.wire_modules import WIRE_MODULES
from src.platform.database.orm_db_setting import create_db_and_tables
from src.platform.logging.loguru_io import Logger
from src.platform.observability.tracing import TracingConfig


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Manage application lifespan: startup and shutdown"""
    Logger.base.info('🚀 [Signup API] Starting up...')

    tracing = TracingConfig(service_name='signup-api')
    tracing.setup()

    container.wire(modules=WIRE_MODULES)
    Logger.base.info('🔌 [Signup API] Dependency injection wired')

    database = container.database()
    tracing.instrument_sqlalchemy(engine=database.engine)

    if settings.AUTO_CREATE_TABLES:
        await create_db_and_tables(database)
        Logger.base.info('🗄️ [Signup API] Tables ensured')

    redis_client = None
    if settings.RATE_LIMIT_BACKEND == 'redis':
        tracing.instrument_redis()
        redis_client = container.redis_client()
        await redis_client.initialize()  # Fail-fast

    Logger.base.info('✅ [Signup API] Startup complete')

    yield

    Logger.base.info('🛑 [Signup API] Shutting down...')
    if redis_client is not None:
        await redis_client.disconnect()
    await database.dispose()
    tracing.shutdown()
    container.unwire()
    Logger.base.info('👋 [Signup API] Shutdown complete')


app = create_app(lifespan=lifespan)
