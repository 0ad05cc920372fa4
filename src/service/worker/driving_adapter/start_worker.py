"""
Standalone Job Worker - delivers roster sync and notification jobs

Runs independently from the API service so it can be scaled on its own;
several instances compete for messages on the same queue.

Usage:
    PYTHONPATH=$PWD uv run python src/service/worker/driving_adapter/start_worker.py
"""

import signal

import anyio

from src.platform.config.di import container
from src.platform.logging.loguru_io import Logger
from src.platform.observability.tracing import TracingConfig
from src.service.worker.driving_adapter.health_server import build_health_server


async def run_worker() -> None:
    Logger.base.info('🚀 [Job Worker] Starting...')

    tracing = TracingConfig(service_name='signup-worker')
    tracing.setup()
    Logger.base.info('📊 [Job Worker] OpenTelemetry configured')

    database = container.database()
    tracing.instrument_sqlalchemy(engine=database.engine)

    worker = container.job_worker()
    health_server = build_health_server(worker)
    signal_scope = anyio.CancelScope()

    async def watch_signals() -> None:
        with signal_scope, anyio.open_signal_receiver(signal.SIGTERM, signal.SIGINT) as signals:
            async for signum in signals:
                Logger.base.info(f'🛑 [Job Worker] Received signal {signum}')
                worker.stop()
                return

    try:
        async with anyio.create_task_group() as tg:
            tg.start_soon(watch_signals)
            tg.start_soon(health_server.serve)
            Logger.base.info(
                f'❤️ [Job Worker] Health endpoint on :{health_server.config.port}/health'
            )

            await worker.run()

            health_server.should_exit = True
            signal_scope.cancel()
    finally:
        await container.roster_client().aclose()
        await database.dispose()
        tracing.shutdown()
        Logger.base.info('👋 [Job Worker] Shutdown complete')


def main() -> None:
    anyio.run(run_worker)


if __name__ == '__main__':
    main()
