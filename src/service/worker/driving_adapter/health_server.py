"""
Liveness endpoint for the worker process.

Runs inside the worker's event loop; signal handling stays with the
worker entrypoint so SIGTERM drains jobs instead of only stopping uvicorn.
"""

from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Generator

from fastapi import FastAPI
from fastapi.responses import PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
import uvicorn

from src.platform.config.core_setting import settings
from src.service.worker.driving_adapter.job_worker import JobWorker


def create_health_app(worker: JobWorker) -> FastAPI:
    app = FastAPI(title=f'{settings.PROJECT_NAME} Worker', docs_url=None, redoc_url=None)

    @app.get('/health')
    async def health() -> dict[str, Any]:
        return {
            'status': 'healthy',
            'in_flight_jobs': worker.in_flight,
            'uptime_seconds': round(worker.uptime_seconds, 1),
            'timestamp': datetime.now(timezone.utc).isoformat(),
        }

    @app.get('/metrics')
    async def get_metrics() -> PlainTextResponse:
        return PlainTextResponse(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    return app


class HealthServer(uvicorn.Server):
    """uvicorn server that leaves SIGINT/SIGTERM to its host process."""

    def install_signal_handlers(self) -> None:
        pass

    @contextmanager
    def capture_signals(self) -> Generator[None, None, None]:
        yield


def build_health_server(worker: JobWorker, *, port: int | None = None) -> HealthServer:
    config = uvicorn.Config(
        create_health_app(worker),
        host='0.0.0.0',
        port=port or settings.WORKER_HEALTH_PORT,
        log_config=None,  # stdlib logging is already intercepted into loguru
        access_log=False,
    )
    return HealthServer(config)
