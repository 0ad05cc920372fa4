from uuid import UUID

from src.platform.logging.loguru_io import Logger
from src.platform.metrics.signup_metrics import metrics
from src.service.shared_kernel.app.interface.i_job_queue import IJobQueue
from src.service.shared_kernel.domain.enum.job_kind import JobKind
from src.service.shared_kernel.domain.value_object.job import Job
from src.service.signup.app.interface.i_job_publisher import IJobPublisher


class JobPublisherImpl(IJobPublisher):
    def __init__(self, *, job_queue: IJobQueue) -> None:
        self.job_queue = job_queue

    async def publish(self, *, kind: JobKind, signup_id: UUID) -> bool:
        try:
            message_id = await self.job_queue.enqueue(job=Job(kind=kind, signup_id=signup_id))
        except Exception as e:
            # The booking is already committed; enqueue failures never reach the caller
            metrics.record_side_effect_failure(effect='enqueue')
            Logger.base.error(f'[ENQUEUE] {kind} for signup {signup_id} failed: {e}')
            return False

        Logger.base.info(f'[ENQUEUE] {kind} for signup {signup_id} -> {message_id}')
        return True
