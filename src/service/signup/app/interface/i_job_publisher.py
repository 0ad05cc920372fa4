from abc import ABC, abstractmethod
from uuid import UUID

from src.service.shared_kernel.domain.enum.job_kind import JobKind


class IJobPublisher(ABC):
    @abstractmethod
    async def publish(self, *, kind: JobKind, signup_id: UUID) -> bool:
        """
        Fire-and-forget enqueue after a committed booking change.

        Never raises; returns False when the job could not be enqueued.
        """
        pass
