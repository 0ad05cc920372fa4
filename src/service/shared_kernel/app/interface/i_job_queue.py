"""
Job Queue Interface

At-least-once channel between the booking engine (producer) and the worker
(consumer). A message that is not acknowledged within the visibility window
is delivered again with a higher delivery count.
"""

from abc import ABC, abstractmethod

from src.service.shared_kernel.domain.value_object.job import Job, ReceivedJob


class IJobQueue(ABC):
    @abstractmethod
    async def enqueue(self, *, job: Job) -> str | None:
        """Publish a job. Returns the transport message id."""
        pass

    @abstractmethod
    async def poll(self, *, max_messages: int, wait_time_seconds: int) -> list[ReceivedJob]:
        """
        Long-poll for jobs.

        Each returned job is invisible to other consumers until acknowledged
        or until its visibility window lapses.
        """
        pass

    @abstractmethod
    async def acknowledge(self, *, handle: str) -> None:
        pass

    @abstractmethod
    async def escalate(self, *, received: ReceivedJob, reason: str) -> None:
        """
        Send to the dead-letter channel with kind, signup id, error text,
        timestamp and delivery count. The caller acknowledges the original.
        """
        pass
