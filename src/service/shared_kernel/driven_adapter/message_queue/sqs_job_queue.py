"""
SQS-backed job queue.

boto3 is blocking, so every call runs in a worker thread via anyio. Redelivery
timing belongs to the queue's visibility timeout; the dead-letter channel is a
second queue that receives a JSON envelope with the failure context.
"""

from typing import Any

import anyio
import boto3
import orjson

from src.platform.logging.loguru_io import Logger
from src.service.shared_kernel.app.interface.i_job_queue import IJobQueue
from src.service.shared_kernel.domain.value_object.job import Job, ReceivedJob
from src.service.shared_kernel.driven_adapter.message_queue.in_memory_job_queue import (
    build_dead_letter,
)
from src.service.shared_kernel.driven_adapter.message_queue.job_codec import (
    decode_received,
    encode_job,
)


class SqsJobQueue(IJobQueue):
    def __init__(
        self,
        *,
        queue_url: str,
        dlq_url: str,
        region: str | None = None,
        endpoint_url: str | None = None,
        client: Any = None,
    ) -> None:
        self.queue_url = queue_url
        self.dlq_url = dlq_url
        self._client = client or boto3.client(
            'sqs',
            region_name=region,
            endpoint_url=endpoint_url or None,
        )

    @staticmethod
    def delivery_count_from(message: dict[str, Any]) -> int:
        raw = message.get('Attributes', {}).get('ApproximateReceiveCount', '1')
        try:
            return max(int(raw), 1)
        except (TypeError, ValueError):
            return 1

    @classmethod
    def to_received_job(cls, message: dict[str, Any]) -> ReceivedJob:
        body = message.get('Body', '')
        job, decode_error = decode_received(body)
        return ReceivedJob(
            job=job,
            handle=message['ReceiptHandle'],
            approximate_delivery_count=cls.delivery_count_from(message),
            raw_body=body,
            decode_error=decode_error,
        )

    @Logger.io
    async def enqueue(self, *, job: Job) -> str | None:
        response = await anyio.to_thread.run_sync(
            lambda: self._client.send_message(QueueUrl=self.queue_url, MessageBody=encode_job(job))
        )
        return response.get('MessageId')

    async def poll(self, *, max_messages: int, wait_time_seconds: int) -> list[ReceivedJob]:
        response = await anyio.to_thread.run_sync(
            lambda: self._client.receive_message(
                QueueUrl=self.queue_url,
                MaxNumberOfMessages=max(1, min(max_messages, 10)),
                WaitTimeSeconds=max(0, min(wait_time_seconds, 20)),
                AttributeNames=['ApproximateReceiveCount'],
            )
        )
        return [self.to_received_job(message) for message in response.get('Messages', [])]

    async def acknowledge(self, *, handle: str) -> None:
        await anyio.to_thread.run_sync(
            lambda: self._client.delete_message(QueueUrl=self.queue_url, ReceiptHandle=handle)
        )

    @Logger.io
    async def escalate(self, *, received: ReceivedJob, reason: str) -> None:
        if not self.dlq_url:
            # Left unacknowledged so the queue's own redrive policy can take over
            raise RuntimeError(f'No dead-letter queue configured, cannot escalate: {reason}')
        envelope = build_dead_letter(received=received, reason=reason)
        await anyio.to_thread.run_sync(
            lambda: self._client.send_message(
                QueueUrl=self.dlq_url, MessageBody=orjson.dumps(envelope).decode()
            )
        )
        Logger.base.warning(f'[DLQ] Sent: {envelope["kind"]} {envelope["signup_id"]} - {reason}')
