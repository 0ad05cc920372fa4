"""
Object storage mirror of signup snapshots.

Keys are derived from identifiers only, so mirroring the same signup again
overwrites one object instead of creating another:
    events/{public_id}/month={YYYY-MM}/date={YYYY-MM-DD}/slot={slot_id}/signup={signup_id}.json
"""

from typing import Any

import anyio
import boto3
from botocore.config import Config
import orjson

from src.platform.logging.loguru_io import Logger
from src.service.signup.app.interface.i_signup_mirror import ISignupMirror
from src.service.signup.domain.entity.signup_entity import SignupDetail


def build_storage_key(detail: SignupDetail) -> str:
    day = detail.day.date
    return (
        f'events/{detail.event.public_id}'
        f'/month={day.strftime("%Y-%m")}'
        f'/date={day.isoformat()}'
        f'/slot={detail.slot.id}'
        f'/signup={detail.signup.id}.json'
    )


def build_snapshot(detail: SignupDetail) -> dict[str, Any]:
    """JSON body for the mirror. The cancel token digest never leaves the database."""
    signup = detail.signup
    return {
        'signup_id': str(signup.id),
        'status': signup.status.value,
        'name': signup.name,
        'email': signup.email,
        'phone': signup.phone,
        'notes': signup.notes,
        'created_at': signup.created_at.isoformat() if signup.created_at else None,
        'cancelled_at': signup.cancelled_at.isoformat() if signup.cancelled_at else None,
        'event': {'public_id': detail.event.public_id, 'name': detail.event.name},
        'date': detail.day.date.isoformat(),
        'slot': {
            'id': detail.slot.id,
            'label': detail.slot.label,
            'capacity': detail.slot.capacity,
            'filled_count': detail.slot.filled_count,
            'status': detail.slot.status.value,
        },
        'seva': detail.seva_type.name,
    }


class S3SignupMirror(ISignupMirror):
    def __init__(
        self,
        *,
        bucket: str,
        region: str | None = None,
        endpoint_url: str | None = None,
        disabled: bool = False,
        timeout_seconds: float = 10.0,
        client: Any = None,
    ) -> None:
        self.bucket = bucket
        self.disabled = disabled
        self._client = client
        if self._client is None and not disabled:
            self._client = boto3.client(
                's3',
                region_name=region or None,
                endpoint_url=endpoint_url or None,
                config=Config(
                    connect_timeout=timeout_seconds,
                    read_timeout=timeout_seconds,
                    retries={'max_attempts': 2},
                ),
            )

    @Logger.io
    async def mirror(self, *, detail: SignupDetail) -> str:
        key = build_storage_key(detail)
        if self.disabled:
            return key

        body = orjson.dumps(build_snapshot(detail))
        await anyio.to_thread.run_sync(
            lambda: self._client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=body,
                ContentType='application/json',
                ServerSideEncryption='AES256',
            )
        )
        return key
