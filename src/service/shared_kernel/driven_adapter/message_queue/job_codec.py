"""Wire format for jobs: `{"kind": "...", "signup_id": "..."}` as orjson bytes."""

from uuid import UUID

import orjson

from src.service.shared_kernel.domain.enum.job_kind import JobKind
from src.service.shared_kernel.domain.value_object.job import Job


def encode_job(job: Job) -> str:
    return orjson.dumps({'kind': job.kind.value, 'signup_id': str(job.signup_id)}).decode()


def decode_job(body: str | bytes) -> Job:
    """Raises ValueError for malformed JSON, unknown kinds or bad ids."""
    try:
        data = orjson.loads(body)
    except orjson.JSONDecodeError as e:
        raise ValueError(f'Job body is not JSON: {e}') from e

    if not isinstance(data, dict):
        raise ValueError('Job body must be a JSON object')

    kind, signup_id = data.get('kind'), data.get('signup_id')
    if not kind or not signup_id:
        raise ValueError('Job body requires kind and signup_id')

    try:
        job_kind = JobKind(kind)
    except ValueError as e:
        raise ValueError(f'Unknown job kind: {kind}') from e

    return Job(kind=job_kind, signup_id=UUID(str(signup_id)))


def decode_received(body: str | bytes) -> tuple[Job | None, str | None]:
    try:
        return decode_job(body), None
    except ValueError as e:
        return None, str(e)
