from typing import Any

import anyio
import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

from src.platform.exception.exceptions import PermanentJobError
from src.platform.logging.loguru_io import Logger
from src.service.signup.domain.entity.signup_entity import SignupDetail
from src.service.worker.app.interface.i_notification_client import INotificationClient


DISABLED_REF = 'disabled'

# SES rejections that retrying cannot fix
_PERMANENT_SES_ERRORS = {
    'MessageRejected',
    'MailFromDomainNotVerifiedException',
    'InvalidParameterValue',
}


def _describe_slot(detail: SignupDetail) -> str:
    shift = detail.slot.label or detail.event.shift_label
    day = detail.day.date.strftime('%A, %B %d, %Y')
    return f'{detail.seva_type.name} on {day}' + (f' ({shift})' if shift else '')


def build_confirmation_email(
    detail: SignupDetail, *, cancel_url: str | None, signup_url: str | None = None
) -> tuple[str, str]:
    subject = f'Signup confirmed: {detail.event.name}'
    lines = [
        f'Hi {detail.signup.name},',
        '',
        f'You are signed up for {_describe_slot(detail)}.',
    ]
    if cancel_url:
        lines += ['', f'If your plans change, cancel here: {cancel_url}']
    elif signup_url:
        lines += ['', f'Your signup: {signup_url}']
    lines += ['', 'Thank you for volunteering!']
    return subject, '\n'.join(lines)


def build_cancellation_email(detail: SignupDetail) -> tuple[str, str]:
    subject = f'Signup cancelled: {detail.event.name}'
    body = '\n'.join(
        [
            f'Hi {detail.signup.name},',
            '',
            f'Your signup for {_describe_slot(detail)} has been cancelled.',
            '',
            'We hope to see you another time.',
        ]
    )
    return subject, body


class SesNotificationClient(INotificationClient):
    def __init__(
        self,
        *,
        from_email: str,
        from_name: str = '',
        region: str | None = None,
        endpoint_url: str | None = None,
        public_base_url: str = '',
        timeout_seconds: float = 10.0,
        disabled: bool = False,
        client: Any = None,
    ) -> None:
        self.source = f'{from_name} <{from_email}>' if from_name else from_email
        self.public_base_url = public_base_url.rstrip('/')
        self.disabled = disabled
        self._client = client
        if self._client is None and not disabled:
            self._client = boto3.client(
                'ses',
                region_name=region or None,
                endpoint_url=endpoint_url or None,
                config=Config(connect_timeout=timeout_seconds, read_timeout=timeout_seconds),
            )

    async def _send(self, *, to: str, subject: str, body: str) -> str:
        try:
            response = await anyio.to_thread.run_sync(
                lambda: self._client.send_email(
                    Source=self.source,
                    Destination={'ToAddresses': [to]},
                    Message={
                        'Subject': {'Data': subject, 'Charset': 'UTF-8'},
                        'Body': {'Text': {'Data': body, 'Charset': 'UTF-8'}},
                    },
                )
            )
        except ClientError as e:
            code = e.response.get('Error', {}).get('Code', '')
            if code in _PERMANENT_SES_ERRORS:
                raise PermanentJobError(f'SES rejected message to {to}: {code}') from e
            raise
        return response['MessageId']

    @Logger.io
    async def send_confirmation(
        self, *, detail: SignupDetail, cancel_url: str | None = None
    ) -> str:
        if self.disabled:
            return DISABLED_REF
        signup_url = (
            f'{self.public_base_url}/signups/{detail.signup.id}' if self.public_base_url else None
        )
        subject, body = build_confirmation_email(
            detail, cancel_url=cancel_url, signup_url=signup_url
        )
        return await self._send(to=detail.signup.email, subject=subject, body=body)

    @Logger.io
    async def send_cancellation(self, *, detail: SignupDetail) -> str:
        if self.disabled:
            return DISABLED_REF
        subject, body = build_cancellation_email(detail)
        return await self._send(to=detail.signup.email, subject=subject, body=body)
