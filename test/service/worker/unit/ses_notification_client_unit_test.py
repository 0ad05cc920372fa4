from unittest.mock import MagicMock

from botocore.exceptions import ClientError
import pytest

from src.platform.exception.exceptions import PermanentJobError
from src.service.worker.driven_adapter.notification.ses_notification_client import (
    DISABLED_REF,
    SesNotificationClient,
    build_cancellation_email,
    build_confirmation_email,
)


def _client_error(code: str) -> ClientError:
    return ClientError({'Error': {'Code': code, 'Message': code}}, 'SendEmail')


@pytest.fixture
def ses() -> MagicMock:
    ses = MagicMock()
    ses.send_email.return_value = {'MessageId': 'ses-message-1'}
    return ses


@pytest.fixture
def client(ses) -> SesNotificationClient:
    return SesNotificationClient(
        from_email='seva@example.org',
        from_name='Seva Team',
        public_base_url='https://signup.example.org/',
        client=ses,
    )


@pytest.mark.unit
class TestEmailContent:
    def test_confirmation_mentions_seva_day_and_cancel_link(self, signup_detail):
        subject, body = build_confirmation_email(
            signup_detail, cancel_url='https://signup.example.org/cancel/abc'
        )

        assert subject == 'Signup confirmed: Diwali Mela'
        assert 'Hi Asha Patel,' in body
        assert 'Kitchen on Monday, October 20, 2025 (9:00-12:00)' in body
        assert 'https://signup.example.org/cancel/abc' in body

    def test_cancellation(self, signup_detail):
        subject, body = build_cancellation_email(signup_detail)

        assert subject == 'Signup cancelled: Diwali Mela'
        assert 'has been cancelled' in body


@pytest.mark.unit
class TestSesNotificationClient:
    @pytest.mark.asyncio
    async def test_confirmation_returns_message_id(self, client, ses, signup_detail):
        # Act
        message_id = await client.send_confirmation(detail=signup_detail)

        # Assert
        assert message_id == 'ses-message-1'
        kwargs = ses.send_email.call_args.kwargs
        assert kwargs['Source'] == 'Seva Team <seva@example.org>'
        assert kwargs['Destination'] == {'ToAddresses': ['asha@example.org']}
        body = kwargs['Message']['Body']['Text']['Data']
        assert f'https://signup.example.org/signups/{signup_detail.signup.id}' in body

    @pytest.mark.asyncio
    async def test_rejected_message_is_permanent(self, client, ses, signup_detail):
        ses.send_email.side_effect = _client_error('MessageRejected')

        with pytest.raises(PermanentJobError):
            await client.send_cancellation(detail=signup_detail)

    @pytest.mark.asyncio
    async def test_throttling_stays_retryable(self, client, ses, signup_detail):
        ses.send_email.side_effect = _client_error('Throttling')

        with pytest.raises(ClientError):
            await client.send_confirmation(detail=signup_detail)

    @pytest.mark.asyncio
    async def test_disabled_sends_nothing(self, ses, signup_detail):
        client = SesNotificationClient(from_email='seva@example.org', disabled=True, client=ses)

        assert await client.send_confirmation(detail=signup_detail) == DISABLED_REF
        assert await client.send_cancellation(detail=signup_detail) == DISABLED_REF
        ses.send_email.assert_not_called()
