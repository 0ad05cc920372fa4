from fastapi import FastAPI
from fastapi.testclient import TestClient
import pytest

from src.platform.exception.exception_handlers import register_exception_handlers
from src.platform.exception.exceptions import BookingUnavailableError, CustomBaseError


@pytest.fixture
def client() -> TestClient:
    app = FastAPI()
    register_exception_handlers(app)

    @app.get('/unavailable')
    async def unavailable():
        raise BookingUnavailableError()

    @app.get('/custom')
    async def custom():
        raise CustomBaseError('teapot', status_code=418)

    @app.get('/bad-value')
    async def bad_value():
        raise ValueError('capacity must be positive')

    @app.get('/boom')
    async def boom():
        raise RuntimeError('boom')

    return TestClient(app, raise_server_exceptions=False)


@pytest.mark.unit
class TestExceptionHandlers:
    def test_booking_unavailable_is_503(self, client):
        response = client.get('/unavailable')

        assert response.status_code == 503
        assert response.json()['error'] == 'BOOKING_UNAVAILABLE'
        assert response.json()['message']

    def test_custom_error_keeps_its_status(self, client):
        response = client.get('/custom')

        assert response.status_code == 418
        assert response.json() == {'error': 'INTERNAL_ERROR', 'message': 'teapot'}

    def test_value_error_is_invalid_input(self, client):
        response = client.get('/bad-value')

        assert response.status_code == 400
        assert response.json()['error'] == 'INVALID_INPUT'

    def test_unhandled_error_hides_details(self, client):
        response = client.get('/boom')

        assert response.status_code == 500
        assert response.json() == {'error': 'INTERNAL_ERROR', 'message': 'Internal server error'}
