from datetime import date
from typing import Any

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from opentelemetry import trace

from src.platform.logging.loguru_io import Logger
from src.service.signup.app.command.cancel_signup_use_case import CancelSignupUseCase
from src.service.signup.app.command.reserve_slot_use_case import ReserveSlotUseCase
from src.service.signup.app.query.get_signup_detail_use_case import GetSignupDetailUseCase
from src.service.signup.app.query.list_day_slots_use_case import ListDaySlotsUseCase
from src.service.signup.domain.enum.signup_status import SignupErrorKind
from src.service.signup.driving_adapter.http_controller.rate_limit import (
    enforce_signup_rate_limit,
)
from src.service.signup.driving_adapter.http_controller.schema.signup_schema import (
    CancelResponse,
    DaySlotsResponse,
    SignupCreateRequest,
    SignupResponse,
    SignupSlotInfo,
    SlotViewResponse,
)


router = APIRouter()
tracer = trace.get_tracer(__name__)


ERROR_STATUS_CODES: dict[SignupErrorKind, int] = {
    SignupErrorKind.INVALID_INPUT: status.HTTP_400_BAD_REQUEST,
    SignupErrorKind.SLOT_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    SignupErrorKind.SLOT_FULL: status.HTTP_409_CONFLICT,
    SignupErrorKind.DUPLICATE_SIGNUP: status.HTTP_409_CONFLICT,
    SignupErrorKind.SLOT_CLOSED: status.HTTP_410_GONE,
    SignupErrorKind.DAY_CLOSED: status.HTTP_410_GONE,
    SignupErrorKind.INVALID_TOKEN: status.HTTP_404_NOT_FOUND,
    SignupErrorKind.ALREADY_CANCELLED: status.HTTP_410_GONE,
}


def error_response(error: SignupErrorKind, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=ERROR_STATUS_CODES[error],
        content={'error': error.value, 'message': message},
    )


@router.post(
    '/slots/{slot_id}/signup',
    status_code=status.HTTP_201_CREATED,
    response_model=SignupResponse,
    dependencies=[Depends(enforce_signup_rate_limit)],
)
@Logger.io
async def create_signup(
    slot_id: int,
    request: SignupCreateRequest,
    use_case: ReserveSlotUseCase = Depends(ReserveSlotUseCase.depends),
    detail_use_case: GetSignupDetailUseCase = Depends(GetSignupDetailUseCase.depends),
) -> Any:
    with tracer.start_as_current_span('controller.create_signup') as span:
        span.set_attribute('slot.id', slot_id)

        outcome = await use_case.reserve(
            slot_id=slot_id,
            name=request.name,
            email=request.email,
            phone=request.phone,
            notes=request.notes,
        )
        if outcome.error is not None:
            return error_response(outcome.error, outcome.message)

        signup = outcome.signup
        assert signup is not None and outcome.cancel_token is not None
        span.set_attribute('signup.id', str(signup.id))

        slot_info = None
        if detail := await detail_use_case.get_detail(signup_id=signup.id):
            slot_info = SignupSlotInfo(
                event_name=detail.event.name,
                date=detail.day.date,
                seva_name=detail.seva_type.name,
                label=detail.slot.label,
            )

        return SignupResponse(
            id=signup.id,
            slot_id=signup.slot_id,
            status=signup.status.value,
            cancel_token=outcome.cancel_token,
            created_at=signup.created_at,
            slot=slot_info,
        )


@router.post('/cancel/{token}', response_model=CancelResponse)
@Logger.io
async def cancel_signup(
    token: str,
    use_case: CancelSignupUseCase = Depends(CancelSignupUseCase.depends),
) -> Any:
    outcome = await use_case.cancel(cancel_token=token)
    if outcome.error is not None:
        return error_response(outcome.error, outcome.message)

    signup = outcome.signup
    assert signup is not None
    return CancelResponse(
        id=signup.id, status=signup.status.value, cancelled_at=signup.cancelled_at
    )


@router.get('/events/{public_id}/days/{day}/slots', response_model=DaySlotsResponse)
@Logger.io
async def list_day_slots(
    public_id: str,
    day: date,
    use_case: ListDaySlotsUseCase = Depends(ListDaySlotsUseCase.depends),
) -> DaySlotsResponse:
    views = await use_case.list_slots(event_public_id=public_id, day=day)
    return DaySlotsResponse(
        event_public_id=public_id,
        date=day,
        slots=[
            SlotViewResponse(
                slot_id=view.slot_id,
                seva_name=view.seva_name,
                label=view.label,
                capacity=view.capacity,
                filled_count=view.filled_count,
                remaining=view.remaining,
                status=view.status,
            )
            for view in views
        ],
    )
