"""SMS API endpoint."""

from fastapi import APIRouter, Depends

from callcontrol.api.v1.dependencies import get_telephony_service
from callcontrol.api.v1.errors import to_http_error
from callcontrol.services.telephony import (
    SMSOptions,
    SmsResult,
    TelephonyError,
    TelephonyService,
)

router = APIRouter()


@router.post("", response_model=SmsResult, status_code=201)
async def send_message(
    payload: SMSOptions,
    service: TelephonyService = Depends(get_telephony_service),
):
    try:
        return await service.send_message(payload)
    except TelephonyError as exc:
        raise to_http_error(exc) from exc
