"""Call API endpoints: outbound calls, call details and history."""

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import ValidationError

from callcontrol.api.v1.dependencies import get_telephony_service
from callcontrol.api.v1.errors import to_http_error
from callcontrol.services.telephony import (
    CallHistoryFilter,
    CallOptions,
    CallRecord,
    CallResult,
    Recording,
    TelephonyError,
    TelephonyService,
)
from callcontrol.services.telephony.service import DEFAULT_RECORDINGS_LIMIT

router = APIRouter()


@router.post("", response_model=CallResult, status_code=201)
async def place_call(
    payload: CallOptions,
    service: TelephonyService = Depends(get_telephony_service),
):
    try:
        return await service.place_call(payload)
    except TelephonyError as exc:
        raise to_http_error(exc) from exc


@router.get("", response_model=list[CallRecord])
async def call_history(
    to: str | None = None,
    from_number: str | None = Query(None, alias="from"),
    start_time: datetime | None = None,
    end_time: datetime | None = None,
    limit: int = 50,
    service: TelephonyService = Depends(get_telephony_service),
):
    """Calls filtered by parties and a [start_time, end_time) window on call start."""
    try:
        filters = CallHistoryFilter(
            to=to,
            from_number=from_number,
            start_time=start_time,
            end_time=end_time,
            limit=limit,
        )
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    try:
        return await service.query_call_history(filters)
    except TelephonyError as exc:
        raise to_http_error(exc) from exc


@router.get("/{call_id}", response_model=CallRecord)
async def get_call(
    call_id: str,
    service: TelephonyService = Depends(get_telephony_service),
):
    try:
        return await service.get_call_details(call_id)
    except TelephonyError as exc:
        raise to_http_error(exc) from exc


@router.post("/{call_id}/end", response_model=CallRecord)
async def end_call(
    call_id: str,
    service: TelephonyService = Depends(get_telephony_service),
):
    """Hang up a call. Calls that already ended are returned as-is."""
    try:
        return await service.end_call(call_id)
    except TelephonyError as exc:
        raise to_http_error(exc) from exc


@router.get("/{call_id}/recordings", response_model=list[Recording])
async def list_recordings(
    call_id: str,
    limit: int = Query(DEFAULT_RECORDINGS_LIMIT, ge=1, le=1000),
    service: TelephonyService = Depends(get_telephony_service),
):
    try:
        return await service.list_recordings(call_id, limit=limit)
    except TelephonyError as exc:
        raise to_http_error(exc) from exc
