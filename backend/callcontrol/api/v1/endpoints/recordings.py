from fastapi import APIRouter, Depends, Response

from callcontrol.api.v1.dependencies import get_telephony_service
from callcontrol.api.v1.errors import to_http_error
from callcontrol.services.telephony import TelephonyError, TelephonyService

router = APIRouter()


@router.delete("/{recording_id}", status_code=204)
async def delete_recording(
    recording_id: str,
    service: TelephonyService = Depends(get_telephony_service),
):
    """Delete a recording. A second delete of the same id returns 404."""
    try:
        await service.delete_recording(recording_id)
    except TelephonyError as exc:
        raise to_http_error(exc) from exc
    return Response(status_code=204)
