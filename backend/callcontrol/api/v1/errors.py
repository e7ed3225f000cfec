"""Telephony error to HTTP error mapping for the JSON endpoints."""

from fastapi import HTTPException

from callcontrol.services.telephony import (
    TelephonyConfigurationError,
    TelephonyError,
    TelephonyNotFoundError,
    TelephonyProviderError,
    TelephonyValidationError,
)


def to_http_error(exc: TelephonyError) -> HTTPException:
    if isinstance(exc, TelephonyNotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, (TelephonyValidationError, TelephonyConfigurationError)):
        return HTTPException(status_code=422, detail=str(exc))
    if isinstance(exc, TelephonyProviderError):
        return HTTPException(status_code=502, detail=str(exc))
    return HTTPException(status_code=500, detail=str(exc))
