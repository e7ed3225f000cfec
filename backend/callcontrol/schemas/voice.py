"""Pydantic schemas for the TwiML document endpoints."""

from pydantic import BaseModel, Field

from callcontrol.services.telephony.builder import DEFAULT_VOICEMAIL_MAX_LENGTH
from callcontrol.services.telephony.models import IVRMenuOption


class TransferRequest(BaseModel):
    """POST /api/v1/voice/twiml/transfer request body."""

    target: str = Field(..., min_length=1, description="Number or SIP URI to dial")
    announcement: str | None = Field(None, description="Spoken before dialing")


class HoldRequest(BaseModel):
    """POST /api/v1/voice/twiml/hold request body."""

    url: str | None = Field(None, description="Hold audio. Falls back to configured hold music.")


class IVRMenuRequest(BaseModel):
    """POST /api/v1/voice/twiml/ivr-menu request body."""

    greeting: str
    options: list[IVRMenuOption] = Field(default_factory=list)


class VoicemailRequest(BaseModel):
    """POST /api/v1/voice/twiml/voicemail request body."""

    greeting: str
    max_length: int = Field(DEFAULT_VOICEMAIL_MAX_LENGTH, gt=0)
