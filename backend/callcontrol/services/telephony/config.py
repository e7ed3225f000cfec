"""Resolved, read-only telephony configuration handed to the service and handlers."""

from pydantic import BaseModel, ConfigDict


class TelephonyConfig(BaseModel):
    """Numbers and callback URLs the telephony core needs.

    Built once at startup from process settings; never mutated.
    """

    model_config = ConfigDict(frozen=True)

    origin_number: str
    webhook_base_url: str
    voice_webhook_url: str
    status_callback_url: str
    hold_music_url: str | None = None
    api_prefix: str = "/api/v1"

    @property
    def voice_base_url(self) -> str:
        return f"{self.webhook_base_url.rstrip('/')}{self.api_prefix}/voice"

    @property
    def recording_callback_url(self) -> str:
        return f"{self.voice_webhook_url}/recording"

    @property
    def transcription_callback_url(self) -> str:
        return f"{self.voice_webhook_url}/transcription"

    @property
    def ivr_menu_url(self) -> str:
        return f"{self.voice_base_url}/ivr-menu"

    @property
    def ivr_response_url(self) -> str:
        return f"{self.voice_base_url}/ivr-response"

    @property
    def voicemail_complete_url(self) -> str:
        return f"{self.voice_base_url}/voicemail-complete"

    @property
    def voicemail_transcription_url(self) -> str:
        return f"{self.voice_base_url}/voicemail-transcription"
