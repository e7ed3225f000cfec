from pydantic_settings import BaseSettings

from callcontrol.services.telephony.builder import DEFAULT_HOLD_MUSIC_URL
from callcontrol.services.telephony.config import TelephonyConfig
from callcontrol.services.telephony.models import IVRMenuOption
from callcontrol.services.telephony.webhooks import (
    DEFAULT_INBOUND_GREETING,
    DEFAULT_MENU_GREETING,
    DEFAULT_VOICEMAIL_GREETING,
)


class Settings(BaseSettings):
    PROJECT_NAME: str = "Call Control"
    API_V1_PREFIX: str = "/api/v1"
    LOG_LEVEL: str = "INFO"

    CORS_ORIGINS: list[str] = ["http://localhost:3000"]

    # Twilio
    TWILIO_ACCOUNT_SID: str = ""
    TWILIO_AUTH_TOKEN: str = ""
    TWILIO_PHONE_NUMBER: str = ""

    # Publicly reachable URL for Twilio callbacks (e.g. ngrok in dev)
    WEBHOOK_BASE_URL: str = "http://localhost:8000"
    # Derived from WEBHOOK_BASE_URL when empty
    VOICE_WEBHOOK_URL: str = ""
    STATUS_CALLBACK_URL: str = ""

    # Call flows
    INBOUND_GREETING: str = DEFAULT_INBOUND_GREETING
    VOICEMAIL_GREETING: str = DEFAULT_VOICEMAIL_GREETING
    IVR_GREETING: str = DEFAULT_MENU_GREETING
    # JSON list, e.g. [{"digit": "1", "description": "sales", "action": "https://..."}]
    # Relative actions resolve against the menu response URL.
    IVR_MENU_OPTIONS: list[IVRMenuOption] = [
        IVRMenuOption(digit="1", description="leaving a voicemail", action="voicemail"),
    ]
    HOLD_MUSIC_URL: str = DEFAULT_HOLD_MUSIC_URL

    model_config = {"env_file": ".env", "case_sensitive": True}

    def telephony_config(self) -> TelephonyConfig:
        base_url = self.WEBHOOK_BASE_URL.rstrip("/")
        voice_url = f"{base_url}{self.API_V1_PREFIX}/voice"
        return TelephonyConfig(
            origin_number=self.TWILIO_PHONE_NUMBER,
            webhook_base_url=base_url,
            voice_webhook_url=(self.VOICE_WEBHOOK_URL or f"{voice_url}/webhook").rstrip("/"),
            status_callback_url=self.STATUS_CALLBACK_URL or f"{voice_url}/status",
            hold_music_url=self.HOLD_MUSIC_URL,
            api_prefix=self.API_V1_PREFIX,
        )


settings = Settings()
