"""Control document builder.

Pure functions from typed options to a ``ControlDocument``. Nothing here
touches the network; the only errors raised are configuration and
validation errors.
"""

from collections.abc import Sequence

from callcontrol.services.telephony.documents import (
    Conference,
    ControlDocument,
    Dial,
    Gather,
    Play,
    Record,
    Redirect,
    Say,
)
from callcontrol.services.telephony.exceptions import (
    TelephonyConfigurationError,
    TelephonyValidationError,
)
from callcontrol.services.telephony.models import (
    BeepMode,
    ConferenceOptions,
    IVRMenuOption,
    RecordingMode,
)

# Provider hard cap for a single conference room
MAX_CONFERENCE_PARTICIPANTS = 250

DEFAULT_VOICEMAIL_MAX_LENGTH = 120
INBOUND_RECORDING_MAX_LENGTH = 30

DEFAULT_HOLD_MUSIC_URL = "http://com.twilio.sounds.music.s3.amazonaws.com/WeAreYoung.mp3"

DEFAULT_CONFERENCE_EVENTS = ("start", "end", "join", "leave")

INVALID_OPTION_PROMPT = "Sorry, that is not a valid option."


def build_greeting_and_record(
    prompt: str,
    action_url: str,
    transcribe_callback_url: str,
    max_length: int | None = None,
) -> ControlDocument:
    """Speak a prompt, then record the caller with transcription.

    Used for voicemail and for answering inbound calls.

    Args:
        prompt: Text spoken before the beep.
        action_url: URL the provider posts to when recording finishes.
        transcribe_callback_url: URL the transcription is delivered to.
        max_length: Maximum recording length in seconds (default 120).

    Returns:
        [Say(prompt), Record(...)]
    """
    if max_length is None:
        max_length = DEFAULT_VOICEMAIL_MAX_LENGTH
    if isinstance(max_length, bool) or not isinstance(max_length, int) or max_length <= 0:
        raise TelephonyConfigurationError(
            f"Recording max_length must be a positive number of seconds, got {max_length!r}"
        )

    return ControlDocument(
        verbs=(
            Say(text=prompt),
            Record(
                max_length=max_length,
                action=action_url,
                transcribe=True,
                transcribe_callback=transcribe_callback_url,
            ),
        )
    )


def index_menu(options: Sequence[IVRMenuOption]) -> dict[str, IVRMenuOption]:
    """Key menu options by digit, rejecting duplicates."""
    indexed: dict[str, IVRMenuOption] = {}
    for option in options:
        if option.digit in indexed:
            raise TelephonyConfigurationError(
                f"Duplicate IVR menu digit {option.digit!r}: "
                f"{indexed[option.digit].description!r} and {option.description!r}"
            )
        indexed[option.digit] = option
    return indexed


def build_ivr_menu(
    greeting: str,
    options: Sequence[IVRMenuOption],
    action_url: str,
    menu_url: str,
) -> ControlDocument:
    """Build a one-digit IVR menu.

    Options are announced in the order given. A redirect back to the menu
    always follows the Gather so a silent caller hears the menu again.
    """
    routes = index_menu(options)

    parts = [greeting.strip()] if greeting.strip() else []
    parts.extend(_build_menu_prompt(options))
    prompt = " ".join(parts)

    gather = Gather(
        num_digits=1,
        action=action_url,
        method="POST",
        # "#" must be gathered as a digit, not end the input
        finish_on_key="" if "#" in routes else None,
        prompts=(Say(text=prompt),) if prompt else (),
    )
    return ControlDocument(verbs=(gather, Redirect(url=menu_url)))


def build_menu_selection(
    digits: str | None,
    options: Sequence[IVRMenuOption],
    menu_url: str,
) -> ControlDocument:
    """Route a gathered digit to its menu option.

    Unknown or missing digits get an apology and the menu again.
    """
    routes = index_menu(options)
    option = routes.get((digits or "").strip())
    if option is None:
        return ControlDocument(
            verbs=(Say(text=INVALID_OPTION_PROMPT), Redirect(url=menu_url))
        )
    return ControlDocument(verbs=(Redirect(url=option.action),))


def resolve_conference(options: ConferenceOptions) -> Conference:
    """Fill conference defaults and enforce the participant cap."""
    max_participants = options.max_participants
    if max_participants is None:
        max_participants = MAX_CONFERENCE_PARTICIPANTS
    if max_participants <= 0 or max_participants > MAX_CONFERENCE_PARTICIPANTS:
        raise TelephonyConfigurationError(
            f"max_participants must be between 1 and {MAX_CONFERENCE_PARTICIPANTS}, "
            f"got {max_participants}"
        )

    events = options.status_callback_events
    if events is None:
        events = DEFAULT_CONFERENCE_EVENTS

    return Conference(
        name=options.name,
        start_conference_on_enter=_default(options.start_conference_on_enter, True),
        end_conference_on_exit=_default(options.end_conference_on_exit, False),
        wait_url=options.wait_url,
        max_participants=max_participants,
        record=RecordingMode.RECORD_FROM_START if options.record else RecordingMode.DO_NOT_RECORD,
        muted=_default(options.muted, False),
        beep=_default(options.beep, BeepMode.TRUE),
        status_callback=options.status_callback,
        status_callback_events=tuple(events),
    )


def build_conference(options: ConferenceOptions) -> ControlDocument:
    """Dial the caller into a named conference room."""
    return ControlDocument(verbs=(Dial(target=resolve_conference(options)),))


def build_transfer(target_number: str, announcement: str | None = None) -> ControlDocument:
    """Optionally announce, then dial the transfer target."""
    if not target_number or not target_number.strip():
        raise TelephonyValidationError("Transfer target number is required")

    verbs = []
    if announcement:
        verbs.append(Say(text=announcement))
    verbs.append(Dial(target=target_number.strip()))
    return ControlDocument(verbs=tuple(verbs))


def build_hold(hold_audio_url: str | None = None) -> ControlDocument:
    """Loop hold music until the call is redirected."""
    return ControlDocument(
        verbs=(Play(url=hold_audio_url or DEFAULT_HOLD_MUSIC_URL, loop=0),)
    )


def _build_menu_prompt(options: Sequence[IVRMenuOption]) -> list[str]:
    return [f"Press {option.digit} for {option.description}." for option in options]


def _default(value, fallback):
    return fallback if value is None else value
