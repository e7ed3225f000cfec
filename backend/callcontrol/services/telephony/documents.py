"""Call-control documents.

A document is an ordered sequence of verbs; the provider executes them in
order. Documents are plain values: the builder produces them, and
``render_twiml`` turns one into the TwiML text Twilio expects.

Verbs:
    Say: speak text
    Record: record the caller, optionally transcribing
    Gather: collect DTMF digits while speaking/playing prompts
    Dial: connect to a number or a Conference
    Play: play an audio URL (loop=0 repeats forever)
    Redirect: continue with the document at another URL
"""

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field
from twilio.twiml.voice_response import Dial as TwimlDial
from twilio.twiml.voice_response import Gather as TwimlGather
from twilio.twiml.voice_response import VoiceResponse

from callcontrol.services.telephony.models import BeepMode, RecordingMode

TWIML_CONTENT_TYPE = "text/xml"


class _Verb(BaseModel):
    model_config = ConfigDict(frozen=True)


class Say(_Verb):
    verb: Literal["say"] = "say"
    text: str
    voice: str | None = None
    language: str | None = None


class Play(_Verb):
    verb: Literal["play"] = "play"
    url: str
    loop: int = Field(1, ge=0)


class Record(_Verb):
    verb: Literal["record"] = "record"
    max_length: int = Field(..., gt=0)
    action: str
    method: str = "POST"
    transcribe: bool = False
    transcribe_callback: str | None = None
    play_beep: bool = True


class Gather(_Verb):
    verb: Literal["gather"] = "gather"
    num_digits: int = Field(1, gt=0)
    action: str
    method: str = "POST"
    timeout: int = 5
    # None keeps the provider default ("#"); "" disables the finish key
    finish_on_key: str | None = None
    prompts: tuple[Annotated[Say | Play, Field(discriminator="verb")], ...] = ()


class Conference(_Verb):
    verb: Literal["conference"] = "conference"
    name: str
    start_conference_on_enter: bool
    end_conference_on_exit: bool
    wait_url: str | None = None
    max_participants: int
    record: RecordingMode
    muted: bool
    beep: BeepMode
    status_callback: str | None = None
    status_callback_events: tuple[str, ...] = ()


class Dial(_Verb):
    verb: Literal["dial"] = "dial"
    target: str | Conference


class Redirect(_Verb):
    verb: Literal["redirect"] = "redirect"
    url: str
    method: str = "POST"


Verb = Annotated[
    Say | Play | Record | Gather | Dial | Redirect,
    Field(discriminator="verb"),
]


class ControlDocument(BaseModel):
    """Ordered verbs returned to the provider. Empty means plain acknowledgment."""

    model_config = ConfigDict(frozen=True)

    verbs: tuple[Verb, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.verbs


EMPTY_DOCUMENT = ControlDocument()


def render_twiml(document: ControlDocument) -> str:
    """Render a control document as a TwiML XML string."""
    response = VoiceResponse()
    for verb in document.verbs:
        _append_verb(response, verb)
    return str(response)


def _append_verb(response: VoiceResponse, verb) -> None:
    if isinstance(verb, Say):
        response.say(verb.text, voice=verb.voice, language=verb.language)
    elif isinstance(verb, Play):
        response.play(verb.url, loop=verb.loop)
    elif isinstance(verb, Record):
        response.record(
            action=verb.action,
            method=verb.method,
            max_length=verb.max_length,
            play_beep=verb.play_beep,
            transcribe=verb.transcribe,
            transcribe_callback=verb.transcribe_callback,
        )
    elif isinstance(verb, Gather):
        gather = TwimlGather(
            num_digits=verb.num_digits,
            action=verb.action,
            method=verb.method,
            timeout=verb.timeout,
            finish_on_key=verb.finish_on_key,
        )
        for prompt in verb.prompts:
            if isinstance(prompt, Say):
                gather.say(prompt.text, voice=prompt.voice, language=prompt.language)
            else:
                gather.play(prompt.url, loop=prompt.loop)
        response.append(gather)
    elif isinstance(verb, Dial):
        if isinstance(verb.target, Conference):
            dial = TwimlDial()
            _append_conference(dial, verb.target)
            response.append(dial)
        else:
            response.dial(verb.target)
    elif isinstance(verb, Redirect):
        response.redirect(verb.url, method=verb.method)
    else:
        raise TypeError(f"Unsupported verb: {verb!r}")


def _append_conference(dial: TwimlDial, conference: Conference) -> None:
    events = " ".join(conference.status_callback_events) or None
    dial.conference(
        conference.name,
        start_conference_on_enter=conference.start_conference_on_enter,
        end_conference_on_exit=conference.end_conference_on_exit,
        wait_url=conference.wait_url,
        max_participants=conference.max_participants,
        record=conference.record.value,
        muted=conference.muted,
        beep=conference.beep.value,
        status_callback=conference.status_callback,
        status_callback_event=events,
    )
