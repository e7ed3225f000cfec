"""In-memory call store fed by call events."""

import logging
import threading

from callcontrol.services.telephony.events import CallEventSink
from callcontrol.services.telephony.models import (
    CallEvent,
    CallEventType,
    CallRecord,
    CallStatus,
)

logger = logging.getLogger(__name__)

_STATUS_EVENTS = frozenset(
    {
        CallEventType.CALL_NEW,
        CallEventType.CALL_ANSWERED,
        CallEventType.CALL_ENDED,
        CallEventType.CALL_STATUS,
    }
)


class InMemoryCallStore(CallEventSink):
    """Thread-safe in-memory store folding call events into CallRecords.

    Events are applied in arrival order, so a status "behind" the current
    one still wins, except that a terminal record keeps its status.
    Recording and transcription attachments are applied at any time.
    In production, replace with a persistent store keyed by call id.
    """

    def __init__(self) -> None:
        self._store: dict[str, CallRecord] = {}
        self._lock = threading.Lock()

    def publish(self, event: CallEvent) -> None:
        with self._lock:
            current = self._store.get(event.call_id)
            if current is None:
                self._store[event.call_id] = self._create(event)
            else:
                self._store[event.call_id] = self._apply(current, event)

    def get(self, call_id: str) -> CallRecord | None:
        with self._lock:
            return self._store.get(call_id)

    def delete(self, call_id: str) -> None:
        with self._lock:
            self._store.pop(call_id, None)

    def size(self) -> int:
        with self._lock:
            return len(self._store)

    @staticmethod
    def _create(event: CallEvent) -> CallRecord:
        status = event.status or CallStatus.QUEUED
        return CallRecord(
            call_id=event.call_id,
            from_number=event.from_number,
            to_number=event.to_number,
            direction=event.direction,
            status=status,
            start_time=event.timestamp,
            end_time=event.timestamp if status.is_terminal else None,
            duration_seconds=event.duration_seconds if event.type in _STATUS_EVENTS else None,
            recording_url=event.recording_url,
            transcription=event.transcription,
        )

    @staticmethod
    def _apply(record: CallRecord, event: CallEvent) -> CallRecord:
        update: dict = {}

        if record.from_number is None and event.from_number:
            update["from_number"] = event.from_number
        if record.to_number is None and event.to_number:
            update["to_number"] = event.to_number
        if record.direction is None and event.direction:
            update["direction"] = event.direction

        if event.type in _STATUS_EVENTS and event.status is not None:
            if record.is_terminal:
                if event.status is not record.status:
                    logger.debug(
                        "Ignoring status %s for call %s, already %s",
                        event.status.value,
                        record.call_id,
                        record.status.value,
                    )
            else:
                update["status"] = event.status
                if event.status.is_terminal:
                    update["end_time"] = event.timestamp
                    if event.duration_seconds is not None:
                        update["duration_seconds"] = event.duration_seconds

        if event.recording_url:
            update["recording_url"] = event.recording_url
        if event.transcription:
            update["transcription"] = event.transcription

        return record.model_copy(update=update) if update else record
