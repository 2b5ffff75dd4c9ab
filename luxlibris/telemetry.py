"""In-process telemetry for submissions, content changes and pool health.

Events are logged as one JSON line each and handed to registered listeners.
The audit pipeline in :mod:`luxlibris.telemetry_pipeline` is one such listener.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from threading import RLock
from typing import Any, Callable, Dict, List, Mapping

from pydantic import BaseModel

logger = logging.getLogger("luxlibris.telemetry")

Listener = Callable[["TelemetryEvent"], None]


@dataclass(frozen=True)
class TelemetryEvent:
    name: str
    payload: Dict[str, Any]
    emitted_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def as_record(self) -> Dict[str, Any]:
        return {"event": self.name, "emitted_at": self.emitted_at.isoformat(), **self.payload}


_listeners: List[Listener] = []
_lock = RLock()


def register_listener(listener: Listener) -> None:
    """Add ``listener``. Registering the same callable twice has no effect."""
    with _lock:
        if listener not in _listeners:
            _listeners.append(listener)


def unregister_listener(listener: Listener) -> None:
    with _lock:
        if listener in _listeners:
            _listeners.remove(listener)


def emit_event(name: str, **fields: Any) -> TelemetryEvent:
    event = TelemetryEvent(name=name, payload=_plain(fields))
    with _lock:
        listeners = tuple(_listeners)

    for listener in listeners:
        try:
            listener(event)
        except Exception:  # noqa: BLE001
            logger.exception("Telemetry listener %r failed for %s", listener, name)

    logger.info("TELEMETRY %s", json.dumps(event.as_record(), default=str, ensure_ascii=False))
    return event


def _plain(value: Any) -> Any:
    """Reduce ``value`` to JSON-friendly types so listeners can store payloads as-is."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Mapping):
        return {str(key): _plain(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_plain(item) for item in value]
    return value


__all__ = [
    "TelemetryEvent",
    "emit_event",
    "register_listener",
    "unregister_listener",
]
