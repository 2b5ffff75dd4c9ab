"""Connection pool counters surfaced through telemetry and the health endpoint."""

from __future__ import annotations

import os
import time
from dataclasses import asdict, dataclass
from typing import Dict, Optional

from sqlalchemy import event
from sqlalchemy.engine import Engine

from ..telemetry import emit_event


@dataclass
class PoolCounters:
    connects: int = 0
    checkouts: int = 0
    checkins: int = 0
    invalidations: int = 0
    last_event: Optional[str] = None
    last_emit: float = 0.0


_COUNTERS: Dict[int, PoolCounters] = {}
_TELEMETRY_INTERVAL = float(os.getenv("LUX_DB_TELEMETRY_INTERVAL", "60"))


def instrument_engine(engine: Engine) -> None:
    """Attach pool listeners that keep counters and periodically emit them."""
    key = id(engine)
    if key in _COUNTERS:
        return

    counters = PoolCounters()
    _COUNTERS[key] = counters

    def _record(event_name: str) -> None:
        counters.last_event = event_name
        now = time.time()
        if _TELEMETRY_INTERVAL > 0 and (now - counters.last_emit) < _TELEMETRY_INTERVAL:
            return
        counters.last_emit = now
        emit_event(
            "db_pool_status",
            dialect=engine.dialect.name,
            status=_pool_status(engine),
            event=event_name,
            connects=counters.connects,
            checkouts=counters.checkouts,
            checkins=counters.checkins,
            invalidations=counters.invalidations,
        )

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record) -> None:  # type: ignore[no-untyped-def]
        counters.connects += 1
        _record("connect")

    @event.listens_for(engine, "checkout")
    def _on_checkout(dbapi_connection, connection_record, connection_proxy) -> None:  # type: ignore[no-untyped-def]
        counters.checkouts += 1
        _record("checkout")

    @event.listens_for(engine, "checkin")
    def _on_checkin(dbapi_connection, connection_record) -> None:  # type: ignore[no-untyped-def]
        counters.checkins += 1
        _record("checkin")

    @event.listens_for(engine, "invalidate")
    def _on_invalidate(dbapi_connection, connection_record, exception) -> None:  # type: ignore[no-untyped-def]
        counters.invalidations += 1
        _record("invalidate")


def get_pool_snapshot(engine: Engine) -> Dict[str, object]:
    """Return the current counters and pool status for ``engine``."""
    counters = _COUNTERS.get(id(engine)) or PoolCounters()
    snapshot = asdict(counters)
    snapshot.pop("last_emit", None)
    snapshot["status"] = _pool_status(engine)
    return snapshot


def _pool_status(engine: Engine) -> str:
    try:
        return engine.pool.status()  # type: ignore[no-untyped-call]
    except Exception as exc:  # pragma: no cover - pool implementations vary
        return f"unavailable: {exc}"


__all__ = [
    "PoolCounters",
    "get_pool_snapshot",
    "instrument_engine",
]
