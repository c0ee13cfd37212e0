"""Status document: a JSON snapshot of the latest world state.

Consumed by the public status page. Shape:

    {
      "has_data": true,
      "last_tick": "2025-01-01T12:00:00+00:00",
      "last_tick_epoch": 1735732800,
      "tick_index": 4321,
      "year_index": 72,
      "season": "spring",
      "population": 184,
      "food": 1520.4,
      "workers": 64,
      "recent": [{"ts": "...", "population": 183, "food": 1511.0, "workers": 64}, ...]
    }
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from worldsim.config.schemas import CalendarConfig
from worldsim.engine.calendar import DEFAULT_CALENDAR, season_for_tick, year_index
from worldsim.persistence.store import StateStore

DEFAULT_RECENT_LIMIT = 48


def _as_utc(ts: datetime | None) -> datetime | None:
    if ts is None:
        return None
    return ts.replace(tzinfo=timezone.utc) if ts.tzinfo is None else ts.astimezone(timezone.utc)


def _iso(ts: datetime | None) -> str | None:
    utc = _as_utc(ts)
    return utc.isoformat() if utc is not None else None


def build_status(
    store: StateStore,
    recent_limit: int = DEFAULT_RECENT_LIMIT,
    calendar: CalendarConfig = DEFAULT_CALENDAR,
) -> dict[str, Any]:
    """Build the status document from the newest ``recent_limit`` ticks."""
    rows = store.recent_ticks(recent_limit)
    if not rows:
        return {"has_data": False, "recent": []}

    latest = rows[-1]
    last_ts = _as_utc(latest["ts_utc"])
    tick_index = latest["tick_index"]

    return {
        "has_data": True,
        "last_tick": _iso(last_ts),
        "last_tick_epoch": int(last_ts.timestamp()) if last_ts is not None else 0,
        "tick_index": tick_index,
        "year_index": year_index(tick_index, calendar.year_length),
        "season": season_for_tick(tick_index, calendar).name,
        "population": latest["population"],
        "food": round(float(latest["food"]), 2),
        "workers": latest["workers"],
        "recent": [
            {
                "ts": _iso(row["ts_utc"]),
                "population": row["population"],
                "food": round(float(row["food"]), 2),
                "workers": row["workers"],
            }
            for row in rows
        ],
    }


def write_status(path: str | Path, status: dict[str, Any]) -> Path:
    """Write the status document as pretty-printed JSON."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_text(json.dumps(status, indent=2) + "\n")
    tmp_path.replace(path)
    return path
