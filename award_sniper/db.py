from __future__ import annotations

import json
import logging
import pathlib
import sqlite3
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any, Optional

from .catalog import default_settings
from .config import get_settings
from .models import AppSettings, FlightRoute, ManualQuote, RewardProgram

DB_FILE = get_settings().db_path
SCHEMA_FILE = str(pathlib.Path(__file__).resolve().parent / "schema.sql")
SCHEMA_VERSION = 1

SETTINGS_KEY = "app-settings"
DOCUMENT_VERSION = 1

logger = logging.getLogger(__name__)


def migrate(db_path: str = DB_FILE, schema_path: str = SCHEMA_FILE) -> int:
    """Bring *db_path* up to ``SCHEMA_VERSION`` and return that version.

    Safe to call on every start; an up-to-date file is left untouched.
    """
    with sqlite3.connect(db_path) as conn:
        conn.execute(
            "CREATE TABLE IF NOT EXISTS schema_version (version INTEGER NOT NULL)"
        )
        row = conn.execute("SELECT MAX(version) FROM schema_version").fetchone()
        current = row[0] or 0
        if current >= SCHEMA_VERSION:
            logger.debug("%s already at schema version %s", db_path, current)
            return current

        logger.info("Migrating %s: schema %s -> %s", db_path, current, SCHEMA_VERSION)
        conn.executescript(pathlib.Path(schema_path).read_text(encoding="utf-8"))
        conn.execute("DELETE FROM schema_version")
        conn.execute(
            "INSERT INTO schema_version(version) VALUES (?)", (SCHEMA_VERSION,)
        )
        conn.commit()
    return SCHEMA_VERSION


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


# ────────────────────────────────────────────────────────────────
# AppSettings document
# ────────────────────────────────────────────────────────────────


def settings_to_document(settings: AppSettings) -> dict:
    programs = []
    for prog in settings.programs:
        data = asdict(prog)
        if data["balance"] is None:
            del data["balance"]
        programs.append(data)
    return {
        "version": DOCUMENT_VERSION,
        "routes": [asdict(r) for r in settings.routes],
        "programs": programs,
    }


def _str(data: dict, key: str, default: Optional[str] = None) -> str:
    value = data.get(key, default)
    if not isinstance(value, str):
        raise TypeError(f"{key!r} must be a string")
    return value


def _int(value: Any, key: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{key!r} must be an integer")
    return value


def _route_from_dict(data: dict) -> FlightRoute:
    if not isinstance(data, dict):
        raise TypeError("route must be an object")
    return FlightRoute(
        id=_str(data, "id"),
        label=_str(data, "label", ""),
        origin=_str(data, "origin"),
        origin_city=_str(data, "origin_city", ""),
        destination=_str(data, "destination"),
        dest_city=_str(data, "dest_city", ""),
        date=_str(data, "date"),
    )


def _program_from_dict(data: dict) -> RewardProgram:
    if not isinstance(data, dict):
        raise TypeError("program must be an object")
    threshold = data.get("threshold", 1.5)
    if isinstance(threshold, bool) or not isinstance(threshold, (int, float)):
        raise TypeError("'threshold' must be a number")
    balance = data.get("balance")
    return RewardProgram(
        id=_str(data, "id"),
        name=_str(data, "name"),
        miles=_int(data.get("miles"), "miles"),
        threshold=float(threshold),
        book_url=_str(data, "book_url", ""),
        color=_str(data, "color", ""),
        balance=None if balance is None else _int(balance, "balance"),
    )


def settings_from_document(doc: Any) -> AppSettings:
    """Validate *doc* and build ``AppSettings``.

    Raises ``ValueError``/``TypeError``/``KeyError`` on any structural
    mismatch.  An empty ``routes`` or ``programs`` list means "unset" and is
    replaced with the defaults for that list.
    """
    if not isinstance(doc, dict):
        raise TypeError("settings document must be an object")
    if doc.get("version", DOCUMENT_VERSION) != DOCUMENT_VERSION:
        raise ValueError(f"unsupported settings version {doc.get('version')!r}")

    routes_raw = doc.get("routes") or []
    programs_raw = doc.get("programs") or []
    if not isinstance(routes_raw, list) or not isinstance(programs_raw, list):
        raise TypeError("'routes' and 'programs' must be lists")

    defaults = default_settings()
    routes = [_route_from_dict(r) for r in routes_raw] if routes_raw else defaults.routes
    programs = (
        [_program_from_dict(p) for p in programs_raw]
        if programs_raw
        else defaults.programs
    )
    return AppSettings(routes=routes, programs=programs)


def load_settings(db_path: str = DB_FILE) -> AppSettings:
    """Return the saved settings, or the defaults if absent or corrupt."""
    with sqlite3.connect(db_path) as conn:
        row = conn.execute(
            "SELECT value FROM kv_store WHERE key=?", (SETTINGS_KEY,)
        ).fetchone()

    if not row:
        logger.info("No saved settings, using defaults")
        return default_settings()

    try:
        return settings_from_document(json.loads(row[0]))
    except (ValueError, TypeError, KeyError) as exc:
        logger.warning("Saved settings are invalid (%s), using defaults", exc)
        return default_settings()


def save_settings(settings: AppSettings, db_path: str = DB_FILE) -> None:
    """Write the whole settings document."""
    doc = settings_to_document(settings)
    logger.info(
        "Saving settings: %d routes, %d programs",
        len(settings.routes),
        len(settings.programs),
    )
    with sqlite3.connect(db_path) as conn:
        conn.execute(
            """
            INSERT INTO kv_store (key, value, updated_at)
            VALUES (?,?,?)
            ON CONFLICT(key)
            DO UPDATE SET value=excluded.value, updated_at=excluded.updated_at
            """,
            (SETTINGS_KEY, json.dumps(doc), _utcnow()),
        )
        conn.commit()


# ────────────────────────────────────────────────────────────────
# Manual quotes
# ────────────────────────────────────────────────────────────────


def get_miles_override(
    route_id: str, program_id: str, db_path: str = DB_FILE
) -> Optional[ManualQuote]:
    """Return the saved manual quote or ``None`` if there is none."""
    with sqlite3.connect(db_path) as conn:
        row = conn.execute(
            """
            SELECT miles, fees, saved_at FROM miles_overrides
             WHERE route_id=? AND program_id=?
            """,
            (route_id, program_id),
        ).fetchone()
    if not row:
        return None
    return ManualQuote(
        miles=int(row[0]),
        fees=float(row[1]),
        saved_at=datetime.fromisoformat(row[2]),
    )


def set_miles_override(
    route_id: str,
    program_id: str,
    miles: int,
    fees: float = 0.0,
    db_path: str = DB_FILE,
) -> ManualQuote:
    """Insert or replace the manual quote for ``route_id``/``program_id``."""
    if miles <= 0:
        raise ValueError("miles must be greater than 0")
    if fees < 0:
        raise ValueError("fees must not be negative")

    saved_at = datetime.now(timezone.utc)
    logger.info("Saving override %s/%s: %s miles + %s", route_id, program_id, miles, fees)
    with sqlite3.connect(db_path) as conn:
        conn.execute(
            """
            INSERT INTO miles_overrides (route_id, program_id, miles, fees, saved_at)
            VALUES (?,?,?,?,?)
            ON CONFLICT(route_id, program_id)
            DO UPDATE SET miles=excluded.miles, fees=excluded.fees,
                          saved_at=excluded.saved_at
            """,
            (route_id, program_id, int(miles), float(fees), saved_at.isoformat()),
        )
        conn.commit()
    return ManualQuote(miles=int(miles), fees=float(fees), saved_at=saved_at)


def clear_miles_override(
    route_id: str, program_id: str, db_path: str = DB_FILE
) -> None:
    logger.info("Clearing override %s/%s", route_id, program_id)
    with sqlite3.connect(db_path) as conn:
        conn.execute(
            "DELETE FROM miles_overrides WHERE route_id=? AND program_id=?",
            (route_id, program_id),
        )
        conn.commit()


__all__ = [
    "DB_FILE",
    "migrate",
    "load_settings",
    "save_settings",
    "settings_to_document",
    "settings_from_document",
    "get_miles_override",
    "set_miles_override",
    "clear_miles_override",
]
