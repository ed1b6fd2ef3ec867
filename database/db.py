# database/db.py
from __future__ import annotations
from datetime import timezone
from pathlib import Path
from typing import Any, Dict, List, Optional
import json
import logging
import sqlite3

from analysis.models import MigraineRecord, SYMPTOM_CHOICES, SYMPTOM_FLAGS, parse_timestamp, sort_for_display

log = logging.getLogger(__name__)

# Location of the SQLite file
ROOT = Path(__file__).resolve().parents[1]
DATA_DIR = ROOT / "data"
DB_PATH = DATA_DIR / "journal.sqlite3"


class PersistenceError(Exception):
    """Writing to the journal failed; the message is the storage error text."""


# Columns that stay writable after a record is created
_EDITABLE_COLS = ["intensity", *SYMPTOM_CHOICES, "pain_location_tags", *SYMPTOM_FLAGS]


def _connect(db_path: Optional[Path] = None) -> sqlite3.Connection:
    path = Path(db_path or DB_PATH)
    path.parent.mkdir(parents=True, exist_ok=True)
    con = sqlite3.connect(path)
    con.row_factory = sqlite3.Row
    return con


def init_db(db_path: Optional[Path] = None) -> None:
    flag_cols = "\n".join(f"              {c} INTEGER NOT NULL DEFAULT 0," for c in SYMPTOM_FLAGS)
    with _connect(db_path) as con:
        con.execute(
            f"""
            CREATE TABLE IF NOT EXISTS migraine_logs (
              id INTEGER PRIMARY KEY AUTOINCREMENT,
              -- ts_key: the instant in UTC, one record per instant
              ts_key TEXT NOT NULL UNIQUE,
              timestamp TEXT NOT NULL,
              intensity REAL NOT NULL,
              step_count INTEGER NOT NULL DEFAULT 0,

              -- weather (NULL temperature = source unavailable)
              temperature REAL,
              pressure REAL,
              humidity REAL,
              weather_condition TEXT,

              -- sleep: all three or none
              sleep_start TEXT,
              sleep_end TEXT,
              sleep_duration REAL,

              movement_state TEXT,
              movement_confidence INTEGER,

              average_heart_rate REAL,
              max_heart_rate REAL,
              resting_heart_rate REAL,
              heart_rate_variability REAL,

              cycle_phase TEXT,
              location_latitude REAL,
              location_longitude REAL,
              calendar_context TEXT,

              -- symptoms (editable)
              pain_description TEXT,
              pain_location TEXT,
              onset_pattern TEXT,
              mood TEXT,
              pain_location_tags TEXT,
{flag_cols}
              created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
            );
            """
        )

        # speed up lookups
        con.execute("CREATE INDEX IF NOT EXISTS idx_logs_ts_key ON migraine_logs(ts_key);")


def _coerce_bool(v) -> int:
    if v is True:
        return 1
    if v is False:
        return 0
    try:
        return 1 if int(v) != 0 else 0
    except (TypeError, ValueError):
        return 0


def _to_row(record: MigraineRecord) -> Dict[str, Any]:
    row = record.to_dict()
    row["ts_key"] = _key(record.timestamp)
    row["pain_location_tags"] = json.dumps(row["pain_location_tags"])
    for c in SYMPTOM_FLAGS:
        row[c] = _coerce_bool(row[c])
    return row


def _from_row(row: sqlite3.Row) -> MigraineRecord:
    data = {k: row[k] for k in row.keys() if k not in ("id", "ts_key", "created_at")}
    tags = data.get("pain_location_tags")
    data["pain_location_tags"] = json.loads(tags) if tags else []
    return MigraineRecord.from_dict(data)


def _key(timestamp) -> str:
    """Same instant, same key, whatever offset or "Z" spelling the caller used."""
    return parse_timestamp(timestamp).astimezone(timezone.utc).isoformat()


def append_log(record: MigraineRecord, db_path: Optional[Path] = None) -> int:
    row = _to_row(record)
    cols = list(row.keys())
    sql = (
        f"INSERT INTO migraine_logs ({', '.join(cols)}) "
        f"VALUES ({', '.join('?' for _ in cols)});"
    )
    try:
        with _connect(db_path) as con:
            cur = con.execute(sql, [row[c] for c in cols])
            row_id = int(cur.lastrowid)
    except sqlite3.Error as e:
        log.error("Could not save migraine log %s: %s", row["timestamp"], e)
        raise PersistenceError(str(e)) from e
    log.info("Saved migraine log %s (id=%s)", row["timestamp"], row_id)
    return row_id


def update_log(record: MigraineRecord, db_path: Optional[Path] = None) -> None:
    """Persist the editable fields of an existing record; others are left untouched."""
    row = _to_row(record)
    assignments = ", ".join(f"{c}=?" for c in _EDITABLE_COLS)
    sql = f"UPDATE migraine_logs SET {assignments} WHERE ts_key = ?;"
    try:
        with _connect(db_path) as con:
            cur = con.execute(sql, [*(row[c] for c in _EDITABLE_COLS), row["ts_key"]])
            updated = cur.rowcount
    except sqlite3.Error as e:
        raise PersistenceError(str(e)) from e
    if updated == 0:
        raise KeyError(f"No migraine log at {row['timestamp']}")


def delete_log(timestamp, db_path: Optional[Path] = None) -> bool:
    try:
        with _connect(db_path) as con:
            cur = con.execute("DELETE FROM migraine_logs WHERE ts_key = ?;", (_key(timestamp),))
            deleted = cur.rowcount > 0
    except sqlite3.Error as e:
        raise PersistenceError(str(e)) from e
    if deleted:
        log.info("Deleted migraine log %s", _key(timestamp))
    return deleted


def get_log(timestamp, db_path: Optional[Path] = None) -> Optional[MigraineRecord]:
    with _connect(db_path) as con:
        r = con.execute("SELECT * FROM migraine_logs WHERE ts_key = ?;", (_key(timestamp),)).fetchone()
        return _from_row(r) if r else None


def list_logs(db_path: Optional[Path] = None) -> List[MigraineRecord]:
    """Snapshot of the whole journal, newest first."""
    with _connect(db_path) as con:
        rows = con.execute("SELECT * FROM migraine_logs ORDER BY ts_key DESC;").fetchall()
    return sort_for_display([_from_row(r) for r in rows])


def log_count(db_path: Optional[Path] = None) -> int:
    with _connect(db_path) as con:
        r = con.execute("SELECT COUNT(*) AS n FROM migraine_logs;").fetchone()
        return int(r["n"]) if r else 0
