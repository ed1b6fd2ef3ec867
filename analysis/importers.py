# analysis/importers.py
from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple
import hashlib
import json
import logging
import math

import pandas as pd

from .models import MigraineRecord

log = logging.getLogger(__name__)


def _sha256_file(p: Path) -> str:
    return hashlib.sha256(Path(p).read_bytes()).hexdigest()


def _clean_value(v: Any) -> Any:
    if isinstance(v, float) and math.isnan(v):
        return None
    return v


@dataclass
class ImportReport:
    records: List[MigraineRecord] = field(default_factory=list)
    errors: List[Tuple[int, str]] = field(default_factory=list)  # (entry index, reason)
    sha256: str = ""
    added: int = 0
    duplicates: int = 0


def load_records_json(pathlike) -> ImportReport:
    """
    Read a JSON export: a list of records, or {"records": [...]}. Symptoms may
    be flat or nested under "symptoms". Invalid entries are reported, not fatal.
    """
    p = Path(pathlike)
    sha = _sha256_file(p)
    data = json.loads(p.read_text(encoding="utf-8"))
    if isinstance(data, dict) and "records" in data:
        data = data["records"]
    if not isinstance(data, list):
        data = [data]

    report = ImportReport(sha256=sha)
    indices = []
    for idx, entry in enumerate(data):
        if isinstance(entry, dict):
            indices.append(idx)
        else:
            report.errors.append((idx, f"expected an object, got {type(entry).__name__}"))
    if not indices:
        return report

    # nested {"symptoms": {...}} becomes "symptoms.<name>" columns
    df = pd.json_normalize([data[i] for i in indices])
    df.columns = [c.split(".", 1)[1] if c.startswith("symptoms.") else c for c in df.columns]
    df = df.loc[:, ~df.columns.duplicated()]

    for idx, row in zip(indices, df.to_dict(orient="records")):
        entry: Dict[str, Any] = {k: _clean_value(v) for k, v in row.items()}
        try:
            report.records.append(MigraineRecord.from_dict(entry))
        except (KeyError, ValueError, TypeError) as e:
            report.errors.append((idx, str(e)))
            log.warning("Skipping entry %d in %s: %s", idx, p.name, e)
    return report


def export_records_json(dest: Path, records: Sequence[MigraineRecord]) -> Path:
    dest = Path(dest)
    dest.parent.mkdir(parents=True, exist_ok=True)
    payload = {"records": [r.to_dict() for r in sorted(records, key=lambda r: r.timestamp)]}
    dest.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    log.info("Exported %d records to %s", len(payload["records"]), dest)
    return dest


def import_into_journal(pathlike, db_path: Optional[Path] = None) -> ImportReport:
    """Load a JSON export and append every record not already in the journal."""
    from database.db import append_log, get_log, init_db

    report = load_records_json(pathlike)
    init_db(db_path)
    for record in report.records:
        if get_log(record.timestamp, db_path) is not None:
            report.duplicates += 1
            continue
        append_log(record, db_path)
        report.added += 1
    return report


__all__ = [
    "ImportReport",
    "load_records_json",
    "export_records_json",
    "import_into_journal",
]
