# analysis/main.py
# -------------------------------------------------------------
# Migraine journal CLI: log an episode from the demo sources,
# browse/edit/delete entries, summarise history and export
# CSV/PNG/JSON/PDF outputs.
#
#   python -m analysis.main log --intensity 0.7 --symptom nausea
#   python -m analysis.main summary --json
#   python -m analysis.main export out/
# -------------------------------------------------------------
from __future__ import annotations

from pathlib import Path
import argparse
import json
import logging
import sys

# allow `python analysis/main.py` from the project root
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from analysis.importers import export_records_json, import_into_journal
from analysis.models import DEFAULT_INTENSITY, SYMPTOM_FLAGS, Symptoms
from analysis.pipeline import save_history_outputs
from analysis.reference import record_rows, summary_rows, intensity_description
from analysis.stats import summarize
from capture.assembler import MigraineLogger
from capture.demo import demo_providers
from database.db import (
    PersistenceError, append_log, delete_log, get_log, init_db, list_logs, update_log,
)

log = logging.getLogger("analysis.main")


# ---------- Helpers ----------
def _print_rows(rows) -> None:
    width = max((len(r["field"]) for r in rows), default=0)
    for r in rows:
        print(f"  {r['field']:<{width}}  {r['value']}")


def _tags(value: str | None) -> tuple:
    return tuple(t.strip() for t in (value or "").split(",") if t.strip())


def _symptom_changes(args) -> dict:
    changes = {}
    for name in ("pain_description", "pain_location", "onset_pattern", "mood"):
        v = getattr(args, name, None)
        if v is not None:
            changes[name] = v
    if getattr(args, "tags", None) is not None:
        changes["pain_location_tags"] = _tags(args.tags)
    for flag in getattr(args, "symptom", None) or []:
        changes[flag] = True
    for flag in getattr(args, "clear", None) or []:
        changes[flag] = False
    return changes


# ---------- Commands ----------
def cmd_log(args) -> int:
    db = args.db
    init_db(db)
    logger = MigraineLogger(demo_providers(), save=lambda r: append_log(r, db))
    logger.set_intensity(args.intensity)
    report = logger.log_episode_sync(Symptoms(**_symptom_changes(args)))

    print("\nLogged episode:")
    _print_rows(record_rows(report.record))
    if report.errored_sources:
        print(f"\nUnavailable sources: {', '.join(report.errored_sources)}")
    if report.authorization_denied:
        print(f"Access denied: {', '.join(report.denied_sources)}")
    return 0


def cmd_list(args) -> int:
    init_db(args.db)
    records = list_logs(args.db)
    if not records:
        print("No episodes logged yet.")
        return 0
    for r in records[: args.limit] if args.limit else records:
        weather = r.weather_condition or "-"
        print(f"{r.timestamp.isoformat()}  {r.score:>2}/10  {intensity_description(r.intensity):<11}  {weather}")
    print(f"\n{len(records)} episode(s)")
    return 0


def cmd_show(args) -> int:
    init_db(args.db)
    record = get_log(args.timestamp, args.db)
    if record is None:
        raise KeyError(f"No migraine log at {args.timestamp}")
    _print_rows(record_rows(record))
    return 0


def cmd_edit(args) -> int:
    init_db(args.db)
    record = get_log(args.timestamp, args.db)
    if record is None:
        raise KeyError(f"No migraine log at {args.timestamp}")

    changes = _symptom_changes(args)
    if args.intensity is not None:
        changes["intensity"] = args.intensity
    if not changes:
        print("Nothing to change.")
        return 0

    updated = record.edited(**changes)
    update_log(updated, args.db)
    print("Updated episode:")
    _print_rows(record_rows(updated))
    return 0


def cmd_delete(args) -> int:
    init_db(args.db)
    if not delete_log(args.timestamp, args.db):
        raise KeyError(f"No migraine log at {args.timestamp}")
    print(f"Deleted {args.timestamp}")
    return 0


def cmd_summary(args) -> int:
    init_db(args.db)
    summary = summarize(list_logs(args.db), time_method=args.time_method)
    if args.json:
        print(json.dumps(summary.as_dict(), indent=2))
    else:
        print("\nHistory summary:")
        _print_rows(summary_rows(summary))
    return 0


def cmd_export(args) -> int:
    init_db(args.db)
    records = list_logs(args.db)
    out_dir = Path(args.out_dir)
    written = save_history_outputs(out_dir, records)
    written["records.json"] = export_records_json(out_dir / "records.json", records)

    if args.pdf:
        from ui.report import export_summary_pdf
        pdf = out_dir / "summary.pdf"
        export_summary_pdf(pdf, summarize(records), records)
        written["summary.pdf"] = pdf

    print("\nSaved outputs:")
    for name, path in written.items():
        print(f" - {name}: {path}")
    return 0


def cmd_import(args) -> int:
    report = import_into_journal(args.file, args.db)
    print(f"Imported {report.added} episode(s); {report.duplicates} already present.")
    for idx, reason in report.errors:
        print(f"  entry {idx} skipped: {reason}")
    print(f"SHA-256: {report.sha256}")
    return 0


# ---------- Parser ----------
def _intensity(value: str) -> float:
    v = float(value)
    if not 0.0 <= v <= 1.0:
        raise argparse.ArgumentTypeError("intensity must be between 0 and 1")
    return v


def _add_symptom_args(p: argparse.ArgumentParser, allow_clear: bool = False) -> None:
    p.add_argument("--symptom", action="append", choices=SYMPTOM_FLAGS, metavar="FLAG",
                   help="Set a symptom flag (repeatable)")
    if allow_clear:
        p.add_argument("--clear", action="append", choices=SYMPTOM_FLAGS, metavar="FLAG",
                       help="Clear a symptom flag (repeatable)")
    p.add_argument("--pain-description", dest="pain_description")
    p.add_argument("--pain-location", dest="pain_location")
    p.add_argument("--onset", dest="onset_pattern")
    p.add_argument("--mood")
    p.add_argument("--tags", help="Comma-separated pain location tags")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="migraine-journal", description="Migraine journal")
    p.add_argument("--db", type=Path, default=None, help="SQLite file (default: data/journal.sqlite3)")
    p.add_argument("-v", "--verbose", action="store_true", help="Log progress")
    sub = p.add_subparsers(dest="command", required=True)

    lg = sub.add_parser("log", help="Log an episode now (demo sources)")
    lg.add_argument("--intensity", type=_intensity, default=DEFAULT_INTENSITY)
    _add_symptom_args(lg)
    lg.set_defaults(func=cmd_log)

    ls = sub.add_parser("list", help="List episodes, newest first")
    ls.add_argument("--limit", type=int, default=None)
    ls.set_defaults(func=cmd_list)

    sh = sub.add_parser("show", help="Show one episode")
    sh.add_argument("timestamp")
    sh.set_defaults(func=cmd_show)

    ed = sub.add_parser("edit", help="Change intensity or symptoms of an episode")
    ed.add_argument("timestamp")
    ed.add_argument("--intensity", type=_intensity, default=None)
    _add_symptom_args(ed, allow_clear=True)
    ed.set_defaults(func=cmd_edit)

    de = sub.add_parser("delete", help="Delete an episode")
    de.add_argument("timestamp")
    de.set_defaults(func=cmd_delete)

    su = sub.add_parser("summary", help="Summary statistics over all episodes")
    su.add_argument("--json", action="store_true")
    su.add_argument("--time-method", choices=["circular", "linear"], default="circular",
                    help="How bedtime/wake time are averaged")
    su.set_defaults(func=cmd_summary)

    ex = sub.add_parser("export", help="Write CSV, PNG charts and JSON (and optionally a PDF)")
    ex.add_argument("out_dir")
    ex.add_argument("--pdf", action="store_true")
    ex.set_defaults(func=cmd_export)

    im = sub.add_parser("import", help="Import episodes from a JSON export")
    im.add_argument("file")
    im.set_defaults(func=cmd_import)
    return p


# ---------- Main ----------
def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    log.info("Running %s", args.command)
    try:
        return args.func(args)
    except PersistenceError as e:
        print(f"Could not save: {e}", file=sys.stderr)
        return 1
    except (KeyError, ValueError, FileNotFoundError) as e:
        msg = e.args[0] if isinstance(e, KeyError) and e.args else e
        print(f"Error: {msg}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
