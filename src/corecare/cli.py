"""CLI for corecare.

Every command prints a JSON envelope::

    {"status": "success", "data": {...}}
    {"status": "error", "message": "..."}
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict
from datetime import date, datetime
from typing import Any, NoReturn

import click
from pydantic import ValidationError

from corecare.config import get_config
from corecare.errors import CoreCareError
from corecare.models import BPReading, Reading, heart_rate_category
from corecare.store import SQLiteStore, parse_timestamp

DISCLAIMER = (
    "FOR EDUCATIONAL PURPOSES ONLY. Calculated from heart rate using "
    "physiological heuristics, not an actual BP measurement."
)


def _emit(data: dict[str, Any], message: str | None = None, **extra: Any) -> None:
    envelope: dict[str, Any] = {"status": "success"}
    if message:
        envelope["message"] = message
    envelope["data"] = data
    envelope.update(extra)
    click.echo(json.dumps(envelope, indent=2, ensure_ascii=False))


def _fail(message: str) -> NoReturn:
    click.echo(json.dumps({"status": "error", "message": message}, ensure_ascii=False))
    raise SystemExit(1)


def _subject(value: str) -> int:
    from corecare.analytics.pipeline import validate_subject_id

    try:
        return validate_subject_id(value)
    except CoreCareError as e:
        _fail(str(e))


def _timestamp(value: str | None) -> datetime:
    if value is None:
        return datetime.now().replace(microsecond=0)
    try:
        return parse_timestamp(value)
    except ValueError:
        _fail(f"Invalid timestamp: {value}")


@click.group()
@click.option("--db", default=None, help="SQLite database path (default: $CORECARE_DB).")
@click.pass_context
def main(ctx: click.Context, db: str | None) -> None:
    """corecare — heart-rate analytics for a personal health tracker."""
    try:
        config = get_config()
    except ValidationError as e:
        err = e.errors()[0]
        field_name = ".".join(str(part) for part in err["loc"])
        _fail(f"Invalid configuration: {field_name}: {err['msg']}")
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    store = SQLiteStore(db or config.store.database_path)
    ctx.call_on_close(store.close)
    ctx.obj = {"store": store, "config": config}


@main.command("record-hr")
@click.argument("subject")
@click.argument("bpm", type=click.FloatRange(30, 220))
@click.option("--at", "at", default=None, help="ISO timestamp (default: now).")
@click.pass_obj
def record_hr(obj: dict, subject: str, bpm: float, at: str | None) -> None:
    """Store a heart-rate reading."""
    subject_id = _subject(subject)
    reading = Reading(bpm, _timestamp(at))
    obj["store"].add_reading(subject_id, reading)
    _emit({
        "bpm": bpm,
        "category": heart_rate_category(bpm),
        "timestamp": reading.timestamp.isoformat(sep=" "),
    })


@main.command("record-bp")
@click.argument("subject")
@click.argument("systolic", type=click.FloatRange(50, 300))
@click.argument("diastolic", type=click.FloatRange(30, 200))
@click.option("--at", "at", default=None, help="ISO timestamp (default: now).")
@click.pass_obj
def record_bp(obj: dict, subject: str, systolic: float, diastolic: float, at: str | None) -> None:
    """Store a blood-pressure reading."""
    subject_id = _subject(subject)
    if diastolic >= systolic:
        _fail("Diastolic must be lower than systolic")
    reading = BPReading(systolic, diastolic, _timestamp(at))
    obj["store"].add_bp_reading(subject_id, reading)
    _emit({
        "systolic": systolic,
        "diastolic": diastolic,
        "timestamp": reading.timestamp.isoformat(sep=" "),
    })


@main.command("import")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.pass_obj
def import_cmd(obj: dict, file: str) -> None:
    """Import a .jsonl reading log into the database."""
    from corecare.store import load_jsonl

    imported, skipped = load_jsonl(file, obj["store"])
    _emit({"imported": imported, "skipped": skipped})


@main.command()
@click.argument("subject")
@click.option("--window", default=None, type=click.IntRange(min=1),
              help="Number of recent readings to score.")
@click.pass_obj
def stress(obj: dict, subject: str, window: int | None) -> None:
    """Stress percentage from the latest readings."""
    from corecare.analytics.pipeline import stress_for_subject

    subject_id = _subject(subject)
    result = stress_for_subject(
        obj["store"], subject_id, window or obj["config"].analytics.stress_window
    )
    _emit(asdict(result))


@main.command()
@click.argument("subject")
@click.option("--date", "day", default=None, type=click.DateTime(formats=["%Y-%m-%d"]),
              help="Day to assess (default: today).")
@click.pass_obj
def risk(obj: dict, subject: str, day: datetime | None) -> None:
    """Rule-based risk assessment for one day."""
    from corecare.analytics.pipeline import risk_for_day

    subject_id = _subject(subject)
    target = day.date() if day else date.today()
    try:
        result = risk_for_day(obj["store"], subject_id, target)
    except CoreCareError as e:
        _fail(str(e))
    _emit(result.to_dict())


@main.command("estimate-bp")
@click.argument("subject")
@click.option("--bpm", default=None, type=click.FloatRange(30, 200),
              help="Heart rate to use instead of the latest reading.")
@click.pass_obj
def estimate_bp_cmd(obj: dict, subject: str, bpm: float | None) -> None:
    """Illustrative BP estimate from heart rate."""
    from corecare.analytics.pipeline import estimate_bp, estimate_bp_for_subject

    subject_id = _subject(subject)
    if bpm is not None:
        result = estimate_bp(bpm)
    else:
        result = estimate_bp_for_subject(
            obj["store"], subject_id, obj["config"].analytics.baseline_bpm
        )
    _emit(result.to_dict(), disclaimer=DISCLAIMER)


@main.command()
@click.argument("subject")
@click.option("--period", "-p", type=click.Choice(["day", "week", "month"]), default="week",
              help="Report range ending today.")
@click.option("--today", default=None, type=click.DateTime(formats=["%Y-%m-%d"]),
              help="Treat this date as today.")
@click.option("--legacy-keys", is_flag=True,
              help="Name the summary 'weekly_summary' for older clients.")
@click.pass_obj
def report(
    obj: dict,
    subject: str,
    period: str,
    today: datetime | None,
    legacy_keys: bool,
) -> None:
    """Day, week or month report with a per-day breakdown."""
    from corecare.analytics.pipeline import build_report

    subject_id = _subject(subject)
    result = build_report(obj["store"], subject_id, period, today.date() if today else None)
    data = result.to_dict()
    if legacy_keys:
        data["weekly_summary"] = data.pop("summary")
    _emit(data)


if __name__ == "__main__":
    main()
