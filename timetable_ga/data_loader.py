# timetable_ga/data_loader.py
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional

import pandas as pd

from .exceptions import CatalogueError
from .model import (
    DEFAULT_ROOM_TYPE,
    Catalogue,
    Classroom,
    Day,
    Faculty,
    FacultyPreferences,
    ScheduleResult,
    Subject,
    TimeSlot,
    time_to_minutes,
)

LIST_SEP = ";"
_TRUE = {"1", "true", "yes", "y", "si", "x"}


def parse_day(raw: Any) -> Day:
    """Case-insensitive day name; Sunday is folded into Saturday."""
    text = str(raw).strip().capitalize()
    if text == "Sunday":
        return Day.SATURDAY
    try:
        return Day(text)
    except ValueError:
        raise CatalogueError(f"Unknown day {raw!r}", {"day": raw}) from None


def _split(value: Any) -> frozenset:
    if value is None:
        return frozenset()
    if isinstance(value, str):
        return frozenset(v.strip() for v in value.split(LIST_SEP) if v.strip())
    return frozenset(str(v).strip() for v in value if str(v).strip())


def _opt_int(value: Any) -> Optional[int]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return int(float(value))


def _whole(value: Any, name: str) -> int:
    number = float(value)
    if not number.is_integer():
        raise CatalogueError(f"{name} must be a whole number, got {value!r}", {name: value})
    return int(number)


def _flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUE


def _get(rec: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in rec and rec[key] is not None:
            return rec[key]
    return default


def _subject(rec: Mapping[str, Any]) -> Subject:
    return Subject(
        id=str(rec["id"]).strip(),
        name=str(_get(rec, "name", default=rec["id"])),
        hours_per_week=_whole(_get(rec, "hours_per_week", "hoursPerWeek", default=0), "hours_per_week"),
    )


def _faculty(rec: Mapping[str, Any]) -> Faculty:
    prefs = _get(rec, "preferences", default={}) or {}
    merged = {**rec, **prefs}
    return Faculty(
        id=str(rec["id"]).strip(),
        name=str(_get(rec, "name", default=rec["id"])),
        can_teach=_split(_get(rec, "can_teach", "canTeach")),
        max_hours_per_week=_opt_int(_get(rec, "max_hours_per_week", "maxHoursPerWeek")),
        preferences=FacultyPreferences(
            preferred_time_slots=_split(_get(merged, "preferred_time_slots", "preferredTimeSlots")),
            preferred_days=frozenset(
                parse_day(d) for d in _split(_get(merged, "preferred_days", "preferredDays"))
            ),
            unavailable_time_slots=_split(_get(merged, "unavailable_time_slots", "unavailableTimeSlots")),
            lunch_break_required=_flag(_get(merged, "lunch_break_required", "lunchBreakRequired", default=False)),
            max_consecutive_hours=_opt_int(_get(merged, "max_consecutive_hours", "maxConsecutiveHours")),
        ),
    )


def _classroom(rec: Mapping[str, Any]) -> Classroom:
    room_type = str(_get(rec, "room_type", "type", default="")).strip()
    return Classroom(
        id=str(rec["id"]).strip(),
        name=str(_get(rec, "name", default=rec["id"])),
        capacity=_opt_int(_get(rec, "capacity")) or 0,
        room_type=room_type or DEFAULT_ROOM_TYPE,
    )


def _time_slot(rec: Mapping[str, Any]) -> TimeSlot:
    return TimeSlot(
        id=str(rec["id"]).strip(),
        day=parse_day(rec["day"]),
        start_time=str(_get(rec, "start_time", "startTime", default="")).strip(),
        end_time=str(_get(rec, "end_time", "endTime", default="")).strip(),
    )


def _build(subjects: Iterable, faculty: Iterable, classrooms: Iterable, time_slots: Iterable) -> Catalogue:
    try:
        return Catalogue(
            subjects=tuple(_subject(r) for r in subjects),
            faculty=tuple(_faculty(r) for r in faculty),
            classrooms=tuple(_classroom(r) for r in classrooms),
            time_slots=tuple(_time_slot(r) for r in time_slots),
        )
    except (KeyError, ValueError, TypeError) as exc:
        raise CatalogueError(f"Malformed catalogue record: {exc}") from exc


def catalogue_from_dict(payload: Mapping[str, Any]) -> Catalogue:
    """
    Builds a catalogue from the JSON shape sent by callers
    (``subjects``, ``faculty``, ``classrooms``, ``timeSlots``). camelCase
    and snake_case keys are both accepted.
    """
    return _build(
        payload.get("subjects", []),
        payload.get("faculty", []),
        payload.get("classrooms", []),
        _get(payload, "timeSlots", "time_slots", default=[]),
    )


def _records(path: Path) -> list:
    if not path.exists():
        raise CatalogueError(f"Missing catalogue file {path}")
    df = pd.read_csv(path, dtype=str).fillna("")
    df.columns = [c.strip() for c in df.columns]
    return df.to_dict(orient="records")


def load_catalogue(data_dir: str) -> Catalogue:
    # subjects.csv, faculty.csv, classrooms.csv, time_slots.csv
    base = Path(data_dir)
    return _build(
        _records(base / "subjects.csv"),
        _records(base / "faculty.csv"),
        _records(base / "classrooms.csv"),
        _records(base / "time_slots.csv"),
    )


def resolve_schedule(result: ScheduleResult, catalogue: Catalogue) -> pd.DataFrame:
    """Schedule with ids replaced by display names, ordered by day and start time."""
    subjects: Dict[str, Subject] = {s.id: s for s in catalogue.subjects}
    faculty = {f.id: f for f in catalogue.faculty}
    rooms = {c.id: c for c in catalogue.classrooms}
    slots = {t.id: t for t in catalogue.time_slots}

    rows = []
    for sc in result.schedule:
        ts = slots[sc.time_slot_id]
        rows.append(
            {
                "Day": ts.day.value,
                "Time": f"{ts.start_time} - {ts.end_time}",
                "Subject": subjects[sc.subject_id].name,
                "Faculty": faculty[sc.faculty_id].name,
                "Classroom": rooms[sc.classroom_id].name,
                "_day": ts.day.index,
                "_start": time_to_minutes(ts.start_time),
            }
        )
    columns = ["Day", "Time", "Subject", "Faculty", "Classroom"]
    if not rows:
        return pd.DataFrame(columns=columns)
    df = pd.DataFrame(rows).sort_values(["_day", "_start"], kind="stable")
    return df[columns].reset_index(drop=True)


def unscheduled_frame(result: ScheduleResult, catalogue: Catalogue) -> pd.DataFrame:
    names = {s.id: s.name for s in catalogue.subjects}
    return pd.DataFrame(
        [
            {"Subject": names.get(u.subject_id, u.subject_id), "SubjectId": u.subject_id,
             "Sessions": u.sessions, "Reason": u.reason}
            for u in result.unscheduled
        ],
        columns=["Subject", "SubjectId", "Sessions", "Reason"],
    )
