from timetable_ga.config import GAConfig
from timetable_ga.model import (
    Catalogue,
    Classroom,
    Day,
    Faculty,
    FacultyPreferences,
    Subject,
    TimeSlot,
)

DAYS = list(Day)


def subject(sid, hours):
    return Subject(sid, f"Subject {sid}", hours)


def faculty(fid, *subjects, max_hours=None, **prefs):
    return Faculty(fid, f"Faculty {fid}", frozenset(subjects), max_hours, FacultyPreferences(**prefs))


def room(cid):
    return Classroom(cid, f"Room {cid}", 30)


def slot(tid, day=Day.MONDAY, start="09:00", end="10:00"):
    return TimeSlot(tid, day, start, end)


def catalogue(subjects, faculty_, rooms, slots):
    return Catalogue(tuple(subjects), tuple(faculty_), tuple(rooms), tuple(slots))


def hard_only(seed=0, **kwargs):
    weights = {
        "weight_preferred_slot": 0,
        "weight_preferred_day": 0,
        "weight_unavailable_slot": 0,
        "weight_max_hours": 0,
        "weight_daily_load": 0,
        "weight_lunch_break": 0,
        "weight_consecutive": 0,
    }
    weights.update(kwargs)
    return GAConfig(seed=seed, **weights)


def two_by_two():
    """2 subjects x 2 sessions, one teacher each, 2 rooms, 4 slots on separate days."""
    return catalogue(
        [subject("A", 2), subject("B", 2)],
        [faculty("F1", "A"), faculty("F2", "B")],
        [room("C1"), room("C2")],
        [slot(f"T{i + 1}", DAYS[i]) for i in range(4)],
    )


def single_subject():
    return catalogue(
        [subject("A", 2)],
        [faculty("F1", "A")],
        [room("C1"), room("C2")],
        [slot("T1", start="09:00", end="10:00"), slot("T2", start="10:00", end="11:00")],
    )
