# timetable_ga/model.py
from dataclasses import dataclass, field
from enum import Enum
import re
from typing import FrozenSet, Iterator, List, Optional, Tuple, Union


class Day(str, Enum):
    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"

    @property
    def index(self) -> int:
        return list(Day).index(self)


DEFAULT_ROOM_TYPE = "Lecture Hall"

_HHMM = re.compile(r"^(\d{1,2}):(\d{2})$")


def time_to_minutes(hhmm: str) -> int:
    """Minutes since midnight for an "HH:MM" string; ValueError otherwise."""
    match = _HHMM.match(str(hhmm).strip()) if hhmm is not None else None
    if match is None:
        raise ValueError(f"Expected HH:MM, got {hhmm!r}")
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise ValueError(f"Time out of range: {hhmm!r}")
    return hours * 60 + minutes


@dataclass(frozen=True)
class Subject:
    id: str
    name: str
    hours_per_week: int  # sessions to schedule each week


@dataclass(frozen=True)
class FacultyPreferences:
    preferred_time_slots: FrozenSet[str] = frozenset()
    preferred_days: FrozenSet[Day] = frozenset()
    unavailable_time_slots: FrozenSet[str] = frozenset()
    lunch_break_required: bool = False
    max_consecutive_hours: Optional[int] = None


@dataclass(frozen=True)
class Faculty:
    id: str
    name: str
    can_teach: FrozenSet[str]
    max_hours_per_week: Optional[int] = None
    preferences: FacultyPreferences = field(default_factory=FacultyPreferences)


@dataclass(frozen=True)
class Classroom:
    id: str
    name: str
    capacity: int
    room_type: str = DEFAULT_ROOM_TYPE


@dataclass(frozen=True)
class TimeSlot:
    id: str
    day: Day
    start_time: str  # "HH:MM"
    end_time: str


@dataclass(frozen=True)
class Catalogue:
    subjects: Tuple[Subject, ...]
    faculty: Tuple[Faculty, ...]
    classrooms: Tuple[Classroom, ...]
    time_slots: Tuple[TimeSlot, ...]

    @property
    def total_sessions(self) -> int:
        return sum(s.hours_per_week for s in self.subjects)


@dataclass(frozen=True)
class ScheduledClass:
    # One gene: a single weekly session of a subject
    subject_id: str
    faculty_id: str
    classroom_id: str
    time_slot_id: str


@dataclass(frozen=True)
class Unsatisfiable:
    subject_id: str
    sessions: int
    reason: str = "no qualified faculty"


SessionOutcome = Union[ScheduledClass, Unsatisfiable]


@dataclass
class Candidate:
    classes: List[ScheduledClass]
    fitness: Optional[float] = None
    hard_violations: int = 0
    soft_cost: int = 0

    def __len__(self) -> int:
        return len(self.classes)

    def copy(self) -> "Candidate":
        # Genes are immutable, a shallow list copy isolates the candidate
        return Candidate(list(self.classes), self.fitness, self.hard_violations, self.soft_cost)


@dataclass
class ScheduleResult:
    schedule: List[ScheduledClass]
    fitness: float
    hard_violations: int
    soft_cost: int
    unscheduled: List[Unsatisfiable] = field(default_factory=list)
    violations: List[str] = field(default_factory=list)
    generations_run: int = 0
    stopped_reason: str = "generations"
    history: List[dict] = field(default_factory=list)

    @property
    def dropped_sessions(self) -> int:
        return sum(u.sessions for u in self.unscheduled)

    @property
    def is_conflict_free(self) -> bool:
        return self.hard_violations == 0

    def outcomes(self) -> Iterator[SessionOutcome]:
        yield from self.schedule
        yield from self.unscheduled
