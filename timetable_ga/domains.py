# timetable_ga/domains.py
import logging
from collections import Counter
from dataclasses import dataclass
from typing import Dict, List, Tuple

from .exceptions import CatalogueError
from .model import Catalogue, Unsatisfiable, time_to_minutes

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchDomains:
    """
    Read-only view of a validated catalogue shaped for the search.

    Gene ``i`` of every candidate always holds a session of
    ``session_subjects[i]``, so positional operators keep genes aligned.
    """
    catalogue: Catalogue
    unsatisfiable: Tuple[Unsatisfiable, ...]
    classroom_ids: Tuple[str, ...]
    time_slot_ids: Tuple[str, ...]
    session_subjects: Tuple[str, ...]
    qualified: Dict[str, Tuple[str, ...]]  # subject -> faculty ids, catalogue order
    faculty_index: Dict[str, int]
    classroom_index: Dict[str, int]
    time_slot_index: Dict[str, int]

    @property
    def n_sessions(self) -> int:
        return len(self.session_subjects)


def _check_unique(kind: str, ids: List[str]) -> None:
    dupes = sorted(i for i, n in Counter(ids).items() if n > 1)
    if dupes:
        raise CatalogueError(f"Duplicate {kind} ids: {', '.join(dupes)}", {kind: dupes})


def _check_times(catalogue: Catalogue) -> None:
    for ts in catalogue.time_slots:
        try:
            start = time_to_minutes(ts.start_time)
            end = time_to_minutes(ts.end_time)
        except ValueError as exc:
            raise CatalogueError(f"Time slot {ts.id}: {exc}", {"time_slot": ts.id}) from exc
        if end <= start:
            raise CatalogueError(
                f"Time slot {ts.id} must end after it starts ({ts.start_time} - {ts.end_time})",
                {"time_slot": ts.id},
            )


def validate_catalogue(catalogue: Catalogue) -> None:
    """Fail fast on catalogues the search cannot run against."""
    if not catalogue.subjects:
        raise CatalogueError("Catalogue has no subjects")
    if not catalogue.classrooms:
        raise CatalogueError("Catalogue has no classrooms")
    if not catalogue.time_slots:
        raise CatalogueError("Catalogue has no time slots")

    _check_unique("subject", [s.id for s in catalogue.subjects])
    _check_unique("faculty", [f.id for f in catalogue.faculty])
    _check_unique("classroom", [c.id for c in catalogue.classrooms])
    _check_unique("time_slot", [t.id for t in catalogue.time_slots])
    _check_times(catalogue)

    bad_hours = [s.id for s in catalogue.subjects if s.hours_per_week < 1]
    if bad_hours:
        raise CatalogueError(
            f"hours_per_week must be a positive integer for: {', '.join(bad_hours)}",
            {"subjects": bad_hours},
        )

    known = {s.id for s in catalogue.subjects}
    for fac in catalogue.faculty:
        unknown = sorted(set(fac.can_teach) - known)
        if unknown:
            raise CatalogueError(
                f"Faculty {fac.id} lists unknown subjects: {', '.join(unknown)}",
                {"faculty": fac.id, "subjects": unknown},
            )


def build_search_domains(catalogue: Catalogue) -> SearchDomains:
    validate_catalogue(catalogue)

    unsatisfiable: List[Unsatisfiable] = []
    qualified: Dict[str, Tuple[str, ...]] = {}
    session_subjects: List[str] = []

    for subject in catalogue.subjects:
        teachers = tuple(f.id for f in catalogue.faculty if subject.id in f.can_teach)
        if not teachers:
            logger.warning(
                "Subject %s has no qualified faculty; %d sessions will be reported as unscheduled",
                subject.id,
                subject.hours_per_week,
            )
            unsatisfiable.append(Unsatisfiable(subject.id, subject.hours_per_week))
            continue
        qualified[subject.id] = teachers
        session_subjects.extend([subject.id] * subject.hours_per_week)

    return SearchDomains(
        catalogue=catalogue,
        unsatisfiable=tuple(unsatisfiable),
        classroom_ids=tuple(c.id for c in catalogue.classrooms),
        time_slot_ids=tuple(t.id for t in catalogue.time_slots),
        session_subjects=tuple(session_subjects),
        qualified=qualified,
        faculty_index={f.id: i for i, f in enumerate(catalogue.faculty)},
        classroom_index={c.id: i for i, c in enumerate(catalogue.classrooms)},
        time_slot_index={t.id: i for i, t in enumerate(catalogue.time_slots)},
    )
