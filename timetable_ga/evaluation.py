# timetable_ga/evaluation.py
import math
from collections import defaultdict
from dataclasses import dataclass, field
from typing import DefaultDict, Dict, List

import numpy as np

from .config import GAConfig
from .domains import SearchDomains
from .encoding import candidate_to_matrix
from .model import Candidate, time_to_minutes

SOFT_CONSTRAINTS = (
    "preferred_slot",
    "preferred_day",
    "unavailable_slot",
    "max_hours",
    "daily_load",
    "lunch_break",
    "consecutive",
)


@dataclass
class EvaluationResult:
    fitness: float
    faculty_conflicts: int
    room_conflicts: int
    soft_cost: int
    soft_counts: Dict[str, int]
    occupancy_faculty: np.ndarray  # [faculty][time_slot]
    occupancy_room: np.ndarray     # [classroom][time_slot]
    faculty_hours: Dict[str, int]
    violations: List[str] = field(default_factory=list)

    @property
    def hard_violations(self) -> int:
        return self.faculty_conflicts + self.room_conflicts


def _slots_by_day(domains: SearchDomains) -> Dict[int, List[int]]:
    """Time slot indices grouped by day, ordered by start time."""
    by_day: DefaultDict[int, List[int]] = defaultdict(list)
    slots = domains.catalogue.time_slots
    for idx, ts in enumerate(slots):
        by_day[ts.day.index].append(idx)
    for day in by_day:
        by_day[day].sort(key=lambda i: time_to_minutes(slots[i].start_time))
    return dict(by_day)


def _soft_counts(
    occ_fac: np.ndarray,
    matrix: np.ndarray,
    domains: SearchDomains,
    cfg: GAConfig,
) -> Dict[str, int]:
    cat = domains.catalogue
    slots = cat.time_slots
    counts = {name: 0 for name in SOFT_CONSTRAINTS}
    by_day = _slots_by_day(domains)
    lunch_start = time_to_minutes(cfg.lunch_start)
    lunch_end = time_to_minutes(cfg.lunch_end)

    # Per-session preferences
    for f_idx, _, t_idx in matrix.tolist():
        prefs = cat.faculty[f_idx].preferences
        ts = slots[t_idx]
        if prefs.preferred_time_slots and ts.id not in prefs.preferred_time_slots:
            counts["preferred_slot"] += 1
        if prefs.preferred_days and ts.day not in prefs.preferred_days:
            counts["preferred_day"] += 1
        if ts.id in prefs.unavailable_time_slots:
            counts["unavailable_slot"] += 1

    # Per-faculty workload shape
    for f_idx, fac in enumerate(cat.faculty):
        row = occ_fac[f_idx]
        total = int(row.sum())
        if total == 0:
            continue
        if fac.max_hours_per_week is not None:
            counts["max_hours"] += max(0, total - fac.max_hours_per_week)

        share = math.ceil(total / len(by_day))
        for day_slots in by_day.values():
            daily = int(row[day_slots].sum())
            counts["daily_load"] += max(0, daily - share)

            if fac.preferences.lunch_break_required:
                lunch = [
                    i for i in day_slots
                    if time_to_minutes(slots[i].start_time) < lunch_end
                    and time_to_minutes(slots[i].end_time) > lunch_start
                ]
                if lunch and all(row[i] > 0 for i in lunch):
                    counts["lunch_break"] += 1

            limit = fac.preferences.max_consecutive_hours
            if limit is not None:
                run = 0
                prev_end = None
                for i in day_slots:
                    if row[i] == 0:
                        run, prev_end = 0, None
                        continue
                    contiguous = prev_end is not None and time_to_minutes(slots[i].start_time) <= prev_end
                    run = run + 1 if contiguous else 1
                    prev_end = time_to_minutes(slots[i].end_time)
                    if run > limit:
                        counts["consecutive"] += 1
    return counts


def evaluate(candidate: Candidate, domains: SearchDomains, cfg: GAConfig) -> EvaluationResult:
    """
    Scores a candidate; higher is better and 0 is the best possible score.

    Every repeat of a (faculty, time slot) or (classroom, time slot) pair
    already seen earlier in the gene order is a hard violation worth
    ``cfg.hard_penalty``. Soft constraints add their weighted counts.
    """
    cat = domains.catalogue
    matrix = candidate_to_matrix(candidate, domains)
    n_slots = len(cat.time_slots)
    occ_fac = np.zeros((len(cat.faculty), n_slots), dtype=int)
    occ_room = np.zeros((len(cat.classrooms), n_slots), dtype=int)

    faculty_conflicts = room_conflicts = 0
    violations: List[str] = []
    for sc, (f_idx, c_idx, t_idx) in zip(candidate.classes, matrix.tolist()):
        occ_fac[f_idx, t_idx] += 1
        if occ_fac[f_idx, t_idx] > 1:
            faculty_conflicts += 1
            violations.append(f"Faculty {sc.faculty_id} double-booked at {sc.time_slot_id} ({sc.subject_id})")
        occ_room[c_idx, t_idx] += 1
        if occ_room[c_idx, t_idx] > 1:
            room_conflicts += 1
            violations.append(f"Classroom {sc.classroom_id} double-booked at {sc.time_slot_id} ({sc.subject_id})")

    weights = cfg.soft_weights()
    if any(weights.values()) and len(matrix):
        soft_counts = _soft_counts(occ_fac, matrix, domains, cfg)
    else:
        soft_counts = {name: 0 for name in SOFT_CONSTRAINTS}
    soft_cost = sum(weights[name] * n for name, n in soft_counts.items())

    hard = faculty_conflicts + room_conflicts
    fitness = float(-(cfg.hard_penalty * hard + soft_cost))

    candidate.fitness = fitness
    candidate.hard_violations = hard
    candidate.soft_cost = soft_cost

    faculty_hours = {
        fac.id: int(occ_fac[i].sum()) for i, fac in enumerate(cat.faculty) if occ_fac[i].sum() > 0
    }
    return EvaluationResult(
        fitness=fitness,
        faculty_conflicts=faculty_conflicts,
        room_conflicts=room_conflicts,
        soft_cost=soft_cost,
        soft_counts=soft_counts,
        occupancy_faculty=occ_fac,
        occupancy_room=occ_room,
        faculty_hours=faculty_hours,
        violations=violations,
    )
