"""
Encodes a candidate schedule as an integer matrix with one row per gene:

    faculty_idx | classroom_idx | time_slot_idx

Indices follow catalogue order. The matrix form is what the fitness
evaluator counts occupancy with.
"""
import numpy as np

from .domains import SearchDomains
from .model import Candidate, ScheduledClass

FACULTY_COL = 0
CLASSROOM_COL = 1
TIME_SLOT_COL = 2


def candidate_to_matrix(candidate: Candidate, domains: SearchDomains) -> np.ndarray:
    matrix = np.empty((len(candidate.classes), 3), dtype=np.int64)
    for row, sc in enumerate(candidate.classes):
        matrix[row, FACULTY_COL] = domains.faculty_index[sc.faculty_id]
        matrix[row, CLASSROOM_COL] = domains.classroom_index[sc.classroom_id]
        matrix[row, TIME_SLOT_COL] = domains.time_slot_index[sc.time_slot_id]
    return matrix


def format_gene(sc: ScheduledClass, domains: SearchDomains) -> str:
    return (
        f"{domains.faculty_index[sc.faculty_id]:>3} "
        f"{domains.classroom_index[sc.classroom_id]:>3} "
        f"{domains.time_slot_index[sc.time_slot_id]:>3}"
    )
