# timetable_ga/initial_population.py
import random
from typing import List

from .domains import SearchDomains
from .model import Candidate, ScheduledClass


def random_gene(subject_id: str, domains: SearchDomains, rng: random.Random) -> ScheduledClass:
    return ScheduledClass(
        subject_id=subject_id,
        faculty_id=rng.choice(domains.qualified[subject_id]),
        classroom_id=rng.choice(domains.classroom_ids),
        time_slot_id=rng.choice(domains.time_slot_ids),
    )


def build_random_candidate(domains: SearchDomains, rng: random.Random) -> Candidate:
    """
    One gene per required session. Only faculty qualification is guaranteed;
    room and time conflicts are left to the fitness pressure.
    """
    genes = [random_gene(subject_id, domains, rng) for subject_id in domains.session_subjects]
    return Candidate(genes)


def build_initial_population(domains: SearchDomains, pop_size: int, rng: random.Random) -> List[Candidate]:
    return [build_random_candidate(domains, rng) for _ in range(pop_size)]
