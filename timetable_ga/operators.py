import math
import random
from dataclasses import replace
from typing import List

from .config import GAConfig
from .domains import SearchDomains
from .model import Candidate


def elite_count(pop_size: int, elitism_rate: float) -> int:
    """ceil(P * rate), never below one so the best candidate always survives."""
    return min(pop_size, max(1, math.ceil(pop_size * elitism_rate)))


def select_elite(elites: List[Candidate], rng: random.Random) -> Candidate:
    return rng.choice(elites)


def select_tournament(population: List[Candidate], size: int, rng: random.Random) -> Candidate:
    """Best of ``size`` uniform draws; the earliest contender wins ties."""
    contenders = [rng.choice(population) for _ in range(size)]
    best = contenders[0]
    for cand in contenders[1:]:
        if cand.fitness > best.fitness:
            best = cand
    return best


def one_point_crossover(p1: Candidate, p2: Candidate, rng: random.Random) -> Candidate:
    """Child = p1[0:cut] + p2[cut:], cut uniform in [0, length)."""
    length = len(p1.classes)
    if length == 0:
        return Candidate([])
    cut = rng.randrange(length)
    return Candidate(p1.classes[:cut] + p2.classes[cut:])


def uniform_crossover(p1: Candidate, p2: Candidate, rng: random.Random) -> Candidate:
    """Each session is inherited whole from either parent, keyed by its position (session identity)."""
    genes = [g1 if rng.random() < 0.5 else g2 for g1, g2 in zip(p1.classes, p2.classes)]
    return Candidate(genes)


def mutate(child: Candidate, domains: SearchDomains, mutation_rate: float, rng: random.Random) -> int:
    """
    Every gene mutates independently with probability ``mutation_rate``:
    one of faculty, classroom or time slot is replaced by a different value.
    A new faculty member is always qualified for the subject. Genes with no
    alternative value are left alone. Returns the number of genes changed.
    """
    mutated = 0
    for i, gene in enumerate(child.classes):
        if rng.random() >= mutation_rate:
            continue
        options = [
            (name, [v for v in values if v != getattr(gene, name)])
            for name, values in (
                ("faculty_id", domains.qualified[gene.subject_id]),
                ("classroom_id", domains.classroom_ids),
                ("time_slot_id", domains.time_slot_ids),
            )
        ]
        options = [(name, values) for name, values in options if values]
        if not options:
            continue
        name, values = rng.choice(options)
        child.classes[i] = replace(gene, **{name: rng.choice(values)})
        mutated += 1
    if mutated:
        child.fitness = None
    return mutated


def next_generation(
    ranked: List[Candidate],
    domains: SearchDomains,
    cfg: GAConfig,
    rng: random.Random,
) -> List[Candidate]:
    """
    Builds generation g+1 from the fitness-ranked generation g: the elite
    are copied unchanged, every other slot is a mutated crossover child.
    """
    n_elite = elite_count(cfg.population_size, cfg.elitism_rate)
    elites = ranked[:n_elite]
    new_pop = [e.copy() for e in elites]

    crossover = one_point_crossover if cfg.crossover == "one_point" else uniform_crossover
    while len(new_pop) < cfg.population_size:
        if cfg.selection == "tournament":
            p1 = select_tournament(ranked, cfg.tournament_size, rng)
            p2 = select_tournament(ranked, cfg.tournament_size, rng)
        else:
            p1 = select_elite(elites, rng)
            p2 = select_elite(elites, rng)
        child = crossover(p1, p2, rng)
        mutate(child, domains, cfg.mutation_rate, rng)
        new_pop.append(child)
    return new_pop
