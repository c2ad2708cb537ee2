import logging
import random
from concurrent.futures import Executor, ThreadPoolExecutor
from time import perf_counter
from typing import Callable, Dict, List, Optional, Tuple

from .config import GAConfig
from .domains import SearchDomains, build_search_domains
from .evaluation import EvaluationResult, evaluate
from .initial_population import build_initial_population
from .model import Candidate, Catalogue, ScheduleResult
from .operators import next_generation

logger = logging.getLogger(__name__)

StopCallback = Callable[[], bool]


def rank_population(population: List[Candidate]) -> List[Candidate]:
    """Fitness descending; ties keep insertion order (sorted is stable)."""
    return sorted(population, key=lambda c: c.fitness, reverse=True)


class GeneticSolver:
    def __init__(self, domains: SearchDomains, cfg: GAConfig, should_stop: Optional[StopCallback] = None):
        self.domains = domains
        self.cfg = cfg
        self.should_stop = should_stop
        self.rng = random.Random(cfg.seed)
        self.history: List[Dict] = []

    def evaluate_population(
        self, population: List[Candidate], executor: Optional[Executor] = None
    ) -> List[EvaluationResult]:
        # Candidates are independent; the only sync point is the ranking that follows
        if executor is None:
            return [evaluate(c, self.domains, self.cfg) for c in population]
        return list(executor.map(lambda c: evaluate(c, self.domains, self.cfg), population))

    def _record(self, gen: int, ranked: List[Candidate]) -> None:
        avg = sum(c.fitness for c in ranked) / len(ranked)
        self.history.append(
            {
                "generation": gen,
                "best_fitness": ranked[0].fitness,
                "avg_fitness": avg,
                "best_hard_violations": ranked[0].hard_violations,
                "best_soft_cost": ranked[0].soft_cost,
            }
        )

    def _stop_reason(self, ranked: List[Candidate], started: float, stagnation: int) -> Optional[str]:
        cfg = self.cfg
        if cfg.early_stop and ranked[0].fitness == 0:
            return "optimal"
        if self.should_stop is not None and self.should_stop():
            return "cancelled"
        if cfg.time_limit is not None and perf_counter() - started >= cfg.time_limit:
            return "time_limit"
        if cfg.max_stagnation is not None and stagnation >= cfg.max_stagnation:
            return "stagnation"
        return None

    def evolve(self) -> Tuple[Candidate, str, int]:
        """
        Initialize -> {Evaluate -> Rank -> Select&Vary} x G -> best.

        Stop conditions are only checked at generation boundaries. Returns
        the best candidate, why the loop ended and how many generations ran.
        """
        cfg = self.cfg
        executor = ThreadPoolExecutor(max_workers=cfg.n_workers) if cfg.n_workers > 1 else None
        try:
            population = build_initial_population(self.domains, cfg.population_size, self.rng)
            self.evaluate_population(population, executor)
            ranked = rank_population(population)
            self._record(0, ranked)

            started = perf_counter()
            best_fitness = ranked[0].fitness
            stagnation = 0
            generations_run = 0
            reason = "generations"

            for gen in range(1, cfg.generations + 1):
                stop = self._stop_reason(ranked, started, stagnation)
                if stop is not None:
                    reason = stop
                    break

                population = next_generation(ranked, self.domains, cfg, self.rng)
                self.evaluate_population(population, executor)
                ranked = rank_population(population)
                generations_run = gen

                if ranked[0].fitness > best_fitness:
                    best_fitness = ranked[0].fitness
                    stagnation = 0
                else:
                    stagnation += 1
                self._record(gen, ranked)

                if gen % 5 == 0 or gen == cfg.generations:
                    logger.info(
                        "Gen %d: best fitness=%.1f hard=%d avg=%.2f",
                        gen,
                        ranked[0].fitness,
                        ranked[0].hard_violations,
                        self.history[-1]["avg_fitness"],
                    )
            else:
                if cfg.early_stop and ranked[0].fitness == 0:
                    reason = "optimal"
        finally:
            if executor is not None:
                executor.shutdown()

        return ranked[0], reason, generations_run


def generate_schedule(
    catalogue: Catalogue,
    config: GAConfig,
    should_stop: Optional[StopCallback] = None,
) -> ScheduleResult:
    """
    Searches for the best weekly schedule of ``catalogue``.

    Raises ``CatalogueError`` / ``ConfigError`` before searching when the
    input cannot be searched. Unsatisfiable subjects and residual conflicts
    never raise: they are reported on the returned ``ScheduleResult``.
    """
    config.validate()
    domains = build_search_domains(catalogue)
    unscheduled = list(domains.unsatisfiable)

    if domains.n_sessions == 0:
        logger.warning("No subject has qualified faculty; nothing to schedule")
        return ScheduleResult(
            schedule=[],
            fitness=0.0,
            hard_violations=0,
            soft_cost=0,
            unscheduled=unscheduled,
            stopped_reason="nothing_to_schedule",
        )

    logger.info(
        "Starting search: %d sessions, population=%d, generations=%d, seed=%d",
        domains.n_sessions,
        config.population_size,
        config.generations,
        config.seed,
    )
    solver = GeneticSolver(domains, config, should_stop)
    start = perf_counter()
    best, reason, generations_run = solver.evolve()
    res = evaluate(best, domains, config)
    elapsed = perf_counter() - start

    if res.hard_violations:
        logger.warning(
            "Best schedule still has %d hard conflicts (faculty=%d, classroom=%d)",
            res.hard_violations,
            res.faculty_conflicts,
            res.room_conflicts,
        )
    if unscheduled:
        logger.warning("%d sessions could not be scheduled", sum(u.sessions for u in unscheduled))
    logger.info(
        "Search finished (%s) after %d generations in %.2fs: fitness=%.1f",
        reason,
        generations_run,
        elapsed,
        res.fitness,
    )

    return ScheduleResult(
        schedule=list(best.classes),
        fitness=res.fitness,
        hard_violations=res.hard_violations,
        soft_cost=res.soft_cost,
        unscheduled=unscheduled,
        violations=res.violations,
        generations_run=generations_run,
        stopped_reason=reason,
        history=solver.history,
    )
