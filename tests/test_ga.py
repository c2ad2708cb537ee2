import unittest
from pathlib import Path

from timetable_ga.config import GAConfig
from timetable_ga.data_loader import catalogue_from_dict, load_catalogue
from timetable_ga.domains import build_search_domains
from timetable_ga.exceptions import CatalogueError, ConfigError
from timetable_ga.ga import GeneticSolver, generate_schedule, rank_population
from timetable_ga.model import Candidate, Unsatisfiable

from factories import catalogue, faculty, room, single_subject, slot, subject, two_by_two

DATA_DIR = Path(__file__).resolve().parent.parent / "data"


class PopulationTests(unittest.TestCase):
    def test_rank_is_stable(self):
        a = Candidate([], fitness=-100.0)
        b = Candidate([], fitness=0.0)
        c = Candidate([], fitness=-100.0)
        d = Candidate([], fitness=0.0)
        ranked = rank_population([a, b, c, d])
        self.assertEqual([id(x) for x in ranked], [id(b), id(d), id(a), id(c)])

    def test_parallel_evaluation_matches_serial(self):
        cat = load_catalogue(str(DATA_DIR))
        serial = generate_schedule(cat, GAConfig(seed=5, population_size=30, generations=10))
        threaded = generate_schedule(cat, GAConfig(seed=5, population_size=30, generations=10, n_workers=3))
        self.assertEqual(serial.schedule, threaded.schedule)
        self.assertEqual(serial.history, threaded.history)


class EvolutionTests(unittest.TestCase):
    def test_best_fitness_never_regresses(self):
        cat = load_catalogue(str(DATA_DIR))
        for seed in range(3):
            cfg = GAConfig(seed=seed, population_size=40, generations=30, early_stop=False)
            domains = build_search_domains(cat)
            solver = GeneticSolver(domains, cfg)
            solver.evolve()
            best = [h["best_fitness"] for h in solver.history]
            self.assertEqual(len(best), 31)
            for prev, nxt in zip(best, best[1:]):
                self.assertGreaterEqual(nxt, prev)

    def test_qualification_and_session_count(self):
        cat = load_catalogue(str(DATA_DIR))
        can_teach = {f.id: f.can_teach for f in cat.faculty}
        result = generate_schedule(cat, GAConfig(seed=1, population_size=40, generations=20))
        self.assertEqual(len(result.schedule), cat.total_sessions)
        self.assertEqual(result.dropped_sessions, 0)
        for sc in result.schedule:
            self.assertIn(sc.subject_id, can_teach[sc.faculty_id])

    def test_converges_on_small_satisfiable_catalogue(self):
        for seed in range(5):
            result = generate_schedule(two_by_two(), GAConfig(seed=seed, population_size=30, generations=50))
            self.assertEqual(result.hard_violations, 0, f"seed {seed}")
            self.assertTrue(result.is_conflict_free)
            self.assertEqual(len(result.schedule), 4)

    def test_early_stop_on_optimum(self):
        result = generate_schedule(two_by_two(), GAConfig(seed=3, population_size=30, generations=50))
        self.assertEqual(result.fitness, 0)
        self.assertEqual(result.stopped_reason, "optimal")
        self.assertLess(result.generations_run, 50)

    def test_same_seed_same_schedule(self):
        cat = load_catalogue(str(DATA_DIR))
        first = generate_schedule(cat, GAConfig(seed=42, population_size=30, generations=15))
        second = generate_schedule(cat, GAConfig(seed=42, population_size=30, generations=15))
        self.assertEqual(first.schedule, second.schedule)
        self.assertEqual(first.fitness, second.fitness)
        self.assertEqual(first.history, second.history)

    def test_single_teacher_scenario(self):
        result = generate_schedule(single_subject(), GAConfig(seed=0, population_size=20, generations=20))
        self.assertEqual(len(result.schedule), 2)
        self.assertTrue(all(sc.faculty_id == "F1" for sc in result.schedule))
        self.assertEqual({sc.time_slot_id for sc in result.schedule}, {"T1", "T2"})
        self.assertEqual(result.hard_violations, 0)

    def test_alternative_operators(self):
        cfg = GAConfig(
            seed=8, population_size=30, generations=50, selection="tournament", crossover="uniform",
            mutation_rate=0.05,
        )
        result = generate_schedule(two_by_two(), cfg)
        self.assertEqual(result.hard_violations, 0)


class TerminationTests(unittest.TestCase):
    def _overbooked(self):
        # three sessions, one room, one slot: conflicts cannot be removed
        return catalogue([subject("A", 3)], [faculty("F1", "A")], [room("C1")], [slot("T1")])

    def test_residual_conflicts_are_reported(self):
        result = generate_schedule(self._overbooked(), GAConfig(seed=0, population_size=5, generations=5))
        self.assertEqual(result.hard_violations, 4)
        self.assertFalse(result.is_conflict_free)
        self.assertEqual(len(result.violations), 4)
        self.assertEqual(result.fitness, -400)

    def test_stagnation_stop(self):
        cfg = GAConfig(seed=0, population_size=5, generations=50, max_stagnation=3)
        result = generate_schedule(self._overbooked(), cfg)
        self.assertEqual(result.stopped_reason, "stagnation")
        self.assertEqual(result.generations_run, 3)

    def test_cancellation_checked_per_generation(self):
        calls = []

        def should_stop():
            calls.append(1)
            return len(calls) >= 2

        cfg = GAConfig(seed=0, population_size=5, generations=50)
        result = generate_schedule(self._overbooked(), cfg, should_stop=should_stop)
        self.assertEqual(result.stopped_reason, "cancelled")
        self.assertEqual(result.generations_run, 1)
        self.assertEqual(len(result.history), 2)

    def test_zero_generations_returns_best_initial(self):
        result = generate_schedule(two_by_two(), GAConfig(seed=0, population_size=10, generations=0))
        self.assertEqual(result.generations_run, 0)
        self.assertEqual(len(result.schedule), 4)


class ErrorHandlingTests(unittest.TestCase):
    def test_unsatisfiable_subject_is_reported(self):
        cat = catalogue(
            [subject("A", 2), subject("B", 3)],
            [faculty("F1", "A")],
            [room("C1"), room("C2")],
            [slot("T1"), slot("T2", start="10:00", end="11:00")],
        )
        result = generate_schedule(cat, GAConfig(seed=0, population_size=20, generations=20))
        self.assertEqual(len(result.schedule), 2)
        self.assertEqual(result.unscheduled, [Unsatisfiable("B", 3)])
        self.assertEqual(result.dropped_sessions, 3)
        outcomes = list(result.outcomes())
        self.assertEqual(len(outcomes), 3)
        self.assertIsInstance(outcomes[-1], Unsatisfiable)

    def test_nothing_schedulable(self):
        cat = catalogue([subject("A", 2)], [], [room("C1")], [slot("T1")])
        result = generate_schedule(cat, GAConfig(seed=0))
        self.assertEqual(result.schedule, [])
        self.assertEqual(result.stopped_reason, "nothing_to_schedule")
        self.assertEqual(result.dropped_sessions, 2)

    def test_degenerate_catalogues_fail_fast(self):
        cases = [
            catalogue([], [faculty("F1", "A")], [room("C1")], [slot("T1")]),
            catalogue([subject("A", 1)], [faculty("F1", "A")], [], [slot("T1")]),
            catalogue([subject("A", 1)], [faculty("F1", "A")], [room("C1")], []),
            catalogue([subject("A", 0)], [faculty("F1", "A")], [room("C1")], [slot("T1")]),
            catalogue([subject("A", 1), subject("A", 2)], [faculty("F1", "A")], [room("C1")], [slot("T1")]),
        ]
        for cat in cases:
            with self.assertRaises(CatalogueError):
                generate_schedule(cat, GAConfig(seed=0))

    def test_invalid_config_fails_fast(self):
        with self.assertRaises(ConfigError):
            generate_schedule(two_by_two(), GAConfig(seed=0, mutation_rate=1.5))

    def test_malformed_times_fail_before_search(self):
        def payload(**slot_fields):
            time_slot = {"id": "T1", "day": "Monday", "startTime": "09:00", "endTime": "10:00"}
            time_slot.update(slot_fields)
            return {
                "subjects": [{"id": "A", "hoursPerWeek": 1}],
                "faculty": [{"id": "F1", "canTeach": ["A"]}],
                "classrooms": [{"id": "C1"}],
                "timeSlots": [{k: v for k, v in time_slot.items() if v is not None}],
            }

        cases = [
            payload(startTime="09:00:00"),
            payload(startTime=None),
            payload(endTime="9am"),
            payload(startTime="10:00", endTime="10:00"),
            payload(startTime="11:00", endTime="10:00"),
        ]
        for data in cases:
            cat = catalogue_from_dict(data)
            with self.assertRaises(CatalogueError, msg=str(data["timeSlots"])):
                generate_schedule(cat, GAConfig(seed=0))
        self.assertEqual(len(generate_schedule(catalogue_from_dict(payload()), GAConfig(seed=0)).schedule), 1)

    def test_unknown_can_teach_subject_fails_fast(self):
        cat = catalogue([subject("A", 1)], [faculty("F1", "A", "GHOST")], [room("C1")], [slot("T1")])
        with self.assertRaises(CatalogueError) as ctx:
            generate_schedule(cat, GAConfig(seed=0))
        self.assertEqual(ctx.exception.details, {"faculty": "F1", "subjects": ["GHOST"]})


if __name__ == "__main__":
    unittest.main()
