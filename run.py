import argparse
import logging
from pathlib import Path

import pandas as pd

from timetable_ga.config import GAConfig, load_config
from timetable_ga.data_loader import load_catalogue, resolve_schedule, unscheduled_frame
from timetable_ga.domains import SearchDomains, build_search_domains
from timetable_ga.encoding import format_gene
from timetable_ga.evaluation import EvaluationResult, evaluate
from timetable_ga.exceptions import SchedulerError
from timetable_ga.ga import generate_schedule
from timetable_ga.model import Candidate, ScheduleResult

logger = logging.getLogger("timetable_ga.run")


def print_chromosome_representation(result: ScheduleResult, domains: SearchDomains, limit: int = 20):
    print("\n" + "=" * 60)
    print("CHROMOSOME - SUBJECT | FACULTY ROOM SLOT (catalogue indices)")
    print("=" * 60)
    for i, sc in enumerate(result.schedule):
        if i >= limit:
            break
        print(f"{sc.subject_id:<18} {format_gene(sc, domains)}")
    print("=" * 60 + "\n")


def export_outputs(
    result: ScheduleResult,
    eval_res: EvaluationResult,
    df_schedule: pd.DataFrame,
    df_unscheduled: pd.DataFrame,
    out_dir: Path,
):
    out_dir.mkdir(parents=True, exist_ok=True)
    df_schedule.to_csv(out_dir / "schedule.csv", index=False)
    df_unscheduled.to_csv(out_dir / "unscheduled.csv", index=False)
    rows = [
        {"type": "faculty_conflicts", "value": eval_res.faculty_conflicts},
        {"type": "classroom_conflicts", "value": eval_res.room_conflicts},
    ]
    rows += [{"type": f"soft_{name}", "value": n} for name, n in eval_res.soft_counts.items()]
    rows += [
        {"type": "soft_cost", "value": eval_res.soft_cost},
        {"type": "fitness", "value": eval_res.fitness},
    ]
    pd.DataFrame(rows).to_csv(out_dir / "conflicts.csv", index=False)
    if result.history:
        pd.DataFrame(result.history).to_csv(out_dir / "history.csv", index=False)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Weekly timetable search with a genetic algorithm")
    parser.add_argument("--config", default="config.yaml", help="Path to the YAML configuration")
    parser.add_argument("--data_dir", default="data", help="Directory holding the catalogue CSV files")
    parser.add_argument("--out_dir", default="outputs", help="Directory for the exported CSV files")
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--generations", type=int, default=None)
    parser.add_argument("--population", type=int, default=None)
    parser.add_argument("--log-level", default="INFO")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        cfg: GAConfig = load_config(
            args.config,
            seed=args.seed,
            generations=args.generations,
            population_size=args.population,
        )
        catalogue = load_catalogue(args.data_dir)
        result = generate_schedule(catalogue, cfg)
    except SchedulerError as exc:
        logger.error("%s %s", exc.message, exc.details or "")
        return 1

    domains = build_search_domains(catalogue)
    eval_res = evaluate(Candidate(list(result.schedule)), domains, cfg)

    print("\n--- BEST SCHEDULE ---")
    print(
        f"Fitness: {result.fitness:.1f} | Hard conflicts: {result.hard_violations} "
        f"| Soft cost: {result.soft_cost} | Stop: {result.stopped_reason} "
        f"after {result.generations_run} generations"
    )
    for line in result.violations:
        print(f"  ! {line}")
    for u in result.unscheduled:
        print(f"  - unscheduled: {u.subject_id} ({u.sessions} sessions, {u.reason})")
    print_chromosome_representation(result, domains)

    df_schedule = resolve_schedule(result, catalogue)
    out_dir = Path(args.out_dir)
    export_outputs(result, eval_res, df_schedule, unscheduled_frame(result, catalogue), out_dir)
    metrics = {
        "fitness": result.fitness,
        "hard_violations": result.hard_violations,
        "soft_cost": result.soft_cost,
        "dropped_sessions": result.dropped_sessions,
        "generations_ran": result.generations_run,
        "stopped_reason": result.stopped_reason,
    }
    pd.DataFrame([metrics]).to_csv(out_dir / "metrics.csv", index=False)
    print(f"Results written to {out_dir}/schedule.csv and {out_dir}/conflicts.csv")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
