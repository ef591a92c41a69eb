# tools/simulate_pool.py

import argparse
import json
import os
from pathlib import Path

from rich.progress import Progress, SpinnerColumn, BarColumn, TextColumn, TimeElapsedColumn

from logger.logger import JSONLogger
from simulator.evaluator import evaluate_batch
from simulator.program import load_program_file


# === Promotion for Long-Runners ===
def promote_long_runner(program_path, pool_file="pools/long_runners.txt"):
    Path(pool_file).parent.mkdir(parents=True, exist_ok=True)
    with open(pool_file, "a", encoding="utf-8") as f:
        f.write(program_path + "\n")


# === Utility Loaders ===
def load_program_pool(pool_file):
    """One program file path per line; relative paths resolve against the pool file."""
    base = Path(pool_file).parent
    programs = []
    with open(pool_file, "r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            path = Path(line)
            programs.append(str(path if path.is_absolute() else base / path))
    return programs


def load_checkpoint(checkpoint_path):
    if checkpoint_path.exists():
        with open(checkpoint_path, "r", encoding="utf-8") as f:
            checkpoint = json.load(f)
        return checkpoint.get("completed", [])
    return []


def save_checkpoint(completed, checkpoint_path):
    with open(checkpoint_path, "w", encoding="utf-8") as f:
        json.dump({"completed": completed}, f, indent=4)


def console_message(msg):
    print(f"[{Path(os.getcwd()).name}] {msg}")


# === Main Simulation Runner ===
def simulate_pool(pool_file, output_name="results", batch_size=256, max_steps=10000,
                  results_root="results", long_runner_pool="pools/long_runners.txt", logger=None):
    pool_name = Path(pool_file).stem
    results_folder = Path(results_root) / pool_name
    results_folder.mkdir(parents=True, exist_ok=True)
    results_file = results_folder / f"{output_name}.jsonl"
    checkpoint_file = results_folder / f"{output_name}_checkpoint.json"

    all_programs = load_program_pool(pool_file)
    completed = load_checkpoint(checkpoint_file)

    pending_programs = [p for p in all_programs if p not in completed]
    console_message(f"Loaded {len(all_programs):,} total programs. {len(pending_programs):,} pending.")

    written = []
    with open(results_file, "a", encoding="utf-8") as results_fh:
        for batch_start in range(0, len(pending_programs), batch_size):
            batch = pending_programs[batch_start:batch_start + batch_size]
            console_message(f"Processing batch {batch_start // batch_size + 1} with {len(batch):,} programs...")

            with Progress(
                    SpinnerColumn(),
                    BarColumn(),
                    "[progress.percentage]{task.percentage:>3.0f}%",
                    TextColumn("{task.completed}/{task.total} Programs"),
                    TimeElapsedColumn()
            ) as progress:

                task = progress.add_task("[cyan]Simulating...", total=len(batch))

                loaded_paths = []
                programs = []
                for program_path in batch:
                    try:
                        programs.append(load_program_file(program_path))
                        loaded_paths.append(program_path)
                    except (OSError, ValueError) as e:
                        console_message(f"[WARNING] Failed to load {program_path}: {e}")
                        progress.update(task, advance=1)

                results = evaluate_batch(
                    programs,
                    max_steps=max_steps,
                    on_result=lambda _: progress.update(task, advance=1),
                )

                batch_results = []  # <--- buffer
                for idx, program_path in enumerate(loaded_paths):
                    entry = {
                        "program": program_path,
                        "name": programs[idx].name,
                        "steps_taken": int(results["steps"][idx]),
                        "halted": bool(results["halted"][idx]),
                        "accepted": bool(results["accepted"][idx]),
                        "non_blank": int(results["non_blank"][idx]),
                    }
                    batch_results.append(entry)
                    completed.append(program_path)

                    # === Auto-Promote Long Runners ===
                    if not entry["halted"] and entry["steps_taken"] >= max_steps:
                        promote_long_runner(program_path, long_runner_pool)

                # === BULK WRITE once per batch ===
                for entry in batch_results:
                    results_fh.write(json.dumps(entry) + "\n")
                results_fh.flush()

                if logger is not None:
                    logger.log_halting([e for e in batch_results if e["halted"]])
                    logger.log_non_halting([e for e in batch_results if not e["halted"]])

                save_checkpoint(completed, checkpoint_file)
                written.extend(batch_results)
                console_message("[INFO] Batch completed. Checkpoint saved.")

    console_message("[SUCCESS] All programs simulated. Results saved.")
    return written


# === CLI ===
def main():
    parser = argparse.ArgumentParser(description="Run a pool of Turing machine program files with checkpointing.")
    parser.add_argument("--pool", required=True, help="Path to pool file (one program JSON path per line)")
    parser.add_argument("--output", default="results", help="Output result file name (default: results)")
    parser.add_argument("--batch_size", type=int, default=256, help="Batch size per save/checkpoint")
    parser.add_argument("--max_steps", type=int, default=10000, help="Maximum steps before timeout")
    parser.add_argument("--results_root", default="results", help="Directory for result folders")
    parser.add_argument("--log_dir", default=None, help="Also write halting/non-halting JSONL logs here")
    args = parser.parse_args()

    logger = JSONLogger(output_directory=args.log_dir) if args.log_dir else None
    simulate_pool(
        args.pool,
        args.output,
        batch_size=args.batch_size,
        max_steps=args.max_steps,
        results_root=args.results_root,
        logger=logger,
    )


if __name__ == "__main__":
    main()
