import numpy as np

from simulator.turing_machine import TuringMachine, HALTED, HALT_STATE


def evaluate_batch(programs, max_steps=10000, on_result=None):
    """
    Run each program to completion (or max_steps) on its own engine.
    programs: list of ProgramDefinition objects or program records
    on_result: optional callable(idx) invoked after each program finishes
    Returns a dict of numpy arrays, one element per program.
    """
    num_programs = len(programs)

    steps = np.zeros((num_programs,), dtype=np.int64)
    halted = np.zeros((num_programs,), dtype=np.bool_)
    accepted = np.zeros((num_programs,), dtype=np.bool_)  # halted in a halt state, not stuck
    non_blank = np.zeros((num_programs,), dtype=np.int64)
    heads = np.zeros((num_programs,), dtype=np.int64)

    for idx, program in enumerate(programs):
        machine = TuringMachine(program, log_steps=False)
        steps[idx] = machine.run_to_halt(max_steps=max_steps)
        halted[idx] = machine.status == HALTED
        accepted[idx] = machine.halt_reason == HALT_STATE
        non_blank[idx] = machine.tape.non_blank_count()
        heads[idx] = machine.head
        if on_result is not None:
            on_result(idx)

    return {
        "steps": steps,
        "halted": halted,
        "accepted": accepted,
        "non_blank": non_blank,
        "heads": heads,
    }


def summarize(results):
    """Aggregate counts over an evaluate_batch result."""
    total = int(results["steps"].shape[0])
    return {
        "programs": total,
        "halted": int(np.count_nonzero(results["halted"])),
        "stuck": int(np.count_nonzero(results["halted"] & ~results["accepted"])),
        "max_steps": int(results["steps"].max()) if total else 0,
        "max_non_blank": int(results["non_blank"].max()) if total else 0,
    }
