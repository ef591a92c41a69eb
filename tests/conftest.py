import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from simulator.presets import get_preset
from simulator.turing_machine import TuringMachine


@pytest.fixture
def make_machine():
    """Build a machine from a preset name or a program record; stops run mode on teardown."""
    machines = []

    def _make(program, **kwargs):
        if isinstance(program, str):
            program = get_preset(program)
        kwargs.setdefault("interval_ms", 1)
        machine = TuringMachine(program, **kwargs)
        machines.append(machine)
        return machine

    yield _make
    for machine in machines:
        machine.pause()


@pytest.fixture
def scan_record():
    """Walks right over 1s and halts on the first blank."""
    return {
        "states": ["go", "end"],
        "initialState": "go",
        "haltStates": ["end"],
        "transitions": {
            "go,1": {"write": "1", "move": "R", "next": "go"},
            "go,□": {"write": "#", "move": "R", "next": "end"},
        },
        "initialTape": "111",
        "startPosition": 0,
    }
