import json

import pytest

from logger.logger import JSONLogger
from simulator.history import IndexOutOfRange
from simulator.presets import PRESETS
from simulator.program import MalformedProgram, load_program
from simulator.tape import BLANK
from simulator.transitions import Transition
from simulator.turing_machine import (
    HALT_NO_TRANSITION,
    HALT_STATE,
    HALTED,
    READY,
    TuringMachine,
)


def history_dump(machine):
    return [snapshot.to_dict() for snapshot in machine.history]


# === Reference programs ===
def test_binary_increment(make_machine):
    machine = make_machine("binaryIncrement")
    steps = machine.run_to_halt()
    assert steps == 5
    assert machine.tape.to_string() == "1100"
    assert machine.status == HALTED
    assert machine.halt_reason == HALT_STATE
    assert machine.current_state == "done"


def test_no_rule_halt_does_not_record_history(make_machine):
    machine = make_machine({
        "states": ["q0"],
        "initialState": "q0",
        "transitions": {},
        "initialTape": "x",
    })
    assert machine.step() is False
    assert machine.status == HALTED
    assert machine.halt_reason == HALT_NO_TRANSITION
    assert machine.last_event == {"type": "halt", "reason": HALT_NO_TRANSITION}
    assert len(machine.history) == 1
    assert machine.head == 0
    assert machine.read(0) == "x"


@pytest.mark.parametrize("tape, verdict, state", [
    ("(())", "Y", "yes"),
    ("()()", "Y", "yes"),
    ("(()", "N", "no"),
    ("())", "N", "no"),
])
def test_balanced_parens(make_machine, tape, verdict, state):
    machine = make_machine(dict(PRESETS["balancedParens"], initialTape=tape))
    machine.run_to_halt()
    assert machine.status == HALTED
    assert machine.current_state == state
    assert verdict in machine.tape.to_string()


def test_busy_beaver_three_state(make_machine):
    machine = make_machine("busyBeaver3")
    steps = machine.run_to_halt()
    assert steps == 13
    assert machine.tape.non_blank_count() == 6
    assert len(machine.history) == 14
    assert machine.halt_reason == HALT_STATE
    assert machine.last_event["type"] == "step"
    assert machine.last_event["to_state"] == "HALT"


@pytest.mark.parametrize("name, expected", [
    ("binaryDecrement", "1011"),
    ("unaryStringCopy", "111#111"),
    ("binaryStringCopy", "101#101"),
    ("unaryDouble", "111111"),
])
def test_other_presets(make_machine, name, expected):
    machine = make_machine(name)
    machine.run_to_halt()
    assert machine.status == HALTED
    assert machine.tape.to_string() == expected


def test_step_records_action(make_machine):
    machine = make_machine("binaryIncrement")
    assert machine.step() is True
    action = machine.last_action
    assert (action.read, action.write, action.move, action.from_state, action.to_state) == \
        ("1", "1", "R", "scan", "scan")
    assert machine.history[1].action == action
    assert machine.history[0].action is None
    assert machine.step_count == 1


def test_max_steps_limit(make_machine):
    machine = make_machine("busyBeaver3")
    assert machine.run_to_halt(max_steps=4) == 4
    assert machine.status == READY
    assert len(machine.history) == 5


# === Properties ===
def test_determinism(make_machine):
    first = make_machine("busyBeaver3")
    second = make_machine("busyBeaver3")
    first.run_to_halt()
    second.run_to_halt()
    assert history_dump(first) == history_dump(second)


def test_history_replay_law(make_machine):
    machine = make_machine("binaryStringCopy")
    machine.run_to_halt()
    expected = history_dump(machine)
    for i in range(len(expected) - 1):
        machine.seek(i)
        snapshot = machine.seek(i + 1)
        assert snapshot.to_dict() == expected[i + 1]
        assert machine.snapshot().to_dict() == expected[i + 1]
    assert history_dump(machine) == expected


def test_halt_idempotence(make_machine):
    machine = make_machine("busyBeaver3")
    machine.run_to_halt()
    before = machine.snapshot().to_dict()
    length = len(machine.history)
    for _ in range(3):
        assert machine.step() is False
    assert machine.snapshot().to_dict() == before
    assert len(machine.history) == length


@pytest.mark.parametrize("edit", [
    lambda m: m.edit_tape_cell(0, "x"),
    lambda m: m.move_head(-7),
    lambda m: m.set_current_state("B"),
    lambda m: m.set_tape("111", 1),
])
def test_edit_truncates_future(make_machine, edit):
    machine = make_machine("busyBeaver3")
    machine.run_to_halt()
    machine.seek(4)
    edit(machine)
    assert len(machine.history) == 1
    assert machine.history_index == 0
    root = machine.history[0]
    assert root.action is None
    assert root.tape == machine.tape
    assert root.head == machine.head
    assert root.state == machine.current_state
    assert machine.last_action is None


def test_edit_reevaluates_halt_status(make_machine):
    machine = make_machine("busyBeaver3")
    machine.set_current_state("HALT")
    assert machine.status == HALTED
    machine.set_current_state("A")
    assert machine.status == READY
    machine.run_to_halt()
    machine.edit_tape_cell(100, "1")
    assert machine.status == HALTED


def test_export_import_round_trip(make_machine):
    machine = make_machine("binaryIncrement")
    machine.run_to_halt(max_steps=3)
    machine.edit_tape_cell(-4, "z")
    machine.toggle_halt("carry")
    machine.upsert_transition("scan", "z", "", "L", "extra")

    record = json.loads(machine.export_json())
    assert record["tapeOffset"] == -4
    clone = make_machine(record)

    assert clone.tape == machine.tape
    assert clone.head == machine.head
    assert clone.current_state == machine.current_state
    assert clone.halt_states == machine.halt_states
    assert clone.states == machine.states
    assert clone.transitions == machine.transitions


def test_export_shape(make_machine):
    machine = make_machine("binaryIncrement")
    record = machine.export()
    assert record["initialTape"] == "1011"
    assert record["startPosition"] == 3
    assert record["initialState"] == "scan"
    assert record["haltStates"] == ["done"]
    assert record["transitions"]["scan," + BLANK] == {"write": BLANK, "move": "L", "next": "carry"}
    assert "tapeOffset" not in record


# === Seeking ===
def test_seek_sets_status_from_halt_set(make_machine):
    machine = make_machine("busyBeaver3")
    machine.run_to_halt()
    machine.seek(0)
    assert machine.status == READY
    assert machine.step_count == 0
    machine.seek(len(machine.history) - 1)
    assert machine.status == HALTED


def test_seek_out_of_range_changes_nothing(make_machine):
    machine = make_machine("busyBeaver3")
    machine.run_to_halt(max_steps=3)
    with pytest.raises(IndexOutOfRange):
        machine.seek(10)
    assert machine.history_index == 3
    assert machine.snapshot().to_dict() == machine.history[3].to_dict()


def test_step_after_seek_diverges(make_machine):
    machine = make_machine("busyBeaver3")
    machine.run_to_halt()
    machine.seek(6)
    assert machine.current_state == "B"
    machine.upsert_transition("B", "1", "1", "L", "HALT")
    assert len(machine.history) == 14
    assert machine.step() is True
    assert len(machine.history) == 8
    assert machine.status == HALTED
    assert machine.history[7].action.to_state == "HALT"


def test_step_back_and_forward(make_machine):
    machine = make_machine("binaryIncrement")
    assert machine.step_back() is None
    machine.run_to_halt()
    last = len(machine.history) - 1
    assert machine.step_forward() is None
    assert machine.step_back().to_dict() == machine.history[last - 1].to_dict()
    assert machine.step_forward().to_dict() == machine.history[last].to_dict()


def test_seek_does_not_alias_snapshot_tape(make_machine):
    machine = make_machine("busyBeaver3")
    machine.run_to_halt()
    machine.seek(2)
    stored = machine.history[2].tape.copy()
    machine.step()
    assert machine.history[2].tape == stored


# === Lifecycle ===
def test_reset_restores_program(make_machine):
    machine = make_machine("binaryIncrement")
    machine.run_to_halt()
    machine.reset()
    assert machine.status == READY
    assert len(machine.history) == 1
    assert machine.tape.to_string() == "1011"
    assert machine.head == 3
    assert machine.current_state == "scan"


def test_failed_load_leaves_machine_untouched(make_machine):
    machine = make_machine("busyBeaver3")
    machine.run_to_halt(max_steps=5)
    before = history_dump(machine)
    with pytest.raises(MalformedProgram):
        machine.load({"states": ["A"], "initialState": "A"})
    with pytest.raises(MalformedProgram):
        machine.import_program("not json")
    assert history_dump(machine) == before
    assert machine.program.name == "Busy Beaver (3-state)"


def test_import_program_text(make_machine, scan_record):
    machine = make_machine("busyBeaver3")
    machine.import_program(json.dumps(scan_record))
    assert machine.current_state == "go"
    machine.run_to_halt()
    assert machine.tape.to_string() == "111#"


# === Editing collaborator interface ===
def test_delete_state_rules(make_machine):
    machine = make_machine("blank")
    machine.upsert_transition("q0", "", "1", "R", "q1")
    assert machine.delete_state("q0") is False  # current
    assert machine.delete_state("q1") is False  # destination
    assert machine.delete_state("missing") is False
    assert machine.delete_state("HALT") is True
    assert "HALT" not in machine.states
    assert not machine.is_halt_state("HALT")
    machine.delete_transition("q0", "")
    assert machine.delete_state("q1") is True


def test_add_state(make_machine):
    machine = make_machine("blank")
    assert machine.add_state("q2") is True
    assert machine.add_state("q2") is False
    assert machine.add_state("") is False
    assert machine.states == ["q0", "q1", "HALT", "q2"]


def test_upsert_transition_registers_states(make_machine):
    machine = make_machine("blank")
    transition = machine.upsert_transition("q5", "a", "b", "L", "q6")
    assert transition == Transition("b", "L", "q6")
    assert machine.states[-2:] == ["q5", "q6"]
    with pytest.raises(ValueError):
        machine.upsert_transition("q0", "a", "b", "X", "q1")
    with pytest.raises(ValueError):
        machine.upsert_transition("q0", "ab", "b", "L", "q1")


def test_delete_transition(make_machine):
    machine = make_machine("binaryIncrement")
    assert machine.delete_transition("scan", "1") is True
    assert machine.delete_transition("scan", "1") is False
    machine.step()
    assert machine.halt_reason == HALT_NO_TRANSITION


def test_toggle_halt_on_current_state(make_machine):
    machine = make_machine("busyBeaver3")
    assert machine.toggle_halt("A") is True
    assert machine.status == HALTED
    assert machine.step() is False
    assert machine.toggle_halt("A") is False
    assert machine.status == READY
    assert machine.step() is True


def test_toggle_halt_independent_of_transitions(make_machine):
    machine = make_machine("blank")
    assert machine.toggle_halt("unused") is True
    assert machine.is_halt_state("unused")
    assert machine.status == READY


def test_edit_tape_cell_empty_means_blank(make_machine):
    machine = make_machine("binaryIncrement")
    machine.edit_tape_cell(0, "")
    assert machine.read(0) == BLANK
    assert machine.tape.to_string() == "011"


def test_tape_window_and_format(make_machine):
    machine = make_machine("binaryIncrement")
    assert machine.tape_window(0, 5) == ["1", "0", "1", "1", BLANK]
    tape_str, head_str = machine.format_tape(window=5)
    assert tape_str == f"0 1 1 {BLANK} {BLANK}"
    assert head_str == "    ^"


def test_visualize_prints_window_and_status(make_machine, capsys):
    machine = make_machine("busyBeaver3")
    machine.run_to_halt()
    assert machine.is_halted
    machine.visualize(window=5)
    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == " ".join(machine.tape_window(machine.head - 2, machine.head + 3))
    assert lines[1] == "    ^"
    assert lines[2] == "State: HALT, Status: halted, Step: 13"


@pytest.mark.parametrize("edit", [
    lambda m: m.move_head(2.5),
    lambda m: m.move_head("3"),
    lambda m: m.move_head(True),
    lambda m: m.edit_tape_cell(1.0, "1"),
    lambda m: m.edit_tape_cell("0", "1"),
    lambda m: m.set_tape("101", head=None),
    lambda m: m.set_tape("101", head="1"),
    lambda m: m.set_tape(101),
])
def test_non_integer_positions_rejected(make_machine, edit):
    machine = make_machine("binaryIncrement")
    machine.step()
    before = history_dump(machine)
    with pytest.raises(ValueError):
        edit(machine)
    assert history_dump(machine) == before
    assert machine.step() is True


# === Logging ===
def test_steps_and_halts_are_logged(tmp_path):
    logger = JSONLogger(output_directory=str(tmp_path), log_file_prefix="tm_")
    machine = TuringMachine(load_program(PRESETS["binaryIncrement"]), logger=logger)
    machine.run_to_halt()
    machine.seek(2)

    with open(logger.current_log, "r", encoding="utf-8") as f:
        entries = [json.loads(line) for line in f]
    events = [e["event"] for e in entries]
    assert events[0] == "load"
    assert events.count("step") == 5
    assert events.count("halt") == 1
    assert events[-1] == "seek"
    step = next(e for e in entries if e["event"] == "step")
    assert step["from_state"] == "scan"
    assert step["step"] == 1


def test_step_logging_can_be_disabled(tmp_path):
    logger = JSONLogger(output_directory=str(tmp_path))
    machine = TuringMachine(load_program(PRESETS["binaryIncrement"]), logger=logger, log_steps=False)
    machine.run_to_halt()
    with open(logger.current_log, "r", encoding="utf-8") as f:
        events = [json.loads(line)["event"] for line in f]
    assert "step" not in events
    assert "halt" in events
