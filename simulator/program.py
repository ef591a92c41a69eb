import json

from simulator.tape import BLANK, Tape
from simulator.transitions import MOVES, Transition, TransitionTable

REQUIRED_FIELDS = ["states", "initialState", "transitions"]


class MalformedProgram(ValueError):
    pass


class ProgramDefinition:
    """Static description of a machine. Engines copy what they need on load."""

    def __init__(self, states, initial_state, transitions, halt_states=(), initial_tape="",
                 start_position=0, tape_offset=0, name="Custom Program", description=""):
        self.states = tuple(_unique(states))
        self.initial_state = initial_state
        self.halt_states = tuple(_unique(halt_states))
        self.transitions = TransitionTable(transitions)
        self.initial_tape = initial_tape
        self.start_position = start_position
        self.tape_offset = tape_offset
        self.name = name
        self.description = description

    def build_tape(self):
        return Tape.from_string(self.initial_tape, self.tape_offset)

    def __repr__(self):
        return f"ProgramDefinition(name={self.name!r}, states={list(self.states)!r})"


def _unique(names):
    seen = []
    for name in names:
        if name not in seen:
            seen.append(name)
    return seen


# === Transition key codec ===
def format_key(state, symbol):
    return f"{state},{symbol}"


def parse_key(key):
    """Split '<state>,<symbol>'. The symbol is the final character, so ',' is a legal symbol."""
    if not isinstance(key, str) or len(key) < 3 or key[-2] != ",":
        raise MalformedProgram(f"invalid transition key: {key!r}")
    return key[:-2], key[-1]


def _symbol(value, where):
    if value is None or value == "":
        return BLANK
    if not isinstance(value, str) or len(value) != 1:
        raise MalformedProgram(f"{where} must be a single character, got {value!r}")
    return value


def _integer(value, name):
    if isinstance(value, bool) or not isinstance(value, int):
        raise MalformedProgram(f"{name} must be an integer, got {value!r}")
    return value


def _state_list(value, name):
    if not isinstance(value, list):
        raise MalformedProgram(f"{name} must be a list of state names")
    for state in value:
        if not isinstance(state, str) or not state:
            raise MalformedProgram(f"{name} contains an invalid state name: {state!r}")
    return value


def _transitions(value):
    if not isinstance(value, dict):
        raise MalformedProgram("transitions must be an object")
    rules = {}
    for key, rule in value.items():
        state, symbol = parse_key(key)
        if not isinstance(rule, dict):
            raise MalformedProgram(f"transition {key!r} must be an object")
        for field in ("move", "next"):
            if field not in rule:
                raise MalformedProgram(f"transition {key!r} is missing field: {field}")
        write = _symbol(rule.get("write"), f"transition {key!r} write")
        if rule["move"] not in MOVES:
            raise MalformedProgram(f"transition {key!r} move must be 'L' or 'R', got {rule['move']!r}")
        if not isinstance(rule["next"], str) or not rule["next"]:
            raise MalformedProgram(f"transition {key!r} next must be a state name")
        rules[(state, symbol)] = Transition(write, rule["move"], rule["next"])
    return rules


# === Loader ===
def load_program(record) -> ProgramDefinition:
    """Validate an untrusted program record. Raises MalformedProgram on the first problem found."""
    if not isinstance(record, dict):
        raise MalformedProgram("program must be an object")

    for field in REQUIRED_FIELDS:
        if record.get(field) is None:
            raise MalformedProgram(f"missing required field: {field}")

    # Optional fields default instead of failing
    halt_states = record.get("haltStates")
    if halt_states is None:
        halt_states = []
    initial_tape = record.get("initialTape")
    if initial_tape is None:
        initial_tape = ""
    start_position = record.get("startPosition")
    if start_position is None:
        start_position = 0
    tape_offset = record.get("tapeOffset")
    if tape_offset is None:
        tape_offset = 0

    states = _state_list(record["states"], "states")
    initial_state = record["initialState"]
    if not isinstance(initial_state, str) or not initial_state:
        raise MalformedProgram("initialState must be a non-empty string")
    halt_states = _state_list(halt_states, "haltStates")
    rules = _transitions(record["transitions"])
    if not isinstance(initial_tape, str):
        raise MalformedProgram("initialTape must be a string")
    start_position = _integer(start_position, "startPosition")
    tape_offset = _integer(tape_offset, "tapeOffset")

    return ProgramDefinition(
        states=states,
        initial_state=initial_state,
        transitions=rules,
        halt_states=halt_states,
        initial_tape=initial_tape,
        start_position=start_position,
        tape_offset=tape_offset,
        name=str(record.get("name") or "Custom Program"),
        description=str(record.get("description") or ""),
    )


def parse_program(text) -> ProgramDefinition:
    try:
        record = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedProgram(f"invalid JSON: {e}") from e
    return load_program(record)


def load_program_file(path) -> ProgramDefinition:
    with open(path, "r", encoding="utf-8") as f:
        return parse_program(f.read())


# === Export ===
def transitions_to_record(table):
    return {
        format_key(state, symbol): {"write": t.write, "move": t.move, "next": t.next_state}
        for (state, symbol), t in table.items()
    }


def program_to_record(program: ProgramDefinition):
    record = {
        "name": program.name,
        "description": program.description,
        "states": list(program.states),
        "initialState": program.initial_state,
        "haltStates": list(program.halt_states),
        "transitions": transitions_to_record(program.transitions),
        "initialTape": program.initial_tape,
        "startPosition": program.start_position,
    }
    if program.tape_offset:
        record["tapeOffset"] = program.tape_offset
    return record


def dump_program(program: ProgramDefinition, indent=2):
    return json.dumps(program_to_record(program), indent=indent, ensure_ascii=False)
