import json
import threading

from simulator.history import History, IndexOutOfRange, Snapshot, ActionRecord
from simulator.program import ProgramDefinition, load_program, parse_program, transitions_to_record
from simulator.tape import BLANK, Tape
from simulator.transitions import Transition

# Engine status (not the simulated machine's states)
READY = "ready"
RUNNING = "running"
HALTED = "halted"

HALT_NO_TRANSITION = "no matching transition"
HALT_STATE = "halt state reached"

DEFAULT_INTERVAL_MS = 500
DEFAULT_WINDOW = 11


def _single_symbol(symbol, name="symbol"):
    if symbol is None or symbol == "":
        return BLANK
    if not isinstance(symbol, str) or len(symbol) != 1:
        raise ValueError(f"{name} must be a single character, got {symbol!r}.")
    return symbol


def _position(position, name="position"):
    # bool is an int subclass; True is not a cell index
    if isinstance(position, bool) or not isinstance(position, int):
        raise ValueError(f"{name} must be an integer, got {position!r}.")
    return position


def _state_name(state):
    if not isinstance(state, str) or not state:
        raise ValueError(f"State name must be a non-empty string, got {state!r}.")
    return state


class TuringMachine:
    """
    Single-tape machine with a live tape/head/state, an editable rule table and a
    seekable history. Every public operation holds the instance lock, so a run-mode
    tick never interleaves with a seek, edit or reload.
    """

    def __init__(self, program, interval_ms=DEFAULT_INTERVAL_MS, logger=None, log_steps=True):
        self.interval_ms = interval_ms
        self.logger = logger
        self.log_steps = log_steps
        self._lock = threading.RLock()
        self._stop_event = threading.Event()
        self._run_thread = None
        self._run_error = None
        if not isinstance(program, ProgramDefinition):
            program = load_program(program)
        self._initialize(program)
        self._log("load", program=program.name)

    # === Lifecycle ===
    def _initialize(self, program):
        self._program = program
        self._tape = program.build_tape()
        self._head = program.start_position
        self._state = program.initial_state
        self._states = list(program.states)
        self._halt_states = list(program.halt_states)
        self._transitions = program.transitions.copy()
        self._history = History(Snapshot(self._tape, self._head, self._state))
        self._status = READY
        self._halt_reason = None
        self._last_action = None
        self._last_event = None

    def load(self, program):
        """Replace the program. Records are validated before anything live is touched."""
        if not isinstance(program, ProgramDefinition):
            program = load_program(program)
        self.pause()
        with self._lock:
            self._initialize(program)
            self._log("load", program=program.name)
        return program

    def import_program(self, text):
        return self.load(parse_program(text))

    def reset(self):
        self.pause()
        with self._lock:
            self._initialize(self._program)
            self._log("reset", program=self._program.name)

    # === Read-only accessors ===
    @property
    def program(self):
        return self._program

    @property
    def status(self):
        return self._status

    @property
    def is_running(self):
        return self._status == RUNNING

    @property
    def is_halted(self):
        return self._status == HALTED

    @property
    def run_error(self):
        """Exception that ended the last run-mode session, if a tick raised."""
        return self._run_error

    @property
    def halt_reason(self):
        return self._halt_reason

    @property
    def head(self):
        return self._head

    @property
    def current_state(self):
        return self._state

    @property
    def tape(self):
        """A copy of the live tape."""
        with self._lock:
            return self._tape.copy()

    @property
    def states(self):
        return list(self._states)

    @property
    def halt_states(self):
        return list(self._halt_states)

    @property
    def transitions(self):
        with self._lock:
            return self._transitions.copy()

    @property
    def history(self):
        return self._history

    @property
    def history_index(self):
        return self._history.index

    @property
    def step_count(self):
        return self._history.index

    @property
    def last_action(self):
        return self._last_action

    @property
    def last_event(self):
        """{'type': 'step', ...action} or {'type': 'halt', 'reason': ...}; None before the first step."""
        return self._last_event

    def is_halt_state(self, state):
        return state in self._halt_states

    def read(self, position=None):
        with self._lock:
            return self._tape.read(self._head if position is None else position)

    def tape_window(self, start, stop):
        with self._lock:
            return self._tape.window(start, stop)

    def snapshot(self):
        with self._lock:
            return Snapshot(self._tape, self._head, self._state, self._last_action)

    # === Execution ===
    def step(self):
        """Apply one transition. Returns True if a transition was applied."""
        with self._lock:
            # Manual steps are ignored while run mode owns the machine
            if self._status == RUNNING:
                return False
            return self._step()

    def _step(self):
        if self._status == HALTED:
            return False

        symbol = self._tape.read(self._head)
        transition = self._transitions.lookup(self._state, symbol)

        if transition is None:
            # Stuck: nothing written, nothing moved, nothing recorded
            self._status = HALTED
            self._halt_reason = HALT_NO_TRANSITION
            self._last_event = {"type": "halt", "reason": HALT_NO_TRANSITION}
            self._log("halt", reason=HALT_NO_TRANSITION, state=self._state, symbol=symbol,
                      step=self._history.index)
            return False

        self._tape.write(self._head, transition.write)
        self._head += transition.offset
        action = ActionRecord(symbol, transition.write, transition.move, self._state, transition.next_state)
        self._state = transition.next_state
        self._last_action = action
        self._last_event = dict(type="step", **action._asdict())
        self._history.append(Snapshot(self._tape, self._head, self._state, action))
        halted = self._state in self._halt_states
        if halted:
            self._status = HALTED
            self._halt_reason = HALT_STATE

        # Logged only once the step is fully applied
        if self.log_steps:
            self._log("step", step=self._history.index, head=self._head, **action._asdict())
        if halted:
            self._log("halt", reason=HALT_STATE, state=self._state, step=self._history.index)
        return True

    def run_to_halt(self, max_steps=10_000):
        """Step synchronously until halted or max_steps transitions were applied."""
        self.pause()
        steps = 0
        while self._status != HALTED and steps < max_steps:
            if not self.step():
                break
            steps += 1
        return steps

    # === Run mode ===
    def run(self, interval_ms=None):
        """Start ticking step() on a background thread. No-op unless READY."""
        with self._lock:
            if self._status != READY:
                return False
            interval = self.interval_ms if interval_ms is None else interval_ms
            self._log("run", interval_ms=interval)
            self._status = RUNNING
            self._run_error = None
            # Fresh token per session so a stale worker can never be revived
            self._stop_event = threading.Event()
            self._run_thread = threading.Thread(
                target=self._run_loop,
                args=(self._stop_event, interval / 1000.0),
                name="turing-machine-run",
                daemon=True,
            )
            self._run_thread.start()
        return True

    def _run_loop(self, stop_event, interval):
        try:
            while not stop_event.wait(interval):
                with self._lock:
                    if stop_event.is_set():
                        break
                    self._step()
                    if self._status == HALTED:
                        break
        except Exception as e:
            # A failed tick ends run mode; callers read it back from run_error
            with self._lock:
                self._run_error = e
                if self._status == RUNNING:
                    self._refresh_status()
                if self._run_thread is threading.current_thread():
                    self._run_thread = None

    def pause(self):
        """Stop run mode before the next tick. Returns True if it was running."""
        thread = self._run_thread
        if thread is None:
            return False
        self._stop_event.set()
        if thread is not threading.current_thread():
            thread.join()
        with self._lock:
            was_running = self._status == RUNNING
            self._run_thread = None
            if was_running:
                self._status = READY
                self._log("pause", step=self._history.index)
        return was_running

    def wait(self, timeout=None):
        """Block until run mode ends. Returns True if it has ended."""
        thread = self._run_thread
        if thread is None:
            return True
        thread.join(timeout)
        return not thread.is_alive()

    # === Time travel ===
    def seek(self, index):
        # An out-of-range seek must not even pause the machine
        if not self._history.in_range(index):
            raise IndexOutOfRange(f"History index {index} out of range [0, {len(self._history)})")
        self.pause()
        with self._lock:
            snapshot = self._history.seek(index)
            self._tape = snapshot.tape.copy()
            self._head = snapshot.head
            self._state = snapshot.state
            self._last_action = snapshot.action
            self._last_event = dict(type="step", **snapshot.action._asdict()) if snapshot.action else None
            self._refresh_status()
            self._log("seek", index=index)
            return snapshot

    def step_back(self):
        if self._history.index == 0:
            return None
        return self.seek(self._history.index - 1)

    def step_forward(self):
        if self._history.index >= len(self._history) - 1:
            return None
        return self.seek(self._history.index + 1)

    def _refresh_status(self):
        if self._state in self._halt_states:
            self._status = HALTED
            self._halt_reason = HALT_STATE
        else:
            self._status = READY
            self._halt_reason = None

    # === Editing ===
    def _restart_history(self, event, **fields):
        """Edits break the causal chain, so history restarts at the edited snapshot."""
        self._history.restart(Snapshot(self._tape, self._head, self._state))
        self._last_action = None
        self._last_event = None
        self._refresh_status()
        self._log(event, **fields)

    def edit_tape_cell(self, position, symbol):
        position = _position(position)
        symbol = _single_symbol(symbol)
        self.pause()
        with self._lock:
            self._tape.write(position, symbol)
            self._restart_history("edit_tape_cell", position=position, symbol=symbol)

    def set_tape(self, text, head=0):
        """Replace the whole tape with text starting at position 0."""
        if not isinstance(text, str):
            raise ValueError(f"Tape text must be a string, got {text!r}.")
        head = _position(head, "head")
        self.pause()
        with self._lock:
            self._tape = Tape.from_string(text)
            self._head = head
            self._restart_history("set_tape", tape=text, head=head)

    def move_head(self, position):
        position = _position(position)
        self.pause()
        with self._lock:
            self._head = position
            self._restart_history("move_head", position=position)

    def set_current_state(self, state):
        state = _state_name(state)
        self.pause()
        with self._lock:
            self._state = state
            self._restart_history("set_current_state", state=state)

    def toggle_halt(self, state):
        """Flip halt membership. Returns True if the state is now a halt state."""
        self.pause()
        with self._lock:
            if state in self._halt_states:
                self._halt_states.remove(state)
                is_halt = False
            else:
                self._halt_states.append(state)
                is_halt = True
            if state == self._state:
                self._refresh_status()
            self._log("toggle_halt", state=state, halt=is_halt)
            return is_halt

    def add_state(self, name):
        self.pause()
        with self._lock:
            if not isinstance(name, str) or not name or name in self._states:
                return False
            self._states.append(name)
            self._log("add_state", state=name)
            return True

    def delete_state(self, name):
        """Remove a state unless it is current or referenced by any rule."""
        self.pause()
        with self._lock:
            if name not in self._states:
                return False
            if name == self._state or name in self._transitions.states_in_use():
                self._log("delete_state_refused", state=name)
                return False
            self._states.remove(name)
            if name in self._halt_states:
                self._halt_states.remove(name)
            self._log("delete_state", state=name)
            return True

    def upsert_transition(self, state, symbol, write, move, next_state):
        transition = Transition(_single_symbol(write, "write"), move, _state_name(next_state))
        state = _state_name(state)
        symbol = _single_symbol(symbol)
        self.pause()
        with self._lock:
            self._transitions.upsert(state, symbol, transition)
            for name in (state, transition.next_state):
                if name not in self._states:
                    self._states.append(name)
            self._log("upsert_transition", state=state, symbol=symbol, write=transition.write,
                      move=transition.move, next=transition.next_state)
            return transition

    def delete_transition(self, state, symbol):
        symbol = _single_symbol(symbol)
        self.pause()
        with self._lock:
            removed = self._transitions.remove(state, symbol)
            if removed:
                self._log("delete_transition", state=state, symbol=symbol)
            return removed

    # === Export ===
    def export(self):
        """Program record reproducing the live rules, states and tape/head."""
        with self._lock:
            bounds = self._tape.bounds()
            if bounds is None:
                offset, initial_tape = 0, ""
            else:
                offset = min(bounds[0], 0)
                initial_tape = self._tape.to_string(offset, bounds[1] + 1)
            record = {
                "name": self._program.name,
                "description": self._program.description,
                "states": list(self._states),
                "initialState": self._state,
                "haltStates": list(self._halt_states),
                "transitions": transitions_to_record(self._transitions),
                "initialTape": initial_tape,
                "startPosition": self._head,
            }
            if offset:
                record["tapeOffset"] = offset
            return record

    def export_json(self, indent=2):
        return json.dumps(self.export(), indent=indent, ensure_ascii=False)

    # === Display ===
    def format_tape(self, window=DEFAULT_WINDOW):
        """Two lines: the tape around the head and a caret under the head."""
        half = window // 2
        start = self._head - half
        symbols = self.tape_window(start, start + window)
        tape_str = " ".join(symbols)
        head_str = " ".join("^" if start + i == self._head else " " for i in range(window))
        return tape_str, head_str.rstrip()

    def visualize(self, window=DEFAULT_WINDOW):
        """Display a small window around the head."""
        tape_str, head_str = self.format_tape(window)
        print(tape_str)
        print(head_str)
        print(f"State: {self._state}, Status: {self._status}, Step: {self.step_count}")

    def _log(self, event, **fields):
        if self.logger is not None:
            self.logger.log_session(event, **fields)
