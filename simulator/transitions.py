from collections import namedtuple

LEFT = "L"
RIGHT = "R"
MOVES = (LEFT, RIGHT)


class Transition(namedtuple("Transition", ["write", "move", "next_state"])):
    __slots__ = ()

    def __new__(cls, write, move, next_state):
        if move not in MOVES:
            raise ValueError(f"Move must be 'L' or 'R', got {move!r}.")
        return super().__new__(cls, write, move, next_state)

    @property
    def offset(self):
        return 1 if self.move == RIGHT else -1


class TransitionTable:
    """Rule table keyed by (state, symbol). A missing key means the machine halts."""

    def __init__(self, rules=None):
        self._rules = {}
        if rules:
            for (state, symbol), transition in rules.items():
                self.upsert(state, symbol, transition)

    def lookup(self, state, symbol):
        return self._rules.get((state, symbol))

    def upsert(self, state, symbol, transition):
        if not isinstance(transition, Transition):
            transition = Transition(*transition)
        self._rules[(state, symbol)] = transition

    def remove(self, state, symbol):
        return self._rules.pop((state, symbol), None) is not None

    def states_in_use(self):
        """Every state named by a rule, as source or destination."""
        in_use = set()
        for (state, _), transition in self._rules.items():
            in_use.add(state)
            in_use.add(transition.next_state)
        return in_use

    def items(self):
        return self._rules.items()

    def copy(self):
        table = TransitionTable()
        table._rules = dict(self._rules)
        return table

    def to_dict(self):
        return dict(self._rules)

    def __contains__(self, key):
        return key in self._rules

    def __iter__(self):
        return iter(self._rules)

    def __len__(self):
        return len(self._rules)

    def __eq__(self, other):
        if not isinstance(other, TransitionTable):
            return NotImplemented
        return self._rules == other._rules

    def __repr__(self):
        return f"TransitionTable({self._rules!r})"
