from collections import namedtuple

ActionRecord = namedtuple("ActionRecord", ["read", "write", "move", "from_state", "to_state"])


class Snapshot(namedtuple("Snapshot", ["tape", "head", "state", "action"])):
    """Tape + head + state at one point of execution. The root entry has no action."""
    __slots__ = ()

    def __new__(cls, tape, head, state, action=None):
        # Snapshots own their tape; later engine writes must not reach them
        return super().__new__(cls, tape.copy(), head, state, action)

    def to_dict(self):
        return {
            "tape": {str(pos): symbol for pos, symbol in self.tape.cells().items()},
            "head": self.head,
            "state": self.state,
            "action": self.action._asdict() if self.action else None,
        }


class IndexOutOfRange(IndexError):
    pass


class History:
    """
    Seekable list of snapshots. append() is the only way to grow it and always
    drops the entries ahead of the current index first.
    """

    def __init__(self, root: Snapshot):
        self._entries = [root]
        self._index = 0

    @property
    def index(self):
        return self._index

    def current(self) -> Snapshot:
        return self._entries[self._index]

    def append(self, snapshot: Snapshot):
        del self._entries[self._index + 1:]
        self._entries.append(snapshot)
        self._index = len(self._entries) - 1

    def in_range(self, index):
        return isinstance(index, int) and not isinstance(index, bool) and 0 <= index < len(self._entries)

    def seek(self, index) -> Snapshot:
        if not self.in_range(index):
            raise IndexOutOfRange(f"History index {index} out of range [0, {len(self._entries)})")
        self._index = index
        return self._entries[index]

    def restart(self, root: Snapshot):
        self._entries = [root]
        self._index = 0

    def __getitem__(self, index):
        return self._entries[index]

    def __iter__(self):
        return iter(self._entries)

    def __len__(self):
        return len(self._entries)
