BLANK = "□"


class Tape:
    """Sparse, unbounded tape. Unwritten positions read as BLANK."""

    def __init__(self, cells=None):
        self._cells = {}
        if cells:
            for position, symbol in cells.items():
                self.write(position, symbol)

    @classmethod
    def from_string(cls, text, offset=0):
        tape = cls()
        for i, symbol in enumerate(text):
            tape.write(offset + i, symbol)
        return tape

    def read(self, position: int) -> str:
        return self._cells.get(position, BLANK)

    def write(self, position: int, symbol: str):
        # Writing a blank clears the cell
        if symbol == BLANK or symbol == "":
            self._cells.pop(position, None)
        else:
            self._cells[position] = symbol
        return self

    def copy(self):
        tape = Tape()
        tape._cells = dict(self._cells)
        return tape

    def cells(self):
        """Written (non-blank) cells as a position -> symbol dict, sorted by position."""
        return {pos: self._cells[pos] for pos in sorted(self._cells)}

    def bounds(self):
        if not self._cells:
            return None
        return min(self._cells), max(self._cells)

    def window(self, start, stop):
        """Symbols for positions start..stop-1."""
        return [self.read(pos) for pos in range(start, stop)]

    def to_string(self, start=None, stop=None):
        """Dense string between the outermost written cells (or an explicit range)."""
        bounds = self.bounds()
        if bounds is None and (start is None or stop is None):
            return ""
        if start is None:
            start = bounds[0]
        if stop is None:
            stop = bounds[1] + 1
        return "".join(self.window(start, stop))

    def non_blank_count(self):
        return len(self._cells)

    def __len__(self):
        return len(self._cells)

    def __eq__(self, other):
        if not isinstance(other, Tape):
            return NotImplemented
        return self._cells == other._cells

    def __repr__(self):
        return f"Tape({self.cells()!r})"
