from typing import Iterable, Optional


def line_col(text: str, pos: int):
    """1-based (line, column) of offset `pos` in `text`."""
    line = text.count("\n", 0, pos) + 1
    column = pos - (text.rfind("\n", 0, pos) + 1) + 1
    return line, column


class SchSyntaxError(ValueError):
    """A declaration file does not match the grammar.

    Carries the 1-based position of the furthest point the parser reached and
    the names of the rules or literals it would have accepted there.
    """

    def __init__(self, line: int, column: int, expected: Iterable[str], filename: Optional[str] = None):
        self.line = line
        self.column = column
        self.expected = sorted(set(expected))
        self.filename = filename
        super().__init__(self._message())

    @classmethod
    def at(cls, text: str, pos: int, expected: Iterable[str], filename: Optional[str] = None):
        line, column = line_col(text, pos)
        return cls(line, column, expected, filename)

    def _message(self) -> str:
        where = f"{self.line}:{self.column}"
        if self.filename:
            where = f"{self.filename}:{where}"
        if len(self.expected) == 1:
            return f"error at {where}: expected {self.expected[0]}"
        return f"error at {where}: expected one of {', '.join(self.expected)}"

    def __reduce__(self):
        # keeps the error picklable across worker processes
        return (type(self), (self.line, self.column, self.expected, self.filename))
