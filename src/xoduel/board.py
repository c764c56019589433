"""Board cells and terminal-condition evaluation for classic tic-tac-toe."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from .errors import CellOccupied

Symbol = str  # "X" or "O"

X: Symbol = "X"
O: Symbol = "O"
EMPTY = " "
BOARD_SIZE = 9

WINNING_LINES: Tuple[Tuple[int, int, int], ...] = (
    (0, 1, 2),
    (3, 4, 5),
    (6, 7, 8),
    (0, 3, 6),
    (1, 4, 7),
    (2, 5, 8),
    (0, 4, 8),
    (2, 4, 6),
)


def other_symbol(symbol: Symbol) -> Symbol:
    return O if symbol == X else X


@dataclass(frozen=True)
class Outcome:
    """Result of evaluating a board: ``none``, ``draw`` or ``win``."""

    kind: str
    winner: Optional[Symbol] = None

    @property
    def terminal(self) -> bool:
        return self.kind != "none"


ONGOING = Outcome("none")
DRAW = Outcome("draw")


def evaluate(cells: Sequence[str]) -> Outcome:
    """Return the first completed line's winner, a draw, or ``ONGOING``.

    Lines are checked in ``WINNING_LINES`` order, so an artificially invalid
    board with several lines simply reports the first match.
    """
    for a, b, c in WINNING_LINES:
        v = cells[a]
        if v in (X, O) and v == cells[b] == cells[c]:
            return Outcome("win", v)
    if all(c in (X, O) for c in cells):
        return DRAW
    return ONGOING


@dataclass
class Board:
    # Server-internal: 'X', 'O', or ' ' (space) for empty
    cells: List[str] = field(default_factory=lambda: [EMPTY] * BOARD_SIZE)

    def place(self, symbol: Symbol, idx: int) -> Outcome:
        if self.cells[idx] != EMPTY:
            raise CellOccupied()
        self.cells[idx] = symbol
        return evaluate(self.cells)

    def reset(self) -> None:
        self.cells = [EMPTY] * BOARD_SIZE

    def to_wire(self) -> List[Optional[Symbol]]:
        """Cells as sent to clients: ``None`` for empty squares."""
        return [c if c in (X, O) else None for c in self.cells]
