from dataclasses import dataclass
from typing import Dict, List, Tuple

from pieces import Piece

EMPTY_CELL = -1
EMPTY_SYMBOL = "."


@dataclass(frozen=True)
class Placement:
    piece: Piece
    row: int
    column: int

    def cells(self) -> List[Tuple[int, int]]:
        return [(self.row + r, self.column + c) for r, c in self.piece.offsets()]


@dataclass(frozen=True)
class Solution:
    width: int
    height: int
    grid: Tuple[Tuple[int, ...], ...]
    labels: Tuple[str, ...]

    @property
    def complete(self) -> bool:
        return all(cell != EMPTY_CELL for row in self.grid for cell in row)

    def serialize(self) -> str:
        return " ".join(self.labels)

    def as_lists(self) -> List[List[int]]:
        return [list(row) for row in self.grid]

    def to_dict(self) -> Dict[str, object]:
        return {
            "width": self.width,
            "height": self.height,
            "grid": self.as_lists(),
            "labels": list(self.labels),
        }
