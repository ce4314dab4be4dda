# board.py — mutable occupancy grid with a LIFO placement stack
from __future__ import annotations

from typing import Iterable, List, Optional, Sequence, Tuple

from models import EMPTY_CELL, EMPTY_SYMBOL, Placement, Solution
from pieces import Piece

_NEIGHBOURS = ((-1, 0), (1, 0), (0, -1), (0, 1))


class Board:
    """Rectangular board.

    ``cells`` is a flat row-major occupancy array and ``owners`` records which
    stack entry covers each cell.  Placements are only ever removed in reverse
    order of addition, so the stack always describes the occupancy exactly.
    """

    def __init__(self, width: int, height: int):
        width = int(width)
        height = int(height)
        if width <= 0 or height <= 0:
            raise ValueError(f"Bad board: {width} × {height} (sides must be positive)")
        self.width = width
        self.height = height
        self.cells = bytearray(width * height)
        self.owners: List[int] = [-1] * (width * height)
        self._stack: List[Placement] = []
        self._filled = 0

    # ---------- occupancy ----------

    def empty(self, row: int, col: int) -> bool:
        return not self.cells[row * self.width + col]

    @property
    def placements(self) -> Tuple[Placement, ...]:
        return tuple(self._stack)

    @property
    def depth(self) -> int:
        return len(self._stack)

    @property
    def filled_count(self) -> int:
        return self._filled

    @property
    def is_full(self) -> bool:
        return self._filled == self.width * self.height

    def fits(self, piece: Piece, row: int, column: int) -> bool:
        return (
            row >= 0
            and column >= 0
            and row + piece.height <= self.height
            and column + piece.width <= self.width
        )

    def try_add(self, placement: Placement) -> bool:
        piece = placement.piece
        if not self.fits(piece, placement.row, placement.column):
            return False

        W = self.width
        base = placement.row * W + placement.column
        idxs = [base + r * W + c for r, c in piece.offsets()]
        cells = self.cells
        for idx in idxs:
            if cells[idx]:
                return False

        owner = len(self._stack)
        for idx in idxs:
            cells[idx] = 1
            self.owners[idx] = owner
        self._stack.append(placement)
        self._filled += len(idxs)
        return True

    def remove_last(self) -> Placement:
        if not self._stack:
            raise RuntimeError("remove_last() called with an empty placement stack")
        placement = self._stack.pop()
        W = self.width
        base = placement.row * W + placement.column
        for r, c in placement.piece.offsets():
            idx = base + r * W + c
            self.cells[idx] = 0
            self.owners[idx] = -1
        self._filled -= placement.piece.cell_count
        return placement

    def copy(self) -> "Board":
        clone = Board(self.width, self.height)
        clone.cells = bytearray(self.cells)
        clone.owners = list(self.owners)
        clone._stack = list(self._stack)
        clone._filled = self._filled
        return clone

    # ---------- projections ----------

    def _owner_piece(self, idx: int) -> Optional[Piece]:
        owner = self.owners[idx]
        if owner < 0:
            return None
        return self._stack[owner].piece

    def index_grid(self) -> List[List[int]]:
        out: List[List[int]] = []
        for r in range(self.height):
            row: List[int] = []
            for c in range(self.width):
                piece = self._owner_piece(r * self.width + c)
                row.append(EMPTY_CELL if piece is None else piece.id)
            out.append(row)
        return out

    def name_grid(self) -> List[List[str]]:
        out: List[List[str]] = []
        for r in range(self.height):
            row: List[str] = []
            for c in range(self.width):
                piece = self._owner_piece(r * self.width + c)
                row.append(EMPTY_SYMBOL if piece is None else piece.label)
            out.append(row)
        return out

    def label_rows(self) -> List[str]:
        rows: List[str] = []
        for r in range(self.height):
            chars = []
            for c in range(self.width):
                piece = self._owner_piece(r * self.width + c)
                chars.append(EMPTY_SYMBOL if piece is None else piece.symbol)
            rows.append("".join(chars))
        return rows

    def snapshot(self) -> Solution:
        return Solution(
            width=self.width,
            height=self.height,
            grid=tuple(tuple(row) for row in self.index_grid()),
            labels=tuple(self.label_rows()),
        )

    def number_of_possibilities(self, transforms: Iterable[Piece]) -> int:
        total = 0
        for t in transforms:
            total += max(0, 1 + self.width - t.width) * max(0, 1 + self.height - t.height)
        return total

    # ---------- pruning ----------

    def contains_isolated_single(self) -> bool:
        """True when some empty cell has all four neighbours filled (edges count as filled)."""
        W, H = self.width, self.height
        cells = self.cells
        for idx in range(W * H):
            if cells[idx]:
                continue
            r, c = divmod(idx, W)
            if r > 0 and not cells[idx - W]:
                continue
            if r < H - 1 and not cells[idx + W]:
                continue
            if c > 0 and not cells[idx - 1]:
                continue
            if c < W - 1 and not cells[idx + 1]:
                continue
            return True
        return False

    def empty_regions(self) -> List[int]:
        """Sizes of the maximal 4-connected regions of empty cells."""
        W, H = self.width, self.height
        seen = bytearray(self.cells)
        sizes: List[int] = []
        for start in range(W * H):
            if seen[start]:
                continue
            seen[start] = 1
            stack = [start]
            size = 0
            while stack:
                idx = stack.pop()
                size += 1
                r, c = divmod(idx, W)
                for dr, dc in _NEIGHBOURS:
                    nr, nc = r + dr, c + dc
                    if nr < 0 or nc < 0 or nr >= H or nc >= W:
                        continue
                    nidx = nr * W + nc
                    if not seen[nidx]:
                        seen[nidx] = 1
                        stack.append(nidx)
            sizes.append(size)
        return sizes

    def contains_unfillable_region(self, unit_size: int) -> bool:
        if unit_size <= 1:
            return False
        return any(size % unit_size for size in self.empty_regions())

    # ---------- set-cover helpers ----------

    def placement_bitmask(self, placement: Placement) -> int:
        """Full-board footprint, row-major with cell (0, 0) as the most significant bit."""
        W = self.width
        top = W * self.height - 1
        mask = 0
        for r, c in placement.cells():
            mask |= 1 << (top - (r * W + c))
        return mask

    def cells_of_bitmask(self, mask: int) -> List[int]:
        top = self.width * self.height - 1
        return sorted(top - bit for bit in range(top + 1) if (mask >> bit) & 1)

    def candidate_placements(
        self,
        transforms: Sequence[Piece],
        *,
        halve: bool = False,
    ) -> List[Placement]:
        """Every in-bounds anchor for each transform, columns outermost."""
        out: List[Placement] = []
        for t in transforms:
            cols = 1 + self.width - t.width
            rows = 1 + self.height - t.height
            if cols <= 0 or rows <= 0:
                continue
            if halve:
                cols = (cols + 1) // 2
                rows = (rows + 1) // 2
            for column in range(cols):
                for row in range(rows):
                    out.append(Placement(t, row, column))
        return out

    def __repr__(self) -> str:
        return f"Board({self.width}×{self.height}, placements={len(self._stack)})"

    def __str__(self) -> str:
        return "\n".join(self.label_rows())
