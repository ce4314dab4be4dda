# pieces.py — piece templates and their orientation sets
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from config import CFG

ShapeKey = Tuple[int, int, int]  # (bits, width, height)

_SYMBOLS = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz"


class ShapeError(ValueError):
    """Raised when a template's rows are not all the same width."""

    def __init__(self, row: int, width: int, expected: int):
        self.row = row
        self.width = width
        self.expected = expected
        super().__init__(f"on line {row} got width {width} but expected {expected}")


class PieceSizeError(ValueError):
    """Raised when a piece does not have the puzzle's unit size."""

    def __init__(self, name: str, cells: int, unit_size: int):
        self.name = name
        self.cells = cells
        self.unit_size = unit_size
        super().__init__(f"piece {name} has {cells} cells but the unit size is {unit_size}")


@dataclass(frozen=True)
class Piece:
    width: int
    height: int
    shape: Tuple[bool, ...]
    id: int = 0
    name: Optional[str] = None

    def solid(self, row: int, col: int) -> bool:
        return self.shape[row * self.width + col]

    @property
    def cell_count(self) -> int:
        return sum(1 for c in self.shape if c)

    @property
    def label(self) -> str:
        return self.name if self.name else str(self.id)

    @property
    def symbol(self) -> str:
        if self.name:
            return self.name[0]
        return _SYMBOLS[self.id % len(_SYMBOLS)]

    @property
    def shape_key(self) -> ShapeKey:
        bits = 0
        for cell in self.shape:
            bits = (bits << 1) | (1 if cell else 0)
        return bits, self.width, self.height

    def offsets(self) -> Tuple[Tuple[int, int], ...]:
        """(row, col) of every solid cell, row-major."""
        return tuple(
            (r, c)
            for r in range(self.height)
            for c in range(self.width)
            if self.shape[r * self.width + c]
        )

    def flip_horizontal(self) -> "Piece":
        w = self.width
        cells = tuple(
            self.shape[r * w + (w - 1 - c)]
            for r in range(self.height)
            for c in range(w)
        )
        return replace(self, shape=cells)

    def rotate_clockwise(self) -> "Piece":
        # new[r][c] = old[h-1-c][r]; width and height swap
        w, h = self.width, self.height
        cells = tuple(
            self.shape[(h - 1 - c) * w + r]
            for r in range(w)
            for c in range(h)
        )
        return replace(self, width=h, height=w, shape=cells)

    def all_transforms(self) -> Tuple["Piece", ...]:
        """Distinct orientations: 4 rotations, then 4 rotations of the mirror.

        Orientations whose shape key was already produced are skipped, so the
        order is first-seen and symmetric pieces yield fewer than 8.
        """
        seen = set()
        out: List[Piece] = []
        for start in (self, self.flip_horizontal()):
            current = start
            for _ in range(4):
                key = current.shape_key
                if key not in seen:
                    seen.add(key)
                    out.append(current)
                current = current.rotate_clockwise()
        return tuple(out)

    def rows(self, solid: str = "*", empty: str = ".") -> List[str]:
        return [
            "".join(solid if self.solid(r, c) else empty for c in range(self.width))
            for r in range(self.height)
        ]


def shape_from_template(
    template: Sequence[str],
    piece_id: int = 0,
    name: Optional[str] = None,
    *,
    solid: Optional[str] = None,
) -> Piece:
    solid_ch = solid or getattr(CFG, "SOLID_SYMBOL", "*") or "*"
    rows = list(template)
    if not rows:
        raise ShapeError(0, 0, 1)

    width = 0
    cells: List[bool] = []
    for line_no, line in enumerate(rows, start=1):
        line = str(line)
        if line_no == 1:
            width = len(line)
            if width == 0:
                raise ShapeError(line_no, 0, 1)
        elif len(line) != width:
            raise ShapeError(line_no, len(line), width)
        cells.extend(ch == solid_ch for ch in line)

    return Piece(width=width, height=len(rows), shape=tuple(cells), id=int(piece_id), name=name)


def _split_template(raw: Union[str, Iterable[str]]) -> List[str]:
    if isinstance(raw, str):
        text = raw.replace("\r", "")
        sep = "/" if "/" in text else "\n"
        return [part.strip() for part in text.split(sep) if part.strip()]
    return [str(part) for part in raw]


def piece_from_spec(spec: Union[Dict[str, Any], Sequence[str], str], default_id: int = 0) -> Piece:
    """Build a piece from a template or a ``{"template", "id", "name"}`` mapping."""

    if isinstance(spec, dict):
        template = _split_template(spec.get("template") or spec.get("rows") or [])
        pid = spec.get("id")
        try:
            pid = default_id if pid is None else int(pid)
        except (TypeError, ValueError):
            pid = default_id
        name = spec.get("name") or None
        return shape_from_template(template, pid, None if name is None else str(name))
    return shape_from_template(_split_template(spec), default_id)


def validate_unit_size(pieces: Iterable[Piece], unit_size: int) -> None:
    for piece in pieces:
        cells = piece.cell_count
        if cells != unit_size:
            raise PieceSizeError(piece.label, cells, unit_size)


def orientation_groups(pieces: Iterable[Piece]) -> List[Tuple[Piece, ...]]:
    """One tuple of orientations per piece, in piece order."""
    return [piece.all_transforms() for piece in pieces]


__all__ = [
    "Piece",
    "ShapeError",
    "PieceSizeError",
    "shape_from_template",
    "piece_from_spec",
    "validate_unit_size",
    "orientation_groups",
]
