# solver/canonical.py — symmetry-invariant solution keys
from __future__ import annotations

from typing import Dict, Iterable, List, Sequence, Tuple, Union

from models import EMPTY_CELL, Solution

Rows = Tuple[str, ...]
Grid = Tuple[Tuple[int, ...], ...]
SolutionLike = Union[str, Solution, Sequence[str]]


def _as_rows(solution: SolutionLike) -> Rows:
    if isinstance(solution, Solution):
        return tuple(solution.labels)
    if isinstance(solution, str):
        return tuple(solution.split())
    return tuple(str(r) for r in solution)


# The transforms below work on label rows (strings) and on id grids (tuples).

def rotate_180(rows):
    return tuple(row[::-1] for row in reversed(rows))


def mirror(rows):
    return tuple(row[::-1] for row in rows)


def transpose(rows):
    if not rows:
        return rows
    columns = zip(*rows)
    if isinstance(rows[0], str):
        return tuple("".join(col) for col in columns)
    return tuple(tuple(col) for col in columns)


def symmetry_variants(rows) -> List:
    """The board's symmetry images of ``rows``, identity first.

    A rectangle has the identity, the 180° turn, the horizontal mirror and the
    mirror turned 180°.  A square also has both diagonal reflections and the
    two quarter turns.
    """
    variants = [rows, rotate_180(rows), mirror(rows), rotate_180(mirror(rows))]
    if rows and len(rows) == len(rows[0]):
        t = transpose(rows)
        variants.extend([t, rotate_180(t), mirror(t), rotate_180(mirror(t))])
    return variants


def canonical_rows(solution: SolutionLike) -> Rows:
    # tuple comparison: first differing row decides
    return min(symmetry_variants(_as_rows(solution)))


def canonicalise(solution: SolutionLike) -> str:
    """Canonical label text; symbols only, so use ``solution_key`` for dedupe."""
    return " ".join(canonical_rows(solution))


def _relabel(grid: Grid) -> Grid:
    # number pieces by first appearance in row-major order
    order: Dict[int, int] = {EMPTY_CELL: EMPTY_CELL}
    out = []
    for row in grid:
        out.append(tuple(order.setdefault(pid, len(order) - 1) for pid in row))
    return tuple(out)


def solution_key(solution: Solution) -> Grid:
    """Identity of the tiling's piece outlines under board symmetry.

    Two solutions share a key when one is a symmetry image of the other up to
    exchanging which piece id fills which outline, so congruent pieces are
    interchangeable while touching pieces stay separate whatever their names.
    """
    grid = tuple(tuple(row) for row in solution.grid)
    return min(_relabel(v) for v in symmetry_variants(grid))


def unique_solutions(solutions: Iterable[Solution]) -> List[Solution]:
    """First solution of each symmetry class, in input order."""
    seen = set()
    out: List[Solution] = []
    for sol in solutions:
        key = solution_key(sol)
        if key in seen:
            continue
        seen.add(key)
        out.append(sol)
    return out


__all__ = [
    "canonicalise",
    "canonical_rows",
    "solution_key",
    "symmetry_variants",
    "unique_solutions",
    "rotate_180",
    "mirror",
    "transpose",
]
