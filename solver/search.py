# solver/search.py — backtracking over ordered orientation groups
from __future__ import annotations

import logging
import math
import multiprocessing as mp
from dataclasses import dataclass, field
from functools import reduce
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from board import Board
from models import Placement, Solution
from pieces import Piece

logger = logging.getLogger(__name__)

Group = Sequence[Piece]
ProgressCallback = Callable[["ProgressCounter"], None]


@dataclass
class SearchStats:
    tried: int = 0
    placed: int = 0
    pruned: int = 0
    solutions: int = 0

    def merge(self, other: "SearchStats") -> None:
        self.tried += other.tried
        self.placed += other.placed
        self.pruned += other.pruned
        self.solutions += other.solutions

    def as_dict(self) -> dict:
        return {
            "tried": self.tried,
            "placed": self.placed,
            "pruned": self.pruned,
            "solutions": self.solutions,
        }


@dataclass
class ProgressCounter:
    """Completed/total counter, only ever touched by the coordinating process."""

    total: int
    completed: int = 0
    solutions: int = 0
    callback: Optional[ProgressCallback] = field(default=None, repr=False)

    @property
    def percent(self) -> float:
        if self.total <= 0:
            return 100.0
        return min(100.0, 100.0 * self.completed / self.total)

    def advance(self, solutions_found: int = 0) -> None:
        self.completed += 1
        self.solutions += solutions_found
        if self.callback is not None:
            try:
                self.callback(self)
            except Exception:
                # Progress reporting must never break the search.
                logger.debug("progress callback failed", exc_info=True)


@dataclass(frozen=True)
class Pruning:
    unit_size: int
    check_isolated: bool

    @classmethod
    def for_groups(cls, groups: Iterable[Group]) -> "Pruning":
        sizes = [group[0].cell_count for group in groups if group]
        if not sizes:
            return cls(unit_size=1, check_isolated=False)
        unit = reduce(math.gcd, sizes)
        return cls(unit_size=max(1, unit), check_isolated=min(sizes) > 1)

    def rejects(self, board: Board) -> bool:
        if self.check_isolated and board.contains_isolated_single():
            return True
        return board.contains_unfillable_region(self.unit_size)


def _extend(
    board: Board,
    groups: Sequence[Group],
    index: int,
    find_all: bool,
    pruning: Pruning,
    out: List[Solution],
    stats: SearchStats,
) -> bool:
    """Place groups[index:]; returns True when first-solution mode should stop."""

    if pruning.rejects(board):
        stats.pruned += 1
        return False

    last = index == len(groups) - 1
    W, H = board.width, board.height
    for transform in groups[index]:
        for column in range(1 + W - transform.width):
            for row in range(1 + H - transform.height):
                stats.tried += 1
                if not board.try_add(Placement(transform, row, column)):
                    continue
                stats.placed += 1
                if last:
                    out.append(board.snapshot())
                    stats.solutions += 1
                    if not find_all:
                        return True
                elif _extend(board, groups, index + 1, find_all, pruning, out, stats):
                    return True
                board.remove_last()
    return False


def place_pieces(
    board: Board,
    groups: Sequence[Group],
    *,
    find_all: bool = False,
    stats: Optional[SearchStats] = None,
    pruning: Optional[Pruning] = None,
) -> List[Solution]:
    """Sequential search from the current board state.

    In first-solution mode the winning placements stay on ``board``; the
    board must not be reused for further search afterwards.
    """

    groups = [tuple(g) for g in groups]
    out: List[Solution] = []
    if stats is None:
        stats = SearchStats()
    if not groups:
        if board.is_full:
            out.append(board.snapshot())
            stats.solutions += 1
        return out
    if pruning is None:
        pruning = Pruning.for_groups(groups)
    _extend(board, groups, 0, find_all, pruning, out, stats)
    return out


# ---------- top-level fan-out ----------

def _solve_branch(args) -> Tuple[List[Solution], SearchStats]:
    # Worker must be top-level (picklable under spawn)
    width, height, seed, rest, find_all, pruning = args
    board = Board(width, height)
    stats = SearchStats(tried=1)
    if not board.try_add(seed):
        return [], stats
    stats.placed += 1
    solutions = place_pieces(board, rest, find_all=find_all, stats=stats, pruning=pruning)
    return solutions, stats


def _top_level_candidates(width: int, height: int, group: Group, halve: bool) -> List[Placement]:
    return Board(width, height).candidate_placements(group, halve=halve)


def solve(
    width: int,
    height: int,
    groups: Sequence[Group],
    *,
    find_all: bool = True,
    parallel: bool = False,
    workers: int = 1,
    halve_top_level: bool = False,
    on_progress: Optional[ProgressCallback] = None,
    stats: Optional[SearchStats] = None,
) -> List[Solution]:
    """Enumerate tilings of a fresh ``width`` × ``height`` board.

    Every top-level candidate (orientation × translation of the first group)
    is explored on its own board, either in this process or in a pool worker.
    Results are concatenated in completion order and the progress counter is
    advanced once per finished candidate.

    ``halve_top_level`` keeps only the first half of each translation axis for
    the first group.  It is only valid when the puzzle has 180° rotational
    symmetry; the rotated counterparts are then missing from the result.

    In first-solution mode sequential runs stop at the first hit, while
    parallel workers all run to completion and every hit is returned.
    """

    groups = [tuple(g) for g in groups]
    if stats is None:
        stats = SearchStats()
    if not groups:
        return place_pieces(Board(width, height), groups, find_all=find_all, stats=stats)

    pruning = Pruning.for_groups(groups)
    root = Board(width, height)
    if pruning.rejects(root):
        stats.pruned += 1
        logger.debug("search pruned at the root %d×%d", width, height)
        return []

    candidates = _top_level_candidates(width, height, groups[0], halve_top_level)
    # same count as the candidate list, which halving shortens
    total = len(candidates) if halve_top_level else root.number_of_possibilities(groups[0])
    counter = ProgressCounter(total=total, callback=on_progress)
    rest = groups[1:]
    results: List[Solution] = []

    logger.debug(
        "search start %d×%d groups=%d candidates=%d parallel=%s halve=%s",
        width, height, len(groups), len(candidates), parallel, halve_top_level,
    )

    if parallel and len(candidates) > 1:
        tasks = [(width, height, seed, rest, find_all, pruning) for seed in candidates]
        ctx = mp.get_context("spawn")
        procs = max(1, min(int(workers or 1), len(tasks)))
        with ctx.Pool(processes=procs) as pool:
            for solutions, branch_stats in pool.imap_unordered(_solve_branch, tasks):
                results.extend(solutions)
                stats.merge(branch_stats)
                counter.advance(len(solutions))
    else:
        board = root
        for seed in candidates:
            stats.tried += 1
            if not board.try_add(seed):
                counter.advance()
                continue
            stats.placed += 1
            found = place_pieces(board, rest, find_all=find_all, stats=stats, pruning=pruning)
            results.extend(found)
            counter.advance(len(found))
            if found and not find_all:
                break
            board.remove_last()

    logger.debug("search done %s", stats.as_dict())
    return results


def solve_first(width: int, height: int, groups: Sequence[Group], **kwargs) -> Optional[Solution]:
    found = solve(width, height, groups, find_all=False, **kwargs)
    return found[0] if found else None


__all__ = [
    "SearchStats",
    "ProgressCounter",
    "Pruning",
    "place_pieces",
    "solve",
    "solve_first",
]
