# Orchestrator: templates -> orientation groups -> search -> dedupe
from __future__ import annotations

import logging
import time
from typing import Any, Dict, Iterable, List, Optional, Sequence

from config import CFG, worker_count
from models import Solution
from pieces import Piece, orientation_groups, piece_from_spec, validate_unit_size
from progress import (
    set_phase, set_progress_pct, set_solutions_found, set_workers,
    set_status, set_message,
)
from solver.canonical import unique_solutions
from solver.search import ProgressCounter, SearchStats, solve

logger = logging.getLogger(__name__)

STRATEGIES = ("backtrack", "cp_sat")


def build_pieces(templates: Iterable[Any]) -> List[Piece]:
    return [piece_from_spec(spec, default_id=i) for i, spec in enumerate(templates, start=1)]


def _resolve_unit_size(pieces: Sequence[Piece], unit_size: Optional[int]) -> int:
    if unit_size is None:
        unit_size = int(getattr(CFG, "UNIT_SIZE", 0) or 0)
    if unit_size <= 0:
        unit_size = pieces[0].cell_count if pieces else 0
    if getattr(CFG, "ENFORCE_UNIT_SIZE", True):
        validate_unit_size(pieces, unit_size)
    return unit_size


def _publish(counter: ProgressCounter) -> None:
    set_progress_pct(counter.percent)
    set_workers(counter.completed, counter.total)
    set_solutions_found(counter.solutions)


def _run_backtracking(
    width: int,
    height: int,
    groups,
    *,
    find_all: bool,
    parallel: bool,
    workers: int,
    halve_top_level: bool,
    stats: SearchStats,
) -> List[Solution]:
    set_phase("backtrack")
    return solve(
        width,
        height,
        groups,
        find_all=find_all,
        parallel=parallel,
        workers=workers,
        halve_top_level=halve_top_level,
        on_progress=_publish,
        stats=stats,
    )


def _run_cp_sat(width: int, height: int, groups, *, find_all: bool):
    set_phase("cp_sat")
    # imported lazily: ortools is only needed for this strategy
    from solver.cp_sat import try_exact_cover

    return try_exact_cover(width, height, groups, find_all=find_all, max_seconds=CFG.CP_SAT_SECONDS)


def solve_puzzle(
    templates: Iterable[Any],
    width: int,
    height: int,
    *,
    mode: Optional[str] = None,
    strategy: Optional[str] = None,
    parallel: Optional[bool] = None,
    workers: Optional[int] = None,
    halve_top_level: Optional[bool] = None,
    unit_size: Optional[int] = None,
    dedupe: Optional[bool] = None,
) -> Dict[str, Any]:
    """
    Returns a dict with keys: ok, mode, strategy, width, height, solutions,
    solution_count, unique_count, reason, elapsed, stats.

    ``ShapeError`` / ``PieceSizeError`` from the templates propagate.
    """
    t0 = time.time()

    mode = (mode or CFG.MODE or "first").lower()
    if mode not in ("first", "all"):
        raise ValueError(f"unknown mode {mode!r}")
    strategy = (strategy or CFG.STRATEGY or "backtrack").lower()
    if strategy not in STRATEGIES:
        raise ValueError(f"unknown strategy {strategy!r}")
    parallel = CFG.PARALLEL if parallel is None else bool(parallel)
    workers = worker_count() if not workers else int(workers)
    halve_top_level = CFG.HALVE_TOP_LEVEL if halve_top_level is None else bool(halve_top_level)
    dedupe = CFG.DEDUPE if dedupe is None else bool(dedupe)
    find_all = mode == "all"

    pieces = build_pieces(templates)
    unit = _resolve_unit_size(pieces, unit_size)
    groups = orientation_groups(pieces)

    result: Dict[str, Any] = {
        "ok": False,
        "mode": mode,
        "strategy": strategy,
        "width": int(width),
        "height": int(height),
        "pieces": pieces,
        "unit_size": unit,
        "solutions": [],
        "unique": [],
        "solution_count": 0,
        "unique_count": 0,
        "reason": None,
        "elapsed": 0.0,
        "stats": {},
    }

    def _finish() -> Dict[str, Any]:
        result["elapsed"] = time.time() - t0
        logger.info(
            "solve %s×%s mode=%s strategy=%s ok=%s solutions=%d unique=%d in %.2fs",
            width, height, mode, strategy, result["ok"],
            result["solution_count"], result["unique_count"], result["elapsed"],
        )
        return result

    set_status("Solving")

    area = sum(p.cell_count for p in pieces)
    if not pieces:
        result["reason"] = "Bad puzzle: no pieces"
        return _finish()
    if area != int(width) * int(height):
        result["reason"] = f"Area mismatch: pieces cover {area} cells, board has {int(width) * int(height)}"
        return _finish()

    stats = SearchStats()
    if strategy == "cp_sat":
        ok, solutions, reason = _run_cp_sat(width, height, groups, find_all=find_all)
        result["reason"] = reason
    else:
        solutions = _run_backtracking(
            width,
            height,
            groups,
            find_all=find_all,
            parallel=parallel,
            workers=workers,
            halve_top_level=halve_top_level,
            stats=stats,
        )
        if not find_all:
            solutions = solutions[:1]
        if not solutions:
            result["reason"] = "No solution"

    result["solutions"] = solutions
    result["solution_count"] = len(solutions)
    result["stats"] = stats.as_dict()
    result["ok"] = bool(solutions)
    set_solutions_found(len(solutions))

    if dedupe and solutions:
        set_phase("dedupe")
        result["unique"] = unique_solutions(solutions)
    else:
        result["unique"] = list(solutions)
    result["unique_count"] = len(result["unique"])

    if result["ok"]:
        set_message(f"{result['solution_count']} solution(s), {result['unique_count']} unique")
    return _finish()


__all__ = ["solve_puzzle", "build_pieces", "STRATEGIES"]
