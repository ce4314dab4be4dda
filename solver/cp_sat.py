# solver/cp_sat.py — exact-cover model over placement bitmasks
from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from ortools.sat.python import cp_model as _cp

from board import Board
from config import CFG
from models import Placement, Solution
from pieces import Piece

logger = logging.getLogger(__name__)

Option = Tuple[Placement, int]  # (placement, footprint bitmask)


def build_options(width: int, height: int, groups: Sequence[Sequence[Piece]]) -> List[List[Option]]:
    """Every in-bounds placement of every orientation, one list per group."""
    board = Board(width, height)
    options: List[List[Option]] = []
    for group in groups:
        opts = [(p, board.placement_bitmask(p)) for p in board.candidate_placements(group)]
        options.append(opts)
    return options


def _replay(width: int, height: int, placements: Sequence[Placement]) -> Optional[Solution]:
    board = Board(width, height)
    for p in placements:
        if not board.try_add(p):
            return None
    return board.snapshot()


class _Collector(_cp.CpSolverSolutionCallback):
    def __init__(self, width: int, height: int, chosen: List[List[Tuple[_cp.IntVar, Placement]]]):
        super().__init__()
        self._width = width
        self._height = height
        self._chosen = chosen
        self.solutions: List[Solution] = []

    def on_solution_callback(self) -> None:
        picked: List[Placement] = []
        for group in self._chosen:
            for var, placement in group:
                if self.BooleanValue(var):
                    picked.append(placement)
                    break
        sol = _replay(self._width, self._height, picked)
        if sol is not None:
            self.solutions.append(sol)

    # older releases only dispatch the CamelCase name
    OnSolutionCallback = on_solution_callback


def try_exact_cover(
    width: int,
    height: int,
    groups: Sequence[Sequence[Piece]],
    *,
    find_all: bool = False,
    max_seconds: Optional[float] = None,
) -> Tuple[bool, List[Solution], Optional[str]]:
    """Solve the tiling as exact cover with CP-SAT.

    Returns ``(ok, solutions, reason)``.  With ``find_all`` every solution is
    enumerated through a callback; otherwise the first feasible one is kept.
    """

    try:
        W = int(width)
        H = int(height)
    except Exception:
        return False, [], "Bad grid: width/height must be integers"
    if W <= 0 or H <= 0:
        return False, [], "Bad grid: width/height must be positive"
    if not groups:
        return False, [], "Bad puzzle: no pieces"

    options = build_options(W, H, groups)
    board = Board(W, H)
    for i, opts in enumerate(options):
        if not opts:
            return False, [], f"Piece {i} does not fit on a {W} × {H} board"

    m = _cp.CpModel()
    chosen: List[List[Tuple[_cp.IntVar, Placement]]] = []
    cell_to_vars: Dict[int, List[_cp.IntVar]] = {}
    for i, opts in enumerate(options):
        vars_i = []
        for k, (placement, mask) in enumerate(opts):
            v = m.NewBoolVar(f"p_{i}_{k}")
            vars_i.append((v, placement))
            for cell in board.cells_of_bitmask(mask):
                cell_to_vars.setdefault(cell, []).append(v)
        m.AddExactlyOne([v for v, _ in vars_i])
        chosen.append(vars_i)

    for cell in range(W * H):
        vars_here = cell_to_vars.get(cell)
        if not vars_here:
            return False, [], "Proven infeasible under current constraints"
        m.AddExactlyOne(vars_here)

    solver = _cp.CpSolver()
    seconds = CFG.CP_SAT_SECONDS if max_seconds is None else max_seconds
    solver.parameters.max_time_in_seconds = float(seconds)
    solver.parameters.max_memory_in_mb = int(getattr(CFG, "MAX_MEMORY_MB", 2048))
    solver.parameters.log_search_progress = False

    if find_all:
        # enumeration requires a single worker
        solver.parameters.enumerate_all_solutions = True
        solver.parameters.num_search_workers = 1
        collector = _Collector(W, H, chosen)
        res = solver.Solve(m, collector)
        solutions = collector.solutions
    else:
        res = solver.Solve(m)
        solutions = []
        if res in (_cp.OPTIMAL, _cp.FEASIBLE):
            picked = [p for group in chosen for v, p in group if solver.BooleanValue(v)]
            sol = _replay(W, H, picked)
            if sol is not None:
                solutions.append(sol)

    logger.debug("cp-sat status=%s solutions=%d", solver.StatusName(res), len(solutions))

    if solutions:
        return True, solutions, None
    if res == _cp.INFEASIBLE or (find_all and res == _cp.OPTIMAL):
        return False, [], "Proven infeasible under current constraints"
    if res == _cp.MODEL_INVALID:
        return False, [], "Model invalid (configuration error)"
    return False, [], "Stopped before solution (timebox)"


__all__ = ["build_options", "try_exact_cover"]
