import pytest

from config import CFG
from pieces import PieceSizeError, ShapeError
from progress import reset, snapshot
from puzzles import get_puzzle
from solver.orchestrator import build_pieces, solve_puzzle


@pytest.fixture(autouse=True)
def _sequential_defaults(monkeypatch):
    monkeypatch.setattr(CFG, "PARALLEL", False)
    monkeypatch.setattr(CFG, "HALVE_TOP_LEVEL", False)
    monkeypatch.setattr(CFG, "DEDUPE", True)
    monkeypatch.setattr(CFG, "UNIT_SIZE", 0)
    monkeypatch.setattr(CFG, "ENFORCE_UNIT_SIZE", True)
    reset()


def test_build_pieces_numbers_bare_templates():
    pieces = build_pieces([["**"], {"template": ["*", "*"], "name": "V"}, {"template": "*", "id": 9}])

    assert [p.id for p in pieces] == [1, 2, 9]
    assert pieces[1].name == "V"
    assert pieces[1].rows() == ["*", "*"]


def test_all_mode_counts_raw_and_unique_solutions():
    puzzle = get_puzzle("tetromino-5x4")

    result = solve_puzzle(puzzle.templates, puzzle.width, puzzle.height, mode="all")

    assert result["ok"] is True
    assert result["reason"] is None
    assert result["solution_count"] == 4
    assert result["unique_count"] == 1
    assert result["unit_size"] == 5
    assert result["stats"]["solutions"] == 4
    assert [p.name for p in result["pieces"]] == ["U", "U", "X", "I"]


def test_dedupe_can_be_switched_off():
    puzzle = get_puzzle("tetromino-5x4")

    result = solve_puzzle(puzzle.templates, 5, 4, mode="all", dedupe=False)

    assert result["unique_count"] == result["solution_count"] == 4


def test_first_mode_keeps_a_single_solution():
    puzzle = get_puzzle("tetromino-5x4")

    result = solve_puzzle(puzzle.templates, 5, 4, mode="first")

    assert result["ok"]
    assert result["solution_count"] == 1
    assert result["solutions"][0].complete


def test_progress_reaches_every_top_level_candidate():
    puzzle = get_puzzle("tetromino-5x4")

    solve_puzzle(puzzle.templates, 5, 4, mode="all")

    snap = snapshot()
    assert snap["percent"] == 100.0
    assert snap["workers_done"] == snap["workers_total"] > 0
    assert snap["solutions_found"] == 4
    assert snap["message"] == "4 solution(s), 1 unique"


def test_monominoes_skip_unit_size_inference_problems():
    puzzle = get_puzzle("monomino-2x1")

    result = solve_puzzle(puzzle.templates, 2, 1, mode="all")

    assert result["unit_size"] == 1
    assert sorted(s.serialize() for s in result["solutions"]) == ["AB", "BA"]
    assert result["unique_count"] == 1


def test_area_mismatch_is_reported_without_searching():
    puzzle = get_puzzle("tetromino-5x4")

    result = solve_puzzle(puzzle.templates, 5, 5, mode="all")

    assert result["ok"] is False
    assert result["reason"] == "Area mismatch: pieces cover 20 cells, board has 25"
    assert result["solutions"] == []


def test_unsolvable_puzzle_reports_no_solution():
    templates = [{"template": ["**", "*."], "name": "L"}] * 3

    result = solve_puzzle(templates, 3, 3, mode="all")

    assert result["ok"] is False
    assert result["reason"] == "No solution"
    assert result["unique"] == []


def test_mixed_piece_sizes_rejected_when_enforced():
    templates = [["*..", "***"], ["**"]]

    with pytest.raises(PieceSizeError):
        solve_puzzle(templates, 3, 2, mode="first")


def test_mixed_piece_sizes_allowed_when_not_enforced(monkeypatch):
    monkeypatch.setattr(CFG, "ENFORCE_UNIT_SIZE", False)

    result = solve_puzzle([["*..", "***"], ["**"]], 3, 2, mode="first")

    assert result["ok"]
    assert result["solutions"][0].labels == ("122", "111")


def test_ragged_template_propagates_shape_error():
    with pytest.raises(ShapeError):
        solve_puzzle([["**", "*"]], 2, 2)


@pytest.mark.parametrize("kwargs", [{"mode": "some"}, {"strategy": "greedy"}])
def test_unknown_mode_or_strategy_is_rejected(kwargs):
    with pytest.raises(ValueError):
        solve_puzzle([["*"]], 1, 1, **kwargs)


def test_cp_sat_strategy_matches_backtracking():
    pytest.importorskip("ortools")
    puzzle = get_puzzle("tetromino-5x4")

    backtrack = solve_puzzle(puzzle.templates, 5, 4, mode="all", strategy="backtrack")
    sat = solve_puzzle(puzzle.templates, 5, 4, mode="all", strategy="cp_sat")

    assert sat["strategy"] == "cp_sat"
    assert sat["solution_count"] == backtrack["solution_count"]
    assert {s.grid for s in sat["solutions"]} == {s.grid for s in backtrack["solutions"]}
    assert sat["unique_count"] == 1


def test_dedupe_separates_pieces_whose_names_share_a_letter():
    domino = ["**"]
    templates = [{"template": domino, "name": n} for n in ("Da", "Db", "Dc")]

    result = solve_puzzle(templates, 3, 2, mode="all", dedupe=True)

    assert result["solution_count"] == 18
    # all vertical, or two stacked flat dominoes beside a vertical one
    assert result["unique_count"] == 2
