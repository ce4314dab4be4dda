import pytest

from board import Board
from models import EMPTY_CELL, Placement
from pieces import shape_from_template


def _mono(pid=1, name=None):
    return shape_from_template(["*"], pid, name)


def test_can_add_to_empty_board():
    board = Board(1, 1)
    piece = _mono(7)

    assert board.try_add(Placement(piece, 0, 0))
    assert board.index_grid() == [[7]]
    assert board.is_full


def test_cannot_add_to_full_board():
    board = Board(2, 1)
    assert board.try_add(Placement(_mono(1), 0, 0))
    assert board.try_add(Placement(_mono(2), 0, 1))

    assert not board.try_add(Placement(_mono(3), 0, 0))
    assert not board.try_add(Placement(_mono(3), 0, 1))
    assert board.index_grid() == [[1, 2]]
    assert board.depth == 2


def test_can_add_after_removing():
    board = Board(2, 1)
    assert board.try_add(Placement(shape_from_template(["**"], 1), 0, 0))
    board.remove_last()

    assert board.try_add(Placement(_mono(2), 0, 1))


def test_empty_reports_occupancy():
    board = Board(2, 2)
    board.try_add(Placement(shape_from_template(["**", "*."], 1), 0, 0))

    assert not board.empty(0, 0)
    assert not board.empty(0, 1)
    assert not board.empty(1, 0)
    assert board.empty(1, 1)


def test_try_add_failure_leaves_board_untouched():
    board = Board(3, 2)
    board.try_add(Placement(_mono(1), 1, 1))
    before = (bytes(board.cells), list(board.owners), board.depth)

    # overlaps (1, 1)
    assert not board.try_add(Placement(shape_from_template(["**", "**"], 2), 0, 0))
    # out of bounds
    assert not board.try_add(Placement(shape_from_template(["***"], 3), 1, 1))
    assert not board.try_add(Placement(_mono(4), -1, 0))

    assert (bytes(board.cells), list(board.owners), board.depth) == before


def test_add_then_remove_restores_state():
    board = Board(4, 3)
    board.try_add(Placement(shape_from_template(["**"], 1), 0, 0))
    before = (bytes(board.cells), list(board.owners), board.depth, board.filled_count)

    placement = Placement(shape_from_template(["*.", "**"], 2), 1, 2)
    assert board.try_add(placement)
    assert board.remove_last() == placement

    assert (bytes(board.cells), list(board.owners), board.depth, board.filled_count) == before


def test_remove_last_on_empty_stack_is_a_contract_violation():
    with pytest.raises(RuntimeError):
        Board(2, 2).remove_last()


def test_board_rejects_non_positive_sides():
    with pytest.raises(ValueError):
        Board(0, 3)


def test_region_pruning_passes_on_full_board():
    board = Board(2, 1)
    board.try_add(Placement(shape_from_template(["**"], 1), 0, 0))

    assert board.empty_regions() == []
    assert not board.contains_unfillable_region(5)


def test_region_pruning_rejects_isolated_cell():
    board = Board(3, 3)
    ring = shape_from_template(["***", "*.*", "***"], 1)
    assert board.try_add(Placement(ring, 0, 0))

    assert board.empty_regions() == [1]
    assert board.contains_unfillable_region(5)
    assert board.contains_isolated_single()


def test_region_pruning_counts_each_region():
    board = Board(5, 2)
    wall = shape_from_template(["*", "*"], 1)
    board.try_add(Placement(wall, 0, 2))

    assert sorted(board.empty_regions()) == [4, 4]
    assert not board.contains_unfillable_region(2)
    assert board.contains_unfillable_region(5)
    assert not board.contains_unfillable_region(1)


@pytest.mark.parametrize("w, h", [(2, 2), (3, 2), (5, 5), (10, 6)])
def test_empty_board_has_no_isolated_single(w, h):
    assert not Board(w, h).contains_isolated_single()


def test_isolated_single_uses_board_edge_as_wall():
    board = Board(3, 2)
    # leaves only the corner (0, 0) empty
    board.try_add(Placement(shape_from_template([".**", "***"], 1), 0, 0))

    assert board.contains_isolated_single()


def test_isolated_single_false_when_empty_cells_touch():
    board = Board(3, 2)
    board.try_add(Placement(shape_from_template(["..*", "***"], 1), 0, 0))

    assert not board.contains_isolated_single()


def test_number_of_possibilities_counts_translations():
    board = Board(10, 6)
    bar = shape_from_template(["*****"], 1)

    # 6×6 horizontal anchors + 10×2 vertical anchors
    assert board.number_of_possibilities(bar.all_transforms()) == 56
    assert board.number_of_possibilities([shape_from_template(["*" * 11])]) == 0


def test_placement_bitmask_is_row_major_msb_first():
    board = Board(2, 2)
    mono = _mono()

    assert board.placement_bitmask(Placement(mono, 0, 0)) == 0b1000
    assert board.placement_bitmask(Placement(mono, 1, 1)) == 0b0001
    l_piece = shape_from_template(["**", "*."])
    mask = board.placement_bitmask(Placement(l_piece, 0, 0))
    assert mask == 0b1110
    assert board.cells_of_bitmask(mask) == [0, 1, 2]


def test_projections_use_sentinels_for_uncovered_cells():
    board = Board(3, 1)
    board.try_add(Placement(shape_from_template(["**"], 4, "Uno"), 0, 0))

    assert board.index_grid() == [[4, 4, EMPTY_CELL]]
    assert board.name_grid() == [["Uno", "Uno", "."]]
    assert board.label_rows() == ["UU."]
    snap = board.snapshot()
    assert not snap.complete
    assert snap.serialize() == "UU."


def test_copy_is_independent():
    board = Board(2, 2)
    board.try_add(Placement(_mono(1), 0, 0))
    clone = board.copy()

    assert clone.try_add(Placement(_mono(2), 1, 1))
    assert board.empty(1, 1)
    assert clone.depth == 2 and board.depth == 1


def test_candidate_placements_can_halve_each_axis():
    board = Board(5, 4)
    plus = shape_from_template([".*.", "***", ".*."], 1)

    full = board.candidate_placements([plus])
    half = board.candidate_placements([plus], halve=True)

    assert len(full) == 3 * 2
    assert [(p.row, p.column) for p in half] == [(0, 0), (0, 1)]
