import pytest

from puzzles import PENTOMINOES, PUZZLES, get_puzzle, parse_puzzle


def test_catalogue_areas_match_boards():
    for name, puzzle in PUZZLES.items():
        area = sum(
            sum(row.count("*") for row in spec["template"])
            for spec in puzzle.pieces
        )
        assert area == puzzle.width * puzzle.height, name


def test_pentominoes_have_five_cells_each():
    assert len(PENTOMINOES) == 12
    for name, rows in PENTOMINOES.items():
        assert sum(r.count("*") for r in rows) == 5, name


def test_get_puzzle_returns_independent_copy():
    first = get_puzzle("tetromino-5x4")
    first.pieces[0]["name"] = "changed"

    assert get_puzzle("tetromino-5x4").pieces[0]["name"] == "U"


def test_parse_catalogue_name_with_overrides():
    puzzle, err = parse_puzzle({"puzzle": ["pentomino-6x10"], "mode": ["all"]})

    assert err is None
    assert (puzzle.width, puzzle.height, puzzle.mode) == (10, 6, "all")
    assert len(puzzle.templates) == 12


def test_parse_unknown_catalogue_name():
    puzzle, err = parse_puzzle({"puzzle": "nonsense"})
    assert puzzle is None
    assert "unknown puzzle" in err


def test_parse_json_pieces_applies_counts_and_ids():
    payload = {
        "pieces": [
            {"template": ["*.*", "***"], "name": "U", "count": 2},
            {"rows": [".*.", "***", ".*."], "name": "X", "id": 1},
            "*****",
        ],
        "width": 5,
        "height": 4,
    }

    puzzle, err = parse_puzzle(payload)

    assert err is None
    assert puzzle.name == "custom"
    assert [p.get("name") for p in puzzle.pieces] == ["U", "U", "X", None]
    ids = [p["id"] for p in puzzle.pieces]
    assert len(set(ids)) == 4
    # explicit id is honoured
    assert puzzle.pieces[2]["id"] == 1


def test_parse_form_arrays():
    form = {
        "template[]": ["*.*/***", ".*./***/.*.", "*****"],
        "name[]": ["U", "X", "I"],
        "count[]": ["2", "1", "1"],
        "W": ["5"],
        "H": ["4"],
    }

    puzzle, err = parse_puzzle(form)

    assert err is None
    assert (puzzle.width, puzzle.height) == (5, 4)
    assert [p["name"] for p in puzzle.pieces] == ["U", "U", "X", "I"]
    assert puzzle.pieces[0]["template"] == "*.*/***"


@pytest.mark.parametrize(
    "form, message",
    [
        ({}, "nothing parsed"),
        ({"width": 4}, "no puzzle or pieces"),
        ({"pieces": ["**"], "width": 0, "height": 1}, "board must be positive"),
        ({"puzzle": "monomino-2x1", "mode": "most"}, "unknown mode"),
    ],
)
def test_parse_errors(form, message):
    puzzle, err = parse_puzzle(form)
    assert puzzle is None
    assert message in err
