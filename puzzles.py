# puzzles.py — built-in puzzle instances and a forgiving request parser
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Tuple

PieceSpec = Dict[str, Any]  # {"template": [...], "id": int, "name": str}

PENTOMINOES: Dict[str, List[str]] = {
    "F": [".**", "**.", ".*."],
    "I": ["*****"],
    "L": ["****", "*..."],
    "N": ["**..", ".***"],
    "P": ["**", "**", "*."],
    "T": ["***", ".*.", ".*."],
    "U": ["*.*", "***"],
    "V": ["*..", "*..", "***"],
    "W": ["*..", "**.", ".**"],
    "X": [".*.", "***", ".*."],
    "Y": ["****", ".*.."],
    "Z": ["**.", ".*.", ".**"],
}

MODES = ("first", "all")


@dataclass
class Puzzle:
    name: str
    width: int
    height: int
    pieces: List[PieceSpec] = field(default_factory=list)
    mode: Optional[str] = None

    @property
    def templates(self) -> List[PieceSpec]:
        return [dict(p) for p in self.pieces]


def _pentomino_set(names: str) -> List[PieceSpec]:
    return [
        {"template": list(PENTOMINOES[n]), "id": i, "name": n}
        for i, n in enumerate(names, start=1)
    ]


PUZZLES: Dict[str, Puzzle] = {
    "pentomino-6x10": Puzzle("pentomino-6x10", 10, 6, _pentomino_set("FILNPTUVWXYZ")),
    "pentomino-5x12": Puzzle("pentomino-5x12", 12, 5, _pentomino_set("FILNPTUVWXYZ")),
    "pentomino-3x20": Puzzle("pentomino-3x20", 20, 3, _pentomino_set("FILNPTUVWXYZ")),
    "tetromino-5x4": Puzzle("tetromino-5x4", 5, 4, _pentomino_set("UUXI"), mode="all"),
    "monomino-2x1": Puzzle(
        "monomino-2x1",
        2,
        1,
        [{"template": ["*"], "id": 1, "name": "A"}, {"template": ["*"], "id": 2, "name": "B"}],
        mode="all",
    ),
}


def get_puzzle(name: str) -> Puzzle:
    puzzle = PUZZLES[name]
    return replace(puzzle, pieces=puzzle.templates)


def _first(val: Any) -> Any:
    if isinstance(val, (list, tuple)):
        return val[0] if val else None
    return val


def _as_listish(val: Any) -> List[Any]:
    if val is None:
        return []
    if isinstance(val, (list, tuple)):
        return list(val)
    return [val]


def _to_int(x: Any) -> Optional[int]:
    try:
        return int(float(x))
    except Exception:
        return None


def _lookup(form_like: Any, *keys: str) -> Any:
    for key in keys:
        if isinstance(form_like, dict) and key in form_like:
            return form_like[key]
        if hasattr(form_like, "getlist"):
            try:
                vals = form_like.getlist(key)
            except Exception:
                vals = []
            if vals:
                return vals
    return None


def _expand(specs: List[PieceSpec]) -> List[PieceSpec]:
    """Apply ``count`` and fill in missing ids."""
    out: List[PieceSpec] = []
    for spec in specs:
        count = _to_int(spec.get("count"))
        if count is None:
            count = 1
        for _ in range(max(0, count)):
            item = {k: v for k, v in spec.items() if k != "count"}
            out.append(item)
    used = {_to_int(p.get("id")) for p in out} - {None}
    next_id = 1
    seen_ids = set()
    for p in out:
        pid = _to_int(p.get("id"))
        if pid is None or pid in seen_ids:
            while next_id in used or next_id in seen_ids:
                next_id += 1
            pid = next_id
        p["id"] = pid
        seen_ids.add(pid)
    return out


def _pieces_from_json(raw: Any) -> List[PieceSpec]:
    specs: List[PieceSpec] = []
    for item in _as_listish(raw):
        if isinstance(item, dict):
            template = item.get("template") or item.get("rows")
            if not template:
                continue
            specs.append(dict(item))
        elif isinstance(item, (list, tuple, str)) and item:
            specs.append({"template": item})
    return specs


def _pieces_from_form(form_like: Any) -> List[PieceSpec]:
    templates = _as_listish(_lookup(form_like, "template[]", "template"))
    names = _as_listish(_lookup(form_like, "name[]", "name"))
    counts = _as_listish(_lookup(form_like, "count[]", "count"))
    specs: List[PieceSpec] = []
    for i, template in enumerate(templates):
        if not template or not str(template).strip():
            continue
        spec: PieceSpec = {"template": str(template)}
        if i < len(names) and names[i]:
            spec["name"] = str(names[i]).strip()
        if i < len(counts):
            spec["count"] = counts[i]
        specs.append(spec)
    return specs


def parse_puzzle(form_like: Any) -> Tuple[Optional[Puzzle], Optional[str]]:
    """
    Return (puzzle, error_message_or_None).
    Accepts a catalogue name, explicit JSON pieces, or form arrays.
    """
    if not form_like:
        return None, "nothing parsed from request"

    puzzle: Optional[Puzzle] = None

    # --- Shape 1: catalogue name ------------------------------------------
    name = _first(_lookup(form_like, "puzzle"))
    if name:
        name = str(name).strip()
        if name not in PUZZLES:
            return None, f"unknown puzzle {name!r}"
        puzzle = get_puzzle(name)

    # --- Shape 2: explicit pieces (JSON) ------------------------------------
    specs = _pieces_from_json(_lookup(form_like, "pieces"))

    # --- Shape 3: form arrays -----------------------------------------------
    if not specs:
        specs = _pieces_from_form(form_like)

    if specs:
        puzzle = Puzzle("custom", 0, 0, _expand(specs))

    if puzzle is None:
        return None, "no puzzle or pieces given"

    width = _to_int(_first(_lookup(form_like, "width", "W")))
    height = _to_int(_first(_lookup(form_like, "height", "H")))
    if width is not None:
        puzzle.width = width
    if height is not None:
        puzzle.height = height
    if puzzle.width <= 0 or puzzle.height <= 0:
        return None, f"board must be positive (got {puzzle.width} × {puzzle.height})"

    mode = _first(_lookup(form_like, "mode"))
    if mode:
        mode = str(mode).strip().lower()
        if mode not in MODES:
            return None, f"unknown mode {mode!r} (expected one of {', '.join(MODES)})"
        puzzle.mode = mode

    return puzzle, None


__all__ = ["PENTOMINOES", "PUZZLES", "Puzzle", "get_puzzle", "parse_puzzle"]
