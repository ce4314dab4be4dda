import random
from typing import Dict, List, Sequence, Tuple

from models import EMPTY_CELL, Solution
from pieces import Piece

def _color(name: str) -> str:
    rng = random.Random(name)
    r = rng.randint(40, 200)
    g = rng.randint(40, 200)
    b = rng.randint(40, 200)
    return f"rgb({r},{g},{b})"

def render_text(solution: Solution) -> str:
    """Compact per-row symbol grid."""
    return "\n".join(solution.labels)

def render_solution(solution: Solution, pieces: Sequence[Piece], scale: int = 32) -> Tuple[str, str]:
    by_id: Dict[int, Piece] = {p.id: p for p in pieces}
    palette: Dict[str, str] = {}

    svg_w = solution.width * scale + 2
    svg_h = solution.height * scale + 2

    cells: List[str] = []
    for r, row in enumerate(solution.grid):
        for c, pid in enumerate(row):
            if pid == EMPTY_CELL:
                continue
            piece = by_id.get(pid)
            name = piece.label if piece else str(pid)
            fill = palette.setdefault(name, _color(name))
            x = c * scale + 1
            y = r * scale + 1
            cells.append(
                f'<rect x="{x}" y="{y}" width="{scale}" height="{scale}" fill="{fill}" stroke="{fill}" stroke-width="1"/>'
            )
            # outline only where the neighbour belongs to another piece
            if r == 0 or solution.grid[r - 1][c] != pid:
                cells.append(f'<line x1="{x}" y1="{y}" x2="{x + scale}" y2="{y}" stroke="black" stroke-width="2"/>')
            if c == 0 or row[c - 1] != pid:
                cells.append(f'<line x1="{x}" y1="{y}" x2="{x}" y2="{y + scale}" stroke="black" stroke-width="2"/>')

    grid = f'<rect x="1" y="1" width="{svg_w-2}" height="{svg_h-2}" fill="none" stroke="black" stroke-width="2"/>'
    svg = (
        f'<svg class="layout-svg" xmlns="http://www.w3.org/2000/svg" '
        f'width="{svg_w}" height="{svg_h}" '
        f'viewBox="0 0 {svg_w} {svg_h}" preserveAspectRatio="xMinYMin meet">'
        f'{"".join(cells)}{grid}</svg>'
    )

    legend = "".join(f"<li><span class='swatch' style='background:{c}'></span>{n}</li>" for n, c in palette.items())
    return svg, legend

def render_many(solutions: Sequence[Solution], pieces: Sequence[Piece], limit: int) -> Tuple[str, str]:
    svgs: List[str] = []
    legend = ""
    for sol in list(solutions)[: max(0, int(limit))]:
        svg, legend = render_solution(sol, pieces)
        svgs.append(f"<figure class='solution'>{svg}<figcaption><code>{sol.serialize()}</code></figcaption></figure>")
    return "".join(svgs), legend
