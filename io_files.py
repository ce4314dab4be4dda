"""Solution and preview files written after each solve."""

from __future__ import annotations

import os
from html import escape
from typing import Optional, Sequence

from config import CFG
from models import Solution
from render import render_text


def _resolve_output_path(base_dir: str, configured_name: str, fallback: str) -> str:
    name = (configured_name or "").strip() or fallback
    return name if os.path.isabs(name) else os.path.join(base_dir, name)


def _write_text(path: str, text: str) -> str:
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w", encoding="utf-8") as fh:
        fh.write(text)
    return path


def format_solutions(solutions: Sequence[Solution]) -> str:
    """``# n`` header then one label row per board row; blank line between solutions."""
    if not solutions:
        return "No solution\n"
    blocks = []
    for n, sol in enumerate(solutions, start=1):
        blocks.append(f"# {n}\n{render_text(sol)}\n")
    return "\n".join(blocks)


def write_solutions(solutions: Sequence[Solution], base_dir: str) -> str:
    path = _resolve_output_path(base_dir, CFG.SOLUTIONS_OUT, "solutions.txt")
    return _write_text(path, format_solutions(solutions))


def write_layout_view_html(svg: str, legend_html: str, base_dir: str, *, title: Optional[str] = None) -> str:
    """Standalone page with the rendered tilings and their legend."""

    path = _resolve_output_path(base_dir, CFG.LAYOUT_HTML, "layout_view.html")
    heading = escape(title or "Tilings")
    page = (
        "<!doctype html>\n"
        f"<html><head><meta charset='utf-8'><title>{heading}</title></head>\n"
        "<body class='container'>\n"
        f"<h1>{heading}</h1>\n"
        f"<section class='card tilings'>{svg}</section>\n"
        f"<section class='card'><h3>Pieces</h3><ul>{legend_html}</ul></section>\n"
        "</body></html>\n"
    )
    return _write_text(path, page)


__all__ = ["format_solutions", "write_solutions", "write_layout_view_html"]
