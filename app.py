# app.py — puzzle form, solve endpoint, progress polling
from __future__ import annotations
import os
import time
from typing import Any, Dict, Tuple

from flask import Flask, request, render_template, send_from_directory, jsonify

from config import CFG
from io_files import write_solutions, write_layout_view_html
from pieces import PieceSizeError, ShapeError
from puzzles import PUZZLES, parse_puzzle
from render import render_many
from solver.orchestrator import solve_puzzle

from progress import (
    reset as progress_reset,
    as_json as progress_json,
    start_timer as progress_start,
    set_status, set_phase, set_progress_pct, set_solutions_found,
    set_done,
)

BASE_DIR = os.path.dirname(os.path.abspath(__file__))


def _output_location(configured: str, fallback: str) -> Tuple[str, str]:
    """(directory, filename) of an output file; relative names live next to the app."""
    name = (configured or "").strip() or fallback
    full_path = name if os.path.isabs(name) else os.path.abspath(os.path.join(BASE_DIR, name))
    return os.path.dirname(full_path) or BASE_DIR, os.path.basename(full_path) or fallback


def _solutions_location() -> Tuple[str, str]:
    return _output_location(CFG.SOLUTIONS_OUT, "solutions.txt")


def _layout_location() -> Tuple[str, str]:
    return _output_location(CFG.LAYOUT_HTML, "layout_view.html")


def _empty_result(reason: str = "") -> Dict[str, Any]:
    return {
        "ok": False,
        "reason": reason,
        "puzzle": "",
        "mode": "",
        "strategy": "",
        "W": 0,
        "H": 0,
        "solution_count": 0,
        "unique_count": 0,
        "elapsed_str": "0s",
        "svg": "",
        "legend": "",
        "labels": [],
        "solutions_filename": _solutions_location()[1],
        "layout_filename": _layout_location()[1],
    }


LAST_RESULT: Dict[str, Any] = _empty_result()

app = Flask(__name__, static_folder=".", template_folder="templates")


@app.after_request
def _no_cache_progress(resp):
    if request.path == "/progress":
        resp.headers["Cache-Control"] = "no-store, max-age=0"
        resp.headers["Pragma"] = "no-cache"
        resp.headers["Expires"] = "0"
    return resp


@app.route("/")
def index():
    return render_template("puzzle_form.html", puzzles=sorted(PUZZLES))


@app.route("/result/latest")
def result_latest():
    return render_template("result.html", **LAST_RESULT)


def _fmt_elapsed(seconds: float) -> str:
    if seconds < 1:
        return "0s"
    m, s = divmod(int(seconds), 60)
    if m == 0:
        return f"{s}s"
    h, m = divmod(m, 60)
    if h == 0:
        return f"{m}m {s}s"
    return f"{h}h {m}m {s}s"


def _request_fields() -> Dict[str, Any]:
    """JSON body, then form fields, then query args; earlier sources win."""
    fields: Dict[str, Any] = {}
    payload = request.get_json(silent=True)
    if isinstance(payload, dict):
        fields.update(payload)
    for source in (request.form, request.args):
        for key, values in source.to_dict(flat=False).items():
            if key != "format":
                fields.setdefault(key, values)
    return fields


def _value(fields: Dict[str, Any], key: str):
    val = fields.get(key)
    if isinstance(val, list):
        val = val[0] if val else None
    return val


def _flag(fields: Dict[str, Any], key: str):
    val = _value(fields, key)
    if val is None or val == "":
        return None
    if isinstance(val, bool):
        return val
    return str(val).strip().lower() in ("1", "true", "yes", "on")


def _wants_json() -> bool:
    if request.args.get("format") == "json":
        return True
    best = request.accept_mimetypes.best_match(["text/html", "application/json"])
    return best == "application/json"


def _finalize_solver_progress(ok_flag: bool, reason_text: str) -> None:
    """Write the terminal solver status without clobbering failure states."""

    set_status("Solved" if ok_flag else "Error")
    set_done(ok_flag, reason=reason_text)


def _respond(result: Dict[str, Any]):
    LAST_RESULT.clear()
    LAST_RESULT.update(result)
    if _wants_json():
        return jsonify({k: v for k, v in result.items() if k not in ("svg", "legend")})
    return render_template("result.html", **LAST_RESULT)


def _fail(reason: str, t0: float):
    _finalize_solver_progress(False, reason)
    result = _empty_result(reason)
    result["elapsed_str"] = _fmt_elapsed(time.time() - t0)
    return _respond(result)


def _write_outputs(shown, svg_markup: str, legend_html: str, title: str) -> Tuple[str, str]:
    """Best effort; a failed write only costs the download link."""
    solutions_name = _solutions_location()[1]
    layout_name = _layout_location()[1]
    try:
        solutions_name = os.path.basename(write_solutions(shown, BASE_DIR)) or solutions_name
    except OSError:
        app.logger.warning("could not write solutions file", exc_info=True)
    if svg_markup:
        try:
            layout_name = os.path.basename(
                write_layout_view_html(svg_markup, legend_html, BASE_DIR, title=title)
            ) or layout_name
        except OSError:
            app.logger.warning("could not write layout view", exc_info=True)
    return solutions_name, layout_name


@app.route("/solve", methods=["POST"])
def solve():
    progress_reset()
    progress_start()
    set_status("Solving")
    set_phase("parse")
    set_progress_pct(0)
    set_solutions_found(0)

    t0 = time.time()
    fields = _request_fields()
    puzzle, err = parse_puzzle(fields)

    if err or puzzle is None:
        seen_keys = ", ".join(list(fields.keys())[:8]) or "—"
        return _fail(f"Bad puzzle: {err or 'nothing parsed from request'} (saw keys: {seen_keys})", t0)

    try:
        raw = solve_puzzle(
            puzzle.templates,
            puzzle.width,
            puzzle.height,
            mode=puzzle.mode,
            strategy=_value(fields, "strategy") or None,
            parallel=_flag(fields, "parallel"),
            halve_top_level=_flag(fields, "halve"),
            dedupe=_flag(fields, "dedupe"),
        )
    except (ShapeError, PieceSizeError, ValueError) as e:
        return _fail(f"Bad puzzle: {e}", t0)
    except Exception as e:
        app.logger.exception("solver crashed")
        return _fail(f"solver exception: {type(e).__name__}: {e}", t0)

    ok_flag = bool(raw.get("ok"))
    reason_text = raw.get("reason") or (
        f"{raw['solution_count']} solution(s), {raw['unique_count']} unique" if ok_flag else "No solution"
    )
    _finalize_solver_progress(ok_flag, reason_text)

    shown = raw["unique"] if raw["unique"] else raw["solutions"]
    svg_markup, legend_html = render_many(shown, raw["pieces"], CFG.RENDER_LIMIT)
    solutions_name, layout_name = _write_outputs(
        shown, svg_markup, legend_html, f"{puzzle.name} ({puzzle.width} × {puzzle.height})"
    )

    result = _empty_result(reason_text)
    result.update({
        "ok": ok_flag,
        "puzzle": puzzle.name,
        "mode": raw["mode"],
        "strategy": raw["strategy"],
        "W": raw["width"],
        "H": raw["height"],
        "solution_count": raw["solution_count"],
        "unique_count": raw["unique_count"],
        "elapsed_str": _fmt_elapsed(time.time() - t0),
        "svg": svg_markup,
        "legend": legend_html,
        "labels": [s.serialize() for s in shown],
        "grids": [s.as_lists() for s in shown],
        "stats": raw.get("stats", {}),
        "solutions_filename": solutions_name,
        "layout_filename": layout_name,
    })
    return _respond(result)


@app.route("/download/solutions")
def download_solutions():
    directory, filename = _solutions_location()
    return send_from_directory(directory, filename, as_attachment=True)


@app.route("/download/html")
def download_html():
    directory, filename = _layout_location()
    return send_from_directory(directory, filename, as_attachment=True)


@app.route("/progress")
def progress():
    return jsonify(progress_json())


if __name__ == "__main__":
    app.run(debug=False)
