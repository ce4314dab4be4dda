"""Process-wide progress for the current tiling run.

The coordinating process is the only writer; the Flask ``/progress`` route
reads snapshots.  Run milestones also go to ``solver_runs.log``.
"""
from __future__ import annotations

import logging
import threading
import time
from pathlib import Path
from typing import Any, Dict, Optional

from config import CFG

PROGRESS_LOCK = threading.Lock()

_IDLE: Dict[str, Any] = {
    "status": "Idle",          # Idle | Solving | Solved | Error
    "phase": "",               # parse | backtrack | cp_sat | dedupe
    "percent": 0.0,
    "solutions_found": 0,
    "workers_done": 0,         # top-level candidates finished
    "workers_total": 0,
    "elapsed_start": None,
    "elapsed": 0.0,
    "message": "",
    "done": False,
    "ok": None,
}

PROGRESS: Dict[str, Any] = dict(_IDLE, run_id=0)

# phase and run start times, for durations in the run log
_CLOCK: Dict[str, Any] = {"run": None, "phase": "", "phase_at": None}


# ---------- run log ----------

def _run_log_path() -> Path:
    base = Path(CFG.LOG_DIR) if getattr(CFG, "LOG_DIR", "") else Path(__file__).resolve().parent / "logs"
    return base / "solver_runs.log"


def _open_run_log() -> logging.Logger:
    log = logging.getLogger("solver.run_log")
    if log.handlers:
        return log
    path = _run_log_path()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(path, encoding="utf-8")
    except OSError:
        # unwritable log dir: run without a log
        return log
    handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s", datefmt="%Y-%m-%d %H:%M:%S"))
    log.addHandler(handler)
    log.setLevel(logging.INFO)
    log.propagate = False
    return log


RUN_LOGGER = _open_run_log()


def _event(name: str, **fields: Any) -> None:
    if not RUN_LOGGER.handlers:
        return
    detail = " ".join(f"{k}={v}" for k, v in fields.items() if v not in (None, ""))
    try:
        if detail:
            RUN_LOGGER.info("%s | %s", name, detail)
        else:
            RUN_LOGGER.info("%s", name)
    except Exception:
        RUN_LOGGER.debug("run log write failed", exc_info=True)


def _seconds(since: Optional[float]) -> Optional[str]:
    if since is None:
        return None
    return f"{max(0.0, time.time() - since):.2f}s"


def _switch_phase_locked(phase: str) -> None:
    previous = _CLOCK["phase"]
    if phase == previous:
        return
    if previous:
        _event("Phase finished", phase=previous, duration=_seconds(_CLOCK["phase_at"]))
    _CLOCK["phase"] = phase
    _CLOCK["phase_at"] = time.time()
    if phase:
        _event("Phase started", phase=phase)


def _tick_locked() -> None:
    t0 = PROGRESS["elapsed_start"]
    if t0 is not None:
        PROGRESS["elapsed"] = time.time() - t0


def _fmt_elapsed(seconds: float) -> str:
    whole = int(max(0.0, float(seconds)))
    m, s = divmod(whole, 60)
    if m == 0:
        return f"{s}s"
    h, m = divmod(m, 60)
    if h == 0:
        return f"{m}m {s}s"
    return f"{h}h {m}m"


# ---------- lifecycle ----------

def reset() -> None:
    with PROGRESS_LOCK:
        run_id = int(PROGRESS.get("run_id") or 0) + 1
        PROGRESS.clear()
        PROGRESS.update(_IDLE, run_id=run_id)
        _CLOCK.update(run=None, phase="", phase_at=None)
        _event("Progress reset", run_id=run_id)


def start_timer() -> None:
    with PROGRESS_LOCK:
        now = time.time()
        PROGRESS["elapsed_start"] = now
        PROGRESS["elapsed"] = 0.0
        _CLOCK["run"] = now
        _event("Run started", run_id=PROGRESS["run_id"])


def set_done(ok: Any = None, *, reason: Any = None, message: Any = None) -> None:
    """Mark the run complete.

    ``ok`` picks Solved or Error.  Without it an idle run counts as solved and
    any other status is kept.  ``message`` wins over ``reason``.
    """
    text = message if message is not None else reason
    with PROGRESS_LOCK:
        _tick_locked()
        if ok is not None:
            PROGRESS["ok"] = bool(ok)
            PROGRESS["status"] = "Solved" if ok else "Error"
        elif PROGRESS["status"] in ("", "Idle", None):
            PROGRESS["ok"] = True
            PROGRESS["status"] = "Solved"
        if text is not None:
            PROGRESS["message"] = str(text)
        PROGRESS["percent"] = 100.0
        PROGRESS["done"] = True
        _switch_phase_locked("")
        _event(
            "Run finished",
            status=PROGRESS["status"],
            ok=PROGRESS["ok"],
            duration=_seconds(_CLOCK["run"]),
            solutions=PROGRESS["solutions_found"],
            message=PROGRESS["message"],
        )
        _CLOCK["run"] = None


# ---------- tolerant setters ----------

def set_status(v: Any) -> None:
    with PROGRESS_LOCK:
        PROGRESS["status"] = str(v)


def set_phase(v: Any) -> None:
    phase = "" if v is None else str(v)
    with PROGRESS_LOCK:
        PROGRESS["phase"] = phase
        _switch_phase_locked(phase)


def set_progress_pct(pct: Any) -> None:
    try:
        value = float(pct)
    except (TypeError, ValueError):
        value = 0.0
    with PROGRESS_LOCK:
        PROGRESS["percent"] = max(0.0, min(100.0, value))
        _tick_locked()


def set_solutions_found(n: Any) -> None:
    try:
        count = int(n)
    except (TypeError, ValueError):
        count = 0
    with PROGRESS_LOCK:
        PROGRESS["solutions_found"] = max(0, count)


def set_workers(done: Any, total: Any) -> None:
    try:
        done, total = int(done), int(total)
    except (TypeError, ValueError):
        return
    with PROGRESS_LOCK:
        PROGRESS["workers_done"] = max(0, done)
        PROGRESS["workers_total"] = max(0, total)
        if 0 < total <= done:
            _event("Workers finished", phase=PROGRESS["phase"], total=total)


def set_message(msg: Any) -> None:
    with PROGRESS_LOCK:
        PROGRESS["message"] = "" if msg is None else str(msg)


# ---------- reads ----------

def snapshot() -> Dict[str, Any]:
    with PROGRESS_LOCK:
        _tick_locked()
        out = {k: v for k, v in PROGRESS.items() if k != "elapsed_start"}
    out["elapsed_str"] = _fmt_elapsed(out["elapsed"])
    return out


def as_json() -> Dict[str, Any]:
    return snapshot()
