# config.py
import os

# ======= Piece model =======
# 0 means "take the size of the first piece"; the check itself is controlled
# by ENFORCE_UNIT_SIZE.
UNIT_SIZE            = int(os.getenv("PT_UNIT_SIZE", "0"))
ENFORCE_UNIT_SIZE    = int(os.getenv("PT_ENFORCE_UNIT_SIZE", "1")) != 0
SOLID_SYMBOL         = os.getenv("PT_SOLID_SYMBOL", "*")

# ======= Search defaults =======
MODE                 = os.getenv("PT_MODE", "first")          # first | all
STRATEGY             = os.getenv("PT_STRATEGY", "backtrack")  # backtrack | cp_sat
DEDUPE               = int(os.getenv("PT_DEDUPE", "1")) != 0

# ======= Worker fan-out =======
PARALLEL             = int(os.getenv("PT_PARALLEL", "0")) != 0
WORKERS              = int(os.getenv("PT_WORKERS", "0"))      # 0 -> os.cpu_count()

# Restricting the first group to half of each translation axis is only sound
# when the whole puzzle has 180° rotational symmetry.  Nothing verifies that,
# so it stays off unless the caller opts in.
HALVE_TOP_LEVEL      = int(os.getenv("PT_HALVE_TOP_LEVEL", "0")) != 0

# ======= CP-SAT alternative =======
CP_SAT_SECONDS       = float(os.getenv("PT_CP_SAT_SECONDS", "30"))
MAX_MEMORY_MB        = int(os.getenv("PT_MAX_MEMORY_MB", "2048"))

# ======= Output names =======
SOLUTIONS_OUT = os.getenv("PT_SOLUTIONS_OUT", "solutions.txt")
LAYOUT_HTML   = os.getenv("PT_LAYOUT_HTML", "layout_view.html")
RENDER_LIMIT  = int(os.getenv("PT_RENDER_LIMIT", "12"))
LOG_DIR       = os.getenv("PT_LOG_DIR", "")


class CFG:
    UNIT_SIZE         = UNIT_SIZE
    ENFORCE_UNIT_SIZE = ENFORCE_UNIT_SIZE
    SOLID_SYMBOL      = SOLID_SYMBOL

    MODE     = MODE
    STRATEGY = STRATEGY
    DEDUPE   = DEDUPE

    PARALLEL        = PARALLEL
    WORKERS         = WORKERS
    HALVE_TOP_LEVEL = HALVE_TOP_LEVEL

    CP_SAT_SECONDS = CP_SAT_SECONDS
    MAX_MEMORY_MB  = MAX_MEMORY_MB

    SOLUTIONS_OUT = SOLUTIONS_OUT
    LAYOUT_HTML   = LAYOUT_HTML
    RENDER_LIMIT  = RENDER_LIMIT
    LOG_DIR       = LOG_DIR


def worker_count() -> int:
    n = int(getattr(CFG, "WORKERS", 0) or 0)
    if n > 0:
        return n
    return max(1, os.cpu_count() or 1)


__all__ = ["CFG", "worker_count"]
