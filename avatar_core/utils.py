# ==============================
# File: avatar_core/utils.py
# ==============================
import logging

from .config import CFG


def setup_logging(level: str | None = None):
    logging.basicConfig(
        level=getattr(logging, (level or CFG.log_level).upper(), logging.INFO),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )


def clamp(x: float, lo: float = 0.0, hi: float = 1.0) -> float:
    return max(lo, min(hi, x))
