"""
Soft-failure tracking.

Best-effort steps (embeddings, retrieval) never fail their parent
operation. They are recorded here instead: a structured warning in the
log plus an in-process counter per stage, reported by /api/health.
"""
import logging
import threading
from collections import Counter
from datetime import datetime, timezone

logger = logging.getLogger(__name__)

_lock = threading.Lock()
_counts = Counter()
_last_errors = {}


def record_soft_failure(stage, error, **context):
    """Log a best-effort failure for `stage` and bump its counter."""
    with _lock:
        _counts[stage] += 1
        _last_errors[stage] = {
            "error": str(error),
            "at": datetime.now(timezone.utc).isoformat(),
        }
    logger.warning(
        "Soft failure in %s (continuing): %s", stage, error,
        extra={"event": "soft_failure", "stage": stage, "context": context},
    )


def soft_failure_counts():
    with _lock:
        return dict(_counts)


def soft_failure_summary():
    """Counts plus the most recent error per stage."""
    with _lock:
        return {
            stage: {"count": count, "last": _last_errors.get(stage)}
            for stage, count in _counts.items()
        }


def reset_soft_failures():
    with _lock:
        _counts.clear()
        _last_errors.clear()
