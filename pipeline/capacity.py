"""Active-worker estimation for capacity reporting."""

MIN_WORKERS = 4
MAX_WORKERS = 8
_LOAD_CAP = 4


def estimate_active_workers(active_workers: int, processing_campaigns: int) -> int:
    """
    Estimate the worker count to report for the current load.

    4 baseline workers plus one per unit of load (the larger of the two
    inputs, capped at 4), clamped to [4, 8]. Monotonic in both inputs and
    independent of any campaign state.
    """
    load = max(int(active_workers), int(processing_campaigns), 0)
    estimate = MIN_WORKERS + min(load, _LOAD_CAP)
    return max(MIN_WORKERS, min(MAX_WORKERS, estimate))
