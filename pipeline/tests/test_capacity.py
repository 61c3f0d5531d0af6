"""
Tests for active-worker estimation.

Run with:
    pytest pipeline/tests/test_capacity.py -v
"""

import itertools

import pytest

from pipeline.capacity import MAX_WORKERS, MIN_WORKERS, estimate_active_workers


@pytest.mark.unit
@pytest.mark.parametrize("active, processing, expected", [
    (0, 0, 4),
    (1, 0, 5),
    (0, 3, 7),
    (2, 3, 7),
    (4, 0, 8),
    (50, 100, 8),
    (-5, -1, 4),
])
def test_estimate_active_workers(active, processing, expected):
    assert estimate_active_workers(active, processing) == expected


@pytest.mark.unit
def test_estimate_is_bounded_and_monotonic():
    loads = range(0, 12)
    for active, processing in itertools.product(loads, loads):
        estimate = estimate_active_workers(active, processing)
        assert MIN_WORKERS <= estimate <= MAX_WORKERS
        assert estimate_active_workers(active + 1, processing) >= estimate
        assert estimate_active_workers(active, processing + 1) >= estimate
