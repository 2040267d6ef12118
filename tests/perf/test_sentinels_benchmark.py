"""Performance sentinels (gated)."""

from __future__ import annotations

import os

import pytest

from bulkplan.kernel.hierarchy import validate_and_sort
from bulkplan.kernel.models import ImportItem


def _budget_from_env(var_name: str, default_ms: float) -> float:
    raw = os.getenv(var_name)
    if not raw:
        return default_ms
    try:
        return float(raw)
    except ValueError:
        return default_ms


MAX_LINEAR_CHAIN_MS = _budget_from_env("BULKPLAN_MAX_LINEAR_CHAIN_MS", 1000.0)
MAX_WIDE_FANOUT_MS = _budget_from_env("BULKPLAN_MAX_WIDE_FANOUT_MS", 1000.0)


def _assert_budget(benchmark, max_ms: float) -> None:
    mean_ms = benchmark.stats.stats.mean * 1000.0
    assert mean_ms < max_ms, f"Mean {mean_ms:.2f} ms exceeded budget {max_ms:.2f} ms"


def _linear_chain(size: int):
    items = [
        ImportItem(name=f"n{i}", legacy_id=str(i), legacy_parent_id=str(i - 1) if i else None)
        for i in range(size)
    ]
    return list(reversed(items))


def _wide_fanout(size: int):
    items = [ImportItem(name="root", legacy_id="root")]
    items.extend(
        ImportItem(name=f"leaf{i}", legacy_id=f"leaf{i}", legacy_parent_id="root", dependencies=["root"])
        for i in range(size)
    )
    return items


@pytest.mark.perf
def test_linear_chain_sentinel(benchmark):
    items = _linear_chain(5000)
    ordered = benchmark.pedantic(lambda: validate_and_sort(items), rounds=3, iterations=1)
    assert ordered[0].name == "n0"
    assert ordered[-1].name == "n4999"
    _assert_budget(benchmark, MAX_LINEAR_CHAIN_MS)


@pytest.mark.perf
def test_wide_fanout_sentinel(benchmark):
    items = _wide_fanout(5000)
    ordered = benchmark.pedantic(lambda: validate_and_sort(items), rounds=3, iterations=1)
    assert ordered[0].name == "root"
    assert len(ordered) == 5001
    _assert_budget(benchmark, MAX_WIDE_FANOUT_MS)
