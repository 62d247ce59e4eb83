"""Properties every horizontal layout strategy must satisfy.

The same suite runs against the tree walk and both slot allocator modes:
1. Determinism - the same snapshot always yields the same layout
2. Order independence - shuffling input records changes nothing
3. No overlap - branches on one level are at least one spacing unit apart
4. Sides - a branch's direction matches where it sits relative to its parent
"""

from __future__ import annotations

from collections import defaultdict

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from tests.strategies import branch_trees
from transitmap.config import LayoutConfig
from transitmap.engine import LayoutEngine
from transitmap.errors import UnknownStrategyError
from transitmap.layout.strategy import available_strategies, get_strategy
from transitmap.types import Direction

STRATEGY_SETTINGS = {
    "tree": {"strategy": "tree"},
    "slot-search": {"strategy": "slot", "slot_conflict": "search"},
    "slot-shift": {"strategy": "slot", "slot_conflict": "shift"},
}

pytestmark = pytest.mark.parametrize("variant", sorted(STRATEGY_SETTINGS))


def _engine(variant: str) -> LayoutEngine:
    return LayoutEngine(LayoutConfig(**STRATEGY_SETTINGS[variant]))


# =============================================================================
# Generated trees
# =============================================================================


@given(branch_trees())
@settings(deadline=None)
def test_layout_is_deterministic(variant, tree):
    branches, messages = tree
    first = _engine(variant).compute_layout(branches, messages)
    second = _engine(variant).compute_layout(branches, messages)
    assert first == second


@given(st.data())
@settings(deadline=None)
def test_input_order_does_not_matter(variant, data):
    branches, messages = data.draw(branch_trees())
    shuffled_branches = data.draw(st.permutations(branches))
    shuffled_messages = data.draw(st.permutations(messages))

    engine = _engine(variant)
    expected = engine.compute_layout(branches, messages)
    actual = engine.compute_layout(shuffled_branches, shuffled_messages)
    assert actual.layouts == expected.layouts


@given(branch_trees(max_branches=30))
@settings(deadline=None)
def test_same_level_branches_never_overlap(variant, tree):
    branches, messages = tree
    engine = _engine(variant)
    result = engine.compute_layout(branches, messages)
    unit = engine.config.spacing_unit

    by_level: dict[int, list[float]] = defaultdict(list)
    for layout in result.layouts.values():
        by_level[layout.level].append(layout.x)
    for xs in by_level.values():
        xs.sort()
        for left, right in zip(xs, xs[1:]):
            assert right - left >= unit - 1e-6


@given(branch_trees())
@settings(deadline=None)
def test_direction_matches_side_of_parent(variant, tree):
    branches, messages = tree
    result = _engine(variant).compute_layout(branches, messages)
    parents = {branch.id: branch.parent_branch_id for branch in branches}
    for branch_id, layout in result.layouts.items():
        parent_id = parents[branch_id]
        if parent_id is None:
            assert layout.direction is Direction.NONE
            assert layout.x == 600
        elif layout.direction is Direction.RIGHT:
            assert layout.x > result.layouts[parent_id].x
        else:
            assert layout.direction is Direction.LEFT
            assert layout.x < result.layouts[parent_id].x


@given(branch_trees())
@settings(deadline=None)
def test_every_reachable_branch_is_laid_out(variant, tree):
    branches, messages = tree
    result = _engine(variant).compute_layout(branches, messages)
    assert set(result.layouts) == {branch.id for branch in branches}
    assert result.width >= 1200
    assert result.height > max(layout.y for layout in result.layouts.values())


# =============================================================================
# Fork scenarios
# =============================================================================


def test_children_forked_at_different_rows(variant, scenario_branches, scenario_messages):
    result = _engine(variant).compute_layout(scenario_branches[:3], scenario_messages)
    a, b = result.layouts["A"], result.layouts["B"]
    assert a.y == 2 * 150
    assert b.y == 5 * 150
    assert a.y < b.y
    assert a.direction is not b.direction


def test_children_forked_at_the_same_row(variant, scenario_branches, scenario_messages):
    result = _engine(variant).compute_layout(scenario_branches, scenario_messages)
    a, c = result.layouts["A"], result.layouts["C"]
    assert a.y == c.y
    assert a.x != c.x
    assert abs(a.x - c.x) >= 340


def test_recompute_is_identical(variant, scenario_branches, scenario_messages):
    engine = _engine(variant)
    assert engine.build_records(scenario_branches, scenario_messages) == engine.build_records(
        scenario_branches, scenario_messages
    )


def test_strategy_lookup(variant):
    config = LayoutConfig(**STRATEGY_SETTINGS[variant])
    strategy = get_strategy(config)
    assert strategy.name == config.strategy.value
    assert strategy.name in available_strategies()
    with pytest.raises(UnknownStrategyError) as excinfo:
        get_strategy(config, "spiral")
    assert excinfo.value.known == ["slot", "tree"]
