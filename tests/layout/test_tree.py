from __future__ import annotations

from tests.helpers import chain, make_branch
from transitmap.config import LayoutConfig
from transitmap.layout.hierarchy import build_hierarchy
from transitmap.layout.strategy import LayoutStrategy
from transitmap.layout.tree import TreeWalkStrategy
from transitmap.types import Direction


def _place(branches, config=None):
    return TreeWalkStrategy().place(build_hierarchy(branches), config or LayoutConfig())


def test_is_a_layout_strategy():
    assert isinstance(TreeWalkStrategy(), LayoutStrategy)


def test_root_sits_at_origin():
    placements = _place([make_branch("R", minutes=0)], LayoutConfig(origin_x=250))
    assert placements["R"].x == 250
    assert placements["R"].direction is Direction.NONE


def test_siblings_alternate_right_then_left():
    placements = _place(
        [
            make_branch("R", minutes=0),
            make_branch("A", "R", depth=1, minutes=1),
            make_branch("B", "R", depth=1, minutes=2),
            make_branch("C", "R", depth=1, minutes=3),
        ]
    )
    assert (placements["A"].x, placements["A"].direction) == (940, Direction.RIGHT)
    assert (placements["B"].x, placements["B"].direction) == (260, Direction.LEFT)
    assert (placements["C"].x, placements["C"].direction) == (1280, Direction.RIGHT)


def test_stored_direction_preference_wins():
    placements = _place(
        [
            make_branch("R", minutes=0),
            make_branch("A", "R", depth=1, minutes=1, direction="left"),
            make_branch("B", "R", depth=1, minutes=2, direction="LEFT"),
        ]
    )
    assert placements["A"].x == 260
    assert placements["B"].x == -80
    assert placements["B"].direction is Direction.LEFT


def test_left_subtree_clears_right_subtree_reaching_back():
    placements = _place(
        [
            make_branch("R", minutes=0),
            make_branch("A", "R", depth=1, minutes=1),
            make_branch("B", "R", depth=1, minutes=2),
            make_branch("A1", "A", depth=2, minutes=3),
            make_branch("A2", "A", depth=2, minutes=4),
            make_branch("B1", "B", depth=2, minutes=5),
        ]
    )
    assert placements["A"].x == 940
    assert placements["A1"].x == 1280
    assert placements["A2"].x == 600
    # B is pushed out far enough for B1 to clear A2.
    assert placements["B"].x == -80
    assert placements["B1"].x == 260
    assert placements["B1"].direction is Direction.RIGHT


def test_spacing_unit_drives_offsets():
    config = LayoutConfig(node_width=10, horizontal_spacing=20, origin_x=0)
    placements = _place([make_branch("R", minutes=0), make_branch("A", "R", depth=1, minutes=1)], config)
    assert placements["A"].x == 30


def test_deep_chain_zigzags_right():
    placements = _place(chain(1500))
    assert placements["c1499"].x == 600 + 1499 * 340
    assert all(placement.direction is Direction.RIGHT for key, placement in placements.items() if key != "c0")


def test_direction_preference_inside_layout_dict():
    requested = make_branch("A", "R", depth=1, minutes=1).model_copy(
        update={"metadata": {"layout": {"direction": "left"}}}
    )
    placements = _place([make_branch("R", minutes=0), requested])
    assert placements["A"].x == 260
    assert placements["A"].direction is Direction.LEFT
