"""Two-pass tree walk: contour packing bottom-up, absolute x top-down."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from transitmap.config import LayoutConfig
from transitmap.layout.hierarchy import BranchHierarchy
from transitmap.layout.strategy import Placement, split_children
from transitmap.log import get_logger
from transitmap.types import BranchId, Direction, StrategyName

logger = get_logger(__name__)

# (min_x, max_x) relative to the subtree root, one entry per level below it.
Contour = List[Tuple[float, float]]


@dataclass
class TreeWalkContext:
    """State threaded through both passes of one layout run."""

    unit: float
    offsets: Dict[BranchId, float] = field(default_factory=dict)
    sides: Dict[BranchId, Direction] = field(default_factory=dict)
    contours: Dict[BranchId, Contour] = field(default_factory=dict)


def _required_offset(occupied: Contour, child: Contour, unit: float, side: Direction) -> float:
    """Smallest outward offset that keeps ``child`` one unit clear of ``occupied``."""
    if side is Direction.RIGHT:
        offset = unit
        for depth, (low, _high) in enumerate(child, start=1):
            if depth < len(occupied):
                offset = max(offset, occupied[depth][1] - low + unit)
        return offset
    offset = -unit
    for depth, (_low, high) in enumerate(child, start=1):
        if depth < len(occupied):
            offset = min(offset, occupied[depth][0] - high - unit)
    return offset


def _merge(occupied: Contour, child: Contour, offset: float) -> None:
    for depth, (low, high) in enumerate(child, start=1):
        shifted = (low + offset, high + offset)
        if depth < len(occupied):
            current = occupied[depth]
            occupied[depth] = (min(current[0], shifted[0]), max(current[1], shifted[1]))
        else:
            occupied.append(shifted)


@dataclass
class TreeWalkStrategy:
    """Place each child group outward from its parent without overlapping cousins.

    Right-side children are packed first, nearest sibling closest to the
    parent; left-side children are packed afterwards so they also clear any
    right-side subtree that reaches back across the parent.
    """

    name: str = StrategyName.TREE.value

    @classmethod
    def from_config(cls, config: LayoutConfig) -> TreeWalkStrategy:
        return cls()

    def first_pass(self, hierarchy: BranchHierarchy, ctx: TreeWalkContext) -> None:
        # Reverse breadth-first order visits every child before its parent.
        for branch_id in reversed(list(hierarchy.walk())):
            occupied: Contour = [(0.0, 0.0)]
            right, left = split_children(hierarchy, branch_id)
            for side, group in ((Direction.RIGHT, right), (Direction.LEFT, left)):
                for child_id in group:
                    child_contour = ctx.contours.pop(child_id)
                    offset = _required_offset(occupied, child_contour, ctx.unit, side)
                    _merge(occupied, child_contour, offset)
                    ctx.offsets[child_id] = offset
                    ctx.sides[child_id] = side
            ctx.contours[branch_id] = occupied

    def second_pass(self, hierarchy: BranchHierarchy, ctx: TreeWalkContext, origin_x: float) -> Dict[BranchId, float]:
        relative: Dict[BranchId, float] = {hierarchy.root_id: 0.0}
        for branch_id in hierarchy.walk():
            for child_id in hierarchy.children[branch_id]:
                relative[child_id] = relative[branch_id] + ctx.offsets[child_id]
        shift = origin_x - relative[hierarchy.root_id]
        return {branch_id: x + shift for branch_id, x in relative.items()}

    def place(self, hierarchy: BranchHierarchy, config: LayoutConfig) -> Dict[BranchId, Placement]:
        ctx = TreeWalkContext(unit=config.spacing_unit)
        self.first_pass(hierarchy, ctx)
        absolute = self.second_pass(hierarchy, ctx, config.origin_x)
        span = ctx.contours[hierarchy.root_id]
        logger.debug(
            "tree walk placed branches",
            branches=len(absolute),
            levels=len(span),
            widest=max(high - low for low, high in span),
        )
        return {
            branch_id: Placement(x=x, direction=ctx.sides.get(branch_id, Direction.NONE))
            for branch_id, x in absolute.items()
        }
