"""Branch layout: hierarchy, fork anchors and horizontal strategies."""

from transitmap.layout.branch_points import BranchPointLocation, MessageIndex, locate_branch_point
from transitmap.layout.hierarchy import BranchHierarchy, build_hierarchy
from transitmap.layout.slots import SlotAllocatorStrategy
from transitmap.layout.strategy import LayoutStrategy, Placement, available_strategies, get_strategy
from transitmap.layout.tree import TreeWalkStrategy
from transitmap.layout.vertical import vertical_positions

__all__ = [
    "BranchHierarchy",
    "BranchPointLocation",
    "LayoutStrategy",
    "MessageIndex",
    "Placement",
    "SlotAllocatorStrategy",
    "TreeWalkStrategy",
    "available_strategies",
    "build_hierarchy",
    "get_strategy",
    "locate_branch_point",
    "vertical_positions",
]
