"""Horizontal layout strategy contract and registry.

A strategy turns a ``BranchHierarchy`` into an x-coordinate and a side for
every reachable branch. Implementations must guarantee:

- branches on the same level are at least ``config.spacing_unit`` apart;
- the same tree (same creation order) always yields the same placements.

Strategies are plain classes that satisfy the protocol; they are looked up
by name, so picking one is a configuration choice.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Dict, List, Protocol, Tuple, runtime_checkable

from transitmap.errors import UnknownStrategyError
from transitmap.types import BranchId, Direction, StrategyName

if TYPE_CHECKING:
    from transitmap.config import LayoutConfig
    from transitmap.layout.hierarchy import BranchHierarchy


@dataclass(frozen=True)
class Placement:
    x: float
    direction: Direction


@runtime_checkable
class LayoutStrategy(Protocol):
    name: str

    def place(self, hierarchy: BranchHierarchy, config: LayoutConfig) -> Dict[BranchId, Placement]:
        """Compute horizontal placement for every reachable branch.

        Args:
            hierarchy: Tree built by ``build_hierarchy``.
            config: Spacing constants and origin.

        Returns:
            Mapping from branch id to its absolute x and side. The root is
            placed at ``config.origin_x`` with ``Direction.NONE``.
        """
        ...


def preferred_side(hierarchy: BranchHierarchy, branch_id: BranchId) -> Direction:
    """Stored preference if any, else even sibling index right, odd left."""
    preference = hierarchy.branches[branch_id].preferred_direction
    if preference is not None:
        return preference
    if hierarchy.sibling_index(branch_id) % 2 == 0:
        return Direction.RIGHT
    return Direction.LEFT


def split_children(hierarchy: BranchHierarchy, branch_id: BranchId) -> Tuple[List[BranchId], List[BranchId]]:
    """Partition children into (right, left) groups, each in sibling order."""
    right: List[BranchId] = []
    left: List[BranchId] = []
    for child_id in hierarchy.children[branch_id]:
        if preferred_side(hierarchy, child_id) is Direction.RIGHT:
            right.append(child_id)
        else:
            left.append(child_id)
    return right, left


def _factories() -> Dict[str, Callable[["LayoutConfig"], LayoutStrategy]]:
    from transitmap.layout.slots import SlotAllocatorStrategy
    from transitmap.layout.tree import TreeWalkStrategy

    return {
        StrategyName.TREE.value: TreeWalkStrategy.from_config,
        StrategyName.SLOT.value: SlotAllocatorStrategy.from_config,
    }


def available_strategies() -> List[str]:
    return sorted(_factories())


def get_strategy(config: LayoutConfig, name: str | None = None) -> LayoutStrategy:
    """Instantiate the strategy named by ``name`` or ``config.strategy``."""
    key = name or config.strategy.value
    factory = _factories().get(key)
    if factory is None:
        raise UnknownStrategyError(key, available_strategies())
    return factory(config)
