"""Slot allocator: one integer column per branch, root in column 0."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict

from transitmap.config import LayoutConfig
from transitmap.layout.hierarchy import BranchHierarchy
from transitmap.layout.strategy import Placement, preferred_side
from transitmap.log import get_logger
from transitmap.types import BranchId, Direction, SlotConflictMode, StrategyName

logger = get_logger(__name__)


@dataclass
class SlotTable:
    """Slot occupancy for one allocation run."""

    slots: Dict[BranchId, int] = field(default_factory=dict)
    owners: Dict[int, BranchId] = field(default_factory=dict)
    shifts: int = 0

    def is_free(self, slot: int) -> bool:
        return slot not in self.owners

    def take(self, branch_id: BranchId, slot: int) -> None:
        if slot in self.owners:
            raise ValueError(f"slot {slot} already held by {self.owners[slot]}")
        self.slots[branch_id] = slot
        self.owners[slot] = branch_id

    def shift_outward(self, slot: int, step: int) -> None:
        """Move every branch at or beyond ``slot`` one column further in ``step``'s direction.

        Relative order is preserved, so no branch changes side relative to
        its parent.
        """
        for branch_id, current in self.slots.items():
            if (step > 0 and current >= slot) or (step < 0 and current <= slot):
                self.slots[branch_id] = current + step
        self.owners = {current: branch_id for branch_id, current in self.slots.items()}
        self.shifts += 1

    def recenter(self, branch_id: BranchId) -> None:
        delta = self.slots[branch_id]
        if not delta:
            return
        self.slots = {owner: current - delta for owner, current in self.slots.items()}
        self.owners = {current: owner for owner, current in self.slots.items()}


@dataclass
class SlotAllocatorStrategy:
    """Give every branch its own column, as close to its parent as possible.

    Children request the column next to their parent on their preferred
    side. On conflict, ``SEARCH`` walks outward from the parent one column
    at a time, trying the preferred side before the opposite side at each
    distance; ``SHIFT`` pushes the occupants outward and takes the
    requested column.
    """

    conflict_mode: SlotConflictMode = SlotConflictMode.SEARCH
    name: str = StrategyName.SLOT.value

    @classmethod
    def from_config(cls, config: LayoutConfig) -> SlotAllocatorStrategy:
        return cls(conflict_mode=config.slot_conflict)

    def _search(self, table: SlotTable, parent_slot: int, side: Direction) -> int:
        distance = 1
        while True:
            for candidate in (side, side.opposite):
                slot = parent_slot + distance * candidate.sign
                if table.is_free(slot):
                    return slot
            distance += 1

    def allocate(self, hierarchy: BranchHierarchy) -> SlotTable:
        table = SlotTable()
        table.take(hierarchy.root_id, 0)
        for branch_id in hierarchy.walk():
            parent_id = hierarchy.parent_of(branch_id)
            if parent_id is None:
                continue
            side = preferred_side(hierarchy, branch_id)
            parent_slot = table.slots[parent_id]
            requested = parent_slot + side.sign
            if table.is_free(requested):
                slot = requested
            elif self.conflict_mode is SlotConflictMode.SHIFT:
                table.shift_outward(requested, side.sign)
                slot = requested
            else:
                slot = self._search(table, parent_slot, side)
            table.take(branch_id, slot)
        table.recenter(hierarchy.root_id)
        return table

    def place(self, hierarchy: BranchHierarchy, config: LayoutConfig) -> Dict[BranchId, Placement]:
        table = self.allocate(hierarchy)
        unit = config.spacing_unit
        placements: Dict[BranchId, Placement] = {}
        for branch_id, slot in table.slots.items():
            parent_id = hierarchy.parent_of(branch_id)
            if parent_id is None:
                direction = Direction.NONE
            elif slot < table.slots[parent_id]:
                direction = Direction.LEFT
            else:
                direction = Direction.RIGHT
            placements[branch_id] = Placement(x=config.origin_x + slot * unit, direction=direction)
        logger.debug(
            "slot allocator placed branches",
            branches=len(placements),
            mode=self.conflict_mode.value,
            shifts=table.shifts,
            min_slot=min(table.owners),
            max_slot=max(table.owners),
        )
        return placements
