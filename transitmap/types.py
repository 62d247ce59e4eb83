"""Type aliases and enums for transitmap."""
from __future__ import annotations

from enum import Enum
from typing import NewType

# Semantic ID types - provides compile-time distinction
BranchId = NewType("BranchId", str)
MessageId = NewType("MessageId", str)
ProjectId = NewType("ProjectId", str)


class Direction(str, Enum):
    """Side of its parent a branch is drawn on."""

    LEFT = "left"
    RIGHT = "right"
    NONE = "none"

    @classmethod
    def from_preference(cls, value: object) -> Direction | None:
        """Parse a stored direction preference; anything but left/right means no preference."""
        if not isinstance(value, str):
            return None
        normalized = value.lower().strip()
        if normalized == cls.LEFT.value:
            return cls.LEFT
        if normalized == cls.RIGHT.value:
            return cls.RIGHT
        return None

    @property
    def sign(self) -> int:
        if self is Direction.LEFT:
            return -1
        if self is Direction.RIGHT:
            return 1
        return 0

    @property
    def opposite(self) -> Direction:
        if self is Direction.LEFT:
            return Direction.RIGHT
        if self is Direction.RIGHT:
            return Direction.LEFT
        return Direction.NONE

    def __str__(self) -> str:
        return self.value


class NodeType(str, Enum):
    """Timeline node kinds stored inside a branch."""

    ROOT = "root"
    BRANCH_ROOT = "branch-root"
    BRANCH_POINT = "branch-point"
    USER_MESSAGE = "user-message"
    ASSISTANT_MESSAGE = "assistant-message"

    @property
    def is_conversational(self) -> bool:
        return self in (NodeType.USER_MESSAGE, NodeType.ASSISTANT_MESSAGE)

    def __str__(self) -> str:
        return self.value


class StrategyName(str, Enum):
    """Registered horizontal layout strategies."""

    TREE = "tree"
    SLOT = "slot"

    def __str__(self) -> str:
        return self.value


class SlotConflictMode(str, Enum):
    """How the slot allocator resolves an occupied slot."""

    SEARCH = "search"
    SHIFT = "shift"

    def __str__(self) -> str:
        return self.value
