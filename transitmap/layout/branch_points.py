"""Locate where a branch forked off its parent.

The vertical anchor of a child branch is the ordinal of its fork message in
the parent branch, counting only conversational messages (user/assistant)
in ``position`` order. Structural nodes (roots, branch points) do not take
up a row.
"""

from __future__ import annotations

from bisect import bisect_left
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from transitmap.models import Branch, Message
from transitmap.types import BranchId, MessageId


@dataclass(frozen=True)
class BranchPointLocation:
    branch_id: BranchId
    node_id: Optional[MessageId]
    ordinal: Optional[int] = None
    reason: Optional[str] = None

    @property
    def found(self) -> bool:
        return self.ordinal is not None


@dataclass
class MessageIndex:
    """Messages keyed by id, plus sorted conversational positions per branch."""

    by_id: Dict[MessageId, Message] = field(default_factory=dict)
    conversational_positions: Dict[BranchId, List[int]] = field(default_factory=dict)
    counts: Dict[BranchId, int] = field(default_factory=dict)

    @classmethod
    def from_messages(cls, messages: Iterable[Message]) -> MessageIndex:
        index = cls()
        for message in messages:
            index.by_id.setdefault(message.id, message)
            index.counts[message.branch_id] = index.counts.get(message.branch_id, 0) + 1
            if message.is_conversational:
                index.conversational_positions.setdefault(message.branch_id, []).append(message.position)
        for positions in index.conversational_positions.values():
            positions.sort()
        return index

    def message_count(self, branch_id: BranchId) -> int:
        return self.counts.get(branch_id, 0)

    def ordinal_of(self, message: Message) -> int:
        positions = self.conversational_positions.get(message.branch_id, [])
        return bisect_left(positions, message.position)


def locate_branch_point(branch: Branch, index: MessageIndex) -> BranchPointLocation:
    """Return the fork ordinal for ``branch``, or a not-found result with a reason."""
    node_id = branch.branch_point_node_id
    if branch.parent_branch_id is None:
        return BranchPointLocation(branch.id, node_id, reason="branch has no parent")
    if node_id is None:
        return BranchPointLocation(branch.id, None, reason="branch has no branch point")
    message = index.by_id.get(node_id)
    if message is None:
        return BranchPointLocation(branch.id, node_id, reason=f"message {node_id} does not exist")
    if message.branch_id != branch.parent_branch_id:
        return BranchPointLocation(
            branch.id,
            node_id,
            reason=f"message {node_id} belongs to branch {message.branch_id}, not parent {branch.parent_branch_id}",
        )
    return BranchPointLocation(branch.id, node_id, ordinal=index.ordinal_of(message))
