"""Builders for branch/message fixtures."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

from transitmap.models import Branch, Message
from transitmap.types import NodeType

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


def at(minutes: int) -> datetime:
    return BASE_TIME + timedelta(minutes=minutes)


def make_branch(
    branch_id: str,
    parent: Optional[str] = None,
    *,
    depth: int = 0,
    point: Optional[str] = None,
    minutes: Optional[int] = None,
    direction: Optional[str] = None,
    color: Optional[str] = None,
    name: Optional[str] = None,
) -> Branch:
    return Branch(
        id=branch_id,
        parent_branch_id=parent,
        branch_point_node_id=point,
        depth=depth,
        color=color,
        name=name,
        created_at=at(minutes) if minutes is not None else None,
        metadata={"direction": direction} if direction else None,
    )


def make_messages(branch_id: str, count: int, *, start: int = 0) -> list[Message]:
    """``count`` alternating user/assistant messages with ids ``<branch>-m<position>``."""
    messages = []
    for position in range(start, start + count):
        user = position % 2 == 0
        messages.append(
            Message(
                id=f"{branch_id}-m{position}",
                branch_id=branch_id,
                position=position,
                type=NodeType.USER_MESSAGE if user else NodeType.ASSISTANT_MESSAGE,
                role="user" if user else "assistant",
                text=f"message {position}",
            )
        )
    return messages


def chain(length: int) -> list[Branch]:
    """A single line of branches, each the only child of the previous one."""
    branches = [make_branch("c0", minutes=0)]
    for i in range(1, length):
        branches.append(make_branch(f"c{i}", f"c{i - 1}", depth=i, minutes=i))
    return branches
