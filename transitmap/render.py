"""Plain-text dump of the branch/message structure for debugging.

Shows what is stored, independent of any layout calculation: each branch
with its messages in order, and child branches nested under the message
they forked from.
"""

from __future__ import annotations

import re
from io import StringIO
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from rich.console import Console
from rich.text import Text
from rich.tree import Tree

from transitmap.errors import MissingRootError
from transitmap.layout.hierarchy import BranchHierarchy, build_hierarchy
from transitmap.models import Branch, BranchLayout, Message
from transitmap.types import BranchId, MessageId

NO_ROOT_TEXT = "No root branch found"
_HEX_COLOR = re.compile(r"^#[0-9a-fA-F]{6}$")
_SNIPPET_LIMIT = 30


def _snippet(text: Optional[str]) -> str:
    if not text:
        return "(No content)"
    clean = " ".join(text.split())
    if len(clean) <= _SNIPPET_LIMIT:
        return f'"{clean}"'
    return f'"{clean[:_SNIPPET_LIMIT].rstrip()}..."'


def _branch_label(branch: Branch, layout: Optional[BranchLayout]) -> Text:
    label = Text()
    label.append("[Branch: ")
    style = branch.color if branch.color and _HEX_COLOR.match(branch.color) else "bold"
    label.append(branch.name or "Unnamed", style=style)
    label.append(f" ({branch.id[:8]}), depth: {branch.depth}")
    if layout is not None:
        label.append(f", direction: {layout.direction.value}] @ ({layout.x:g}, {layout.y:g})")
    else:
        label.append("]")
    return label


def _message_label(message: Message) -> Text:
    role = f"[{message.role}] " if message.role else ""
    return Text(f"{message.position}: {role}{message.type.value} {_snippet(message.text)}")


def _attach_branches(
    parent: Tree,
    root_id: BranchId,
    hierarchy: BranchHierarchy,
    messages_by_branch: Mapping[BranchId, List[Message]],
    layouts: Mapping[BranchId, BranchLayout],
) -> None:
    """Add ``root_id`` and everything below it under ``parent``.

    Forks nest under the message they start from, in creation order; children
    whose fork message is not in the parent's list follow the messages. Uses
    an explicit stack so chain depth is not limited by the recursion limit.
    """
    stack: List[Tuple[Tree, BranchId]] = [(parent, root_id)]
    while stack:
        owner, branch_id = stack.pop()
        branch = hierarchy.branches[branch_id]
        node = owner.add(_branch_label(branch, layouts.get(branch_id)))
        messages = messages_by_branch.get(branch_id, [])

        forks: Dict[MessageId, List[BranchId]] = {}
        unanchored: List[BranchId] = []
        message_ids = {message.id for message in messages}
        for child_id in hierarchy.children[branch_id]:
            point = hierarchy.branches[child_id].branch_point_node_id
            if point is not None and point in message_ids:
                forks.setdefault(point, []).append(child_id)
            else:
                unanchored.append(child_id)

        pending: List[Tuple[Tree, BranchId]] = []
        for message in messages:
            message_node = node.add(_message_label(message))
            pending.extend((message_node, child_id) for child_id in forks.get(message.id, []))
        pending.extend((node, child_id) for child_id in unanchored)
        stack.extend(reversed(pending))


def build_debug_tree(
    branches: Iterable[Branch],
    messages: Iterable[Message],
    layouts: Optional[Mapping[BranchId, BranchLayout]] = None,
) -> Tree:
    """Build a rich Tree of the project.

    Raises:
        MissingRootError: If no branch has depth 0
    """
    hierarchy = build_hierarchy(list(branches))
    messages_by_branch: Dict[BranchId, List[Message]] = {}
    for message in messages:
        messages_by_branch.setdefault(message.branch_id, []).append(message)
    for branch_messages in messages_by_branch.values():
        branch_messages.sort(key=lambda message: message.position)

    tree = Tree(Text(f"Project ({len(hierarchy)} branches)"), guide_style="dim")
    _attach_branches(tree, hierarchy.root_id, hierarchy, messages_by_branch, layouts or {})
    for branch_id in hierarchy.unreachable:
        tree.add(Text(f"(unreachable) {branch_id}", style="red"))
    return tree


def format_debug_tree(
    branches: Iterable[Branch],
    messages: Iterable[Message],
    layouts: Optional[Mapping[BranchId, BranchLayout]] = None,
    *,
    width: int = 120,
) -> str:
    """Render the debug tree to plain text (no color codes)."""
    try:
        tree = build_debug_tree(branches, messages, layouts)
    except MissingRootError:
        return NO_ROOT_TEXT
    buffer = StringIO()
    console = Console(file=buffer, width=width, color_system=None, force_terminal=False)
    console.print(tree)
    return buffer.getvalue()
