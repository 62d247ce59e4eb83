"""Parent-to-children index over a flat branch list."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from transitmap.errors import MissingRootError
from transitmap.models import Branch, Diagnostic, DiagnosticKind
from transitmap.types import BranchId

CreationKey = Tuple[int, object, int]


def creation_key(branch: Branch, index: int) -> CreationKey:
    """Sort key for branch creation order: timestamp when known, then input order."""
    if branch.created_at is not None:
        return (0, branch.created_at, index)
    return (1, 0, index)


@dataclass
class BranchHierarchy:
    root_id: BranchId
    branches: Dict[BranchId, Branch]
    children: Dict[BranchId, List[BranchId]]
    creation_order: List[BranchId]
    levels: Dict[BranchId, int] = field(default_factory=dict)
    sibling_indexes: Dict[BranchId, int] = field(default_factory=dict)
    unreachable: List[BranchId] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @property
    def root(self) -> Branch:
        return self.branches[self.root_id]

    def walk(self) -> Iterator[BranchId]:
        """Breadth-first over reachable branches, siblings in creation order."""
        queue = deque([self.root_id])
        while queue:
            branch_id = queue.popleft()
            yield branch_id
            queue.extend(self.children[branch_id])

    def parent_of(self, branch_id: BranchId) -> Optional[BranchId]:
        if branch_id == self.root_id:
            return None
        return self.branches[branch_id].parent_branch_id

    def level(self, branch_id: BranchId) -> int:
        return self.levels[branch_id]

    def sibling_index(self, branch_id: BranchId) -> int:
        return self.sibling_indexes.get(branch_id, 0)

    def is_reachable(self, branch_id: BranchId) -> bool:
        return branch_id in self.levels

    def __len__(self) -> int:
        return len(self.levels)


def _pick_root(ordered: List[Branch]) -> Branch:
    candidates = [branch for branch in ordered if branch.depth == 0]
    if not candidates:
        raise MissingRootError(len(ordered))
    for branch in candidates:
        if branch.parent_branch_id is None:
            return branch
    return candidates[0]


def build_hierarchy(branches: Iterable[Branch]) -> BranchHierarchy:
    """Index branches by parent and locate the root.

    Raises MissingRootError when no branch has depth 0. Everything else that
    is wrong with the input (duplicates, orphans, cycles, depth drift) is
    reported as diagnostics on the returned hierarchy.
    """
    diagnostics: List[Diagnostic] = []
    by_id: Dict[BranchId, Branch] = {}
    keyed: List[Tuple[CreationKey, Branch]] = []
    for index, branch in enumerate(branches):
        if branch.id in by_id:
            diagnostics.append(
                Diagnostic(
                    kind=DiagnosticKind.DUPLICATE_BRANCH,
                    branch_id=branch.id,
                    message=f"Duplicate branch id {branch.id}; keeping the first record",
                )
            )
            continue
        by_id[branch.id] = branch
        keyed.append((creation_key(branch, index), branch))

    keyed.sort(key=lambda item: item[0])
    ordered = [branch for _, branch in keyed]
    root = _pick_root(ordered)

    children: Dict[BranchId, List[BranchId]] = {branch.id: [] for branch in ordered}
    for branch in ordered:
        parent_id = branch.parent_branch_id
        if branch.id == root.id or parent_id is None or parent_id == branch.id:
            continue
        if parent_id in children:
            children[parent_id].append(branch.id)

    hierarchy = BranchHierarchy(
        root_id=root.id,
        branches=by_id,
        children=children,
        creation_order=[branch.id for branch in ordered],
        diagnostics=diagnostics,
    )

    # Levels come from the traversal itself; a cycle that does not pass
    # through the root is never entered.
    hierarchy.levels[root.id] = 0
    hierarchy.sibling_indexes[root.id] = 0
    for branch_id in hierarchy.walk():
        level = hierarchy.levels[branch_id]
        for index, child_id in enumerate(children[branch_id]):
            hierarchy.levels[child_id] = level + 1
            hierarchy.sibling_indexes[child_id] = index

    for branch in ordered:
        if branch.id not in hierarchy.levels:
            hierarchy.unreachable.append(branch.id)
            diagnostics.append(
                Diagnostic(
                    kind=DiagnosticKind.UNREACHABLE_BRANCH,
                    branch_id=branch.id,
                    message=(
                        f"Branch {branch.id} is not reachable from root {root.id} "
                        f"(parent {branch.parent_branch_id}); skipping layout"
                    ),
                )
            )
        elif hierarchy.levels[branch.id] != branch.depth:
            diagnostics.append(
                Diagnostic(
                    kind=DiagnosticKind.DEPTH_MISMATCH,
                    branch_id=branch.id,
                    message=(
                        f"Branch {branch.id} stores depth {branch.depth} "
                        f"but sits {hierarchy.levels[branch.id]} level(s) below the root"
                    ),
                )
            )
    return hierarchy
