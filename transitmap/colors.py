"""Branch color allocation.

Colors are picked from a fixed palette whose first entry belongs to the
root branch. A child avoids its parent's color and its siblings' colors
while the palette allows it, and among the remaining candidates the choice
is a stable hash of the branch id, so the same data always yields the same
colors. A branch that already has a color keeps it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Set

from transitmap.config import DEFAULT_FALLBACK_COLOR, DEFAULT_PALETTE, LayoutConfig
from transitmap.errors import MissingRootError
from transitmap.layout.hierarchy import BranchHierarchy, build_hierarchy, creation_key
from transitmap.log import get_logger
from transitmap.models import Branch, ColorAssignment, Diagnostic, DiagnosticKind
from transitmap.types import BranchId

logger = get_logger(__name__)

_HASH_MASK = 0xFFFFFFFF


def stable_hash(value: str) -> int:
    """32-bit unsigned polynomial string hash (h * 31 + code point).

    Unlike ``hash()`` this does not change between interpreter runs.
    """
    h = 0
    for char in value:
        h = (h * 31 + ord(char)) & _HASH_MASK
    return h


@dataclass
class _ColorState:
    colors: Dict[BranchId, str] = field(default_factory=dict)
    children_colors: Dict[BranchId, Set[str]] = field(default_factory=dict)
    diagnostics: List[Diagnostic] = field(default_factory=list)

    def record(self, branch: Branch, color: str) -> None:
        self.colors[branch.id] = color
        if branch.parent_branch_id is not None:
            self.children_colors.setdefault(branch.parent_branch_id, set()).add(color.lower())


class ColorAllocator:
    def __init__(
        self,
        palette: Sequence[str] = DEFAULT_PALETTE,
        fallback_color: str = DEFAULT_FALLBACK_COLOR,
    ) -> None:
        self.palette = [color.lower() for color in palette]
        self.fallback_color = fallback_color.lower()

    @classmethod
    def from_config(cls, config: LayoutConfig) -> ColorAllocator:
        return cls(config.palette, config.fallback_color)

    @property
    def root_color(self) -> Optional[str]:
        return self.palette[0] if self.palette else None

    def candidates_for(self, branch: Branch, state: _ColorState) -> List[str]:
        candidates = [color for color in self.palette if color != self.root_color]
        parent_id = branch.parent_branch_id
        if parent_id is None:
            return candidates

        parent_color = state.colors.get(parent_id)
        if parent_color is not None:
            without_parent = [color for color in candidates if color != parent_color.lower()]
            if without_parent:
                candidates = without_parent

        sibling_colors = state.children_colors.get(parent_id)
        if sibling_colors:
            unused = [color for color in candidates if color not in sibling_colors]
            if unused:
                candidates = unused
            elif candidates:
                state.diagnostics.append(
                    Diagnostic(
                        kind=DiagnosticKind.SIBLING_COLOR_REUSE,
                        branch_id=branch.id,
                        message=(
                            f"All {len(candidates)} candidate colors are taken by siblings of {branch.id}; "
                            "reusing a sibling color"
                        ),
                    )
                )
        return candidates

    def pick(self, branch: Branch, state: _ColorState, *, is_root: bool) -> str:
        if is_root and self.root_color is not None:
            return self.root_color
        candidates = self.candidates_for(branch, state)
        if not candidates:
            state.diagnostics.append(
                Diagnostic(
                    kind=DiagnosticKind.COLOR_PALETTE_EXHAUSTED,
                    branch_id=branch.id,
                    message=f"No candidate colors left for {branch.id}; using fallback {self.fallback_color}",
                )
            )
            return self.fallback_color
        return candidates[stable_hash(branch.id) % len(candidates)]

    def assign(self, branches: Iterable[Branch], hierarchy: Optional[BranchHierarchy] = None) -> ColorAssignment:
        """Color every branch, keeping colors that are already stored."""
        branch_list = list(branches)
        if hierarchy is None:
            try:
                hierarchy = build_hierarchy(branch_list)
            except MissingRootError:
                hierarchy = None

        state = _ColorState()
        unique: Dict[BranchId, Branch] = {}
        for branch in branch_list:
            unique.setdefault(branch.id, branch)
        for branch in unique.values():
            if branch.color:
                state.record(branch, branch.color)

        if hierarchy is not None:
            order = list(hierarchy.walk()) + list(hierarchy.unreachable)
            root_id: Optional[BranchId] = hierarchy.root_id
        else:
            keyed = sorted(enumerate(unique.values()), key=lambda item: creation_key(item[1], item[0]))
            order = [branch.id for _, branch in keyed]
            root_id = None

        assigned = 0
        for branch_id in order:
            branch = unique[branch_id]
            if branch_id in state.colors:
                continue
            state.record(branch, self.pick(branch, state, is_root=branch_id == root_id))
            assigned += 1

        logger.debug("colors assigned", branches=len(order), new=assigned, sticky=len(order) - assigned)
        return ColorAssignment(
            colors={branch_id: state.colors[branch_id] for branch_id in order},
            diagnostics=state.diagnostics,
        )
