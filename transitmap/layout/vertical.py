"""Vertical anchors: a child branch starts level with its fork message."""

from __future__ import annotations

from typing import Dict, List, Tuple

from transitmap.config import LayoutConfig
from transitmap.layout.branch_points import MessageIndex, locate_branch_point
from transitmap.layout.hierarchy import BranchHierarchy
from transitmap.models import Diagnostic, DiagnosticKind
from transitmap.types import BranchId


def vertical_positions(
    hierarchy: BranchHierarchy,
    index: MessageIndex,
    config: LayoutConfig,
) -> Tuple[Dict[BranchId, float], List[Diagnostic]]:
    """Return y for every reachable branch.

    The root sits at ``root_y``. Any other branch sits at its fork ordinal
    times ``vertical_spacing``; when the fork message cannot be resolved it
    falls back to stored depth times ``vertical_spacing``.
    """
    ys: Dict[BranchId, float] = {}
    diagnostics: List[Diagnostic] = []
    for branch_id in hierarchy.walk():
        branch = hierarchy.branches[branch_id]
        if branch_id == hierarchy.root_id:
            ys[branch_id] = config.root_y
            continue
        location = locate_branch_point(branch, index)
        if location.found:
            ys[branch_id] = location.ordinal * config.vertical_spacing
            continue
        ys[branch_id] = branch.depth * config.vertical_spacing
        diagnostics.append(
            Diagnostic(
                kind=DiagnosticKind.BRANCH_POINT_NOT_FOUND,
                branch_id=branch_id,
                message=f"Branch point not found for {branch_id} ({location.reason}); using depth fallback",
            )
        )
    return ys, diagnostics


def branch_height(message_count: int, config: LayoutConfig) -> float:
    return max(config.min_branch_height, message_count * config.message_height)
