"""Layout orchestrator: hierarchy, anchors, strategy and colors in one pass.

``LayoutEngine`` is cheap to build and holds nothing but its config, the
chosen strategy and the color allocator; every call works on its own
snapshot, so one engine (or many) can serve several projects at once.
"""

from __future__ import annotations

import concurrent.futures
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from transitmap.colors import ColorAllocator
from transitmap.config import LayoutConfig
from transitmap.errors import LayoutUpdateError, MissingRootError, PersistenceWriteError, SnapshotReadError
from transitmap.layout.branch_points import MessageIndex
from transitmap.layout.hierarchy import BranchHierarchy, build_hierarchy
from transitmap.layout.strategy import LayoutStrategy, get_strategy
from transitmap.layout.vertical import branch_height, vertical_positions
from transitmap.log import bound_project, get_logger, log_diagnostics
from transitmap.models import (
    Branch,
    BranchLayout,
    BranchLayoutRecord,
    ColorAssignment,
    Diagnostic,
    DiagnosticKind,
    LayoutReport,
    LayoutResult,
    Message,
)
from transitmap.storage import BranchStore
from transitmap.types import BranchId, ProjectId

logger = get_logger(__name__)


@dataclass
class UpdateReport:
    """Outcome of one ``update_positions`` call."""

    project_id: ProjectId
    records: Dict[BranchId, BranchLayoutRecord] = field(default_factory=dict)
    written: List[BranchId] = field(default_factory=list)
    failures: List[PersistenceWriteError] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def stale_branches(self) -> List[BranchId]:
        """Branches whose stored layout was not refreshed."""
        return [BranchId(failure.branch_id) for failure in self.failures]

    def raise_for_failures(self) -> None:
        if self.failures:
            raise LayoutUpdateError(self.project_id, self.failures)


class LayoutEngine:
    def __init__(self, config: Optional[LayoutConfig] = None, strategy: Optional[LayoutStrategy] = None) -> None:
        self.config = config or LayoutConfig()
        self.strategy = strategy or get_strategy(self.config)
        self.colors = ColorAllocator.from_config(self.config)

    # -- layout -----------------------------------------------------------

    def _empty_result(self, diagnostics: List[Diagnostic]) -> LayoutResult:
        return LayoutResult(
            layouts={},
            width=self.config.min_viewport_width,
            height=self.config.min_viewport_height,
            center_x=self.config.origin_x,
            strategy=self.strategy.name,
            diagnostics=diagnostics,
        )

    def _hierarchy(self, branches: Sequence[Branch]) -> Tuple[Optional[BranchHierarchy], List[Diagnostic]]:
        try:
            return build_hierarchy(branches), []
        except MissingRootError as exc:
            return None, [Diagnostic(kind=DiagnosticKind.MISSING_ROOT, message=str(exc))]

    def _layout(self, hierarchy: BranchHierarchy, messages: Iterable[Message]) -> LayoutResult:
        config = self.config
        index = MessageIndex.from_messages(messages)
        placements = self.strategy.place(hierarchy, config)
        ys, anchor_diagnostics = vertical_positions(hierarchy, index, config)

        layouts: Dict[BranchId, BranchLayout] = {}
        for branch_id in hierarchy.walk():
            placement = placements[branch_id]
            layouts[branch_id] = BranchLayout(
                x=placement.x,
                y=ys[branch_id],
                direction=placement.direction,
                sibling_index=hierarchy.sibling_index(branch_id),
                level=hierarchy.level(branch_id),
                width=config.node_width,
                height=branch_height(index.message_count(branch_id), config),
            )

        xs = [layout.x for layout in layouts.values()]
        min_x, max_x = min(xs), max(xs)
        return LayoutResult(
            layouts=layouts,
            width=max(config.min_viewport_width, max_x - min_x + 2 * config.horizontal_spacing),
            height=max(layout.y + layout.height for layout in layouts.values()) + config.viewport_padding,
            center_x=(min_x + max_x) / 2,
            strategy=self.strategy.name,
            diagnostics=hierarchy.diagnostics + anchor_diagnostics,
        )

    def compute_layout(self, branches: Iterable[Branch], messages: Iterable[Message]) -> LayoutResult:
        """Position every branch reachable from the root.

        A project without a root yields an empty result carrying a
        ``missing_root`` diagnostic rather than an error.
        """
        hierarchy, diagnostics = self._hierarchy(list(branches))
        result = self._empty_result(diagnostics) if hierarchy is None else self._layout(hierarchy, messages)
        log_diagnostics(logger, result.diagnostics)
        return result

    # -- colors -----------------------------------------------------------

    def assign_colors(self, branches: Iterable[Branch]) -> ColorAssignment:
        assignment = self.colors.assign(branches)
        log_diagnostics(logger, assignment.diagnostics)
        return assignment

    # -- combined ---------------------------------------------------------

    def build_records(self, branches: Iterable[Branch], messages: Iterable[Message]) -> LayoutReport:
        """Layout and colors merged into one record per laid-out branch."""
        branch_list = list(branches)
        hierarchy, diagnostics = self._hierarchy(branch_list)
        if hierarchy is None:
            log_diagnostics(logger, diagnostics)
            return LayoutReport(layout=self._empty_result(diagnostics), diagnostics=diagnostics)

        layout = self._layout(hierarchy, messages)
        assignment = self.colors.assign(branch_list, hierarchy=hierarchy)
        records = {
            branch_id: BranchLayoutRecord.from_layout(branch_id, branch_layout, assignment.colors[branch_id])
            for branch_id, branch_layout in layout.layouts.items()
        }
        diagnostics = layout.diagnostics + assignment.diagnostics
        log_diagnostics(logger, diagnostics)
        return LayoutReport(records=records, layout=layout, diagnostics=diagnostics)

    def _write_all(
        self,
        project_id: ProjectId,
        store: BranchStore,
        records: Dict[BranchId, BranchLayoutRecord],
    ) -> Tuple[List[BranchId], List[PersistenceWriteError]]:
        if not records:
            return [], []
        outcomes: Dict[BranchId, Optional[PersistenceWriteError]] = {}
        workers = min(self.config.max_write_workers, len(records))
        with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {
                executor.submit(store.write_layout, project_id, record): branch_id
                for branch_id, record in records.items()
            }
            for fut in concurrent.futures.as_completed(futures):
                branch_id = futures[fut]
                try:
                    fut.result()
                except PersistenceWriteError as exc:
                    outcomes[branch_id] = exc
                except Exception as exc:
                    outcomes[branch_id] = PersistenceWriteError(branch_id, str(exc) or type(exc).__name__)
                else:
                    outcomes[branch_id] = None

        written: List[BranchId] = []
        failures: List[PersistenceWriteError] = []
        for branch_id in records:
            failure = outcomes[branch_id]
            if failure is None:
                written.append(branch_id)
            else:
                failures.append(failure)
                logger.error("Failed to write branch layout", branch_id=branch_id, error=failure.reason)
        return written, failures

    def update_positions(self, project_id: ProjectId, store: BranchStore) -> UpdateReport:
        """Recompute a project's layout and write it back, one branch at a time.

        The snapshot is read in full before the first write. Each branch is
        written independently; failures are collected on the report instead
        of aborting the other writes.

        Raises:
            SnapshotReadError: If the snapshot cannot be loaded (nothing is written)
        """
        with bound_project(project_id):
            try:
                snapshot = store.load_snapshot(project_id)
            except SnapshotReadError:
                raise
            except Exception as exc:
                raise SnapshotReadError(project_id, str(exc)) from exc

            report = self.build_records(snapshot.branches, snapshot.messages)
            written, failures = self._write_all(project_id, store, report.records)
            logger.info(
                "Branch layouts updated",
                strategy=self.strategy.name,
                branches=len(snapshot.branches),
                written=len(written),
                failed=len(failures),
            )
            return UpdateReport(
                project_id=project_id,
                records=report.records,
                written=written,
                failures=failures,
                diagnostics=report.diagnostics,
            )


def compute_layout(
    branches: Iterable[Branch],
    messages: Iterable[Message],
    config: Optional[LayoutConfig] = None,
) -> LayoutResult:
    return LayoutEngine(config).compute_layout(branches, messages)


def assign_colors(branches: Iterable[Branch], config: Optional[LayoutConfig] = None) -> ColorAssignment:
    return LayoutEngine(config).assign_colors(branches)


def update_positions(
    project_id: ProjectId,
    store: BranchStore,
    config: Optional[LayoutConfig] = None,
) -> UpdateReport:
    return LayoutEngine(config).update_positions(project_id, store)
