"""transitmap - layout and coloring for branching conversation trees.

Branches of a conversation are drawn like lines on a transit map: the root
runs down the middle, each child branch starts level with the message it
forked from and runs alongside its parent on the left or right.

Example:
    from transitmap import Branch, LayoutEngine, Message

    branches = [
        Branch(id="main", depth=0),
        Branch(id="alt", parent_branch_id="main", branch_point_node_id="m2", depth=1),
    ]
    messages = [
        Message(id="m1", branch_id="main", position=0),
        Message(id="m2", branch_id="main", position=1),
    ]

    report = LayoutEngine().build_records(branches, messages)
    for record in report.records.values():
        print(record.branch_id, record.x, record.y, record.color)
"""

from transitmap.colors import ColorAllocator, stable_hash
from transitmap.config import LayoutConfig, load_config
from transitmap.engine import LayoutEngine, UpdateReport, assign_colors, compute_layout, update_positions
from transitmap.errors import (
    ConfigError,
    LayoutUpdateError,
    MissingRootError,
    PersistenceWriteError,
    SnapshotReadError,
    StorageError,
    TransitMapError,
    UnknownStrategyError,
)
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
    ProjectSnapshot,
)
from transitmap.render import format_debug_tree
from transitmap.storage import BranchStore, InMemoryBranchStore, load_snapshot_file
from transitmap.types import BranchId, Direction, MessageId, NodeType, ProjectId, SlotConflictMode, StrategyName

__all__ = [
    "Branch",
    "BranchId",
    "BranchLayout",
    "BranchLayoutRecord",
    "BranchStore",
    "ColorAllocator",
    "ColorAssignment",
    "ConfigError",
    "Diagnostic",
    "DiagnosticKind",
    "Direction",
    "InMemoryBranchStore",
    "LayoutConfig",
    "LayoutEngine",
    "LayoutReport",
    "LayoutResult",
    "LayoutUpdateError",
    "Message",
    "MessageId",
    "MissingRootError",
    "NodeType",
    "PersistenceWriteError",
    "ProjectId",
    "ProjectSnapshot",
    "SlotConflictMode",
    "SnapshotReadError",
    "StorageError",
    "StrategyName",
    "TransitMapError",
    "UnknownStrategyError",
    "UpdateReport",
    "assign_colors",
    "compute_layout",
    "format_debug_tree",
    "load_config",
    "load_snapshot_file",
    "stable_hash",
    "update_positions",
]
