"""transitmap error hierarchy.

All project exceptions inherit from TransitMapError, enabling:
- ``except TransitMapError`` at top-level boundaries (CLI)
- Fine-grained catches deeper in the stack (``except MissingRootError``)

Hierarchy:
    TransitMapError
    ├── ConfigError
    │   └── UnknownStrategyError
    ├── MissingRootError
    ├── StorageError
    │   ├── SnapshotReadError
    │   └── PersistenceWriteError
    └── LayoutUpdateError

Conditions the engine recovers from locally (an unresolvable branch point,
an exhausted palette) are not exceptions; they are reported as
``transitmap.models.Diagnostic`` values.
"""

from __future__ import annotations

from typing import Sequence


class TransitMapError(Exception):
    """Base class for all transitmap errors."""


class ConfigError(TransitMapError):
    """Invalid layout configuration."""


class UnknownStrategyError(ConfigError):
    """Requested layout strategy is not registered."""

    def __init__(self, name: str, known: Sequence[str]) -> None:
        self.name = name
        self.known = list(known)
        super().__init__(f"Unknown layout strategy '{name}' (expected one of: {', '.join(self.known)})")


class MissingRootError(TransitMapError):
    """No branch with depth 0 was found."""

    def __init__(self, branch_count: int = 0) -> None:
        self.branch_count = branch_count
        super().__init__(f"No root branch (depth 0) among {branch_count} branch(es)")


class StorageError(TransitMapError):
    """Base class for storage collaborator failures."""


class SnapshotReadError(StorageError):
    """Loading a project's branch/message snapshot failed."""

    def __init__(self, project_id: str, reason: str) -> None:
        self.project_id = project_id
        self.reason = reason
        super().__init__(f"Failed to load snapshot for project {project_id}: {reason}")


class PersistenceWriteError(StorageError):
    """Writing one branch's layout failed."""

    def __init__(self, branch_id: str, reason: str) -> None:
        self.branch_id = branch_id
        self.reason = reason
        super().__init__(f"Failed to write layout for branch {branch_id}: {reason}")


class LayoutUpdateError(TransitMapError):
    """One or more branch writes failed during a recompute."""

    def __init__(self, project_id: str, failures: Sequence[PersistenceWriteError]) -> None:
        self.project_id = project_id
        self.failures = list(failures)
        branch_ids = ", ".join(failure.branch_id for failure in self.failures)
        super().__init__(
            f"{len(self.failures)} branch layout write(s) failed for project {project_id}: {branch_ids}"
        )
