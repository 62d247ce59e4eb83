"""Storage collaborator contract.

The engine reads one full snapshot per recompute and writes each branch's
layout back independently. How records are actually stored is the
collaborator's concern; ``InMemoryBranchStore`` is the reference
implementation used by tests and the CLI.
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Dict, Iterable, Protocol, runtime_checkable

import orjson
from pydantic import ValidationError

from transitmap.errors import PersistenceWriteError, SnapshotReadError
from transitmap.models import Branch, BranchLayoutRecord, Message, ProjectSnapshot
from transitmap.types import BranchId, ProjectId


@runtime_checkable
class BranchStore(Protocol):
    """Source of branch/message snapshots and sink for computed layouts."""

    def load_snapshot(self, project_id: ProjectId) -> ProjectSnapshot:
        """Read every branch and message of a project in one consistent view.

        Raises:
            SnapshotReadError: If the project cannot be read
        """
        ...

    def write_layout(self, project_id: ProjectId, record: BranchLayoutRecord) -> None:
        """Persist one branch's layout.

        Must apply atomically to that single branch: a concurrent reader sees
        either the old layout or the new one, never a mix. Called from
        worker threads, possibly concurrently for different branches.

        Raises:
            PersistenceWriteError: If the branch cannot be updated
        """
        ...


class InMemoryBranchStore:
    """Thread-safe dict-backed store keyed by project id."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._branches: Dict[ProjectId, Dict[BranchId, Branch]] = {}
        self._messages: Dict[ProjectId, list[Message]] = {}

    def add_project(
        self,
        project_id: ProjectId,
        branches: Iterable[Branch],
        messages: Iterable[Message] = (),
    ) -> None:
        with self._lock:
            self._branches[project_id] = {branch.id: branch for branch in branches}
            self._messages[project_id] = list(messages)

    def add_branch(self, project_id: ProjectId, branch: Branch) -> None:
        with self._lock:
            self._branches.setdefault(project_id, {})[branch.id] = branch

    def add_messages(self, project_id: ProjectId, messages: Iterable[Message]) -> None:
        with self._lock:
            self._messages.setdefault(project_id, []).extend(messages)

    def get_branch(self, project_id: ProjectId, branch_id: BranchId) -> Branch | None:
        with self._lock:
            return self._branches.get(project_id, {}).get(branch_id)

    def load_snapshot(self, project_id: ProjectId) -> ProjectSnapshot:
        with self._lock:
            if project_id not in self._branches:
                raise SnapshotReadError(project_id, "unknown project")
            branches = [branch.model_copy(deep=True) for branch in self._branches[project_id].values()]
            messages = [message.model_copy() for message in self._messages.get(project_id, [])]
        return ProjectSnapshot(project_id=project_id, branches=branches, messages=messages)

    def write_layout(self, project_id: ProjectId, record: BranchLayoutRecord) -> None:
        with self._lock:
            branches = self._branches.get(project_id)
            if branches is None or record.branch_id not in branches:
                raise PersistenceWriteError(record.branch_id, f"branch not found in project {project_id}")
            current = branches[record.branch_id]
            metadata = dict(current.metadata or {})
            preference = current.preferred_direction
            if preference is not None:
                metadata["direction"] = preference.value
            metadata["layout"] = record.as_metadata()
            branches[record.branch_id] = current.model_copy(
                update={"metadata": metadata, "color": current.color or record.color}
            )


def load_snapshot_file(path: Path) -> ProjectSnapshot:
    """Read a ``{"project_id", "branches", "messages"}`` JSON document."""
    try:
        raw = orjson.loads(path.read_bytes())
    except OSError as exc:
        raise SnapshotReadError(str(path), str(exc)) from exc
    except ValueError as exc:
        raise SnapshotReadError(str(path), f"invalid JSON: {exc}") from exc
    if not isinstance(raw, dict):
        raise SnapshotReadError(str(path), "snapshot must be a JSON object")
    raw.setdefault("project_id", path.stem)
    try:
        return ProjectSnapshot.model_validate(raw)
    except ValidationError as exc:
        raise SnapshotReadError(str(path), str(exc)) from exc
