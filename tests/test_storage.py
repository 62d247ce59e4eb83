from __future__ import annotations

import orjson
import pytest

from tests.helpers import make_branch
from transitmap.errors import PersistenceWriteError, SnapshotReadError
from transitmap.models import BranchLayout, BranchLayoutRecord
from transitmap.storage import InMemoryBranchStore, load_snapshot_file
from transitmap.types import Direction


def _record(branch_id: str, color: str = "#10b981") -> BranchLayoutRecord:
    layout = BranchLayout(
        x=940, y=300, direction=Direction.RIGHT, sibling_index=0, level=1, width=140, height=100
    )
    return BranchLayoutRecord.from_layout(branch_id, layout, color)


# =============================================================================
# InMemoryBranchStore
# =============================================================================


def test_write_layout_stores_metadata_and_color():
    store = InMemoryBranchStore()
    store.add_project("p", [make_branch("R"), make_branch("A", "R", depth=1, direction="left")])
    store.write_layout("p", _record("A"))

    branch = store.get_branch("p", "A")
    assert branch.color == "#10b981"
    assert branch.metadata["direction"] == "left"
    assert branch.stored_layout == {
        "x": 940,
        "y": 300,
        "direction": "right",
        "sibling_index": 0,
        "level": 1,
        "width": 140,
        "height": 100,
    }


def test_write_layout_keeps_stored_color():
    store = InMemoryBranchStore()
    store.add_project("p", [make_branch("R", color="#123456")])
    store.write_layout("p", _record("R", color="#3b82f6"))
    assert store.get_branch("p", "R").color == "#123456"


def test_write_layout_unknown_branch():
    store = InMemoryBranchStore()
    store.add_project("p", [make_branch("R")])
    with pytest.raises(PersistenceWriteError) as excinfo:
        store.write_layout("p", _record("ghost"))
    assert excinfo.value.branch_id == "ghost"


def test_snapshot_is_a_copy():
    store = InMemoryBranchStore()
    store.add_project("p", [make_branch("R", direction="right")])
    snapshot = store.load_snapshot("p")
    snapshot.branches[0].metadata["direction"] = "left"
    assert store.get_branch("p", "R").metadata["direction"] == "right"


def test_incremental_additions():
    store = InMemoryBranchStore()
    store.add_branch("p", make_branch("R"))
    store.add_branch("p", make_branch("A", "R", depth=1))
    snapshot = store.load_snapshot("p")
    assert [branch.id for branch in snapshot.branches] == ["R", "A"]
    assert snapshot.messages == []


def test_unknown_project():
    with pytest.raises(SnapshotReadError):
        InMemoryBranchStore().load_snapshot("missing")


# =============================================================================
# Snapshot files
# =============================================================================


def test_load_snapshot_file(tmp_path):
    path = tmp_path / "demo.json"
    path.write_bytes(
        orjson.dumps(
            {
                "branches": [
                    {"id": "R", "depth": 0, "created_at": "2024-01-01T00:00:00"},
                    {"id": "A", "parent_branch_id": "R", "branch_point_node_id": "m1", "depth": 1, "color": ""},
                ],
                "messages": [{"id": "m1", "branch_id": "R", "position": 0, "type": "assistant-message"}],
            }
        )
    )
    snapshot = load_snapshot_file(path)
    assert snapshot.project_id == "demo"
    assert snapshot.branches[0].created_at.tzinfo is not None
    assert snapshot.branches[1].color is None
    assert snapshot.messages[0].is_conversational


def test_snapshot_file_keeps_explicit_project_id(tmp_path):
    path = tmp_path / "demo.json"
    path.write_bytes(orjson.dumps({"project_id": "proj-1", "branches": []}))
    assert load_snapshot_file(path).project_id == "proj-1"


@pytest.mark.parametrize(
    "payload",
    [
        b"{broken",
        b"[]",
        orjson.dumps({"branches": [{"id": "", "depth": 0}]}),
        orjson.dumps({"branches": [{"id": "R", "depth": -1}]}),
    ],
)
def test_bad_snapshot_files(tmp_path, payload):
    path = tmp_path / "bad.json"
    path.write_bytes(payload)
    with pytest.raises(SnapshotReadError) as excinfo:
        load_snapshot_file(path)
    assert excinfo.value.project_id == str(path)


def test_missing_snapshot_file(tmp_path):
    with pytest.raises(SnapshotReadError):
        load_snapshot_file(tmp_path / "missing.json")
