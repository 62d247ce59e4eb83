import os
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from transitmap import Branch, InMemoryBranchStore, LayoutConfig, Message  # noqa: E402
from tests.helpers import make_branch, make_messages  # noqa: E402


@pytest.fixture(autouse=True, scope="session")
def _isolated_env():
    with pytest.MonkeyPatch.context() as mp:
        for key in list(os.environ):
            if key.startswith("TRANSITMAP_"):
                mp.delenv(key)
        yield


@pytest.fixture
def config() -> LayoutConfig:
    return LayoutConfig()


@pytest.fixture
def scenario_branches() -> list[Branch]:
    """Root R with A forked at ordinal 2, B at ordinal 5 and C again at ordinal 2."""
    return [
        make_branch("R", minutes=0, name="Main"),
        make_branch("A", "R", depth=1, point="R-m2", minutes=1),
        make_branch("B", "R", depth=1, point="R-m5", minutes=2),
        make_branch("C", "R", depth=1, point="R-m2", minutes=3),
    ]


@pytest.fixture
def scenario_messages() -> list[Message]:
    return make_messages("R", 6) + make_messages("A", 2) + make_messages("B", 3)


@pytest.fixture
def store(scenario_branches, scenario_messages) -> InMemoryBranchStore:
    store = InMemoryBranchStore()
    store.add_project("proj", scenario_branches, scenario_messages)
    return store
