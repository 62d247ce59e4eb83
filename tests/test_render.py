from __future__ import annotations

import sys

from tests.helpers import chain, make_branch, make_messages
from transitmap.engine import compute_layout
from transitmap.models import Message
from transitmap.render import NO_ROOT_TEXT, build_debug_tree, format_debug_tree
from transitmap.types import NodeType


def _lines(text: str) -> list[str]:
    return text.splitlines()


def _index_of(lines: list[str], needle: str) -> int:
    for i, line in enumerate(lines):
        if needle in line:
            return i
    raise AssertionError(f"{needle!r} not found in:\n" + "\n".join(lines))


def test_no_root():
    assert format_debug_tree([make_branch("A", "R", depth=1)], []) == NO_ROOT_TEXT


def test_branches_nest_under_their_fork_message(scenario_branches, scenario_messages):
    lines = _lines(format_debug_tree(scenario_branches, scenario_messages))

    assert "Project (4 branches)" in lines[0]
    root = _index_of(lines, "[Branch: Main (R), depth: 0]")
    fork = _index_of(lines, '2: [user] user-message "message 2"')
    branch_a = _index_of(lines, "[Branch: Unnamed (A), depth: 1]")
    branch_c = _index_of(lines, "[Branch: Unnamed (C), depth: 1]")
    next_message = _index_of(lines, '3: [assistant] assistant-message "message 3"')
    assert root < fork < branch_a < branch_c < next_message


def test_layout_annotations(scenario_branches, scenario_messages):
    layouts = compute_layout(scenario_branches, scenario_messages).layouts
    text = format_debug_tree(scenario_branches, scenario_messages, layouts)
    assert "[Branch: Main (R), depth: 0, direction: none] @ (600, 20)" in text
    assert "direction: right] @ (940, 300)" in text


def test_snippets_are_truncated_and_empty_messages_marked():
    messages = [
        Message(id="m0", branch_id="R", position=0, type=NodeType.ROOT),
        Message(id="m1", branch_id="R", position=1, role="user", text="word " * 20),
    ]
    text = format_debug_tree([make_branch("R", name="Main")], messages)
    assert "0: root (No content)" in text
    assert '"' + ("word " * 6).strip() + '..."' in text


def test_unanchored_and_unreachable_branches_are_listed():
    branches = [
        make_branch("R", minutes=0),
        make_branch("loose", "R", depth=1, minutes=1, name="Loose"),
        make_branch("lost", "ghost", depth=1, minutes=2),
    ]
    lines = _lines(format_debug_tree(branches, make_messages("R", 1)))
    message = _index_of(lines, "0: [user]")
    loose = _index_of(lines, "[Branch: Loose (loose)")
    lost = _index_of(lines, "(unreachable) lost")
    assert message < loose < lost


def test_long_ids_are_shortened():
    text = format_debug_tree([make_branch("0123456789abcdef", name="Main")], [])
    assert "(01234567)" in text


def test_deep_chain_builds_without_recursion():
    length = sys.getrecursionlimit() + 500
    tree = build_debug_tree(chain(length), [])

    labels = []
    node = tree
    while node.children:
        assert len(node.children) == 1
        node = node.children[0]
        labels.append(str(node.label))
    assert len(labels) == length
    assert labels[0] == "[Branch: Unnamed (c0), depth: 0]"
    assert labels[-1] == f"[Branch: Unnamed (c{length - 1}), depth: {length - 1}]"


def test_moderate_chain_renders():
    lines = _lines(format_debug_tree(chain(20), [], width=200))
    assert "(c0), depth: 0]" in lines[1]
    assert "(c19), depth: 19]" in lines[-1]
