"""Hypothesis strategies for transitmap property-based testing.

Usage:
    from hypothesis import given
    from tests.strategies import branch_trees

    @given(branch_trees())
    def test_layout(tree):
        branches, messages = tree
        ...
"""

from tests.strategies.branches import branch_trees, palettes

__all__ = ["branch_trees", "palettes"]
