"""Boundary types for the externally discovered position tree."""

from gotest_bridge.discovery.positions import Position, Tree, discovery_query, load_tree

__all__ = [
    "Position",
    "Tree",
    "discovery_query",
    "load_tree",
]
