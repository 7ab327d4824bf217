"""Position tree handed over by the source discoverer.

The discoverer (a tree-sitter query run by the editor integration) is an
external collaborator.  This module defines the shape it produces, a JSON
loader for it, and the query text it is expected to run.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterator

from gotest_bridge.identity import generate_position_id

POSITION_TYPES = frozenset({"dir", "file", "namespace", "test"})

TEST_QUERY = """
    ((function_declaration
      name: (identifier) @test.name)
      (#match? @test.name "^(Test|Example)"))
      @test.definition

    (method_declaration
      name: (field_identifier) @test.name
      (#match? @test.name "^(Test|Example)")) @test.definition

    (call_expression
      function: (selector_expression
        field: (field_identifier) @test.method)
        (#match? @test.method "^Run$")
      arguments: (argument_list . (interpreted_string_literal) @test.name))
      @test.definition
"""

TABLE_TEST_QUERY = """
    (block
      (short_var_declaration
        left: (expression_list
          (identifier) @test.cases)
        right: (expression_list
          (composite_literal
            (literal_value
              (literal_element
                (literal_value
                  (keyed_element
                    (literal_element
                      (identifier) @test.field.name)
                    (literal_element
                      (interpreted_string_literal) @test.name)))) @test.definition))))
      (for_statement
        (range_clause
          left: (expression_list
            (identifier) @test.case)
          right: (identifier) @test.cases1
            (#eq? @test.cases @test.cases1))
        body: (block
          (call_expression
            function: (selector_expression
              field: (field_identifier) @test.method)
              (#match? @test.method "^Run$")
            arguments: (argument_list
              (selector_expression
                operand: (identifier) @test.case1
                (#eq? @test.case @test.case1)
                field: (field_identifier) @test.field.name1
                (#eq? @test.field.name @test.field.name1)))))))
"""


def discovery_query(test_table: bool = False) -> str:
    """Return the tree-sitter query used to discover go test positions.

    Args:
        test_table: Also match table-driven subtests (``for _, tt := range
            tests { t.Run(tt.name, ...) }``).
    """
    if test_table:
        return TEST_QUERY + TABLE_TEST_QUERY
    return TEST_QUERY


@dataclass
class Position:
    """A single discovered location: directory, file, namespace or test."""

    id: str
    type: str
    path: str
    name: str
    range: list[int] | None = None


class Tree:
    """Containment tree of positions.

    A file contains namespaces and tests; namespaces and tests may contain
    subtests.  Read-only once built.
    """

    def __init__(self, position: Position, parent: Tree | None = None) -> None:
        self._position = position
        self._parent = parent
        self._children: list[Tree] = []

    def data(self) -> Position:
        return self._position

    def parent(self) -> Tree | None:
        return self._parent

    def children(self) -> list[Tree]:
        return list(self._children)

    def add_child(self, position: Position) -> Tree:
        """Attach a new child node for *position* and return it."""
        child = Tree(position, parent=self)
        self._children.append(child)
        return child

    def iter_nodes(self) -> Iterator[Tree]:
        """Yield this node and all descendants in pre-order."""
        yield self
        for child in self._children:
            yield from child.iter_nodes()

    def get_key(self, position_id: str) -> Tree | None:
        """Find the node with the given position id."""
        for node in self.iter_nodes():
            if node.data().id == position_id:
                return node
        return None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Tree:
        """Build a tree from a nested JSON-style dict.

        Each node carries ``type``, ``path``, ``name`` and optionally
        ``id``, ``range`` and ``children``.  Missing ids are generated
        from the enclosing positions.

        Raises:
            ValueError: On an unknown position type or missing field.
        """
        return cls._build(data, None, [])

    @classmethod
    def _build(
        cls,
        data: dict[str, Any],
        parent: Tree | None,
        namespaces: list[Position],
    ) -> Tree:
        pos_type = data.get("type")
        if pos_type not in POSITION_TYPES:
            raise ValueError(f"Unknown position type: {pos_type!r}")
        try:
            path = str(data["path"])
            name = str(data["name"])
        except KeyError as exc:
            raise ValueError(f"Position is missing field {exc}") from None

        position = Position(id="", type=pos_type, path=path, name=name, range=data.get("range"))
        if data.get("id"):
            position.id = str(data["id"])
        elif pos_type in ("dir", "file"):
            position.id = path
        else:
            position.id = generate_position_id(position, namespaces)

        node = cls(position, parent=parent)
        inner = namespaces if pos_type == "dir" else [*namespaces, position]
        for child in data.get("children", []):
            node._children.append(cls._build(child, node, inner))
        return node


def load_tree(path: str | Path) -> Tree:
    """Load a position tree from a JSON file.

    Raises:
        ValueError: If the file is not valid JSON or not a position tree.
    """
    try:
        data = json.loads(Path(path).read_text())
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in position tree {path}: {exc}") from None
    if not isinstance(data, dict):
        raise ValueError(f"Position tree {path} must be a JSON object")
    return Tree.from_dict(data)
