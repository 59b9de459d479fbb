"""Traversal helpers for solc JSON ASTs.

Two node shapes are understood:

- compact AST (solc >= 0.5 ``ast``): ``nodeType``, ``name``, ``nodes``
- legacy AST (``legacyAST`` and pre-0.5 ``ast``): ``name`` holds the node
  type, the declared name sits in ``attributes``, children in ``children``

Traversal is an explicit-stack pre-order walk that visits siblings left to
right, i.e. in document order.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

CONTRACT_DEFINITION = "ContractDefinition"
FUNCTION_DEFINITION = "FunctionDefinition"

Node = dict[str, Any]


def _is_legacy(node: Node) -> bool:
    return "nodeType" not in node and ("attributes" in node or "children" in node)


def node_type(node: Node) -> str | None:
    if _is_legacy(node):
        return node.get("name")
    return node.get("nodeType")


def node_name(node: Node) -> str | None:
    """Declared name of a definition node."""
    if _is_legacy(node):
        return (node.get("attributes") or {}).get("name")
    return node.get("name")


def children(node: Node) -> list[Node]:
    if _is_legacy(node):
        return node.get("children") or []
    return node.get("nodes") or []


def top_level_nodes(ast: Node) -> list[Node]:
    """The source unit's top-level node list."""
    return children(ast)


def iter_preorder(nodes: list[Node]) -> Iterator[Node]:
    """Depth-first, left-to-right walk over ``nodes`` and their children."""
    stack = list(reversed(nodes))
    while stack:
        node = stack.pop()
        if not isinstance(node, dict):
            continue
        yield node
        stack.extend(reversed(children(node)))


def find_contract_scope(nodes: list[Node], contract_name: str) -> list[Node] | None:
    """Children of the first ContractDefinition named ``contract_name``."""
    for node in iter_preorder(nodes):
        if node_type(node) == CONTRACT_DEFINITION and node_name(node) == contract_name:
            return children(node)
    return None


def find_functions(scope: list[Node], function_name: str) -> list[Node]:
    """Every FunctionDefinition named ``function_name`` in ``scope``, in order."""
    return [
        node
        for node in iter_preorder(scope)
        if node_type(node) == FUNCTION_DEFINITION and node_name(node) == function_name
    ]


def parameter_count(node: Node) -> int | None:
    """Number of declared parameters of a FunctionDefinition, if recorded."""
    if _is_legacy(node):
        for child in node.get("children") or []:
            if child.get("name") == "ParameterList":
                return len(child.get("children") or [])
        return None
    params = node.get("parameters")
    if not isinstance(params, dict):
        return None
    return len(params.get("parameters") or [])


def parse_src(src: str) -> tuple[int, int, int]:
    """Split a ``start:length:fileIndex`` source location.

    Raises:
        ValueError: ``src`` is not three integers.
    """
    parts = src.split(":")
    if len(parts) != 3:
        raise ValueError(f"Malformed source location: {src!r}")
    start, length, index = (int(p) for p in parts)
    return start, length, index
