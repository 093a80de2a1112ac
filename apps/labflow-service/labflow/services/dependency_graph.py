"""
Assay dependency graph for workflows.

A workflow places assays on a canvas (their order is the node position) and
wires directed edges ``from -> to`` meaning *from* must finish before *to*.
Cycle detection and ordering are delegated to networkx.
"""
from __future__ import annotations

import uuid
from typing import Any, Iterable, List, Sequence, Tuple

import networkx as nx

Edge = Tuple[uuid.UUID, uuid.UUID]


class DependencyGraphError(ValueError):
    """Raised when a set of assay dependencies is not a valid DAG over the workflow's assays."""


def _coerce_uuid(value: Any) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError) as exc:
        raise DependencyGraphError(f"Invalid assay id: {value!r}") from exc


def edge_pair(edge: Any) -> Edge:
    """Normalize an edge given as a tuple, a mapping or an object with from/to ids."""
    if isinstance(edge, (tuple, list)):
        source, target = edge
    elif isinstance(edge, dict):
        source, target = edge.get("from_assay_id"), edge.get("to_assay_id")
    else:
        source, target = getattr(edge, "from_assay_id"), getattr(edge, "to_assay_id")
    return _coerce_uuid(source), _coerce_uuid(target)


def build_graph(assay_ids: Sequence[Any], edges: Iterable[Any]) -> nx.DiGraph:
    graph = nx.DiGraph()
    for position, assay_id in enumerate(assay_ids):
        graph.add_node(_coerce_uuid(assay_id), position=position)
    graph.add_edges_from(edge_pair(e) for e in edges)
    return graph


def validate_dependencies(assay_ids: Sequence[Any], edges: Iterable[Any]) -> List[Edge]:
    """Check edges against the workflow's assays and return them normalized.

    Rejects duplicate assays, edges to assays outside the workflow, self loops,
    duplicate edges and cycles.
    """
    nodes = [_coerce_uuid(a) for a in assay_ids]
    if len(set(nodes)) != len(nodes):
        raise DependencyGraphError("An assay can only appear once in a workflow")
    known = set(nodes)
    pairs: List[Edge] = []
    for edge in edges:
        source, target = edge_pair(edge)
        if source not in known or target not in known:
            raise DependencyGraphError(
                f"Dependency {source} -> {target} references an assay that is not part of the workflow"
            )
        if source == target:
            raise DependencyGraphError(f"Assay {source} cannot depend on itself")
        if (source, target) in pairs:
            raise DependencyGraphError(f"Duplicate dependency {source} -> {target}")
        pairs.append((source, target))

    graph = build_graph(nodes, pairs)
    if not nx.is_directed_acyclic_graph(graph):
        cycle = nx.find_cycle(graph)
        path = " -> ".join(str(u) for u, _v in cycle) + f" -> {cycle[0][0]}"
        raise DependencyGraphError(f"Dependencies contain a cycle: {path}")
    return pairs


def execution_order(assay_ids: Sequence[Any], edges: Iterable[Any]) -> List[uuid.UUID]:
    """Topological order of assays, ties broken by canvas position."""
    graph = build_graph(assay_ids, edges)
    try:
        return list(
            nx.lexicographical_topological_sort(graph, key=lambda n: graph.nodes[n]["position"])
        )
    except nx.NetworkXUnfeasible as exc:
        raise DependencyGraphError("Dependencies contain a cycle") from exc


def prerequisites(assay_ids: Sequence[Any], edges: Iterable[Any], assay_id: Any) -> List[uuid.UUID]:
    """All assays that must finish before ``assay_id``."""
    graph = build_graph(assay_ids, edges)
    node = _coerce_uuid(assay_id)
    if node not in graph:
        return []
    return sorted(nx.ancestors(graph, node), key=lambda n: graph.nodes[n]["position"])
