"""
Reference Graph Builder
========================

Converts a class -> members listing into a NetworkX directed graph for
dependency analysis and export.

Nodes:
    - one node per class (``kind="class"``), keyed by descriptor
    - one node per member (``kind="field"`` / ``"method"``), keyed by
      its ``str()`` form

Edges:
    - class -> member, ``relation="declares"``
    - member -> class, ``relation="uses"``, for each class in the listing
      that appears as the field type or a method argument / return type

References:
    - Hagberg, A., Schult, D., & Swart, P. (2008). Exploring Network
      Structure, Dynamics, and Function using NetworkX. SciPy 2008.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

import networkx as nx

from dexdeps.core.models import ClassRef


def _element_type(descriptor: str) -> str:
    """Strip array dimensions: ``[[Lfoo/Bar;`` -> ``Lfoo/Bar;``."""
    return descriptor.lstrip("[")


class ReferenceGraphBuilder:
    """Builds and summarises reference graphs.

    Usage::

        builder = ReferenceGraphBuilder()
        graph = builder.build(dex.all_references())
        for name, uses in builder.most_used(graph, top_n=5):
            print(name, uses)
    """

    def build(self, classes: Iterable[ClassRef]) -> nx.DiGraph:
        G = nx.DiGraph()
        class_list = list(classes)

        for class_ref in class_list:
            G.add_node(
                class_ref.name,
                kind="class",
                internal=class_ref.internal,
                label=class_ref.dot_name,
            )

        for class_ref in class_list:
            for field_ref in class_ref.fields:
                node = str(field_ref)
                G.add_node(node, kind="field", internal=field_ref.internal, label=field_ref.name)
                G.add_edge(class_ref.name, node, relation="declares")
                self._link_uses(G, node, [field_ref.type_name])

            for method_ref in class_ref.methods:
                node = str(method_ref)
                G.add_node(node, kind="method", internal=method_ref.internal, label=method_ref.name)
                G.add_edge(class_ref.name, node, relation="declares")
                self._link_uses(
                    G, node, [*method_ref.argument_types, method_ref.return_type]
                )

        return G

    @staticmethod
    def _link_uses(G: nx.DiGraph, member: str, descriptors: list[str]) -> None:
        for descriptor in descriptors:
            target = _element_type(descriptor)
            if G.nodes.get(target, {}).get("kind") == "class":
                G.add_edge(member, target, relation="uses")

    # ------------------------------------------------------------------ #
    #  Summaries
    # ------------------------------------------------------------------ #

    def most_used(self, G: nx.DiGraph, top_n: int = 10) -> list[tuple[str, int]]:
        """Classes ranked by the number of members that use them as a type.

        Ties are broken by descriptor so the ranking is deterministic.
        """
        counts: list[tuple[str, int]] = []
        for node, data in G.nodes(data=True):
            if data.get("kind") != "class":
                continue
            uses = sum(
                1
                for _src, _dst, rel in G.in_edges(node, data="relation")
                if rel == "uses"
            )
            if uses:
                counts.append((node, uses))
        counts.sort(key=lambda item: (-item[1], item[0]))
        return counts[:top_n]

    def write_graphml(self, G: nx.DiGraph, path: str | Path) -> Path:
        """Write *G* as GraphML, creating parent directories."""
        out_path = Path(path)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        nx.write_graphml(G, str(out_path))
        return out_path
