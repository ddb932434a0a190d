"""
DexDeps Report Generator
=========================

Writes scan results to disk:

    - JSON: the full :class:`ContainerScanResult`, for downstream tooling
      (minification checkers, dependency auditors, API-usage scanners)
    - text: one line per class and member, greppable
    - GraphML: the reference graph of every decoded image

Text format::

    # classes.dex
    class com.example.Foo internal
      field com.example.Foo.count:I internal
      method com.example.Foo.run()V internal
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import networkx as nx

from dexdeps.analyzers.graph import ReferenceGraphBuilder
from dexdeps.core.models import ContainerScanResult


def _tag(internal: bool) -> str:
    return "internal" if internal else "external"


class DepsReportGenerator:
    """Serialises :class:`ContainerScanResult` objects."""

    def __init__(self) -> None:
        self._graphs = ReferenceGraphBuilder()

    # ------------------------------------------------------------------ #
    #  JSON
    # ------------------------------------------------------------------ #

    def build_json(self, result: ContainerScanResult) -> dict[str, Any]:
        return {
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "duration_seconds": result.duration_seconds,
            "scan": result.model_dump(mode="json"),
        }

    def generate_json(self, result: ContainerScanResult, output_path: str | Path) -> Path:
        out = Path(output_path)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(
            json.dumps(self.build_json(result), indent=2, ensure_ascii=False),
            encoding="utf-8",
        )
        return out

    # ------------------------------------------------------------------ #
    #  Plain text
    # ------------------------------------------------------------------ #

    def render_text(self, result: ContainerScanResult, *, show_members: bool = True) -> str:
        lines: list[str] = []
        for dex in result.results:
            lines.append(f"# {dex.source}")
            if not dex.ok:
                lines.append(f"! {dex.error_kind}: {dex.error}")
                continue
            for class_ref in dex.classes:
                lines.append(f"class {class_ref.dot_name} {_tag(class_ref.internal)}")
                if not show_members:
                    continue
                for field_ref in class_ref.fields:
                    lines.append(f"  field {field_ref} {_tag(field_ref.internal)}")
                for method_ref in class_ref.methods:
                    lines.append(f"  method {method_ref} {_tag(method_ref.internal)}")
        return "\n".join(lines) + "\n"

    def generate_text(
        self,
        result: ContainerScanResult,
        output_path: str | Path,
        *,
        show_members: bool = True,
    ) -> Path:
        out = Path(output_path)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(self.render_text(result, show_members=show_members), encoding="utf-8")
        return out

    # ------------------------------------------------------------------ #
    #  GraphML
    # ------------------------------------------------------------------ #

    def build_graph(self, result: ContainerScanResult) -> nx.DiGraph:
        """Union of the reference graphs of every decoded image.

        Each node records the image it came from in ``source``; when the
        same class appears in several images the last one wins.
        """
        merged = nx.DiGraph()
        for dex in result.results:
            if not dex.ok:
                continue
            graph = self._graphs.build(dex.classes)
            nx.set_node_attributes(graph, dex.source, "source")
            merged = nx.compose(merged, graph)
        return merged

    def generate_graphml(self, result: ContainerScanResult, output_path: str | Path) -> Path:
        return self._graphs.write_graphml(self.build_graph(result), output_path)
