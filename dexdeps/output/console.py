"""
DexDeps Console Output
=======================

Rich terminal display of a :class:`ContainerScanResult`: one summary
table for the whole input, then per DEX image a class table, the most
used types and, optionally, the member listing of each class.
"""

from __future__ import annotations

from rich.markup import escape
from rich.tree import Tree

from shared.console import DepsConsole

from dexdeps.analyzers.graph import ReferenceGraphBuilder
from dexdeps.core.models import (
    ClassRef,
    ContainerScanResult,
    DexScanResult,
    descriptor_to_dot,
)


def _scope_cell(internal: bool) -> str:
    if internal:
        return "[deps.internal]internal[/deps.internal]"
    return "[deps.external]external[/deps.external]"


class DepsConsoleOutput:
    """Renders scan results to a :class:`DepsConsole`.

    Usage::

        output = DepsConsoleOutput(console=DepsConsole())
        output.display(result, show_members=False)
    """

    def __init__(self, console: DepsConsole | None = None) -> None:
        self._con = console or DepsConsole()

    def display(self, result: ContainerScanResult, *, show_members: bool = True) -> None:
        self._display_summary(result)
        for dex in result.results:
            self._con.section(escape(dex.source))
            if not dex.ok:
                offset = (
                    f" at offset 0x{dex.error_offset:x}"
                    if dex.error_offset is not None
                    else ""
                )
                self._con.error(escape(f"{dex.error_kind}{offset}: {dex.error}"))
                continue
            self._display_classes(dex)
            self._display_most_used(dex)
            if show_members:
                self._display_members(dex.classes)

    # ------------------------------------------------------------------ #
    #  Sections
    # ------------------------------------------------------------------ #

    def _display_summary(self, result: ContainerScanResult) -> None:
        rows = []
        for dex in result.results:
            if dex.ok:
                rows.append((
                    escape(dex.source),
                    dex.version,
                    dex.endian,
                    f"{dex.counts.types:,}",
                    f"{dex.internal_class_count:,}",
                    f"{dex.external_class_count:,}",
                    f"{dex.field_ref_count:,}",
                    f"{dex.method_ref_count:,}",
                ))
            else:
                rows.append((escape(dex.source), "-", "-", "-", "-", "-", "-",
                             f"[deps.error]{dex.error_kind}[/deps.error]"))

        self._con.table(
            f"{escape(result.target)} ({result.scope.value} references)",
            ["Source", "Version", "Endian", "Types", "Internal",
             "External", "Fields", "Methods"],
            rows,
            caption=result.summary,
        )

    def _display_classes(self, dex: DexScanResult) -> None:
        rows = [
            (escape(c.dot_name), _scope_cell(c.internal), len(c.fields), len(c.methods))
            for c in dex.classes
        ]
        self._con.table(
            f"Classes ({len(rows):,})",
            ["Class", "Scope", "Fields", "Methods"],
            rows,
            styles=["bright_white", "", "dim", "dim"],
        )

    def _display_most_used(self, dex: DexScanResult, top_n: int = 10) -> None:
        builder = ReferenceGraphBuilder()
        ranking = builder.most_used(builder.build(dex.classes), top_n=top_n)
        if not ranking:
            return
        self._con.table(
            f"Most used types (top {len(ranking)})",
            ["Type", "Uses"],
            [(escape(descriptor_to_dot(name)), uses) for name, uses in ranking],
            styles=["bright_white", "dim"],
        )

    def _display_members(self, classes: list[ClassRef]) -> None:
        for class_ref in classes:
            if not class_ref.fields and not class_ref.methods:
                continue
            tree = Tree(f"{escape(class_ref.dot_name)}  {_scope_cell(class_ref.internal)}")
            for field_ref in class_ref.fields:
                tree.add(f"[deps.dim]field[/deps.dim]  {escape(field_ref.name)}:{escape(field_ref.type_name)}")
            for method_ref in class_ref.methods:
                tree.add(f"[deps.dim]method[/deps.dim] {escape(method_ref.name)}{escape(method_ref.descriptor)}")
            self._con.print(tree)
