"""
DexDeps Console Interface
==========================

Rich-powered console abstraction used by the DexDeps command line for
section headers, status-coloured messages and tables, all
with one consistent palette.

References:
    - Rich library: https://github.com/Textualize/rich
"""

from __future__ import annotations

from typing import Any, Sequence

from rich.console import Console
from rich.table import Table
from rich.theme import Theme

_DEPS_THEME = Theme(
    {
        "deps.section": "bold bright_magenta",
        "deps.success": "bold green",
        "deps.warning": "bold yellow",
        "deps.error": "bold red",
        "deps.dim": "dim white",
        "deps.internal": "bold bright_green",
        "deps.external": "bold bright_cyan",
    }
)


class DepsConsole:
    """Unified console for DexDeps output.

    Usage::

        con = DepsConsole()
        con.section("classes.dex")
        con.success("Decoded 1,204 classes")
    """

    def __init__(self, *, quiet: bool = False, record: bool = False) -> None:
        """Initialise the console.

        Args:
            quiet:  Suppress all output (library / test mode).
            record: Keep output for :meth:`export_text`.
        """
        self._console = Console(
            theme=_DEPS_THEME,
            quiet=quiet,
            record=record,
            highlight=False,
        )

    @property
    def rich(self) -> Console:
        """The underlying Rich console."""
        return self._console

    # ------------------------------------------------------------------ #
    #  Headers and messages
    # ------------------------------------------------------------------ #

    def section(self, title: str) -> None:
        self._console.rule(f"  {title}  ", style="deps.section", characters="─")
        self._console.print()

    def success(self, message: str) -> None:
        self._console.print(f"[deps.success][✔] SUCCESS:[/deps.success] {message}")

    def warning(self, message: str) -> None:
        self._console.print(f"[deps.warning][⚠] WARNING:[/deps.warning] {message}")

    def error(self, message: str) -> None:
        self._console.print(f"[deps.error][✘] ERROR:[/deps.error] {message}")

    # ------------------------------------------------------------------ #
    #  Tables
    # ------------------------------------------------------------------ #

    def table(
        self,
        title: str,
        columns: Sequence[str],
        rows: Sequence[Sequence[Any]],
        *,
        caption: str | None = None,
        styles: Sequence[str] | None = None,
    ) -> None:
        """Render a styled table; every cell is stringified.

        Args:
            title:   Table title.
            columns: Column header labels.
            rows:    Row tuples.
            caption: Optional footer caption.
            styles:  Optional per-column Rich styles.
        """
        tbl = Table(
            title=title,
            caption=caption,
            border_style="bright_cyan",
            header_style="bold bright_magenta",
            padding=(0, 1),
        )
        for idx, col_name in enumerate(columns):
            style = styles[idx] if styles and idx < len(styles) else ""
            tbl.add_column(col_name, style=style)

        for row in rows:
            tbl.add_row(*(str(cell) for cell in row))

        self._console.print(tbl)

    # ------------------------------------------------------------------ #
    #  Utility
    # ------------------------------------------------------------------ #

    def print(self, *args: Any, **kwargs: Any) -> None:
        self._console.print(*args, **kwargs)

    def export_text(self) -> str:
        """Recorded output as plain text (requires ``record=True``)."""
        return self._console.export_text()
