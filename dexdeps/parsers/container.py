"""
Container Resolution
=====================

Turns an input path into the DEX byte sources it holds.

Two input kinds are recognised:

    - a raw DEX file, which is its own single source;
    - a ZIP archive (APK, JAR, AAR) holding ``classes.dex``,
      ``classes2.dex``, ``classes3.dex``, ...  Entries are taken in that
      order until the first missing number.

Archive entries are inflated into memory so that every source supports
random access.

References:
    - Google. (2024). Multidex. Android Developers.
      https://developer.android.com/build/multidex
"""

from __future__ import annotations

import io
import zipfile
import zlib
from contextlib import ExitStack, contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Generator

from shared.logger import DepsLogger

from dexdeps.core.errors import ContainerError

logger = DepsLogger("dexdeps.container", propagate=True)


@dataclass(frozen=True, slots=True)
class DexSource:
    """A named, seekable byte source holding one DEX image."""
    name: str
    stream: BinaryIO


def dex_entry_name(number: int) -> str:
    """Archive entry name of the *number*-th DEX file (1-based)."""
    return "classes.dex" if number == 1 else f"classes{number}.dex"


@contextmanager
def open_dex_sources(
    path: str | Path,
    *,
    max_file_size: int | None = None,
    max_dex_entries: int = 100,
) -> Generator[list[DexSource], None, None]:
    """Open every DEX image held by *path*.

    Usage::

        with open_dex_sources("app-debug.apk") as sources:
            for source in sources:
                dex = DexFile.load(source.stream, source.name)

    Args:
        path: Raw DEX file or APK/JAR/AAR archive.
        max_file_size: Reject inputs larger than this many bytes.
        max_dex_entries: Stop looking for ``classesN.dex`` after this many.

    Yields:
        Non-empty list of :class:`DexSource`, closed on exit.

    Raises:
        ContainerError: The path is missing, too large, unreadable, or an
            archive without ``classes.dex`` or with a corrupt entry.
    """
    file_path = Path(path)
    if not file_path.is_file():
        raise ContainerError(f"File not found: {file_path}")

    size = file_path.stat().st_size
    if max_file_size is not None and size > max_file_size:
        raise ContainerError(
            f"File too large: {size:,} bytes (max: {max_file_size:,} bytes)"
        )

    with ExitStack() as stack:
        if zipfile.is_zipfile(file_path):
            try:
                archive = stack.enter_context(zipfile.ZipFile(file_path))
                sources = _open_archive_entries(archive, max_dex_entries)
            except (zipfile.BadZipFile, zlib.error, OSError) as exc:
                raise ContainerError(
                    f"Unable to read archive '{file_path}': {exc}"
                ) from exc
            if not sources:
                raise ContainerError(
                    f"Unable to find 'classes.dex' in '{file_path}'"
                )
            logger.debug(
                "Archive %s holds %d DEX image(s)", file_path, len(sources)
            )
        else:
            try:
                stream = stack.enter_context(open(file_path, "rb"))
            except OSError as exc:
                raise ContainerError(f"Unable to open '{file_path}': {exc}") from exc
            sources = [DexSource(file_path.name, stream)]

        for source in sources:
            stack.callback(source.stream.close)
        yield sources


def _open_archive_entries(
    archive: zipfile.ZipFile, max_dex_entries: int
) -> list[DexSource]:
    names = set(archive.namelist())
    sources: list[DexSource] = []
    for number in range(1, max_dex_entries + 1):
        entry = dex_entry_name(number)
        if entry not in names:
            break
        sources.append(DexSource(entry, io.BytesIO(archive.read(entry))))
    else:
        skipped = dex_entry_name(max_dex_entries + 1)
        if skipped in names:
            logger.warning(
                "Stopped after %d DEX entries; '%s' and later entries are ignored",
                max_dex_entries,
                skipped,
            )
    return sources
