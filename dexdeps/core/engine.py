"""
DexDeps Scan Engine
====================

Orchestrates reference extraction over every DEX image of an input:

    1. Resolve the input to byte sources (raw DEX or APK/JAR archive)
    2. For each source, in order:
        a. decode header and index tables
        b. classify types internal / external
        c. assemble the class -> members listing for the requested scope
    3. Aggregate per-source results into a :class:`ContainerScanResult`

Sources are decoded independently.  A malformed image is recorded as a
failed :class:`DexScanResult` and the remaining images are still decoded,
unless ``scan.fail_fast`` is set, in which case the error propagates.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

from shared.config import DepsConfig
from shared.logger import DepsLogger

from dexdeps.core.dex_file import DexFile
from dexdeps.core.errors import DexFormatError
from dexdeps.core.models import (
    ContainerScanResult,
    DexScanResult,
    ReferenceScope,
)
from dexdeps.parsers.container import DexSource, open_dex_sources


class DepsEngine:
    """Runs the extraction pipeline over one input file.

    Usage::

        engine = DepsEngine()
        result = engine.scan("app-release.apk", scope="external")
        for dex in result.results:
            print(dex.source, len(dex.classes))
    """

    def __init__(
        self,
        config: DepsConfig | None = None,
        logger: DepsLogger | None = None,
    ) -> None:
        """Initialise the engine.

        Args:
            config: Configuration.  Defaults are used if not provided.
            logger: Logger instance.  A new one is created if not provided.
        """
        self._config: DepsConfig = config or DepsConfig()
        self._logger: DepsLogger = logger or DepsLogger(
            "engine", log_level=self._config.global_settings.log_level
        )

    # ------------------------------------------------------------------ #
    #  Entry points
    # ------------------------------------------------------------------ #

    def scan(
        self,
        path: str | Path,
        scope: ReferenceScope | str | None = None,
    ) -> ContainerScanResult:
        """Extract references from every DEX image held by *path*.

        Args:
            path: Raw DEX file or APK/JAR/AAR archive.
            scope: ``"all"``, ``"internal"`` or ``"external"``; defaults
                to ``config.scan.scope``.

        Raises:
            ContainerError: The input cannot be resolved to DEX images.
            DexFormatError: An image is malformed and ``fail_fast`` is set.
        """
        scan_cfg = self._config.scan
        self._logger.info("Starting reference scan of %s", path)

        with open_dex_sources(
            path,
            max_file_size=scan_cfg.max_file_size,
            max_dex_entries=scan_cfg.max_dex_entries,
        ) as sources:
            return self.scan_sources(sources, target=str(path), scope=scope)

    def scan_sources(
        self,
        sources: Iterable[DexSource],
        target: str = "<memory>",
        scope: ReferenceScope | str | None = None,
    ) -> ContainerScanResult:
        """Extract references from already opened byte sources."""
        resolved = ReferenceScope(scope or self._config.scan.scope)
        result = ContainerScanResult(target=target, scope=resolved)

        for source in sources:
            result.results.append(self._scan_source(source, resolved))

        result.finalize()
        self._logger.info(result.summary)
        return result

    def _scan_source(
        self, source: DexSource, scope: ReferenceScope
    ) -> DexScanResult:
        with self._logger.operation(f"decode:{source.name}"):
            try:
                with self._logger.timed(f"decode {source.name}"):
                    dex = DexFile.load(source.stream, source.name)
                    classes = dex.references(scope)
            except DexFormatError as exc:
                if self._config.scan.fail_fast:
                    raise
                self._logger.error(
                    "Failed to decode %s: %s",
                    source.name,
                    exc,
                    source=source.name,
                    error_kind=exc.kind,
                    offset=exc.offset,
                )
                return DexScanResult(
                    source=source.name,
                    scope=scope,
                    error=str(exc),
                    error_kind=exc.kind,
                    error_offset=exc.offset,
                )

            self._logger.debug(
                "DEX %s: version %s, %s-endian, %d class reference(s)",
                source.name,
                dex.header.version,
                dex.header.endian,
                len(classes),
            )
            return DexScanResult(
                source=source.name,
                scope=scope,
                version=dex.header.version,
                endian=dex.header.endian,
                counts=dex.counts,
                classes=classes,
            )
