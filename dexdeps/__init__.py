"""
DexDeps -- DEX Dependency Extractor
====================================

Static dependency analysis for Android applications.  DexDeps decodes
the index tables of DEX images (raw ``.dex`` files or the
``classes*.dex`` entries of an APK/JAR/AAR) and lists every referenced
class, field and method, tagged *internal* (defined in the image) or
*external* (resolved elsewhere).

Modules:
    - dexdeps.parsers: byte reader, header, index tables, containers
    - dexdeps.analyzers: classifier, reference assembler, graph export
    - dexdeps.core: DEX facade, scan engine, models, errors
    - dexdeps.output: console and report output
    - dexdeps.cli: Click-based command-line interface

References:
    - Google. (2024). DEX Format. Android Open Source Project.
      https://source.android.com/docs/core/runtime/dex-format
"""

from dexdeps.core.dex_file import DexFile
from dexdeps.core.engine import DepsEngine
from dexdeps.core.errors import (
    BadEndianTagError,
    BadMagicError,
    ContainerError,
    DexError,
    DexFormatError,
    IndexOutOfRangeError,
    TruncatedInputError,
)
from dexdeps.core.models import (
    ClassRef,
    ContainerScanResult,
    DexScanResult,
    FieldRef,
    MethodRef,
    ReferenceScope,
)
from dexdeps.parsers.container import DexSource, open_dex_sources

__version__ = "1.0.0"
__all__ = [
    "BadEndianTagError",
    "BadMagicError",
    "ClassRef",
    "ContainerError",
    "ContainerScanResult",
    "DepsEngine",
    "DexError",
    "DexFile",
    "DexFormatError",
    "DexScanResult",
    "DexSource",
    "FieldRef",
    "IndexOutOfRangeError",
    "MethodRef",
    "ReferenceScope",
    "TruncatedInputError",
    "open_dex_sources",
]
