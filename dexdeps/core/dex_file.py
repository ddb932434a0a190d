"""
DEX Image Facade
=================

:class:`DexFile` runs the complete decode of one byte source -- header,
index tables, classification -- and exposes the reference listings.

Decode order is fixed:

    header -> strings -> types -> protos -> fields -> methods
           -> class defs -> classification

Any failure aborts the decode and propagates; a :class:`DexFile` only
exists for an image that decoded completely.
"""

from __future__ import annotations

from typing import BinaryIO

import numpy as np

from dexdeps.analyzers.assembler import ReferenceAssembler
from dexdeps.analyzers.classifier import TypeClassifier
from dexdeps.core.models import ClassRef, ReferenceScope, TableCounts
from dexdeps.parsers.header import HeaderInfo, parse_header
from dexdeps.parsers.reader import DexReader
from dexdeps.parsers.tables import DexTables, load_tables


class DexFile:
    """A fully decoded DEX image.

    Usage::

        with open("classes.dex", "rb") as fh:
            dex = DexFile.load(fh, name="classes.dex")
        for class_ref in dex.external_references():
            print(class_ref)
    """

    def __init__(
        self,
        name: str,
        header: HeaderInfo,
        tables: DexTables,
        internal: np.ndarray,
    ) -> None:
        self.name: str = name
        self.header: HeaderInfo = header
        self.tables: DexTables = tables
        self.internal: np.ndarray = internal
        self._assembler = ReferenceAssembler(tables, internal)

    @classmethod
    def load(cls, stream: BinaryIO, name: str = "classes.dex") -> DexFile:
        """Decode the image held by *stream*.

        Args:
            stream: Seekable binary stream positioned anywhere.
            name: Display name of the source.

        Raises:
            BadMagicError, BadEndianTagError, TruncatedInputError,
            IndexOutOfRangeError: The image is malformed.
        """
        reader = DexReader(stream)
        header = parse_header(reader)
        tables = load_tables(reader, header)
        internal = TypeClassifier().classify(tables)
        return cls(name, header, tables, internal)

    # ------------------------------------------------------------------ #
    #  Queries
    # ------------------------------------------------------------------ #

    def is_internal(self, type_idx: int) -> bool:
        return bool(self.internal[type_idx])

    def all_references(self) -> list[ClassRef]:
        return self._assembler.all_references()

    def internal_references(self) -> list[ClassRef]:
        return self._assembler.internal_references()

    def external_references(self) -> list[ClassRef]:
        return self._assembler.external_references()

    def references(
        self, scope: ReferenceScope | str = ReferenceScope.ALL
    ) -> list[ClassRef]:
        return self._assembler.references(ReferenceScope(scope))

    @property
    def counts(self) -> TableCounts:
        t = self.tables
        return TableCounts(
            strings=len(t.strings),
            types=len(t.type_ids),
            protos=len(t.proto_ids),
            fields=len(t.field_ids),
            methods=len(t.method_ids),
            class_defs=len(t.class_defs),
        )

    def __repr__(self) -> str:
        return (
            f"DexFile(name={self.name!r}, version={self.header.version!r}, "
            f"types={len(self.tables.type_ids)})"
        )
