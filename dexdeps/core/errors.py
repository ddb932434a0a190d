"""
DexDeps Exceptions
===================

Exception hierarchy raised while decoding a DEX image.  Every decode
failure aborts the image it occurred in; no partial references are
returned for that image.

Format errors carry the byte offset at which decoding failed (when it is
known) so that corrupt inputs can be diagnosed with a hex viewer.
"""

from __future__ import annotations

from typing import Optional


class DexError(Exception):
    """Base class for every DexDeps failure.

    Attributes:
        offset: File offset at which the failure was detected, or ``None``.
    """

    def __init__(self, message: str, *, offset: Optional[int] = None) -> None:
        self.offset: Optional[int] = offset
        if offset is not None:
            message = f"{message} (at offset 0x{offset:x})"
        super().__init__(message)

    @property
    def kind(self) -> str:
        """Short error kind, e.g. ``"BadMagicError"``."""
        return type(self).__name__


class DexFormatError(DexError):
    """The byte source does not hold a well-formed DEX image."""


class BadMagicError(DexFormatError):
    """The leading 8 bytes are not one of the accepted DEX magic values."""

    def __init__(self, magic: bytes) -> None:
        self.magic: bytes = magic
        super().__init__(
            f"Unrecognised DEX magic {magic!r} -- is this really a DEX file?",
            offset=0,
        )


class BadEndianTagError(DexFormatError):
    """The header endian tag is neither of the two recognised constants."""

    def __init__(self, tag: int, *, offset: int) -> None:
        self.tag: int = tag
        super().__init__(f"Unexpected endian tag 0x{tag:08x}", offset=offset)


class TruncatedInputError(DexFormatError):
    """The byte source ended before a requested read completed."""

    def __init__(self, *, offset: int, requested: int, available: int) -> None:
        self.requested: int = requested
        self.available: int = available
        super().__init__(
            f"Truncated input: wanted {requested} byte(s), got {available}",
            offset=offset,
        )


class IndexOutOfRangeError(DexFormatError):
    """A row references an entry past the end of another table."""

    def __init__(
        self,
        table: str,
        row: int,
        index: int,
        limit: int,
        *,
        target: str,
        offset: Optional[int] = None,
    ) -> None:
        self.table: str = table
        self.row: int = row
        self.index: int = index
        self.limit: int = limit
        self.target: str = target
        super().__init__(
            f"{table}[{row}] references {target} index {index}, "
            f"but {target} holds only {limit} entries",
            offset=offset,
        )


class ContainerError(DexError):
    """The input could not be resolved to any DEX image."""
