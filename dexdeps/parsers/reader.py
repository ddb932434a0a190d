"""
DEX Primitive Reader
=====================

Endian-aware decoding of the primitive encodings used throughout the
Dalvik Executable format, read from any seekable binary stream:

    - fixed-width unsigned integers (``ubyte``, ``ushort``, ``uint``)
    - raw byte runs
    - ULEB128 variable-length integers
    - ``string_data_item`` (ULEB128 length hint + NUL-terminated MUTF-8)

The byte order is chosen once, from the header endian tag, and applies
to every multi-byte read that follows.

References:
    - Google. (2024). DEX Format. Android Open Source Project.
      https://source.android.com/docs/core/runtime/dex-format
"""

from __future__ import annotations

import struct
from typing import BinaryIO

from dexdeps.core.errors import TruncatedInputError


_BYTE_ORDER_PREFIX: dict[str, str] = {"little": "<", "big": ">"}

# MUTF-8 encodes U+0000 as a two-byte sequence
_MUTF8_NUL: bytes = b"\xc0\x80"


class DexReader:
    """Cursor-based reader over a seekable DEX byte source.

    Usage::

        reader = DexReader(stream)
        reader.seek(0x38)
        count = reader.read_u32()
    """

    def __init__(self, stream: BinaryIO, *, endian: str = "little") -> None:
        """Wrap *stream*.

        Args:
            stream: Binary stream supporting ``seek``, ``tell`` and ``read``.
            endian: Initial byte order, ``"little"`` or ``"big"``.
        """
        self._stream: BinaryIO = stream
        self._prefix: str = "<"
        self.endian = endian

    # ------------------------------------------------------------------ #
    #  Byte order
    # ------------------------------------------------------------------ #

    @property
    def endian(self) -> str:
        """Byte order applied to multi-byte reads."""
        return "little" if self._prefix == "<" else "big"

    @endian.setter
    def endian(self, value: str) -> None:
        try:
            self._prefix = _BYTE_ORDER_PREFIX[value]
        except KeyError:
            raise ValueError(f"Unknown byte order: {value!r}") from None

    # ------------------------------------------------------------------ #
    #  Positioning
    # ------------------------------------------------------------------ #

    def seek(self, position: int) -> None:
        """Move the cursor to the absolute file offset *position*."""
        self._stream.seek(position)

    def tell(self) -> int:
        """Current absolute file offset."""
        return self._stream.tell()

    # ------------------------------------------------------------------ #
    #  Fixed-width reads
    # ------------------------------------------------------------------ #

    def read_bytes(self, count: int) -> bytes:
        """Read exactly *count* raw bytes.

        Raises:
            TruncatedInputError: If fewer than *count* bytes remain.
        """
        offset = self._stream.tell()
        data = self._stream.read(count)
        if len(data) < count:
            raise TruncatedInputError(
                offset=offset, requested=count, available=len(data)
            )
        return data

    def read_u8(self) -> int:
        """Read a ``ubyte``."""
        return self.read_bytes(1)[0]

    def read_u16(self) -> int:
        """Read a ``ushort`` (zero-extended) in the active byte order."""
        return struct.unpack(f"{self._prefix}H", self.read_bytes(2))[0]

    def read_u32(self) -> int:
        """Read a ``uint`` in the active byte order."""
        return struct.unpack(f"{self._prefix}I", self.read_bytes(4))[0]

    # ------------------------------------------------------------------ #
    #  Variable-length reads
    # ------------------------------------------------------------------ #

    def read_uleb128(self) -> int:
        """Read an unsigned LEB128 value.

        Seven payload bits per byte, least significant group first; a set
        high bit means another byte follows.  The value is not bounded.
        """
        result = 0
        shift = 0
        while True:
            byte = self.read_u8()
            result |= (byte & 0x7F) << shift
            if not byte & 0x80:
                return result
            shift += 7

    def read_string(self) -> str:
        """Read one ``string_data_item``.

        The leading ULEB128 value is the UTF-16 length of the string.  It
        only bounds the scan: at most ``length * 3`` bytes are consumed,
        and the first zero byte ends the string.  The terminator, when
        reached, is consumed as well.
        """
        utf16_size = self.read_uleb128()
        limit = utf16_size * 3
        buf = bytearray()
        while len(buf) < limit:
            byte = self.read_u8()
            if byte == 0:
                break
            buf.append(byte)
        return bytes(buf).replace(_MUTF8_NUL, b"\x00").decode(
            "utf-8", errors="replace"
        )
