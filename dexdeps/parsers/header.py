"""
DEX Header Decoder
===================

Validates the magic and endian tag of a DEX image and extracts the
sizes and offsets of the six index tables from the 112-byte
``header_item``.

Header layout (all ``uint`` unless noted)::

    0x00  magic            ubyte[8]
    0x08  checksum
    0x0C  signature        ubyte[20]
    0x20  file_size
    0x24  header_size
    0x28  endian_tag
    0x2C  link_size, link_off, map_off
    0x38  string_ids  size/off
    0x40  type_ids    size/off
    0x48  proto_ids   size/off
    0x50  field_ids   size/off
    0x58  method_ids  size/off
    0x60  class_defs  size/off
    0x68  data        size/off

References:
    - Google. (2024). DEX Format -- header_item. Android Open Source Project.
      https://source.android.com/docs/core/runtime/dex-format#header-item
"""

from __future__ import annotations

import struct
from dataclasses import dataclass

from dexdeps.core.errors import BadEndianTagError, BadMagicError
from dexdeps.parsers.reader import DexReader


# ---------------------------------------------------------------------------
# DEX Constants
# ---------------------------------------------------------------------------

# 036 is not a valid version (see art/runtime/dex_file.cc)
DEX_MAGICS: dict[bytes, str] = {
    b"dex\n035\x00": "035",
    b"dex\n037\x00": "037",
    b"dex\n038\x00": "038",
    b"dex\n039\x00": "039",
}

ENDIAN_CONSTANT: int = 0x12345678
REVERSE_ENDIAN_CONSTANT: int = 0x78563412

HEADER_ITEM_SIZE: int = 0x70
_ENDIAN_TAG_OFFSET: int = 8 + 4 + 20 + 4 + 4
_METADATA_OFFSET: int = 8 + 4 + 20


@dataclass(frozen=True, slots=True)
class HeaderInfo:
    """Decoded ``header_item`` of one DEX image."""

    version: str
    endian: str
    file_size: int
    header_size: int
    string_ids_size: int
    string_ids_off: int
    type_ids_size: int
    type_ids_off: int
    proto_ids_size: int
    proto_ids_off: int
    field_ids_size: int
    field_ids_off: int
    method_ids_size: int
    method_ids_off: int
    class_defs_size: int
    class_defs_off: int


def parse_header(reader: DexReader) -> HeaderInfo:
    """Decode the header of the image behind *reader*.

    On success the reader's byte order is switched to the one declared
    by the endian tag.

    Raises:
        BadMagicError: The magic is not a supported DEX version.
        BadEndianTagError: The endian tag is not a recognised constant.
        TruncatedInputError: The source is shorter than the header.
    """
    reader.seek(0)
    magic = reader.read_bytes(8)
    version = DEX_MAGICS.get(magic)
    if version is None:
        raise BadMagicError(magic)

    # The tag itself tells us how to read everything else, so it is
    # always decoded little-endian.
    reader.seek(_ENDIAN_TAG_OFFSET)
    endian_tag = struct.unpack("<I", reader.read_bytes(4))[0]
    if endian_tag == ENDIAN_CONSTANT:
        reader.endian = "little"
    elif endian_tag == REVERSE_ENDIAN_CONSTANT:
        reader.endian = "big"
    else:
        raise BadEndianTagError(endian_tag, offset=_ENDIAN_TAG_OFFSET)

    reader.seek(_METADATA_OFFSET)
    file_size = reader.read_u32()
    header_size = reader.read_u32()
    reader.read_u32()  # endian_tag
    reader.read_u32()  # link_size
    reader.read_u32()  # link_off
    reader.read_u32()  # map_off

    tables: list[int] = [reader.read_u32() for _ in range(12)]

    reader.read_u32()  # data_size
    reader.read_u32()  # data_off

    return HeaderInfo(
        version=version,
        endian=reader.endian,
        file_size=file_size,
        header_size=header_size,
        string_ids_size=tables[0],
        string_ids_off=tables[1],
        type_ids_size=tables[2],
        type_ids_off=tables[3],
        proto_ids_size=tables[4],
        proto_ids_off=tables[5],
        field_ids_size=tables[6],
        field_ids_off=tables[7],
        method_ids_size=tables[8],
        method_ids_off=tables[9],
        class_defs_size=tables[10],
        class_defs_off=tables[11],
    )
