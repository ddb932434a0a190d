"""
DEX Index Table Loaders
========================

Sequential loaders for the six index tables of a DEX image.  The tables
are loaded in a fixed order so that every index read from a row can be
range-checked against a table that already exists:

    1. string_ids   -> string pool
    2. type_ids     -> string pool
    3. proto_ids    -> string pool, type_ids   (two passes)
    4. field_ids    -> string pool, type_ids
    5. method_ids   -> string pool, type_ids, proto_ids
    6. class_defs   -> type_ids

Item sizes::

    string_id_item    4 bytes   uint string_data_off
    type_id_item      4 bytes   uint descriptor_idx
    proto_id_item    12 bytes   uint shorty_idx, return_type_idx, parameters_off
    field_id_item     8 bytes   ushort class_idx, type_idx; uint name_idx
    method_id_item    8 bytes   ushort class_idx, proto_idx; uint name_idx
    class_def_item   32 bytes   uint class_idx + 7 further uints

References:
    - Google. (2024). DEX Format. Android Open Source Project.
      https://source.android.com/docs/core/runtime/dex-format
"""

from __future__ import annotations

from dataclasses import dataclass

from shared.logger import DepsLogger

from dexdeps.core.errors import IndexOutOfRangeError
from dexdeps.parsers.header import HeaderInfo
from dexdeps.parsers.reader import DexReader

logger = DepsLogger("dexdeps.tables", propagate=True)

_CLASS_DEF_ITEM_SIZE: int = 32


# ---------------------------------------------------------------------------
# Table rows
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class TypeIdItem:
    """A ``type_id_item``: index of the type's descriptor string."""
    descriptor_idx: int


@dataclass(frozen=True, slots=True)
class ProtoIdItem:
    """A ``proto_id_item`` with its parameter ``type_list`` resolved."""
    shorty_idx: int
    return_type_idx: int
    parameters_off: int
    parameter_type_idxs: tuple[int, ...] = ()


@dataclass(frozen=True, slots=True)
class FieldIdItem:
    class_idx: int
    type_idx: int
    name_idx: int


@dataclass(frozen=True, slots=True)
class MethodIdItem:
    class_idx: int
    proto_idx: int
    name_idx: int


@dataclass(frozen=True, slots=True)
class ClassDefItem:
    """A ``class_def_item``; only the defining type is kept."""
    class_idx: int


@dataclass(frozen=True, slots=True)
class DexTables:
    """All index tables of one DEX image, immutable after load."""

    strings: tuple[str, ...]
    type_ids: tuple[TypeIdItem, ...]
    proto_ids: tuple[ProtoIdItem, ...]
    field_ids: tuple[FieldIdItem, ...]
    method_ids: tuple[MethodIdItem, ...]
    class_defs: tuple[ClassDefItem, ...]

    def descriptor(self, type_idx: int) -> str:
        """Descriptor string of the type at *type_idx*."""
        return self.strings[self.type_ids[type_idx].descriptor_idx]


# ---------------------------------------------------------------------------
# Loaders
# ---------------------------------------------------------------------------

def load_tables(reader: DexReader, header: HeaderInfo) -> DexTables:
    """Load every index table described by *header*.

    Raises:
        TruncatedInputError: The source ended in the middle of a table.
        IndexOutOfRangeError: A row references a missing entry.
    """
    strings = load_strings(reader, header)
    type_ids = load_type_ids(reader, header, len(strings))
    proto_ids = load_proto_ids(reader, header, len(strings), len(type_ids))
    field_ids = load_field_ids(reader, header, len(strings), len(type_ids))
    method_ids = load_method_ids(
        reader, header, len(strings), len(type_ids), len(proto_ids)
    )
    class_defs = load_class_defs(reader, header, len(type_ids))

    logger.debug(
        "Loaded tables: %d strings, %d types, %d protos, %d fields, "
        "%d methods, %d class defs",
        len(strings), len(type_ids), len(proto_ids),
        len(field_ids), len(method_ids), len(class_defs),
    )
    return DexTables(
        strings=strings,
        type_ids=type_ids,
        proto_ids=proto_ids,
        field_ids=field_ids,
        method_ids=method_ids,
        class_defs=class_defs,
    )


def load_strings(reader: DexReader, header: HeaderInfo) -> tuple[str, ...]:
    """Load the string pool.

    All ``string_id_item`` offsets are read first, in one contiguous run,
    and only then is each ``string_data_item`` decoded.  Strings are
    normally stored in id order, so this walks the data forward.
    """
    count = header.string_ids_size
    if count == 0:
        return ()

    reader.seek(header.string_ids_off)
    offsets = [reader.read_u32() for _ in range(count)]

    strings: list[str] = []
    for offset in offsets:
        reader.seek(offset)
        strings.append(reader.read_string())
    return tuple(strings)


def load_type_ids(
    reader: DexReader, header: HeaderInfo, string_count: int
) -> tuple[TypeIdItem, ...]:
    """Load the ``type_ids`` table."""
    type_ids: list[TypeIdItem] = []
    reader.seek(header.type_ids_off)
    for row in range(header.type_ids_size):
        row_off = reader.tell()
        descriptor_idx = reader.read_u32()
        _check("type_ids", row, descriptor_idx, string_count, "string_ids", row_off)
        type_ids.append(TypeIdItem(descriptor_idx))
    return tuple(type_ids)


def load_proto_ids(
    reader: DexReader,
    header: HeaderInfo,
    string_count: int,
    type_count: int,
) -> tuple[ProtoIdItem, ...]:
    """Load the ``proto_ids`` table in two passes.

    Pass 1 reads the fixed-size rows.  Pass 2 visits each non-zero
    ``parameters_off`` and decodes its ``type_list`` (``uint`` size
    followed by ``ushort`` type indices).  A zero offset means the
    prototype takes no parameters and nothing is read for it.
    """
    rows: list[tuple[int, int, int]] = []
    reader.seek(header.proto_ids_off)
    for row in range(header.proto_ids_size):
        row_off = reader.tell()
        shorty_idx = reader.read_u32()
        return_type_idx = reader.read_u32()
        parameters_off = reader.read_u32()
        _check("proto_ids", row, shorty_idx, string_count, "string_ids", row_off)
        _check("proto_ids", row, return_type_idx, type_count, "type_ids", row_off)
        rows.append((shorty_idx, return_type_idx, parameters_off))

    protos: list[ProtoIdItem] = []
    for row, (shorty_idx, return_type_idx, parameters_off) in enumerate(rows):
        params: tuple[int, ...] = ()
        if parameters_off != 0:
            reader.seek(parameters_off)
            size = reader.read_u32()
            param_list: list[int] = []
            for _ in range(size):
                item_off = reader.tell()
                type_idx = reader.read_u16()
                _check("proto_ids", row, type_idx, type_count, "type_ids", item_off)
                param_list.append(type_idx)
            params = tuple(param_list)
        protos.append(
            ProtoIdItem(
                shorty_idx=shorty_idx,
                return_type_idx=return_type_idx,
                parameters_off=parameters_off,
                parameter_type_idxs=params,
            )
        )
    return tuple(protos)


def load_field_ids(
    reader: DexReader,
    header: HeaderInfo,
    string_count: int,
    type_count: int,
) -> tuple[FieldIdItem, ...]:
    """Load the ``field_ids`` table."""
    fields: list[FieldIdItem] = []
    reader.seek(header.field_ids_off)
    for row in range(header.field_ids_size):
        row_off = reader.tell()
        class_idx = reader.read_u16()
        type_idx = reader.read_u16()
        name_idx = reader.read_u32()
        _check("field_ids", row, class_idx, type_count, "type_ids", row_off)
        _check("field_ids", row, type_idx, type_count, "type_ids", row_off)
        _check("field_ids", row, name_idx, string_count, "string_ids", row_off)
        fields.append(FieldIdItem(class_idx, type_idx, name_idx))
    return tuple(fields)


def load_method_ids(
    reader: DexReader,
    header: HeaderInfo,
    string_count: int,
    type_count: int,
    proto_count: int,
) -> tuple[MethodIdItem, ...]:
    """Load the ``method_ids`` table."""
    methods: list[MethodIdItem] = []
    reader.seek(header.method_ids_off)
    for row in range(header.method_ids_size):
        row_off = reader.tell()
        class_idx = reader.read_u16()
        proto_idx = reader.read_u16()
        name_idx = reader.read_u32()
        _check("method_ids", row, class_idx, type_count, "type_ids", row_off)
        _check("method_ids", row, proto_idx, proto_count, "proto_ids", row_off)
        _check("method_ids", row, name_idx, string_count, "string_ids", row_off)
        methods.append(MethodIdItem(class_idx, proto_idx, name_idx))
    return tuple(methods)


def load_class_defs(
    reader: DexReader, header: HeaderInfo, type_count: int
) -> tuple[ClassDefItem, ...]:
    """Load the ``class_defs`` table.

    Only ``class_idx`` is kept; access flags, superclass, interfaces,
    source file, annotations, class data and static values are skipped.
    """
    class_defs: list[ClassDefItem] = []
    reader.seek(header.class_defs_off)
    for row in range(header.class_defs_size):
        row_off = reader.tell()
        class_idx = reader.read_u32()
        reader.read_bytes(_CLASS_DEF_ITEM_SIZE - 4)
        _check("class_defs", row, class_idx, type_count, "type_ids", row_off)
        class_defs.append(ClassDefItem(class_idx))
    return tuple(class_defs)


def _check(
    table: str, row: int, index: int, limit: int, target: str, offset: int
) -> None:
    if index >= limit:
        raise IndexOutOfRangeError(
            table, row, index, limit, target=target, offset=offset
        )
