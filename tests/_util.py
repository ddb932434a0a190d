import struct
import zipfile
from pathlib import Path
from typing import Sequence

HEADER_SIZE = 0x70
DEX_035 = b"dex\n035\x00"


def uleb128(value: int) -> bytes:
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def build_dex(
    strings: Sequence[str],
    types: Sequence[int],
    protos: Sequence[tuple[int, int, Sequence[int]]] = (),
    fields: Sequence[tuple[int, int, int]] = (),
    methods: Sequence[tuple[int, int, int]] = (),
    class_defs: Sequence[int] = (),
    *,
    endian: str = "little",
    magic: bytes = DEX_035,
    endian_tag: int = 0x12345678,
) -> bytes:
    """Assemble a minimal DEX image.

    protos are (shorty_idx, return_type_idx, parameter type idxs),
    fields (class_idx, type_idx, name_idx), methods
    (class_idx, proto_idx, name_idx), class_defs the defining type idxs.
    """
    e = "<" if endian == "little" else ">"

    string_ids_off = HEADER_SIZE
    type_ids_off = string_ids_off + 4 * len(strings)
    proto_ids_off = type_ids_off + 4 * len(types)
    field_ids_off = proto_ids_off + 12 * len(protos)
    method_ids_off = field_ids_off + 8 * len(fields)
    class_defs_off = method_ids_off + 8 * len(methods)
    data_off = class_defs_off + 32 * len(class_defs)

    data = bytearray()
    param_offsets = []
    for _shorty, _ret, params in protos:
        if not params:
            param_offsets.append(0)
            continue
        while (data_off + len(data)) % 4:
            data.append(0)
        param_offsets.append(data_off + len(data))
        data += struct.pack(f"{e}I", len(params))
        for type_idx in params:
            data += struct.pack(f"{e}H", type_idx)

    string_offsets = []
    for value in strings:
        string_offsets.append(data_off + len(data))
        utf16_size = len(value.encode("utf-16-le")) // 2
        data += uleb128(utf16_size) + value.encode("utf-8") + b"\x00"

    body = bytearray()
    for offset in string_offsets:
        body += struct.pack(f"{e}I", offset)
    for descriptor_idx in types:
        body += struct.pack(f"{e}I", descriptor_idx)
    for (shorty, ret, _params), params_off in zip(protos, param_offsets):
        body += struct.pack(f"{e}III", shorty, ret, params_off)
    for class_idx, type_idx, name_idx in fields:
        body += struct.pack(f"{e}HHI", class_idx, type_idx, name_idx)
    for class_idx, proto_idx, name_idx in methods:
        body += struct.pack(f"{e}HHI", class_idx, proto_idx, name_idx)
    for class_idx in class_defs:
        body += struct.pack(f"{e}8I", class_idx, 1, 0xFFFFFFFF, 0, 0xFFFFFFFF, 0, 0, 0)

    file_size = HEADER_SIZE + len(body) + len(data)

    def table(count: int, offset: int) -> tuple[int, int]:
        return (count, offset if count else 0)

    header = bytearray(magic)
    header += struct.pack(f"{e}I", 0)  # checksum
    header += b"\x00" * 20  # signature
    header += struct.pack(
        f"{e}20I",
        file_size,
        HEADER_SIZE,
        endian_tag,
        0, 0, 0,  # link_size, link_off, map_off
        *table(len(strings), string_ids_off),
        *table(len(types), type_ids_off),
        *table(len(protos), proto_ids_off),
        *table(len(fields), field_ids_off),
        *table(len(methods), method_ids_off),
        *table(len(class_defs), class_defs_off),
        len(data),
        data_off,
    )
    assert len(header) == HEADER_SIZE
    return bytes(header + body + data)


# Strings are kept in sorted order like a real image.
SAMPLE_STRINGS = [
    "<init>",                   # 0
    "I",                        # 1
    "L",                        # 2
    "LI",                       # 3
    "Landroid/app/Activity;",   # 4
    "Lcom/example/Main;",       # 5
    "Ljava/lang/Object;",       # 6
    "Ljava/lang/String;",       # 7
    "V",                        # 8
    "VL",                       # 9
    "[Ljava/lang/String;",      # 10
    "count",                    # 11
    "main",                     # 12
    "name",                     # 13
    "out",                      # 14
    "valueOf",                  # 15
]

# type_ids: descriptor string indices
SAMPLE_TYPES = [1, 4, 5, 6, 7, 8, 10]
T_INT, T_ACTIVITY, T_MAIN, T_OBJECT, T_STRING, T_VOID, T_STRING_ARRAY = range(7)

SAMPLE_PROTOS = [
    (2, T_STRING, [T_INT]),          # (I)Ljava/lang/String;
    (8, T_VOID, []),                 # ()V
    (9, T_VOID, [T_STRING_ARRAY]),   # ([Ljava/lang/String;)V
]

SAMPLE_FIELDS = [
    (T_MAIN, T_INT, 11),       # Main.count:I
    (T_ACTIVITY, T_OBJECT, 14),  # Activity.out:Object
    (T_MAIN, T_STRING, 13),    # Main.name:String
]

SAMPLE_METHODS = [
    (T_ACTIVITY, 1, 0),   # Activity.<init>()V
    (T_MAIN, 1, 0),       # Main.<init>()V
    (T_MAIN, 2, 12),      # Main.main([Ljava/lang/String;)V
    (T_STRING, 0, 15),    # String.valueOf(I)Ljava/lang/String;
]

SAMPLE_CLASS_DEFS = [T_MAIN]


def sample_dex(**kwargs) -> bytes:
    return build_dex(
        SAMPLE_STRINGS,
        SAMPLE_TYPES,
        SAMPLE_PROTOS,
        SAMPLE_FIELDS,
        SAMPLE_METHODS,
        SAMPLE_CLASS_DEFS,
        **kwargs,
    )


def write_apk(path: Path, entries: dict[str, bytes]) -> Path:
    with zipfile.ZipFile(path, "w") as zf:
        zf.writestr("AndroidManifest.xml", b"\x03\x00\x08\x00")
        for name, data in entries.items():
            zf.writestr(name, data)
    return path


def write_corrupt_apk(path: Path, data: bytes) -> Path:
    """APK whose stored classes.dex no longer matches its CRC-32."""
    write_apk(path, {"classes.dex": data})
    raw = bytearray(path.read_bytes())
    raw[raw.index(data) + len(data) // 2] ^= 0xFF
    path.write_bytes(bytes(raw))
    return path
