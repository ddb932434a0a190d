"""
DexDeps Data Models
====================

Pydantic models for the reference graph extracted from DEX images and
for the per-image / per-container scan results built around it.

A :class:`ClassRef` groups the :class:`FieldRef` and :class:`MethodRef`
entries whose declaring class is that type.  Member references are
immutable value objects; their ``internal`` flag is always copied from
the declaring class.

References:
    - Google. (2024). DEX Format -- TypeDescriptor semantics.
      https://source.android.com/docs/core/runtime/dex-format#typedescriptor
"""

from __future__ import annotations

import datetime as _dt
import enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


_PRIMITIVE_NAMES: dict[str, str] = {
    "V": "void",
    "Z": "boolean",
    "B": "byte",
    "S": "short",
    "C": "char",
    "I": "int",
    "J": "long",
    "F": "float",
    "D": "double",
}


def descriptor_to_dot(descriptor: str) -> str:
    """Convert a type descriptor to its source-level name.

    ``Lcom/example/Foo;`` becomes ``com.example.Foo``, ``[I`` becomes
    ``int[]`` and ``Lcom/example/Outer$Inner;`` keeps the ``$``.
    Unknown shapes are returned unchanged.
    """
    if not descriptor:
        return ""

    dims = 0
    while dims < len(descriptor) and descriptor[dims] == "[":
        dims += 1
    base = descriptor[dims:]

    if base.startswith("L") and base.endswith(";"):
        name = base[1:-1].replace("/", ".")
    else:
        name = _PRIMITIVE_NAMES.get(base, base)
    return name + "[]" * dims


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class ReferenceScope(str, enum.Enum):
    """Which classes a reference listing covers."""
    ALL = "all"
    INTERNAL = "internal"
    EXTERNAL = "external"

    @property
    def filters(self) -> tuple[bool, bool]:
        """``(include_internal, include_external)`` for this scope."""
        return {
            ReferenceScope.ALL: (True, True),
            ReferenceScope.INTERNAL: (True, False),
            ReferenceScope.EXTERNAL: (False, True),
        }[self]


# ---------------------------------------------------------------------------
# Reference graph
# ---------------------------------------------------------------------------

class FieldRef(BaseModel):
    """A reference to a field.

    Attributes:
        declaring_class: Descriptor of the class declaring the field.
        name: Field name.
        type_name: Descriptor of the field type.
        internal: Whether the declaring class is internal.
    """
    model_config = ConfigDict(frozen=True)

    declaring_class: str
    name: str
    type_name: str
    internal: bool = False

    @property
    def dot_class_name(self) -> str:
        return descriptor_to_dot(self.declaring_class)

    def __str__(self) -> str:
        return f"{self.dot_class_name}.{self.name}:{self.type_name}"


class MethodRef(BaseModel):
    """A reference to a method.

    Attributes:
        declaring_class: Descriptor of the class declaring the method.
        name: Method name.
        argument_types: Parameter descriptors, in declaration order.
        return_type: Return type descriptor.
        internal: Whether the declaring class is internal.
    """
    model_config = ConfigDict(frozen=True)

    declaring_class: str
    name: str
    argument_types: tuple[str, ...] = ()
    return_type: str = "V"
    internal: bool = False

    @property
    def descriptor(self) -> str:
        """Method descriptor, e.g. ``(ILjava/lang/String;)V``."""
        return "(" + "".join(self.argument_types) + ")" + self.return_type

    @property
    def dot_class_name(self) -> str:
        return descriptor_to_dot(self.declaring_class)

    def __str__(self) -> str:
        return f"{self.dot_class_name}.{self.name}{self.descriptor}"


class ClassRef(BaseModel):
    """A referenced class together with its referenced members.

    Members appear in the order the field and method tables list them.

    Attributes:
        name: Class descriptor.
        internal: ``True`` when defined in the image (or a primitive /
            array type), ``False`` when resolved from elsewhere.
        fields: Field references declared by this class.
        methods: Method references declared by this class.
    """
    name: str
    internal: bool = False
    fields: list[FieldRef] = Field(default_factory=list)
    methods: list[MethodRef] = Field(default_factory=list)

    @property
    def dot_name(self) -> str:
        return descriptor_to_dot(self.name)

    def add_field(self, field_ref: FieldRef) -> None:
        self.fields.append(field_ref)

    def add_method(self, method_ref: MethodRef) -> None:
        self.methods.append(method_ref)

    def __str__(self) -> str:
        return self.dot_name


# ---------------------------------------------------------------------------
# Scan results
# ---------------------------------------------------------------------------

class TableCounts(BaseModel):
    """Row counts of the six index tables."""
    strings: int = 0
    types: int = 0
    protos: int = 0
    fields: int = 0
    methods: int = 0
    class_defs: int = 0


class DexScanResult(BaseModel):
    """References extracted from one DEX image.

    When decoding failed, ``classes`` is empty and the ``error*`` fields
    describe the failure.

    Attributes:
        source: Name of the byte source (e.g. ``classes2.dex``).
        scope: Scope the listing was assembled for.
        version: DEX format version (``"035"`` ... ``"039"``).
        endian: Byte order declared by the header.
        counts: Index table sizes.
        classes: Class references in ascending type-index order.
        error: Error message, if decoding failed.
        error_kind: Exception class name, if decoding failed.
        error_offset: File offset of the failure, when known.
    """
    source: str
    scope: ReferenceScope = ReferenceScope.ALL
    version: str = ""
    endian: str = ""
    counts: TableCounts = Field(default_factory=TableCounts)
    classes: list[ClassRef] = Field(default_factory=list)
    error: Optional[str] = None
    error_kind: Optional[str] = None
    error_offset: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def internal_class_count(self) -> int:
        return sum(1 for c in self.classes if c.internal)

    @property
    def external_class_count(self) -> int:
        return sum(1 for c in self.classes if not c.internal)

    @property
    def field_ref_count(self) -> int:
        return sum(len(c.fields) for c in self.classes)

    @property
    def method_ref_count(self) -> int:
        return sum(len(c.methods) for c in self.classes)


class ContainerScanResult(BaseModel):
    """Result of scanning one input file (raw DEX or APK/JAR archive)."""
    target: str
    scope: ReferenceScope = ReferenceScope.ALL
    start_time: _dt.datetime = Field(
        default_factory=lambda: _dt.datetime.now(_dt.timezone.utc)
    )
    end_time: Optional[_dt.datetime] = None
    results: list[DexScanResult] = Field(default_factory=list)
    summary: str = ""

    @property
    def duration_seconds(self) -> float | None:
        if self.end_time is None:
            return None
        return (self.end_time - self.start_time).total_seconds()

    @property
    def failed(self) -> list[DexScanResult]:
        return [r for r in self.results if not r.ok]

    @property
    def all_failed(self) -> bool:
        """``True`` when there were sources and none decoded."""
        return bool(self.results) and len(self.failed) == len(self.results)

    def finalize(self) -> ContainerScanResult:
        """Stamp *end_time* and build the one-line summary."""
        self.end_time = _dt.datetime.now(_dt.timezone.utc)
        decoded = [r for r in self.results if r.ok]
        self.summary = " | ".join([
            f"DEX images: {len(self.results)}",
            f"Decoded: {len(decoded)}",
            f"Failed: {len(self.failed)}",
            f"Classes: {sum(len(r.classes) for r in decoded)}",
            f"Fields: {sum(r.field_ref_count for r in decoded)}",
            f"Methods: {sum(r.method_ref_count for r in decoded)}",
        ])
        return self
