"""
Reference Assembler
====================

Builds the class -> members reference graph of one DEX image from its
loaded tables and the classifier output.

Algorithm:
    1. One :class:`ClassRef` slot per type index whose classification is
       selected by the caller's filter.
    2. One scan of ``field_ids``: each field whose declaring type has a
       slot is resolved to a :class:`FieldRef` and appended there.
    3. The same scan over ``method_ids``, resolving the prototype's
       argument and return types into a :class:`MethodRef`.
    4. Slots are compacted into a list in ascending type-index order.

Members whose declaring type was filtered out have no slot and are
skipped.
"""

from __future__ import annotations

import numpy as np

from dexdeps.core.models import ClassRef, FieldRef, MethodRef, ReferenceScope
from dexdeps.parsers.tables import DexTables


class ReferenceAssembler:
    """Assembles :class:`ClassRef` listings for one DEX image.

    Usage::

        assembler = ReferenceAssembler(tables, internal)
        external = assembler.external_references()
        for class_ref in external:
            print(class_ref, len(class_ref.methods))

    Args:
        tables: Loaded index tables.
        internal: Boolean array parallel to ``tables.type_ids``.
    """

    def __init__(self, tables: DexTables, internal: np.ndarray) -> None:
        if len(internal) != len(tables.type_ids):
            raise ValueError(
                f"Classification has {len(internal)} entries, "
                f"expected {len(tables.type_ids)}"
            )
        self._tables: DexTables = tables
        self._internal: np.ndarray = internal

    # ------------------------------------------------------------------ #
    #  Presets
    # ------------------------------------------------------------------ #

    def all_references(self) -> list[ClassRef]:
        return self.assemble(True, True)

    def internal_references(self) -> list[ClassRef]:
        """Classes defined in the image, plus primitives and arrays."""
        return self.assemble(True, False)

    def external_references(self) -> list[ClassRef]:
        """Classes the image references but does not define."""
        return self.assemble(False, True)

    def references(self, scope: ReferenceScope) -> list[ClassRef]:
        return self.assemble(*ReferenceScope(scope).filters)

    # ------------------------------------------------------------------ #
    #  Core algorithm
    # ------------------------------------------------------------------ #

    def assemble(
        self, include_internal: bool, include_external: bool
    ) -> list[ClassRef]:
        """Build the reference listing for the selected classification(s).

        Args:
            include_internal: Emit classes classified internal.
            include_external: Emit classes classified external.

        Returns:
            Class references in ascending type-index order.
        """
        tables = self._tables
        slots: dict[int, ClassRef] = {}

        for type_idx in range(len(tables.type_ids)):
            is_internal = bool(self._internal[type_idx])
            if (include_internal and is_internal) or (
                include_external and not is_internal
            ):
                slots[type_idx] = ClassRef(
                    name=tables.descriptor(type_idx), internal=is_internal
                )

        self._add_field_references(slots)
        self._add_method_references(slots)

        return [slots[type_idx] for type_idx in sorted(slots)]

    def _add_field_references(self, slots: dict[int, ClassRef]) -> None:
        tables = self._tables
        for field_id in tables.field_ids:
            class_ref = slots.get(field_id.class_idx)
            if class_ref is None:
                continue
            class_ref.add_field(
                FieldRef(
                    declaring_class=class_ref.name,
                    name=tables.strings[field_id.name_idx],
                    type_name=tables.descriptor(field_id.type_idx),
                    internal=class_ref.internal,
                )
            )

    def _add_method_references(self, slots: dict[int, ClassRef]) -> None:
        tables = self._tables
        for method_id in tables.method_ids:
            class_ref = slots.get(method_id.class_idx)
            if class_ref is None:
                continue
            proto = tables.proto_ids[method_id.proto_idx]
            class_ref.add_method(
                MethodRef(
                    declaring_class=class_ref.name,
                    name=tables.strings[method_id.name_idx],
                    argument_types=tuple(
                        tables.descriptor(idx) for idx in proto.parameter_type_idxs
                    ),
                    return_type=tables.descriptor(proto.return_type_idx),
                    internal=class_ref.internal,
                )
            )
