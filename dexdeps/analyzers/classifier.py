"""
Internal / External Type Classifier
====================================

Decides, for every entry of the ``type_ids`` table, whether the type is
*internal* to the analysed image or *external* (resolved from the
framework, the boot classpath, or another DEX file).

A type is internal when:
    1. a ``class_def_item`` in the image defines it, or
    2. its descriptor is a primitive (one character, e.g. ``I``) or an
       array (leading ``[``) -- such types are supplied by the VM itself.

The result is a boolean array parallel to ``type_ids``; the decoded
tables themselves are never modified.
"""

from __future__ import annotations

import numpy as np

from dexdeps.parsers.tables import DexTables


class TypeClassifier:
    """Computes the internal flag of every type in a :class:`DexTables`.

    Usage::

        internal = TypeClassifier().classify(tables)
        if internal[type_idx]:
            ...
    """

    def classify(self, tables: DexTables) -> np.ndarray:
        """Return a ``bool`` array with one flag per ``type_ids`` entry.

        Classification is a pure function of *tables*: repeated calls
        return equal arrays.
        """
        internal = np.zeros(len(tables.type_ids), dtype=bool)

        # Pass 1: types defined by a class_def_item
        if tables.class_defs:
            defined = np.fromiter(
                (cdef.class_idx for cdef in tables.class_defs),
                dtype=np.int64,
                count=len(tables.class_defs),
            )
            internal[defined] = True

        # Pass 2: primitives and arrays
        for type_idx, type_id in enumerate(tables.type_ids):
            if self.is_vm_type(tables.strings[type_id.descriptor_idx]):
                internal[type_idx] = True

        return internal

    @staticmethod
    def is_vm_type(descriptor: str) -> bool:
        """``True`` for primitive and array descriptors."""
        return len(descriptor) == 1 or descriptor.startswith("[")
