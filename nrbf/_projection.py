"""Projection of a resolved graph into plain Python values.

    class record          → dict of members, plus "__class__"
    BinaryObjectString    → str
    MemberPrimitiveTyped  → its scalar
    array                 → list (bytes for a Byte primitive array)
    null                  → None
    MemberReference       → the projection of its target

The graph may be cyclic.  A reference to a record that is already being
expanded further up becomes CycleRef(object_id); a dangling reference
becomes DanglingRef(object_id).  Shared, non-cyclic targets are expanded
at every use.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Set

from ._constants import BinaryType, PrimitiveType
from ._errors import ERR_RESOLVE, ERR_UNRESOLVED_REF, NrbfError
from ._graph import ObjectGraph
from ._records import (
    ArrayRecord,
    BinaryLibrary,
    BinaryObjectString,
    ClassRecord,
    MemberPrimitiveTyped,
    MemberReference,
    ObjectNull,
    Record,
    StreamHeader,
)

CLASS_KEY = "__class__"


@dataclass(frozen=True)
class CycleRef:
    """Back-reference to an object already open in the projection."""
    object_id: int


@dataclass(frozen=True)
class DanglingRef:
    """Reference whose target id never appeared in the stream."""
    object_id: int


def to_python(graph: ObjectGraph, record: Optional[Record] = None) -> Any:
    """Project `record` (default: the graph root) into plain values."""
    if record is None:
        record = graph.root
        if record is None:
            root_id = graph.header.root_id if graph.header is not None else None
            raise NrbfError(ERR_UNRESOLVED_REF,
                            "root object id {} not declared".format(root_id))
    return _project(graph, record, set())


def _project(graph: ObjectGraph, val: Any, open_slots: Set[int]) -> Any:
    if isinstance(val, MemberReference):
        target = graph.deref(val)
        if target is None:
            return DanglingRef(val.id_ref)
        val = target

    if not isinstance(val, Record):
        return val  # raw primitive member or None

    if isinstance(val, BinaryObjectString):
        return val.value
    if isinstance(val, MemberPrimitiveTyped):
        return val.value
    if isinstance(val, ObjectNull):
        return None
    if isinstance(val, BinaryLibrary):
        return val.library_name
    if isinstance(val, StreamHeader):
        root = graph.get(val.root_id)
        if root is None:
            return DanglingRef(val.root_id)
        return _project(graph, root, open_slots)

    if val.slot in open_slots:
        return CycleRef(val.object_id)  # type: ignore[arg-type]
    open_slots.add(val.slot)
    try:
        if isinstance(val, ClassRecord):
            out = {CLASS_KEY: val.class_name}
            for name, member in val.members.items():
                out[name] = _project(graph, member, open_slots)
            return out
        if isinstance(val, ArrayRecord):
            if val.element_type == BinaryType.Primitive and val.element_info == PrimitiveType.Byte:
                return bytes(val.values)
            return [_project(graph, v, open_slots) for v in val.values]
    finally:
        open_slots.discard(val.slot)

    # Shouldn't happen: every record variant is handled above.
    raise NrbfError(ERR_RESOLVE, "cannot project {}".format(type(val).__name__))
