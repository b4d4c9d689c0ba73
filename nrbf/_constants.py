"""NRBF tag enumerations and decoder limits.

All four tag sets are closed.  The integer value of every member is its
position on the wire, so a tag byte maps straight onto an enum member and
anything else is a hard decode failure, never a default.
"""

from __future__ import annotations

from enum import IntEnum, unique


@unique
class RecordType(IntEnum):
    """Leading tag byte of every record."""

    SerializedStreamHeader = 0
    ClassWithId = 1
    SystemClassWithMembers = 2
    ClassWithMembers = 3
    SystemClassWithMembersAndTypes = 4
    ClassWithMembersAndTypes = 5
    BinaryObjectString = 6
    BinaryArray = 7
    MemberPrimitiveTyped = 8
    MemberReference = 9
    ObjectNull = 10
    MessageEnd = 11
    BinaryLibrary = 12
    ObjectNullMultiple256 = 13
    ObjectNullMultiple = 14
    ArraySinglePrimitive = 15
    ArraySingleObject = 16
    ArraySingleString = 17
    MethodCall = 18
    MethodReturn = 19


@unique
class BinaryType(IntEnum):
    """Declared type of a class member or array element."""

    Primitive = 0
    String = 1
    Object = 2
    SystemClass = 3
    Class = 4
    ObjectArray = 5
    StringArray = 6
    PrimitiveArray = 7


@unique
class PrimitiveType(IntEnum):
    """Encoding of a scalar payload.

    INVALID and UNUSED hold wire slots 0 and 4 and are never produced.
    """

    INVALID = 0
    Boolean = 1
    Byte = 2
    Char = 3
    UNUSED = 4
    Decimal = 5
    Double = 6
    Int16 = 7
    Int32 = 8
    Int64 = 9
    SByte = 10
    Single = 11
    TimeSpan = 12
    DateTime = 13
    UInt16 = 14
    UInt32 = 15
    UInt64 = 16
    Null = 17
    String = 18


@unique
class BinaryArrayType(IntEnum):
    """Shape of a BinaryArray record."""

    Single = 0
    Jagged = 1
    Rectangular = 2
    SingleOffset = 3
    JaggedOffset = 4
    RectangularOffset = 5


# Reserved slots a tag byte may name but the decoder must reject.
RESERVED_PRIMITIVES = frozenset({PrimitiveType.INVALID, PrimitiveType.UNUSED})

# Array kinds that carry a lower bound per dimension after the lengths.
OFFSET_ARRAY_TYPES = frozenset({
    BinaryArrayType.SingleOffset,
    BinaryArrayType.JaggedOffset,
    BinaryArrayType.RectangularOffset,
})

# ── Limits ────────────────────────────────────────────────────
# Nested member and element records are decoded by recursion, so the
# nesting depth is bounded well below the interpreter's recursion limit.
MAX_DEPTH: int = 100

# A 7-bit length never spans more than 5 bytes (5 * 7 >= 32).
MAX_LENGTH_BYTES: int = 5

DEFAULT_ENCODING: str = "utf-8"

# Upper bound on member, element and null-run counts and array sizes.
MAX_ELEMENTS: int = 1 << 24
