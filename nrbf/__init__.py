"""nrbf: decoder for .NET binary formatter (NRBF) object-graph streams.

Decodes a stream into its records, resolves object references across the
whole stream, and hands back the header and the resolved graph.

Quick start:
    >>> from nrbf import decode_file, to_python
    >>> header, graph = decode_file("save.dat")
    >>> root = graph.root                  # record named by header.root_id
    >>> data = to_python(graph)            # plain dicts/lists/scalars
    >>> graph.dangling                     # references that never resolved
    []

Every failure is an NrbfError with a `.code`; decode failures are
DecodeErrors that also carry the record type and the byte offsets.
"""

from __future__ import annotations

from ._constants import (
    MAX_DEPTH,
    MAX_ELEMENTS,
    BinaryArrayType,
    BinaryType,
    PrimitiveType,
    RecordType,
)
from ._cursor import ByteCursor
from ._decoder import RecordDecoder, decode, decode_file
from ._errors import (
    ERR_DECODE,
    ERR_DUPLICATE_ID,
    ERR_INVALID_LENGTH,
    ERR_LIMIT_DEPTH,
    ERR_LIMIT_SIZE,
    ERR_MALFORMED,
    ERR_MISSING_HEADER,
    ERR_OUT_OF_DATA,
    ERR_RESOLVE,
    ERR_UNKNOWN_CLASS,
    ERR_UNKNOWN_RECORD_TYPE,
    ERR_UNKNOWN_TYPE_TAG,
    ERR_UNRESOLVED_REF,
    ERR_UNSUPPORTED_PRIMITIVE,
    ERR_UNSUPPORTED_RECORD,
    DecodeError,
    NrbfError,
    ResolveError,
)
from ._graph import ObjectGraph, ResolutionState
from ._json_adapter import to_json, to_jsonable
from ._projection import CycleRef, DanglingRef, to_python
from ._records import (
    ArrayRecord,
    BinaryLibrary,
    BinaryObjectString,
    ClassRecord,
    ClassTypeInfo,
    MemberPrimitiveTyped,
    MemberReference,
    MemberTypeInfo,
    ObjectNull,
    Record,
    StreamHeader,
)

__version__ = "1.0.0"

__all__ = [
    # Decoding
    "decode",
    "decode_file",
    "RecordDecoder",
    "ByteCursor",
    "ObjectGraph",
    "ResolutionState",
    # Records
    "Record",
    "StreamHeader",
    "BinaryLibrary",
    "ClassRecord",
    "ClassTypeInfo",
    "MemberTypeInfo",
    "BinaryObjectString",
    "MemberPrimitiveTyped",
    "MemberReference",
    "ObjectNull",
    "ArrayRecord",
    # Tags and limits
    "RecordType",
    "BinaryType",
    "PrimitiveType",
    "BinaryArrayType",
    "MAX_DEPTH",
    "MAX_ELEMENTS",
    # Projection
    "to_python",
    "to_json",
    "to_jsonable",
    "CycleRef",
    "DanglingRef",
    # Exceptions
    "NrbfError",
    "DecodeError",
    "ResolveError",
    # Error codes
    "ERR_OUT_OF_DATA",
    "ERR_UNKNOWN_RECORD_TYPE",
    "ERR_UNKNOWN_TYPE_TAG",
    "ERR_INVALID_LENGTH",
    "ERR_UNSUPPORTED_PRIMITIVE",
    "ERR_UNSUPPORTED_RECORD",
    "ERR_MALFORMED",
    "ERR_LIMIT_DEPTH",
    "ERR_LIMIT_SIZE",
    "ERR_UNKNOWN_CLASS",
    "ERR_DUPLICATE_ID",
    "ERR_MISSING_HEADER",
    "ERR_RESOLVE",
    "ERR_UNRESOLVED_REF",
    "ERR_DECODE",
]
