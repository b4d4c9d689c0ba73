"""Record decoder and top-level driver.

`RecordDecoder.decode_one` reads one tag byte and hands the body to the
variant's reader.  Every failure is wrapped as a DecodeError carrying the
record type plus the offsets where the record started and where the
failure was raised.  Nested records are decoded by the same routine, and
the innermost DecodeError propagates unchanged so the report points at
the record that actually broke.

`decode` is the whole pipeline: header check, decode loop, then the three
resolution passes over the arena.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional, Tuple

from ._constants import DEFAULT_ENCODING, MAX_DEPTH, RecordType
from ._cursor import ByteCursor
from ._errors import (
    ERR_LIMIT_DEPTH,
    ERR_MALFORMED,
    ERR_MISSING_HEADER,
    ERR_OUT_OF_DATA,
    ERR_UNKNOWN_RECORD_TYPE,
    ERR_UNRESOLVED_REF,
    ERR_UNSUPPORTED_RECORD,
    DecodeError,
    NrbfError,
)
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

log = logging.getLogger(__name__)


def _message_end(decoder: RecordDecoder, record_type: RecordType) -> None:
    decoder.message_end = True
    return None


def _unsupported(decoder: RecordDecoder, record_type: RecordType) -> None:
    raise NrbfError(ERR_UNSUPPORTED_RECORD,
                    "cannot decode record of type " + record_type.name)


# Every RecordType member has an entry; unsupported kinds reject explicitly.
_DISPATCH: Dict[RecordType, Callable[[Any, RecordType], Optional[Record]]] = {
    RecordType.SerializedStreamHeader: StreamHeader.read,
    RecordType.ClassWithId: ClassRecord.read,
    RecordType.SystemClassWithMembers: ClassRecord.read,
    RecordType.ClassWithMembers: ClassRecord.read,
    RecordType.SystemClassWithMembersAndTypes: ClassRecord.read,
    RecordType.ClassWithMembersAndTypes: ClassRecord.read,
    RecordType.BinaryObjectString: BinaryObjectString.read,
    RecordType.BinaryArray: ArrayRecord.read,
    RecordType.MemberPrimitiveTyped: MemberPrimitiveTyped.read,
    RecordType.MemberReference: MemberReference.read,
    RecordType.ObjectNull: ObjectNull.read,
    RecordType.MessageEnd: _message_end,
    RecordType.BinaryLibrary: BinaryLibrary.read,
    RecordType.ObjectNullMultiple256: ObjectNull.read,
    RecordType.ObjectNullMultiple: ObjectNull.read,
    RecordType.ArraySinglePrimitive: ArrayRecord.read,
    RecordType.ArraySingleObject: ArrayRecord.read,
    RecordType.ArraySingleString: ArrayRecord.read,
    RecordType.MethodCall: _unsupported,
    RecordType.MethodReturn: _unsupported,
}


class RecordDecoder:
    """Decodes records from one buffer into one ObjectGraph."""

    def __init__(self, data: bytes, *,
                 encoding: str = DEFAULT_ENCODING,
                 max_depth: int = MAX_DEPTH) -> None:
        self.cursor = ByteCursor(data, encoding)
        self.graph = ObjectGraph()
        # Class metadata by declaring object id, for ClassWithId.
        self.classes: Dict[int, ClassRecord] = {}
        self.max_depth = max_depth
        self.message_end = False
        self._depth = 0

    def decode_one(self) -> Optional[Record]:
        """Decode the next record, or return None at end of data or MessageEnd.

        `message_end` tells the two apart.
        """
        if self.cursor.at_end:
            return None

        start = self.cursor.tell()
        record_type: Optional[RecordType] = None
        self._depth += 1
        try:
            if self._depth > self.max_depth:
                raise NrbfError(ERR_LIMIT_DEPTH,
                                "nesting exceeds max_depth={}".format(self.max_depth))
            tag = self.cursor.read_u8()
            try:
                record_type = RecordType(tag)
            except ValueError:
                raise NrbfError(ERR_UNKNOWN_RECORD_TYPE,
                                "unknown record type tag {}".format(tag))

            if record_type == RecordType.MessageEnd:
                return _DISPATCH[record_type](self, record_type)

            slot = self.graph.reserve()
            record = _DISPATCH[record_type](self, record_type)
            record.offset = start
            self.graph.place(slot, record)
            record.declare(self.graph)
        except DecodeError:
            raise
        except Exception as e:
            raise DecodeError(record_type, start, self.cursor.tell(), e) from e
        finally:
            self._depth -= 1

        log.debug("decoded %s at 0x%08x into slot %d", record_type.name, start, slot)
        return record

    def read_nested(self) -> Record:
        """Decode a record that a parent requires to be present."""
        if self.cursor.at_end:
            raise NrbfError(ERR_OUT_OF_DATA,
                            "expected a nested record at 0x{:08x}".format(self.cursor.tell()))
        rec = self.decode_one()
        if rec is None:
            raise NrbfError(ERR_MALFORMED, "MessageEnd inside a class or array")
        return rec


def decode(data: bytes, *,
           encoding: str = DEFAULT_ENCODING,
           max_depth: int = MAX_DEPTH,
           strict: bool = False) -> Tuple[StreamHeader, ObjectGraph]:
    """Decode a complete stream and resolve its references.

    Returns the StreamHeader and the resolved graph; `graph.root` is the
    record named by the header's root_id.  References whose target never
    appears end up DANGLING and are listed in `graph.dangling`; with
    strict=True they raise ERR_UNRESOLVED_REF instead.
    """
    data = bytes(data)
    if not data or data[0] != RecordType.SerializedStreamHeader:
        first = "no data" if not data else "tag {}".format(data[0])
        cause = NrbfError(ERR_MISSING_HEADER,
                          "stream must start with SerializedStreamHeader, got " + first)
        try:
            found: Optional[RecordType] = RecordType(data[0]) if data else None
        except ValueError:
            found = None
        raise DecodeError(found, 0, 0, cause) from cause

    decoder = RecordDecoder(data, encoding=encoding, max_depth=max_depth)
    header = decoder.decode_one()
    record = header
    while record is not None:
        record = decoder.decode_one()
    if decoder.cursor.remaining:
        log.debug("ignoring %d bytes after MessageEnd", decoder.cursor.remaining)

    graph = decoder.graph
    graph.header = header  # type: ignore[assignment]
    graph.resolve()

    log.info("decoded %d records, %d object ids, %d dangling references",
             len(graph), len(graph.objects), len(graph.dangling))
    if strict and graph.dangling:
        ids = sorted({r.id_ref for r in graph.dangling})
        raise NrbfError(ERR_UNRESOLVED_REF,
                        "unresolved object ids: {}".format(", ".join(map(str, ids))))
    return header, graph  # type: ignore[return-value]


def decode_file(path: str, **options: Any) -> Tuple[StreamHeader, ObjectGraph]:
    """Read a whole file and decode it; see `decode` for options."""
    with open(path, "rb") as f:
        return decode(f.read(), **options)
