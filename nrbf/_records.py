"""Record variants, their wire layouts, and their resolution hooks.

Each variant reads its own body through `read(decoder, record_type)`;
the leading tag byte has already been consumed.  Nested member and
element records come from `decoder.read_nested()`, which recurses into
the same dispatch, so the whole stream is one recursive-descent pass.

Wire layouts (i32 unless noted, "str" is a 7-bit length-prefixed string):

    SerializedStreamHeader   root_id, header_id, major, minor
    BinaryLibrary            library_id, name:str
    ClassWithMembersAndTypes ClassInfo, MemberTypeInfo, library_id, values
    SystemClass...AndTypes   ClassInfo, MemberTypeInfo, values
    ClassWithMembers         ClassInfo, library_id, values (records only)
    SystemClassWithMembers   ClassInfo, values (records only)
    ClassWithId              object_id, metadata_id, values
    BinaryObjectString       object_id, value:str
    MemberReference          id_ref
    MemberPrimitiveTyped     type:u8, value
    ObjectNull / 256 / Multi (none) / count:u8 / count:i32
    ArraySinglePrimitive     object_id, length, type:u8, packed values
    ArraySingleObject/String object_id, length, records
    BinaryArray              object_id, kind:u8, rank, lengths[rank],
                             [lower_bounds[rank]], type:u8, info, values

    ClassInfo      = object_id, name:str, count, names:str[count]
    MemberTypeInfo = BinaryType:u8[count], then per type: PrimitiveType:u8
                     (Primitive, PrimitiveArray), name:str (SystemClass),
                     name:str + library_id (Class), nothing otherwise
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import reduce
from typing import TYPE_CHECKING, Any, ClassVar, Dict, List, Optional

from ._constants import (
    MAX_ELEMENTS,
    OFFSET_ARRAY_TYPES,
    BinaryArrayType,
    BinaryType,
    PrimitiveType,
    RecordType,
)
from ._errors import ERR_LIMIT_SIZE, ERR_MALFORMED, ERR_UNKNOWN_CLASS, NrbfError
from ._graph import ObjectGraph, ResolutionState

if TYPE_CHECKING:
    from ._decoder import RecordDecoder


def _check_count(n: int, what: str) -> int:
    if n < 0:
        raise NrbfError(ERR_MALFORMED, "negative {} {}".format(what, n))
    if n > MAX_ELEMENTS:
        raise NrbfError(ERR_LIMIT_SIZE, "{} {} exceeds {}".format(what, n, MAX_ELEMENTS))
    return n


def _read_count(decoder: RecordDecoder, what: str) -> int:
    return _check_count(decoder.cursor.read_i32(), what)


class Record:
    """Base of every decoded record.

    `offset` is the position of the record's tag byte and `slot` its index
    in the graph's arena; the decoder sets both.  Dataclass variants that
    declare an object id redeclare it as `field()`, so the None default
    here does not become a dataclass default for them.
    """

    record_type: RecordType
    object_id: Optional[int] = None
    offset: int = -1
    slot: int = -1

    def declare(self, graph: ObjectGraph) -> None:
        if self.object_id is not None:
            graph.register(self.object_id, self.slot)

    def pre_process(self, graph: ObjectGraph) -> None:
        self.declare(graph)

    def process(self, graph: ObjectGraph) -> None:
        pass

    def post_process(self, graph: ObjectGraph) -> None:
        pass


# ── Stream framing ────────────────────────────────────────────

@dataclass(eq=False)
class StreamHeader(Record):
    root_id: int
    header_id: int
    major_version: int
    minor_version: int

    record_type: ClassVar[RecordType] = RecordType.SerializedStreamHeader

    @classmethod
    def read(cls, decoder: RecordDecoder, record_type: RecordType) -> StreamHeader:
        c = decoder.cursor
        root_id = c.read_i32()
        header_id = c.read_i32()
        major = c.read_i32()
        minor = c.read_i32()
        return cls(root_id, header_id, major, minor)


@dataclass(eq=False)
class BinaryLibrary(Record):
    library_id: int
    library_name: str

    record_type: ClassVar[RecordType] = RecordType.BinaryLibrary

    @classmethod
    def read(cls, decoder: RecordDecoder, record_type: RecordType) -> BinaryLibrary:
        library_id = decoder.cursor.read_i32()
        return cls(library_id, decoder.cursor.read_string())

    def declare(self, graph: ObjectGraph) -> None:
        graph.register_library(self.library_id, self.slot)


# ── Class metadata ────────────────────────────────────────────

@dataclass
class ClassTypeInfo:
    type_name: str
    library_id: int


@dataclass
class MemberTypeInfo:
    binary_types: List[BinaryType]
    additional_infos: List[Any]

    @classmethod
    def read(cls, decoder: RecordDecoder, count: int) -> MemberTypeInfo:
        c = decoder.cursor
        binary_types = [c.read_enum(BinaryType) for _ in range(count)]
        infos = [read_additional_info(decoder, bt) for bt in binary_types]
        return cls(binary_types, infos)


def read_additional_info(decoder: RecordDecoder, binary_type: BinaryType) -> Any:
    c = decoder.cursor
    if binary_type in (BinaryType.Primitive, BinaryType.PrimitiveArray):
        return c.read_enum(PrimitiveType)
    if binary_type == BinaryType.SystemClass:
        return c.read_string()
    if binary_type == BinaryType.Class:
        type_name = c.read_string()
        return ClassTypeInfo(type_name, c.read_i32())
    return None


def read_values(decoder: RecordDecoder, count: int,
                binary_types: Optional[List[BinaryType]] = None,
                infos: Optional[List[Any]] = None) -> List[Any]:
    """Read `count` member/element values.

    Primitive-typed slots are raw values.  Every other slot is a nested
    record; a null record with count n fills n slots with None.  A
    BinaryLibrary may precede the record of a slot: it stays in the arena
    but fills no slot.
    """
    values: List[Any] = []
    while len(values) < count:
        i = len(values)
        if binary_types is not None and binary_types[i] == BinaryType.Primitive:
            values.append(decoder.cursor.read_primitive(infos[i]))  # type: ignore[index]
            continue
        rec = decoder.read_nested()
        if isinstance(rec, BinaryLibrary):
            continue
        if isinstance(rec, ObjectNull):
            if i + rec.count > count:
                raise NrbfError(
                    ERR_MALFORMED,
                    "{} nulls overflow {} remaining slots".format(rec.count, count - i),
                )
            values.extend([None] * rec.count)
        else:
            values.append(rec)
    return values


@dataclass(eq=False)
class ClassRecord(Record):
    """An object declaration: one of the five class record kinds.

    `values` is the flat list read from the wire; `process` binds it to
    the member names of the class metadata, giving `members`.  For
    ClassWithId the metadata is the class record named by `metadata_id`.
    """

    record_type: RecordType
    object_id: int = field()
    class_name: Optional[str] = None
    member_names: List[str] = field(default_factory=list)
    member_types: Optional[MemberTypeInfo] = None
    library_id: Optional[int] = None
    values: List[Any] = field(default_factory=list)
    metadata_id: Optional[int] = None
    members: Dict[str, Any] = field(default_factory=dict)
    library_name: Optional[str] = None

    @classmethod
    def read(cls, decoder: RecordDecoder, record_type: RecordType) -> ClassRecord:
        c = decoder.cursor
        if record_type == RecordType.ClassWithId:
            object_id = c.read_i32()
            metadata_id = c.read_i32()
            meta = decoder.classes.get(metadata_id)
            if meta is None:
                raise NrbfError(ERR_UNKNOWN_CLASS,
                                "no class metadata with id {}".format(metadata_id))
            rec = cls(record_type, object_id, metadata_id=metadata_id)
            rec.values = meta.read_member_values(decoder)
            return rec

        object_id = c.read_i32()
        class_name = c.read_string()
        count = _read_count(decoder, "member count")
        names = [c.read_string() for _ in range(count)]

        member_types = None
        if record_type in (RecordType.ClassWithMembersAndTypes,
                           RecordType.SystemClassWithMembersAndTypes):
            member_types = MemberTypeInfo.read(decoder, count)
        library_id = None
        if record_type in (RecordType.ClassWithMembersAndTypes,
                           RecordType.ClassWithMembers):
            library_id = c.read_i32()

        rec = cls(record_type, object_id, class_name, names, member_types, library_id)
        # Metadata is usable before the values are read: a member may be a
        # ClassWithId of this very class.
        decoder.classes[object_id] = rec
        rec.values = rec.read_member_values(decoder)
        return rec

    def read_member_values(self, decoder: RecordDecoder) -> List[Any]:
        if self.member_types is None:
            return read_values(decoder, len(self.member_names))
        return read_values(decoder, len(self.member_names),
                           self.member_types.binary_types,
                           self.member_types.additional_infos)

    @property
    def is_system(self) -> bool:
        return self.record_type in (RecordType.SystemClassWithMembers,
                                    RecordType.SystemClassWithMembersAndTypes)

    def process(self, graph: ObjectGraph) -> None:
        if self.metadata_id is not None:
            meta = graph.get(self.metadata_id)
            if not isinstance(meta, ClassRecord) or meta.metadata_id is not None:
                raise NrbfError(ERR_UNKNOWN_CLASS,
                                "id {} is not class metadata".format(self.metadata_id))
            self.class_name = meta.class_name
            self.member_names = meta.member_names
            self.member_types = meta.member_types
            self.library_id = meta.library_id
        self.members = dict(zip(self.member_names, self.values))
        self.library_name = graph.library_name(self.library_id)

    def __getitem__(self, name: str) -> Any:
        return self.members[name]


# ── Scalars and references ────────────────────────────────────

@dataclass(eq=False)
class BinaryObjectString(Record):
    record_type: RecordType
    object_id: int = field()
    value: str

    @classmethod
    def read(cls, decoder: RecordDecoder, record_type: RecordType) -> BinaryObjectString:
        object_id = decoder.cursor.read_i32()
        return cls(record_type, object_id, decoder.cursor.read_string())


@dataclass(eq=False)
class MemberPrimitiveTyped(Record):
    primitive_type: PrimitiveType
    value: Any

    record_type: ClassVar[RecordType] = RecordType.MemberPrimitiveTyped

    @classmethod
    def read(cls, decoder: RecordDecoder, record_type: RecordType) -> MemberPrimitiveTyped:
        ptype = decoder.cursor.read_enum(PrimitiveType)
        return cls(ptype, decoder.cursor.read_primitive(ptype))


@dataclass(eq=False)
class MemberReference(Record):
    """Pointer to another record's object id; never owns its target."""

    id_ref: int
    state: ResolutionState = ResolutionState.UNRESOLVED
    target_slot: Optional[int] = None

    record_type: ClassVar[RecordType] = RecordType.MemberReference

    @classmethod
    def read(cls, decoder: RecordDecoder, record_type: RecordType) -> MemberReference:
        return cls(decoder.cursor.read_i32())

    def _lookup(self, graph: ObjectGraph) -> None:
        slot = graph.objects.get(self.id_ref)
        if slot is not None:
            self.target_slot = slot
            self.state = ResolutionState.RESOLVED

    def process(self, graph: ObjectGraph) -> None:
        self._lookup(graph)

    def post_process(self, graph: ObjectGraph) -> None:
        if self.state is ResolutionState.UNRESOLVED:
            self._lookup(graph)
        if self.state is ResolutionState.UNRESOLVED:
            self.state = ResolutionState.DANGLING


@dataclass(eq=False)
class ObjectNull(Record):
    """`count` consecutive null slots (1 for a plain ObjectNull)."""

    record_type: RecordType
    count: int = 1

    @classmethod
    def read(cls, decoder: RecordDecoder, record_type: RecordType) -> ObjectNull:
        if record_type == RecordType.ObjectNullMultiple256:
            return cls(record_type, decoder.cursor.read_u8())
        if record_type == RecordType.ObjectNullMultiple:
            return cls(record_type, _read_count(decoder, "null count"))
        return cls(record_type)


# ── Arrays ────────────────────────────────────────────────────

@dataclass(eq=False)
class ArrayRecord(Record):
    """Any of the four array record kinds.

    `values` is flat, row-major for multi-dimensional arrays.
    `element_info` is the PrimitiveType, class name or ClassTypeInfo that
    qualifies `element_type`, when the wire carries one.
    """

    record_type: RecordType
    object_id: int = field()
    lengths: List[int]
    element_type: BinaryType
    element_info: Any = None
    values: List[Any] = field(default_factory=list)
    array_type: BinaryArrayType = BinaryArrayType.Single
    lower_bounds: Optional[List[int]] = None

    @property
    def length(self) -> int:
        return reduce(lambda a, b: a * b, self.lengths, 1)

    @classmethod
    def read(cls, decoder: RecordDecoder, record_type: RecordType) -> ArrayRecord:
        c = decoder.cursor
        object_id = c.read_i32()

        if record_type == RecordType.BinaryArray:
            return cls._read_binary_array(decoder, object_id)

        length = _read_count(decoder, "array length")
        if record_type == RecordType.ArraySinglePrimitive:
            ptype = c.read_enum(PrimitiveType)
            values = [c.read_primitive(ptype) for _ in range(length)]
            return cls(record_type, object_id, [length], BinaryType.Primitive, ptype, values)

        if record_type == RecordType.ArraySingleString:
            element_type = BinaryType.String
        else:
            element_type = BinaryType.Object
        return cls(record_type, object_id, [length], element_type,
                   values=read_values(decoder, length))

    @classmethod
    def _read_binary_array(cls, decoder: RecordDecoder, object_id: int) -> ArrayRecord:
        c = decoder.cursor
        array_type = c.read_enum(BinaryArrayType)
        rank = _read_count(decoder, "array rank")
        lengths = [_read_count(decoder, "array length") for _ in range(rank)]
        lower_bounds = None
        if array_type in OFFSET_ARRAY_TYPES:
            lower_bounds = [c.read_i32() for _ in range(rank)]
        element_type = c.read_enum(BinaryType)
        info = read_additional_info(decoder, element_type)

        rec = cls(RecordType.BinaryArray, object_id, lengths, element_type, info,
                  array_type=array_type, lower_bounds=lower_bounds)
        _check_count(rec.length, "array size")
        if element_type == BinaryType.Primitive:
            rec.values = [c.read_primitive(info) for _ in range(rec.length)]
        else:
            rec.values = read_values(decoder, rec.length)
        return rec

    def __len__(self) -> int:
        return len(self.values)

    def __getitem__(self, index: int) -> Any:
        return self.values[index]
