"""Byte cursor and primitive codec.

The whole format is little-endian.  Every read advances the cursor and
fails with ERR_OUT_OF_DATA rather than returning short data.
"""

from __future__ import annotations

import struct
from typing import Any, Type, TypeVar

from ._constants import (
    DEFAULT_ENCODING,
    MAX_LENGTH_BYTES,
    RESERVED_PRIMITIVES,
    PrimitiveType,
)
from ._errors import (
    ERR_INVALID_LENGTH,
    ERR_OUT_OF_DATA,
    ERR_UNKNOWN_TYPE_TAG,
    ERR_UNSUPPORTED_PRIMITIVE,
    NrbfError,
)

E = TypeVar("E")


class ByteCursor:
    """Read position over an immutable byte buffer."""

    def __init__(self, data: bytes, encoding: str = DEFAULT_ENCODING) -> None:
        self._data = bytes(data)
        self._pos = 0
        self.encoding = encoding

    def __len__(self) -> int:
        return len(self._data)

    def tell(self) -> int:
        return self._pos

    @property
    def remaining(self) -> int:
        return len(self._data) - self._pos

    @property
    def at_end(self) -> bool:
        return self._pos >= len(self._data)

    # ── Fixed-width reads ────────────────────────────────────

    def read_bytes(self, n: int) -> bytes:
        if n < 0 or self._pos + n > len(self._data):
            raise NrbfError(
                ERR_OUT_OF_DATA,
                "need {} bytes at 0x{:08x}, {} left".format(n, self._pos, self.remaining),
            )
        out = self._data[self._pos:self._pos + n]
        self._pos += n
        return out

    def _unpack(self, fmt: str, size: int) -> Any:
        if self._pos + size > len(self._data):
            raise NrbfError(
                ERR_OUT_OF_DATA,
                "need {} bytes at 0x{:08x}, {} left".format(size, self._pos, self.remaining),
            )
        val = struct.unpack_from("<" + fmt, self._data, self._pos)[0]
        self._pos += size
        return val

    def read_u8(self) -> int:
        return self._unpack("B", 1)

    def read_i16(self) -> int:
        return self._unpack("h", 2)

    def read_u16(self) -> int:
        return self._unpack("H", 2)

    def read_i32(self) -> int:
        return self._unpack("i", 4)

    def read_i64(self) -> int:
        return self._unpack("q", 8)

    def read_f32(self) -> float:
        return self._unpack("f", 4)

    def read_f64(self) -> float:
        return self._unpack("d", 8)

    def read_enum(self, enum_cls: Type[E]) -> E:
        """Read one tag byte into a closed IntEnum."""
        start = self._pos
        tag = self.read_u8()
        try:
            member = enum_cls(tag)  # type: ignore[call-arg]
        except ValueError:
            raise NrbfError(
                ERR_UNKNOWN_TYPE_TAG,
                "{} tag {} out of range at 0x{:08x}".format(enum_cls.__name__, tag, start),
            )
        # IntEnum members compare as ints, so only check the primitive set.
        if enum_cls is PrimitiveType and member in RESERVED_PRIMITIVES:
            raise NrbfError(
                ERR_UNKNOWN_TYPE_TAG,
                "reserved {} tag {} at 0x{:08x}".format(enum_cls.__name__, tag, start),
            )
        return member

    # ── Length-prefixed strings ──────────────────────────────
    # The length is 7 bits per byte, least significant group first, with
    # the high bit as continuation flag.  Not zig-zag, not sign-extended.
    # The result is kept to 32 bits and must be non-negative as an int32.

    def read_length(self) -> int:
        start = self._pos
        out = 0
        shift = 0
        while True:
            b = self.read_u8()
            out |= (b & 0x7F) << shift
            shift += 7
            if not b & 0x80:
                break
            if shift // 7 >= MAX_LENGTH_BYTES:
                raise NrbfError(
                    ERR_INVALID_LENGTH,
                    "length at 0x{:08x} runs past {} bytes".format(start, MAX_LENGTH_BYTES),
                )
        out &= 0xFFFFFFFF
        if out & 0x80000000:
            raise NrbfError(ERR_INVALID_LENGTH,
                            "negative length at 0x{:08x}".format(start))
        return out

    def read_string(self) -> str:
        """Read a length-prefixed string.

        Bytes that do not decode are kept via surrogateescape, so legacy
        text survives: ``s.encode(cursor.encoding, "surrogateescape")``
        gives back the exact payload.
        """
        raw = self.read_bytes(self.read_length())
        return raw.decode(self.encoding, errors="surrogateescape")

    # ── Primitives ───────────────────────────────────────────

    def read_primitive(self, tag: PrimitiveType) -> Any:
        if tag == PrimitiveType.Boolean:
            return self.read_u8() == 1
        if tag == PrimitiveType.Byte:
            return self.read_u8()
        if tag == PrimitiveType.Char:
            # One UTF-16 code unit.
            return chr(self.read_u16())
        if tag == PrimitiveType.Int16:
            return self.read_i16()
        if tag == PrimitiveType.Int32:
            return self.read_i32()
        if tag == PrimitiveType.Int64:
            return self.read_i64()
        if tag == PrimitiveType.UInt16:
            return self.read_i16() & 0xFFFF
        if tag == PrimitiveType.UInt32:
            return self.read_i32() & 0xFFFFFFFF
        if tag == PrimitiveType.Single:
            return self.read_f32()
        if tag == PrimitiveType.Double:
            return self.read_f64()
        name = tag.name if isinstance(tag, PrimitiveType) else repr(tag)
        raise NrbfError(ERR_UNSUPPORTED_PRIMITIVE, "unsupported primitive type " + name)
