"""Byte cursor and primitive codec."""

from __future__ import annotations

import math
import os
import struct
import sys
import unittest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from nrbf import (
    ByteCursor,
    BinaryType,
    NrbfError,
    PrimitiveType,
    ERR_INVALID_LENGTH,
    ERR_OUT_OF_DATA,
    ERR_UNKNOWN_TYPE_TAG,
    ERR_UNSUPPORTED_PRIMITIVE,
)


# ── Fixed-width reads ─────────────────────────────────────────

class TestFixedWidth(unittest.TestCase):
    def test_little_endian_i32(self):
        c = ByteCursor(b"\x01\x02\x03\x04")
        self.assertEqual(c.read_i32(), 0x04030201)
        self.assertTrue(c.at_end)

    def test_signed_reads(self):
        c = ByteCursor(b"\xff\xff" + b"\xfe\xff\xff\xff" + b"\xff" * 8)
        self.assertEqual(c.read_i16(), -1)
        self.assertEqual(c.read_i32(), -2)
        self.assertEqual(c.read_i64(), -1)

    def test_position_advances(self):
        c = ByteCursor(b"\x00" * 11)
        c.read_u8()
        c.read_i16()
        c.read_f64()
        self.assertEqual(c.tell(), 11)
        self.assertEqual(c.remaining, 0)

    def test_out_of_data(self):
        c = ByteCursor(b"\x01\x02\x03")
        with self.assertRaises(NrbfError) as ctx:
            c.read_i32()
        self.assertEqual(ctx.exception.code, ERR_OUT_OF_DATA)
        # A failed read does not move the cursor.
        self.assertEqual(c.tell(), 0)

    def test_read_bytes_past_end(self):
        with self.assertRaises(NrbfError) as ctx:
            ByteCursor(b"ab").read_bytes(3)
        self.assertEqual(ctx.exception.code, ERR_OUT_OF_DATA)


# ── 7-bit length encoding ─────────────────────────────────────

class TestLength(unittest.TestCase):
    def _len(self, raw: bytes) -> int:
        return ByteCursor(raw).read_length()

    def test_zero(self):
        self.assertEqual(self._len(b"\x00"), 0)

    def test_single_byte_max(self):
        self.assertEqual(self._len(b"\x7f"), 127)

    def test_two_bytes(self):
        self.assertEqual(self._len(b"\x80\x01"), 128)

    def test_consumes_only_its_bytes(self):
        c = ByteCursor(b"\x80\x01\x55")
        self.assertEqual(c.read_length(), 128)
        self.assertEqual(c.tell(), 2)

    def test_multi_byte_values(self):
        for n, raw in [(300, b"\xac\x02"), (16384, b"\x80\x80\x01"),
                       (0x7FFFFFFF, b"\xff\xff\xff\xff\x07")]:
            with self.subTest(n=n):
                self.assertEqual(self._len(raw), n)

    def test_five_continuation_bytes(self):
        with self.assertRaises(NrbfError) as ctx:
            self._len(b"\x80\x80\x80\x80\x80\x01")
        self.assertEqual(ctx.exception.code, ERR_INVALID_LENGTH)

    def test_negative_as_int32(self):
        """0xFFFFFFFF fits in 5 bytes but is negative as a signed length."""
        with self.assertRaises(NrbfError) as ctx:
            self._len(b"\xff\xff\xff\xff\x0f")
        self.assertEqual(ctx.exception.code, ERR_INVALID_LENGTH)

    def test_truncated(self):
        with self.assertRaises(NrbfError) as ctx:
            self._len(b"\x80")
        self.assertEqual(ctx.exception.code, ERR_OUT_OF_DATA)


# ── Strings ───────────────────────────────────────────────────

class TestString(unittest.TestCase):
    def test_ascii(self):
        self.assertEqual(ByteCursor(b"\x02hi").read_string(), "hi")

    def test_empty(self):
        c = ByteCursor(b"\x00rest")
        self.assertEqual(c.read_string(), "")
        self.assertEqual(c.tell(), 1)

    def test_utf8(self):
        raw = "Zoë".encode("utf-8")
        self.assertEqual(ByteCursor(bytes([len(raw)]) + raw).read_string(), "Zoë")

    def test_long_string_length_prefix(self):
        text = "x" * 200
        self.assertEqual(ByteCursor(b"\xc8\x01" + text.encode()).read_string(), text)

    def test_invalid_utf8_is_preserved(self):
        raw = b"Ren\xe9e"  # latin-1 legacy text
        s = ByteCursor(bytes([len(raw)]) + raw).read_string()
        self.assertEqual(s.encode("utf-8", "surrogateescape"), raw)

    def test_other_encoding(self):
        raw = "Renée".encode("latin-1")
        c = ByteCursor(bytes([len(raw)]) + raw, encoding="latin-1")
        self.assertEqual(c.read_string(), "Renée")

    def test_length_past_end(self):
        with self.assertRaises(NrbfError) as ctx:
            ByteCursor(b"\x05abc").read_string()
        self.assertEqual(ctx.exception.code, ERR_OUT_OF_DATA)


# ── Primitives ────────────────────────────────────────────────

class TestPrimitive(unittest.TestCase):
    def _read(self, ptype: PrimitiveType, raw: bytes):
        c = ByteCursor(raw)
        val = c.read_primitive(ptype)
        self.assertTrue(c.at_end, "read_primitive must consume exactly its width")
        return val

    def test_values(self):
        cases = [
            (PrimitiveType.Boolean, b"\x01", True),
            (PrimitiveType.Boolean, b"\x00", False),
            (PrimitiveType.Byte, b"\xff", 255),
            (PrimitiveType.Char, struct.pack("<H", 0x41), "A"),
            (PrimitiveType.Char, struct.pack("<H", 0x00E9), "é"),
            (PrimitiveType.Int16, struct.pack("<h", -32768), -32768),
            (PrimitiveType.Int32, struct.pack("<i", -123456), -123456),
            (PrimitiveType.Int64, struct.pack("<q", 2**62 + 5), 2**62 + 5),
            (PrimitiveType.UInt16, b"\xff\xff", 65535),
            (PrimitiveType.UInt32, b"\xff\xff\xff\xff", 4294967295),
            (PrimitiveType.Single, struct.pack("<f", 1.5), 1.5),
            (PrimitiveType.Double, struct.pack("<d", math.pi), math.pi),
        ]
        for ptype, raw, expected in cases:
            with self.subTest(ptype=ptype.name, expected=expected):
                self.assertEqual(self._read(ptype, raw), expected)

    def test_boolean_is_true_only_for_one(self):
        self.assertIs(self._read(PrimitiveType.Boolean, b"\x02"), False)

    def test_uint32_is_unsigned(self):
        self.assertEqual(self._read(PrimitiveType.UInt32, struct.pack("<I", 0x80000000)), 2**31)

    def test_unsupported(self):
        for ptype in [PrimitiveType.UInt64, PrimitiveType.Decimal, PrimitiveType.TimeSpan,
                      PrimitiveType.DateTime, PrimitiveType.SByte, PrimitiveType.String,
                      PrimitiveType.Null, PrimitiveType.INVALID, PrimitiveType.UNUSED]:
            with self.subTest(ptype=ptype.name):
                with self.assertRaises(NrbfError) as ctx:
                    ByteCursor(b"\x00" * 16).read_primitive(ptype)
                self.assertEqual(ctx.exception.code, ERR_UNSUPPORTED_PRIMITIVE)

    def test_truncated_primitive(self):
        with self.assertRaises(NrbfError) as ctx:
            ByteCursor(b"\x00\x00").read_primitive(PrimitiveType.Double)
        self.assertEqual(ctx.exception.code, ERR_OUT_OF_DATA)


# ── Enum tags ─────────────────────────────────────────────────

class TestEnumTags(unittest.TestCase):
    def test_in_range(self):
        self.assertIs(ByteCursor(b"\x00").read_enum(BinaryType), BinaryType.Primitive)
        self.assertIs(ByteCursor(b"\x08").read_enum(PrimitiveType), PrimitiveType.Int32)

    def test_out_of_range(self):
        with self.assertRaises(NrbfError) as ctx:
            ByteCursor(b"\x08").read_enum(BinaryType)
        self.assertEqual(ctx.exception.code, ERR_UNKNOWN_TYPE_TAG)

    def test_reserved_primitive_slots(self):
        for raw in (b"\x00", b"\x04"):
            with self.subTest(raw=raw):
                with self.assertRaises(NrbfError) as ctx:
                    ByteCursor(raw).read_enum(PrimitiveType)
                self.assertEqual(ctx.exception.code, ERR_UNKNOWN_TYPE_TAG)


if __name__ == "__main__":
    unittest.main()
