"""Error codes and exception classes.

Every failure surfaces as an NrbfError whose `.code` is one of the ERR_*
strings below.  Decode failures carry the record type and both cursor
offsets; resolution failures carry the record type and its declared id.
"""

from __future__ import annotations

from typing import Optional

# ── Error codes ──────────────────────────────────────────────
# Grep-friendly: the strings are identical to the constant names.

ERR_OUT_OF_DATA: str = "ERR_OUT_OF_DATA"                  # read past end of buffer
ERR_UNKNOWN_RECORD_TYPE: str = "ERR_UNKNOWN_RECORD_TYPE"  # record tag out of range
ERR_UNKNOWN_TYPE_TAG: str = "ERR_UNKNOWN_TYPE_TAG"        # binary/primitive/array tag out of range
ERR_INVALID_LENGTH: str = "ERR_INVALID_LENGTH"            # bad 7-bit length field
ERR_UNSUPPORTED_PRIMITIVE: str = "ERR_UNSUPPORTED_PRIMITIVE"
ERR_UNSUPPORTED_RECORD: str = "ERR_UNSUPPORTED_RECORD"    # MethodCall, MethodReturn
ERR_MALFORMED: str = "ERR_MALFORMED"                      # negative count, null overflow, ...
ERR_LIMIT_DEPTH: str = "ERR_LIMIT_DEPTH"                  # nesting exceeds max_depth
ERR_LIMIT_SIZE: str = "ERR_LIMIT_SIZE"                    # count exceeds MAX_ELEMENTS
ERR_UNKNOWN_CLASS: str = "ERR_UNKNOWN_CLASS"              # ClassWithId names no metadata
ERR_DUPLICATE_ID: str = "ERR_DUPLICATE_ID"                # object id declared twice
ERR_MISSING_HEADER: str = "ERR_MISSING_HEADER"            # first record is not the header
ERR_RESOLVE: str = "ERR_RESOLVE"                          # resolution hook failed
ERR_UNRESOLVED_REF: str = "ERR_UNRESOLVED_REF"            # dangling reference (strict mode)

# Generic code for a foreign exception escaping a record decoder.
ERR_DECODE: str = "ERR_DECODE"


class NrbfError(Exception):
    """Exception for NRBF decoding errors.

    The `.code` attribute is one of the ERR_* strings above.
    """

    def __init__(self, code: str, msg: str = "") -> None:
        super().__init__(msg or code)
        self.code = code


def _code_of(cause: BaseException, default: str) -> str:
    return cause.code if isinstance(cause, NrbfError) else default


def _type_name(record_type) -> str:
    return "<unknown type>" if record_type is None else record_type.name


class DecodeError(NrbfError):
    """A record failed to decode.

    `start` is the offset of the record's tag byte, `offset` the cursor
    position when the failure was raised.  The original exception is
    chained as `__cause__` and its code (if any) is inherited.
    """

    def __init__(self, record_type, start: int, offset: int,
                 cause: BaseException) -> None:
        super().__init__(
            _code_of(cause, ERR_DECODE),
            "error while decoding {} at 0x{:08x} (failed around 0x{:08x}): {}".format(
                _type_name(record_type), start, offset, cause),
        )
        self.record_type = record_type
        self.start = start
        self.offset = offset
        self.cause = cause


class ResolveError(NrbfError):
    """A resolution hook raised while building the graph."""

    def __init__(self, phase: str, record_type, object_id: Optional[int],
                 cause: BaseException) -> None:
        super().__init__(
            _code_of(cause, ERR_RESOLVE),
            "{} failed for {} (object id {}): {}".format(
                phase, _type_name(record_type), object_id, cause),
        )
        self.phase = phase
        self.record_type = record_type
        self.object_id = object_id
        self.cause = cause
