"""JSON rendering of projected values.

Type mapping:
    dict / list / str / int / bool / None → as is
    float            → number; NaN and ±Infinity → their repr as a string
    bytes            → base64 string
    CycleRef(n)      → {"$ref": n}
    DanglingRef(n)   → {"$dangling": n}

Strings read with surrogateescape may hold lone surrogates; json.dumps
escapes them as \\udcXX, so the output stays valid ASCII JSON.
"""

from __future__ import annotations

import base64
import json
import math
from typing import Any, Optional

from ._errors import ERR_RESOLVE, NrbfError
from ._projection import CycleRef, DanglingRef


def to_jsonable(x: Any) -> Any:
    """Convert a projected value into types json.dumps accepts."""
    if isinstance(x, dict):
        return {str(k): to_jsonable(v) for k, v in x.items()}
    if isinstance(x, list):
        return [to_jsonable(v) for v in x]
    if isinstance(x, CycleRef):
        return {"$ref": x.object_id}
    if isinstance(x, DanglingRef):
        return {"$dangling": x.object_id}
    if isinstance(x, bytes):
        return base64.b64encode(x).decode("ascii")
    if isinstance(x, float) and not math.isfinite(x):
        return repr(x)
    if x is None or isinstance(x, (str, int, float)):
        return x

    raise NrbfError(ERR_RESOLVE, "no JSON form for {}".format(type(x).__name__))


def to_json(value: Any, indent: Optional[int] = 2) -> str:
    return json.dumps(to_jsonable(value), indent=indent, allow_nan=False)
