#!/usr/bin/env python3
# tools/fuzz_runner.py
#
# Mutation fuzzing of the nrbf decoder.
#
# Generates three fuzz categories:
#   A) byte mutations of a known-good save stream
#   B) truncations of it, optionally followed by random tail bytes
#   C) random VALID streams (object arrays of strings, references, nulls)
#
# A and B must either decode or raise NrbfError; C must always decode and
# project.  Any other outcome prints a minimal repro payload and exits
# non-zero.

import os, sys, base64, logging, random, traceback
from typing import Any, Dict, List

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
STREAMS = os.path.join(ROOT, "tests", "streams.py")

sys.path.insert(0, ROOT)
import nrbf

import importlib.util
spec = importlib.util.spec_from_file_location("nrbf_streams", STREAMS)
streams = importlib.util.module_from_spec(spec)
spec.loader.exec_module(streams)

SEED = int(os.environ.get("NRBF_SEED", "4242"))
ROUNDS = int(os.environ.get("NRBF_FUZZ_ROUNDS", "5000"))

random.seed(SEED)

# Mutated streams dangle constantly; keep the run output to failures.
logging.getLogger("nrbf").setLevel(logging.ERROR)

def b64(b: bytes) -> str:
    return base64.b64encode(b).decode("ascii")

def failure(label: str, data: bytes, ctx: Dict[str, Any]) -> None:
    print("FAILURE:", label)
    print("CTX:", ctx)
    print("INPUT_B64:", b64(data)[:4000])
    traceback.print_exc()
    raise SystemExit(1)

def check_graph(graph: "nrbf.ObjectGraph") -> None:
    starts = [r.offset for r in graph]
    assert starts == sorted(starts), "arena out of stream order"
    for object_id, slot in graph.objects.items():
        assert graph.records[slot].object_id == object_id, "id map points at wrong slot"
    for ref in graph.references:
        assert ref.state is not nrbf.ResolutionState.UNRESOLVED, "reference left UNRESOLVED"

def decode_or_error(data: bytes) -> str:
    """Decode and project; return "ok" or the error code."""
    try:
        _, graph = nrbf.decode(data, max_depth=32)
        check_graph(graph)
        nrbf.to_json(nrbf.to_python(graph))
    except nrbf.NrbfError as e:
        return e.code
    return "ok"

# --- generators ---

def mutate(data: bytes) -> bytes:
    out = bytearray(data)
    for _ in range(random.randint(1, 4)):
        i = random.randrange(len(out))
        r = random.random()
        if r < 0.5:
            out[i] = random.getrandbits(8)
        elif r < 0.75:
            out[i] ^= 1 << random.randrange(8)
        elif r < 0.9:
            del out[i]
        else:
            out.insert(i, random.getrandbits(8))
    return bytes(out)

def truncate(data: bytes) -> bytes:
    out = data[:random.randrange(len(data) + 1)]
    if random.random() < 0.3:
        out += bytes(random.getrandbits(8) for _ in range(random.randint(1, 8)))
    return out

def rand_ascii(nmax: int) -> str:
    n = random.randint(0, nmax)
    return "".join(chr(random.randint(0x20, 0x7E)) for _ in range(n))

def rand_valid_stream() -> bytes:
    # Root 1 is an object array; ids 2.. are strings, possibly referenced
    # before they appear.  References only name ids that do appear.
    n = random.randint(0, 12)
    ids = list(range(2, 2 + n))
    elements: List[bytes] = []
    declared = 0
    slots = 0
    while slots < n:
        r = random.random()
        if r < 0.5 and declared < n:
            elements.append(streams.object_string(ids[declared], rand_ascii(12)))
            declared += 1
            slots += 1
        elif r < 0.7 and n:
            elements.append(streams.reference(random.choice(ids + [1])))
            slots += 1
        else:
            run = random.randint(1, n - slots)
            elements.append(streams.null_multiple_256(run) if run > 1 else streams.null())
            slots += run
    tail = [streams.object_string(i, rand_ascii(6)) for i in ids[declared:]]
    return streams.stream(streams.array_object(1, n, b"".join(elements)), *tail)

def main() -> int:
    seed_stream = streams.sample_save()
    for i in range(ROUNDS):
        r = random.random()

        # A) byte mutations
        if r < 0.50:
            data = mutate(seed_stream)
            try:
                decode_or_error(data)
            except Exception:
                failure("A mutation", data, {"round": i})
            continue

        # B) truncations and tails
        if r < 0.75:
            data = truncate(seed_stream)
            try:
                decode_or_error(data)
            except Exception:
                failure("B truncation", data, {"round": i})
            continue

        # C) valid streams must decode cleanly
        data = rand_valid_stream()
        try:
            _, graph = nrbf.decode(data, strict=True)
            check_graph(graph)
            nrbf.to_json(nrbf.to_python(graph))
        except Exception:
            failure("C valid stream", data, {"round": i})

    print(f"OK: fuzz rounds={ROUNDS} seed={SEED} (no failures)")
    return 0

if __name__ == "__main__":
    raise SystemExit(main())
