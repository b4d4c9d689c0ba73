"""Record arena, object-id map, and the three resolution passes.

Records live in one stream-ordered list (the arena).  Object ids and
library ids map to arena slots, so following a reference is an index
lookup and a reference back to an ancestor is just another slot number.

Resolution runs three full passes over the arena in stream order:

    pre-process   every record registers the id(s) it declares
    process       records resolve their own fields against the id map;
                  references to ids not present yet stay UNRESOLVED
    post-process  UNRESOLVED references are retried, then marked DANGLING

Each pass is callable on its own so partial state can be inspected.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Dict, Iterator, List, Optional

from ._errors import ERR_DUPLICATE_ID, NrbfError, ResolveError

if TYPE_CHECKING:
    from ._records import MemberReference, Record, StreamHeader

log = logging.getLogger(__name__)


class ResolutionState(Enum):
    """Per-reference state, advanced in place by the passes."""

    UNRESOLVED = "unresolved"
    RESOLVED = "resolved"
    DANGLING = "dangling"


class ObjectGraph:
    """All records of one decoded stream plus their id indexes."""

    def __init__(self) -> None:
        self.records: List[Optional[Record]] = []
        self.objects: Dict[int, int] = {}
        self.libraries: Dict[int, int] = {}
        self.header: Optional[StreamHeader] = None

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[Record]:
        return iter(self.records)  # type: ignore[arg-type]

    def __contains__(self, object_id: object) -> bool:
        return object_id in self.objects

    def __getitem__(self, object_id: int) -> Record:
        rec = self.get(object_id)
        if rec is None:
            raise KeyError(object_id)
        return rec

    # ── Arena ────────────────────────────────────────────────

    def reserve(self) -> int:
        """Claim the next slot before a record's body is decoded.

        Reserving at the tag byte keeps nested records after their parent,
        i.e. the arena is in byte order of record starts.
        """
        self.records.append(None)
        return len(self.records) - 1

    def place(self, slot: int, record: Record) -> None:
        record.slot = slot
        self.records[slot] = record

    def register(self, object_id: int, slot: int) -> None:
        """Map an object id to a slot.  Re-registering the same slot is a no-op."""
        prev = self.objects.setdefault(object_id, slot)
        if prev != slot:
            raise NrbfError(
                ERR_DUPLICATE_ID,
                "object id {} declared by slots {} and {}".format(object_id, prev, slot),
            )

    def register_library(self, library_id: int, slot: int) -> None:
        prev = self.libraries.setdefault(library_id, slot)
        if prev != slot:
            raise NrbfError(
                ERR_DUPLICATE_ID,
                "library id {} declared by slots {} and {}".format(library_id, prev, slot),
            )

    # ── Lookup ───────────────────────────────────────────────

    def get(self, object_id: int) -> Optional[Record]:
        slot = self.objects.get(object_id)
        return None if slot is None else self.records[slot]

    def library_name(self, library_id: Optional[int]) -> Optional[str]:
        if library_id is None or library_id not in self.libraries:
            return None
        return self.records[self.libraries[library_id]].library_name  # type: ignore[union-attr]

    def deref(self, ref: MemberReference) -> Optional[Record]:
        """Target of a resolved reference, or None while unresolved/dangling."""
        if ref.target_slot is None:
            return None
        return self.records[ref.target_slot]

    @property
    def root(self) -> Optional[Record]:
        if self.header is None:
            return None
        return self.get(self.header.root_id)

    @property
    def references(self) -> List[MemberReference]:
        from ._records import MemberReference
        return [r for r in self.records if isinstance(r, MemberReference)]

    @property
    def dangling(self) -> List[MemberReference]:
        return [r for r in self.references if r.state is ResolutionState.DANGLING]

    # ── Passes ───────────────────────────────────────────────

    def _run(self, phase: str) -> None:
        for rec in self.records:
            hook = getattr(rec, phase)
            try:
                hook(self)
            except Exception as e:
                raise ResolveError(phase, rec.record_type, rec.object_id, e) from e

    def pre_process(self) -> None:
        self._run("pre_process")

    def process(self) -> None:
        self._run("process")

    def post_process(self) -> None:
        self._run("post_process")
        for ref in self.dangling:
            log.warning("reference at 0x%08x to object id %d never resolved",
                        ref.offset, ref.id_ref)

    def resolve(self) -> None:
        """Run the three passes in order."""
        self.pre_process()
        self.process()
        self.post_process()
