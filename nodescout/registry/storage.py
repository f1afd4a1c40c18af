import time
from typing import Dict, List, Optional, Tuple

from nodescout.discovery.schemas import SubmissionRecord


class InMemorySubmissions:
    def __init__(self, ttl_seconds: int = 1200):
        self.ttl_seconds = ttl_seconds
        self._records: Dict[Tuple[str, int], Tuple[SubmissionRecord, float]] = {}

    def upsert(self, record: SubmissionRecord, *, now: Optional[float] = None) -> None:
        seen = time.time() if now is None else now
        self._records[(record.submitter, record.control_port)] = (record, seen)

    def list_active(self, *, now: Optional[float] = None) -> List[SubmissionRecord]:
        now = time.time() if now is None else now
        active = [(r, seen) for r, seen in self._records.values() if now - seen <= self.ttl_seconds]
        # Most recent first.
        active.sort(key=lambda x: x[1], reverse=True)
        return [r for r, _ in active]

    def prune(self, *, now: Optional[float] = None) -> int:
        now = time.time() if now is None else now
        stale = [k for k, (_, seen) in self._records.items() if now - seen > self.ttl_seconds]
        for k in stale:
            del self._records[k]
        return len(stale)
