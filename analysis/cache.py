import time
from typing import Callable, Dict, Optional, Tuple

from schemas import Analysis


def cache_key(resume_id: str, occupation_code: str) -> str:
    return f"{resume_id}_{occupation_code}"


class AnalysisCache:
    """Process-local store of recent analyses keyed by resume/occupation pair.

    Entries expire ``ttl_seconds`` after they were written. An expired entry
    is dropped when it is read, and every write sweeps out all expired
    entries. Concurrent writers for the same key simply overwrite each other.
    """

    def __init__(self, ttl_seconds: float = 3600, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._entries: Dict[str, Tuple[float, Analysis]] = {}

    def _expired(self, stored_at: float, now: float) -> bool:
        return now - stored_at >= self.ttl_seconds

    def purge(self) -> int:
        """Drop every expired entry; returns how many were removed."""
        now = self.clock()
        stale = [k for k, (stored_at, _) in self._entries.items() if self._expired(stored_at, now)]
        for key in stale:
            del self._entries[key]
        return len(stale)

    def set(self, resume_id: str, occupation_code: str, analysis: Analysis) -> None:
        self.purge()
        self._entries[cache_key(resume_id, occupation_code)] = (self.clock(), analysis)

    def get(self, resume_id: str, occupation_code: str) -> Optional[Analysis]:
        key = cache_key(resume_id, occupation_code)
        entry = self._entries.get(key)
        if entry is None:
            return None
        stored_at, analysis = entry
        if self._expired(stored_at, self.clock()):
            self._entries.pop(key, None)
            return None
        return analysis

    def invalidate(self, resume_id: str, occupation_code: str) -> None:
        self._entries.pop(cache_key(resume_id, occupation_code), None)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
