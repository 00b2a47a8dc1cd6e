"""Counters for one run of the watcher."""

import threading
from dataclasses import dataclass, field, fields


@dataclass
class PipelineStats:
    events: int = 0
    coalesced: int = 0
    sent: int = 0
    suppressed: int = 0
    partial: int = 0
    fetch_errors: int = 0
    parse_errors: int = 0
    delivery_errors: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def incr(self, name: str, amount: int = 1) -> None:
        with self._lock:
            setattr(self, name, getattr(self, name) + amount)

    def snapshot(self) -> dict[str, int]:
        with self._lock:
            return {f.name: getattr(self, f.name) for f in fields(self)
                    if not f.name.startswith("_")}
