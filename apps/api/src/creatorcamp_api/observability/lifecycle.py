from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime, timezone
from threading import Lock
from typing import Dict


@dataclass
class LifecycleSnapshot:
    transitions: Dict[str, int]
    rejections: Dict[str, int]
    ledger: Dict[str, int]
    inventory: Dict[str, int]
    reaper: Dict[str, object]

    def as_dict(self) -> Dict[str, object]:
        return {
            "transitions": dict(self.transitions),
            "rejections": dict(self.rejections),
            "ledger": dict(self.ledger),
            "inventory": dict(self.inventory),
            "reaper": dict(self.reaper),
        }


class LifecycleObservabilityStore:
    """Collect application lifecycle, ledger and reaper telemetry."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._transitions: Dict[str, int] = defaultdict(int)
        self._rejections: Dict[str, int] = defaultdict(int)
        self._ledger: Dict[str, int] = defaultdict(int)
        self._inventory: Dict[str, int] = defaultdict(int)
        self._reaper_totals: Dict[str, int] = defaultdict(int)
        self._reaper_last_run: str | None = None

    def record_transition(self, from_status: str, to_status: str) -> None:
        with self._lock:
            self._transitions[f"{from_status}:{to_status}"] += 1

    def record_rejection(self, code: str) -> None:
        with self._lock:
            self._rejections[code] += 1

    def record_ledger_event(self, kind: str, reason: str) -> None:
        with self._lock:
            self._ledger[f"{kind}:{reason}"] += 1

    def record_inventory_event(self, event: str) -> None:
        with self._lock:
            self._inventory[event] += 1

    def record_reaper_sweep(self, summary: Dict[str, int]) -> None:
        with self._lock:
            self._reaper_totals["sweeps"] += 1
            for key, value in summary.items():
                self._reaper_totals[key] += int(value)
            self._reaper_last_run = datetime.now(timezone.utc).isoformat()

    def snapshot(self) -> LifecycleSnapshot:
        with self._lock:
            reaper: Dict[str, object] = dict(self._reaper_totals)
            reaper["last_run_at"] = self._reaper_last_run
            return LifecycleSnapshot(
                transitions=dict(self._transitions),
                rejections=dict(self._rejections),
                ledger=dict(self._ledger),
                inventory=dict(self._inventory),
                reaper=reaper,
            )

    def reset(self) -> None:
        with self._lock:
            self._transitions.clear()
            self._rejections.clear()
            self._ledger.clear()
            self._inventory.clear()
            self._reaper_totals.clear()
            self._reaper_last_run = None


_STORE = LifecycleObservabilityStore()


def get_lifecycle_store() -> LifecycleObservabilityStore:
    return _STORE


__all__ = ["get_lifecycle_store", "LifecycleObservabilityStore", "LifecycleSnapshot"]
