from typing import Dict, Optional, Set


class MemoryRegistry:
    """Process-lifetime key/value store for cooldown timestamps."""

    def __init__(self):
        self._entries: Dict[str, float] = {}

    def get(self, key: str) -> Optional[float]:
        return self._entries.get(key)

    def set(self, key: str, value: float) -> None:
        self._entries[key] = value

    def unset(self, key: str) -> None:
        self._entries.pop(key, None)

    def __len__(self) -> int:
        return len(self._entries)


class CooldownGate:
    """Per-key throttle over a cooldown registry.

    A key is allowed again once ``interval`` seconds have passed since it was
    armed (the boundary itself is allowed). Keys that passed ``try_enter`` are
    in flight until they are armed or released, and are reported as blocked
    in the meantime. That only covers requests inside this process, the gate
    is a UX throttle and not an anti-abuse guarantee.
    """

    def __init__(self, registry: MemoryRegistry, interval: float):
        self.registry = registry
        self.interval = interval
        self._in_flight: Set[str] = set()

    def check(self, key: str, now: float) -> bool:
        last = self.registry.get(key)
        if last is None:
            return True
        if now - last >= self.interval:
            # Expired, drop it so the registry doesn't grow forever
            self.registry.unset(key)
            return True
        return False

    def try_enter(self, key: str, now: float) -> bool:
        if key in self._in_flight or not self.check(key, now):
            return False
        self._in_flight.add(key)
        return True

    def arm(self, key: str, now: float) -> None:
        self._in_flight.discard(key)
        self.registry.set(key, now)

    def release(self, key: str) -> None:
        self._in_flight.discard(key)
