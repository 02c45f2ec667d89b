from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Callable, DefaultDict, Dict, List

logger = logging.getLogger(__name__)

Listener = Callable[[Dict[str, Any]], None]


class EventBus:
    """
    Tiny pub/sub between the player and its side-effect collaborators.

    - subscribe(name, fn): register a callback, returns an unsubscribe function
    - unsubscribe(name, fn): remove callback
    - emit(name, **data): fire event with keyword payload
    """

    def __init__(self) -> None:
        self._subs: DefaultDict[str, List[Listener]] = defaultdict(list)
        self._emit_count: Dict[str, int] = defaultdict(int)

    def subscribe(self, name: str, fn: Listener) -> Callable[[], None]:
        if fn not in self._subs[name]:
            self._subs[name].append(fn)

        def unsubscribe() -> None:
            self.unsubscribe(name, fn)
        return unsubscribe

    def unsubscribe(self, name: str, fn: Listener) -> None:
        subs = self._subs.get(name)
        if subs and fn in subs:
            subs.remove(fn)

    def emit(self, name: str, /, **data: Any) -> None:
        self._emit_count[name] += 1
        for fn in list(self._subs.get(name, [])):
            try:
                fn(dict(data))
            except Exception:
                # one listener failing must not stop the others
                logger.exception("Listener for '%s' failed", name)

    def get_stats(self) -> Dict[str, Any]:
        return {
            "events": dict(self._emit_count),
            "listeners": {k: len(v) for k, v in self._subs.items()},
            "total_emits": sum(self._emit_count.values()),
        }

    def clear(self) -> None:
        self._subs.clear()
        self._emit_count.clear()
