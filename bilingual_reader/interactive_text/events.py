"""Minimal publish/subscribe primitive for reactive reader state."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from bilingual_reader import logging_manager as log_mgr

logger = log_mgr.get_logger().getChild("events")


@dataclass(frozen=True, slots=True)
class StateChange:
    """A single observable state transition.

    ``kind`` names the transition (``"word_translated"``, ``"menu_toggled"``,
    ...); ``key`` identifies the affected cache key or word, when there is one.
    """

    kind: str
    key: Optional[Any] = None
    payload: Dict[str, Any] = field(default_factory=dict)


Listener = Callable[[StateChange], None]


class EventPublisher:
    """Fan out :class:`StateChange` notifications to subscribed listeners."""

    def __init__(self) -> None:
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` and return a callable that unregisters it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def publish(self, change: StateChange) -> None:
        for listener in list(self._listeners):
            try:
                listener(change)
            except Exception:
                logger.exception(
                    "State listener failed",
                    extra={"event": "events.listener_error", "kind": change.kind},
                )

    def clear(self) -> None:
        self._listeners.clear()

    def __len__(self) -> int:
        return len(self._listeners)


__all__ = ["EventPublisher", "Listener", "StateChange"]
