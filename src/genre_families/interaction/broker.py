from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

LOGGER = logging.getLogger(__name__)

YearRange = tuple[float, float]
RangeListener = Callable[["LinkSnapshot"], None]


@dataclass(frozen=True)
class LinkSnapshot:
    visible_range: YearRange | None
    linked: bool

    @property
    def active_range(self) -> YearRange | None:
        """Window downstream aggregations should use; ``None`` means all data."""
        return self.visible_range if self.linked else None


class CoordinationBroker:
    """Shares the stream view's visible window with the bar-chart aggregation."""

    def __init__(self, linked: bool = True, visible_range: YearRange | None = None) -> None:
        self._snapshot = LinkSnapshot(visible_range=_ordered(visible_range), linked=linked)
        self._listeners: list[RangeListener] = []

    @property
    def linked(self) -> bool:
        return self._snapshot.linked

    @property
    def visible_range(self) -> YearRange | None:
        return self._snapshot.visible_range

    def snapshot(self) -> LinkSnapshot:
        return self._snapshot

    def active_range(self) -> YearRange | None:
        return self._snapshot.active_range

    def subscribe(self, listener: RangeListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def publish(self, visible_range: YearRange) -> LinkSnapshot:
        return self._replace(
            LinkSnapshot(visible_range=_ordered(visible_range), linked=self.linked)
        )

    def set_linked(self, linked: bool) -> LinkSnapshot:
        return self._replace(LinkSnapshot(visible_range=self.visible_range, linked=bool(linked)))

    def toggle_linked(self) -> LinkSnapshot:
        return self.set_linked(not self.linked)

    def _replace(self, snapshot: LinkSnapshot) -> LinkSnapshot:
        previous = self._snapshot
        self._snapshot = snapshot
        if previous.active_range != snapshot.active_range:
            LOGGER.debug(
                "Active range changed: %s -> %s (linked=%s)",
                previous.active_range,
                snapshot.active_range,
                snapshot.linked,
            )
            for listener in list(self._listeners):
                listener(snapshot)
        return snapshot


def _ordered(visible_range: YearRange | None) -> YearRange | None:
    if visible_range is None:
        return None
    t0, t1 = sorted((float(visible_range[0]), float(visible_range[1])))
    return t0, t1
