from __future__ import annotations

import logging
from typing import Generic, TypeVar

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


class FrameCoalescer(Generic[T]):
    """Single pending slot drained once per rendering frame; the latest value wins."""

    def __init__(self) -> None:
        self._pending: T | None = None
        self._has_pending = False
        self.submitted = 0
        self.superseded = 0
        self.drained = 0

    @property
    def has_pending(self) -> bool:
        return self._has_pending

    def peek(self) -> T | None:
        return self._pending if self._has_pending else None

    def submit(self, value: T) -> None:
        if self._has_pending:
            self.superseded += 1
        self._pending = value
        self._has_pending = True
        self.submitted += 1

    def drain(self) -> T | None:
        if not self._has_pending:
            return None
        value = self._pending
        self._pending = None
        self._has_pending = False
        self.drained += 1
        if self.superseded:
            LOGGER.debug(
                "Coalesced frame: drained=%d superseded=%d", self.drained, self.superseded
            )
        return value

    def clear(self) -> None:
        self._pending = None
        self._has_pending = False
