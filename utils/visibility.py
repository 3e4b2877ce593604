"""
utils/visibility.py
-------------------
Visibility port: tells the SyncClient whether the host is foregrounded.
Hidden hosts suspend reconnects and polling.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Callable, List

logger = logging.getLogger(__name__)

VisibilityCallback = Callable[[bool], None]


class VisibilitySource(ABC):
    @abstractmethod
    def is_visible(self) -> bool:
        raise NotImplementedError

    @abstractmethod
    def subscribe(self, callback: VisibilityCallback) -> Callable[[], None]:
        """Register ``callback(visible)``; returns an unsubscribe function."""
        raise NotImplementedError


class ManualVisibility(VisibilitySource):
    """Visibility flipped explicitly by the host (always visible by default)."""

    def __init__(self, visible: bool = True) -> None:
        self._visible = visible
        self._callbacks: List[VisibilityCallback] = []

    def is_visible(self) -> bool:
        return self._visible

    def subscribe(self, callback: VisibilityCallback) -> Callable[[], None]:
        self._callbacks.append(callback)

        def _unsubscribe() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return _unsubscribe

    def set_visible(self, visible: bool) -> None:
        if visible == self._visible:
            return
        self._visible = visible
        for cb in list(self._callbacks):
            try:
                cb(visible)
            except Exception:
                logger.exception("Visibility callback failed")
