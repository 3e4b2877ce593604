"""
rolling_window.py
-----------------
Bounded FIFO buffer of recent price observations and the short-term
price-change statistic the dashboard chart shows next to it.
"""

from __future__ import annotations

from collections import deque
from typing import Dict, Optional, Tuple

import pandas as pd

from models.price_observation import PriceChange, PriceObservation

DEFAULT_CAPACITY = 20


class RollingWindow:
    """Keeps the last ``capacity`` observations, evicting the oldest first."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._buffer: deque[PriceObservation] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._buffer.maxlen

    def __len__(self) -> int:
        return len(self._buffer)

    def push(self, observation: PriceObservation) -> None:
        self._buffer.append(observation)

    def latest_change(self) -> Optional[PriceChange]:
        """Change between the two newest observations, or None with fewer than two."""
        if len(self._buffer) < 2:
            return None
        previous = self._buffer[-2].price
        latest = self._buffer[-1].price
        change = (latest - previous) / previous * 100
        return PriceChange(percent=abs(change), is_up=change >= 0)

    def series(self) -> Tuple[PriceObservation, ...]:
        """Observations in arrival order; a snapshot, safe to iterate repeatedly."""
        return tuple(self._buffer)

    def as_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            [(o.time, o.price) for o in self._buffer],
            columns=["time", "price"],
        )

    def summary(self) -> Optional[Dict[str, float]]:
        """Low/high/mean price over the window and the change from oldest to newest."""
        frame = self.as_frame()
        if frame.empty:
            return None
        prices = frame["price"]
        first, last = prices.iloc[0], prices.iloc[-1]
        return {
            "count": int(prices.size),
            "low": float(prices.min()),
            "high": float(prices.max()),
            "mean": float(prices.mean()),
            "change_pct": float((last - first) / first * 100),
        }
