# --------------------------------------------------------------------
# models/price_observation.py
# Immutable records held by the RollingWindow and handed to chart renderers.
# --------------------------------------------------------------------
from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from typing import Literal

from models.signal import SignalSnapshot


@dataclass(frozen=True)
class PriceObservation:
    time: datetime
    price: float

    @classmethod
    def from_snapshot(cls, snapshot: SignalSnapshot) -> "PriceObservation":
        return cls(time=snapshot.timestamp, price=snapshot.binance_price)


@dataclass(frozen=True)
class PriceChange:
    percent: float  # unsigned, 10.0 == 10 %
    is_up: bool

    @property
    def direction(self) -> Literal["up", "down"]:
        return "up" if self.is_up else "down"
