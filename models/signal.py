from __future__ import annotations
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SignalKind(str, Enum):
    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"
    WAIT = "WAIT"

    @property
    def is_actionable(self) -> bool:
        return self in (SignalKind.BUY, SignalKind.SELL)

    @classmethod
    def parse(cls, value: Any) -> "SignalKind":
        """Anything the server sends that is not BUY/SELL/HOLD counts as WAIT."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            return cls.WAIT


class SignalSnapshot(BaseModel):
    """One observation from the signal service, as delivered over push or pull."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="allow")

    signal: SignalKind = SignalKind.WAIT
    binance_price: float = Field(..., gt=0, alias="binancePrice")
    dex_price: float = Field(..., gt=0, alias="dexPrice")
    spread: float
    rsi: float
    ema: float = Field(..., gt=0)
    timestamp: datetime

    # advanced metrics – None means "not reported", not zero
    signal_strength: Optional[float] = None
    confidence_score: Optional[float] = None
    volatility: Optional[float] = None
    position_size: Optional[float] = None
    auto_trading: Optional[bool] = None

    @field_validator("signal", mode="before")
    @classmethod
    def normalize_signal(cls, v):
        return SignalKind.parse(v)

    @field_validator("timestamp", mode="before")
    @classmethod
    def normalize_ts(cls, v):
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            if v > 10**12:
                v /= 1000
            if v <= 0:
                raise ValueError("timestamp must be positive")
            return datetime.fromtimestamp(v, tz=timezone.utc)
        return v

    @field_validator("timestamp")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    def to_payload(self) -> Dict[str, Any]:
        """Wire representation (camelCase prices, absent optionals omitted)."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
