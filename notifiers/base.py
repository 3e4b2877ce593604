# notifiers/base.py
"""
notifiers/base.py
-----------------
A single-method interface every alert back-end must implement.
"""
from __future__ import annotations
from abc import ABC, abstractmethod

from models.signal import SignalSnapshot


class BaseNotifier(ABC):
    """Every concrete notifier must implement send()."""

    @abstractmethod
    async def send(self, text: str, snapshot: SignalSnapshot) -> bool:
        """Deliver the alert; True when accepted, AlertDispatchError when the back-end failed."""
        raise NotImplementedError

    async def close(self) -> None:
        """Release back-end resources (optional)."""
