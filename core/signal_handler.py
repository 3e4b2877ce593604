from __future__ import annotations
from typing import Optional

from models.signal import SignalKind


class SignalTransitionTracker:
    """Decides whether a newly accepted signal deserves an alert.

    ``last_notified`` only moves when the signal differs from it, so a run
    of identical BUYs alerts once, while BUY → HOLD → BUY alerts twice.
    """

    def __init__(self) -> None:
        self.last_notified: Optional[SignalKind] = None

    def observe(self, signal: SignalKind) -> bool:
        if signal == self.last_notified:
            return False
        self.last_notified = signal
        return signal.is_actionable
