"""
core/errors.py
--------------
Failure taxonomy of the sync layer.  None of these are fatal: callers log
them and fall back to the last known good state.  A stale snapshot is not
an error and is reported as a plain ``False`` from ``on_snapshot``.
"""


class SyncError(Exception):
    """Base class for every error raised by the sync layer."""


class MalformedPayload(SyncError):
    """A push or pull payload could not be decoded into a SignalSnapshot."""


class TransportError(SyncError):
    """HTTP or socket level failure talking to the signal service."""


class AlertDispatchError(SyncError):
    """An alert back-end refused or failed to deliver a message."""
