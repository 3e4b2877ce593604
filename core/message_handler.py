"""
message_handler.py
==================
Decoding of inbound signal payloads (push frames and pull responses) with
**strict schema validation** and detailed logging.  Every failure surfaces
as :class:`core.errors.MalformedPayload` so callers can drop the offending
message without touching their state.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Union

from pydantic import ValidationError

from core.errors import MalformedPayload
from models.signal import SignalSnapshot

logger = logging.getLogger(__name__)

RawPayload = Union[str, bytes, bytearray, Dict[str, Any]]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _load_json(raw: RawPayload) -> Any:
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise MalformedPayload(f"payload is not UTF-8: {exc}") from exc
    if isinstance(raw, str):
        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            raise MalformedPayload(f"invalid JSON: {exc.msg}") from exc
    return raw


def split_frames(raw: Union[str, bytes]) -> List[Union[str, bytes]]:
    """One WS frame may carry several newline-delimited JSON documents.

    A bytes frame that is not valid UTF-8 is returned whole and undecoded
    so that decode_snapshot rejects it as MalformedPayload.
    """
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError:
            return [bytes(raw)]
    return [line for line in raw.splitlines() if line.strip()]


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def decode_snapshot(raw: RawPayload) -> SignalSnapshot:
    """Parse one payload into a SignalSnapshot or raise MalformedPayload."""
    data = _load_json(raw)
    if not isinstance(data, dict):
        raise MalformedPayload(f"expected JSON object, got {type(data).__name__}")
    try:
        return SignalSnapshot.model_validate(data)
    except ValidationError as exc:
        raise MalformedPayload(f"snapshot validation failed: {exc.error_count()} error(s)") from exc


def decode_history(raw: RawPayload) -> List[SignalSnapshot]:
    """Parse a history response (most recent first).

    Accepts a bare JSON list or an object wrapping it under ``data``.
    Individual malformed entries are skipped with a warning; a payload
    that is not a list at all raises MalformedPayload.
    """
    data = _load_json(raw)
    if isinstance(data, dict) and isinstance(data.get("data"), list):
        data = data["data"]
    if not isinstance(data, list):
        raise MalformedPayload(f"expected JSON list, got {type(data).__name__}")

    history: List[SignalSnapshot] = []
    for idx, entry in enumerate(data):
        try:
            history.append(decode_snapshot(entry))
        except MalformedPayload as exc:
            logger.warning("⏭️ Skipping history entry %d: %s", idx, exc)
    return history
