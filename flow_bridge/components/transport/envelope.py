"""
Wire envelope.

Every frame in either direction is a JSON object
``{"channel": "<channel name>", "payload": {...}}``.
"""

from __future__ import annotations

import json
from typing import Any

CHANNEL_FIELD = "channel"
PAYLOAD_FIELD = "payload"


def encode_envelope(channel: str, payload: dict[str, Any]) -> dict[str, Any]:
    return {CHANNEL_FIELD: channel, PAYLOAD_FIELD: payload}


def decode_envelope(raw: str) -> tuple[str, dict[str, Any]]:
    """
    Decode a client frame.

    Raises:
        ValueError: If the frame is not JSON or lacks a string channel
            and an object payload. The payload itself is not inspected.
    """
    try:
        frame = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"Frame is not valid JSON: {e.msg}") from e

    if not isinstance(frame, dict):
        raise ValueError("Frame must be a JSON object")

    channel = frame.get(CHANNEL_FIELD)
    payload = frame.get(PAYLOAD_FIELD)
    if not isinstance(channel, str) or not channel:
        raise ValueError("Frame has no channel")
    if not isinstance(payload, dict):
        raise ValueError("Frame payload must be a JSON object")

    return channel, payload
