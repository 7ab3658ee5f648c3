"""Envelope model for SMS (command) messages delivered by the live-room transport."""

from __future__ import annotations

from typing import Any

import orjson
from pydantic import BaseModel


class MalformedEnvelope(ValueError):
    """The message has no readable ``cmd`` or lacks a field its projection needs."""


class Envelope(BaseModel):
    """One routed message.

    ``payload`` is the complete decoded document, ``cmd`` included. It is shared
    by every subscriber of a dispatch and must be treated as read-only.
    """

    command: str
    payload: dict[str, Any]

    model_config = {"frozen": True}

    @classmethod
    def from_raw(cls, raw: bytes | bytearray | str | dict) -> Envelope:
        """Parse a JSON body (or an already decoded document) into an Envelope."""
        if isinstance(raw, dict):
            doc = raw
        else:
            try:
                doc = orjson.loads(raw)
            except orjson.JSONDecodeError as e:
                raise MalformedEnvelope(f"invalid JSON: {e}") from e

        if not isinstance(doc, dict):
            raise MalformedEnvelope(f"expected a JSON object, got {type(doc).__name__}")
        command = doc.get("cmd")
        if not isinstance(command, str):
            raise MalformedEnvelope("missing or non-string 'cmd'")
        return cls(command=command, payload=doc)
