"""Pydantic model for DANMU_MSG (chat message) envelopes."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ChatMessage(BaseModel):
    """A chat message (danmaku) sent in the live room.

    The payload keeps positional fields under ``info``: ``info[1]`` is the text,
    ``info[2]`` is ``[uid, uname, ...]``. The avatar URL is not in ``info``; it
    is carried inside the binary ``dm_v2`` blob and resolved by the caller.
    """

    msg: str
    user_id: int = Field(ge=0)
    user_name: str
    face: str = ""
    raw_data: dict[str, Any] = Field(repr=False)

    model_config = {"frozen": True}

    @classmethod
    def from_payload(cls, payload: dict[str, Any], face: str = "") -> ChatMessage:
        info = payload["info"]
        return cls(
            msg=info[1],
            user_id=info[2][0],
            user_name=info[2][1],
            face=face,
            raw_data=payload,
        )
