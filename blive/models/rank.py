"""Pydantic models for ONLINE_RANK_V2 (high-energy viewer list) envelopes."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class OnlineRankListItem(BaseModel):
    uid: int
    face: str = ""
    score: str = "0"
    uname: str
    rank: int
    guard_level: int = 0

    model_config = {"frozen": True, "coerce_numbers_to_str": True}


class OnlineRankList(BaseModel):
    """Current online rank list, ordered by rank."""

    rank_type: str | None = None
    items: list[OnlineRankListItem] = Field(default_factory=list)
    raw_data: dict[str, Any] = Field(repr=False)

    model_config = {"frozen": True}

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> OnlineRankList:
        data = payload["data"]
        items = [OnlineRankListItem.model_validate(item) for item in data.get("list") or []]
        return cls(
            rank_type=data.get("rank_type"),
            items=sorted(items, key=lambda item: item.rank),
            raw_data=payload,
        )
