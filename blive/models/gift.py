"""Pydantic models for SEND_GIFT envelopes."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class GiftInfo(BaseModel):
    """The gift as shown to viewers. ``price`` is in gold-seed units (1000 = 1 CNY)."""

    action: str | None = None
    gift_id: int | None = Field(default=None, alias="giftId")
    gift_name: str | None = Field(default=None, alias="giftName")
    price: int | None = None

    model_config = {"frozen": True, "populate_by_name": True}


class BlindGiftInfo(BaseModel):
    """The blind box a gift was opened from."""

    action: str | None = Field(default=None, alias="gift_action")
    gift_id: int | None = Field(default=None, alias="original_gift_id")
    gift_name: str | None = Field(default=None, alias="original_gift_name")
    price: int | None = Field(default=None, alias="original_gift_price")

    model_config = {"frozen": True, "populate_by_name": True}


class GiftNotice(BaseModel):
    """A viewer sent a gift, possibly unboxed from a blind box."""

    gift: GiftInfo
    blind_gift: BlindGiftInfo | None = None
    user_id: int = Field(ge=0)
    user_name: str
    raw_data: dict[str, Any] = Field(repr=False)

    model_config = {"frozen": True}

    @property
    def is_blind_box(self) -> bool:
        return self.blind_gift is not None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> GiftNotice:
        data = payload["data"]
        blind = data.get("blind_gift")
        return cls(
            gift=GiftInfo.model_validate(
                {k: data.get(k) for k in ("action", "giftId", "giftName", "price")}
            ),
            blind_gift=BlindGiftInfo.model_validate(blind) if blind is not None else None,
            user_id=data["uid"],
            user_name=data["uname"],
            raw_data=payload,
        )
