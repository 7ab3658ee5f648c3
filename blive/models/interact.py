"""Pydantic model for INTERACT_WORD (room entry) envelopes."""

from __future__ import annotations

from enum import IntEnum
from typing import Any

from pydantic import BaseModel, Field


class PrivilegeType(IntEnum):
    """Guard tier of the entering viewer."""

    VIEWER = 0
    GOVERNOR = 1  # 总督
    ADMIRAL = 2  # 提督
    CAPTAIN = 3  # 舰长


class RoomEntryNotice(BaseModel):
    """A viewer entered the room."""

    privilege_type: int = Field(ge=0)
    user_id: int = Field(ge=0)
    user_name: str
    raw_data: dict[str, Any] = Field(repr=False)

    model_config = {"frozen": True}

    @property
    def privilege(self) -> PrivilegeType | None:
        try:
            return PrivilegeType(self.privilege_type)
        except ValueError:
            return None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> RoomEntryNotice:
        data = payload["data"]
        return cls(
            privilege_type=data["privilege_type"],
            user_id=data["uid"],
            user_name=data["uname"],
            raw_data=payload,
        )
