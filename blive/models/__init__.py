from .envelope import Envelope, MalformedEnvelope
from .chat import ChatMessage
from .interact import PrivilegeType, RoomEntryNotice
from .gift import BlindGiftInfo, GiftInfo, GiftNotice
from .rank import OnlineRankList, OnlineRankListItem

__all__ = [
    "Envelope",
    "MalformedEnvelope",
    "ChatMessage",
    "PrivilegeType",
    "RoomEntryNotice",
    "BlindGiftInfo",
    "GiftInfo",
    "GiftNotice",
    "OnlineRankList",
    "OnlineRankListItem",
]
