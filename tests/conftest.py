"""Shared test fixtures for the blive test suite."""

from __future__ import annotations

import base64

import pytest
import structlog

AVATAR_URL = "https://i0.hdslb.com/bfs/face/member/noface.jpg"


def varint(value: int) -> bytes:
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def length_delimited(field_number: int, data: bytes) -> bytes:
    return varint(field_number << 3 | 2) + varint(len(data)) + data


def make_dm_v2(face: str = AVATAR_URL) -> str:
    """A dm_v2 blob shaped like the server's: a few leading fields, user info in 20."""
    user = (
        length_delimited(1, b"\xe6\xb5\x8b\xe8\xaf\x95")
        + varint(2 << 3) + varint(12345)
        + length_delimited(4, face.encode())
    )
    body = (
        length_delimited(1, b"dm-id-1")
        + varint(5 << 3) + varint(1707350400)
        + length_delimited(20, user)
    )
    return base64.b64encode(body).decode()


@pytest.fixture(autouse=True)
def reset_structlog():
    """CLI tests reconfigure structlog against a captured stderr; undo it."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def sample_danmu_msg() -> dict:
    """Sample DANMU_MSG as received from the live-room WebSocket."""
    return {
        "cmd": "DANMU_MSG",
        "info": [
            [0, 1, 25, 16777215, 1707350400000, 0, 0, "abcd1234", 0, 0, 0, "", 0, "{}", "{}"],
            "hello world",
            [12345, "viewer", 0, 0, 0, 10000, 1, ""],
            [],
            [0, 0, 9868950, ">50000", 0],
        ],
        "dm_v2": make_dm_v2(),
    }


@pytest.fixture
def sample_interact_word_msg() -> dict:
    """Sample INTERACT_WORD (viewer entered the room)."""
    return {
        "cmd": "INTERACT_WORD",
        "data": {
            "msg_type": 1,
            "privilege_type": 3,
            "roomid": 21452505,
            "uid": 67890,
            "uname": "captain",
            "timestamp": 1707350400,
        },
    }


@pytest.fixture
def sample_send_gift_msg() -> dict:
    """Sample SEND_GIFT without a blind box."""
    return {
        "cmd": "SEND_GIFT",
        "data": {
            "action": "投喂",
            "giftId": 31036,
            "giftName": "小花花",
            "price": 100,
            "num": 1,
            "uid": 13579,
            "uname": "gifter",
            "blind_gift": None,
        },
    }


@pytest.fixture
def sample_blind_gift_msg(sample_send_gift_msg: dict) -> dict:
    """Sample SEND_GIFT opened from a blind box."""
    sample_send_gift_msg["data"].update(
        {
            "action": "爆出",
            "giftId": 32132,
            "giftName": "情书",
            "price": 5200,
            "blind_gift": {
                "blind_gift_config_id": 51,
                "gift_action": "爆出",
                "original_gift_id": 32251,
                "original_gift_name": "心动盲盒",
                "original_gift_price": 15000,
            },
        }
    )
    return sample_send_gift_msg


@pytest.fixture
def sample_online_rank_msg() -> dict:
    """Sample ONLINE_RANK_V2 (high-energy viewer list)."""
    return {
        "cmd": "ONLINE_RANK_V2",
        "data": {
            "list": [
                {"uid": 2, "face": "https://i0.hdslb.com/b.jpg", "score": "300", "uname": "second", "rank": 2, "guard_level": 0},
                {"uid": 1, "face": "https://i0.hdslb.com/a.jpg", "score": "1200", "uname": "first", "rank": 1, "guard_level": 3},
            ],
            "rank_type": "gold-rank",
        },
    }


@pytest.fixture
def sample_unhandled_msg() -> dict:
    """A command none of the built-in projections handle."""
    return {"cmd": "WATCHED_CHANGE", "data": {"num": 1024, "text_small": "1024"}}
