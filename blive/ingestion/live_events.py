"""Live-room event surface — turns transport callbacks into named events.

The transport (WebSocket connect, heartbeat timer, packet framing) lives
outside this package. It calls the ``on_*`` entry points with message bodies
it has already un-framed and decompressed.
"""

from __future__ import annotations

from typing import Any

import orjson
import structlog
from pydantic import ValidationError

from blive.ingestion.events import (
    AuthReply,
    DecodeFailure,
    EventBus,
    HeartbeatReply,
    TransportStatus,
)
from blive.ingestion.wire import DecodeError, decode_avatar
from blive.ingestion.ws_router import SMS_HANDLERS, CommandRouter
from blive.models import (
    ChatMessage,
    Envelope,
    GiftNotice,
    MalformedEnvelope,
    OnlineRankList,
    RoomEntryNotice,
)

logger = structlog.get_logger(__name__)

RAW_PREVIEW = 200

# Failures while reading fields out of a payload document
_PROJECTION_ERRORS = (KeyError, IndexError, TypeError, ValidationError)


class _ProjectionFailed(Exception):
    """Carries a parse failure out of the router, distinct from anything a handler raises."""

    def __init__(self, error: Exception) -> None:
        super().__init__(str(error))
        self.error = error


class BLiveEvents(EventBus):
    """
    Event bus for one live room.

    Built-in projections are registered as internal router subscribers. A
    projection claims its command only while its named event has handlers, so
    unobserved commands still reach ``OTHERS`` command-reply subscribers.
    """

    def __init__(self, room_id: int = 0, raw_preview: int = RAW_PREVIEW) -> None:
        super().__init__(CommandRouter())
        self.room_id = room_id
        self._raw_preview = raw_preview
        self._log = logger.bind(room_id=room_id)

        for cmd, handler_name in SMS_HANDLERS.items():
            self.router.subscribe(getattr(self, handler_name), cmd, internal=True)

    # ── Transport entry points ────────────────────────────────────────

    def on_auth_reply(self, raw: bytes) -> None:
        try:
            body = orjson.loads(raw)
        except orjson.JSONDecodeError as e:
            self.on_decode_error("auth reply is not valid JSON", e)
            return
        if not isinstance(body, dict):
            self.on_decode_error(
                "auth reply is not a JSON object",
                MalformedEnvelope(f"got {type(body).__name__}"),
            )
            return
        self._log.info("auth_reply", code=body.get("code"))
        self.auth_reply.emit(self, AuthReply(body, bytes(raw)))

    def on_heartbeat_reply(self, raw: bytes) -> None:
        if len(raw) < 4:
            self.on_decode_error(
                "heartbeat reply too short",
                DecodeError(f"expected 4 bytes, got {len(raw)}"),
            )
            return
        popularity = int.from_bytes(raw[:4], "big")
        self._log.debug("heartbeat_reply", popularity=popularity)
        self.heartbeat_reply.emit(self, HeartbeatReply(popularity, bytes(raw)))

    def on_sms_reply(self, raw: bytes | str | dict) -> bool:
        """Route one command message. Returns whether a projection claimed it.

        Decode failures (an unreadable envelope, or a payload a projection
        cannot parse) become ``decode_error`` events and abandon the message.
        Exceptions raised by subscribers propagate to the caller, whatever
        their type.
        """
        try:
            envelope = Envelope.from_raw(raw)
        except MalformedEnvelope as e:
            self._report_decode_error(e, raw)
            return False

        try:
            return self.router.dispatch(envelope)
        except _ProjectionFailed as e:
            self._report_decode_error(e.error, raw)
            return False

    def on_transport_error(self, message: str, code: int) -> None:
        self._log.error("transport_error", message=message, code=code)
        self.transport_error.emit(self, TransportStatus(message, code))

    def on_transport_close(self, message: str, code: int) -> None:
        self._log.info("transport_close", message=message, code=code)
        self.transport_close.emit(self, TransportStatus(message, code))

    def on_decode_error(self, message: str, error: Exception) -> None:
        self.decode_error.emit(self, DecodeFailure(message, error))

    def _report_decode_error(self, error: Exception, raw: Any) -> None:
        self._log.warning("sms_decode_error", error=str(error), raw=self._preview(raw))
        self.on_decode_error(f"failed to decode SMS message: {error}", error)

    # ── SMS projections ───────────────────────────────────────────────
    # Parsing happens before emit, so only parse failures become _ProjectionFailed.

    def _handle_danmu_msg(self, cmd: str, hit_cmd: str, payload: dict[str, Any]) -> bool:
        message = self._project(_parse_chat_message, payload)
        self.chat_message.emit(self, message)
        return bool(self.chat_message)

    def _handle_interact_word(self, cmd: str, hit_cmd: str, payload: dict[str, Any]) -> bool:
        notice = self._project(RoomEntryNotice.from_payload, payload)
        self.room_entry.emit(self, notice)
        return bool(self.room_entry)

    def _handle_send_gift(self, cmd: str, hit_cmd: str, payload: dict[str, Any]) -> bool:
        notice = self._project(GiftNotice.from_payload, payload)
        self.gift.emit(self, notice)
        return bool(self.gift)

    def _handle_online_rank_v2(self, cmd: str, hit_cmd: str, payload: dict[str, Any]) -> bool:
        ranks = self._project(OnlineRankList.from_payload, payload)
        self.online_rank.emit(self, ranks)
        return bool(self.online_rank)

    @staticmethod
    def _project(parse, payload: dict[str, Any]):
        try:
            return parse(payload)
        except DecodeError as e:
            raise _ProjectionFailed(e) from e
        except _PROJECTION_ERRORS as e:
            error = MalformedEnvelope(f"{payload.get('cmd')}: {type(e).__name__}: {e}")
            raise _ProjectionFailed(error) from e

    def _preview(self, raw: Any) -> str:
        return str(raw)[: self._raw_preview]


def _parse_chat_message(payload: dict[str, Any]) -> ChatMessage:
    return ChatMessage.from_payload(payload, face=decode_avatar(payload.get("dm_v2")))
