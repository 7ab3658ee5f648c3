"""Named events exposed to downstream consumers.

Every event is an ordered observer list: handlers are called as
``handler(sender, args)`` in subscription order. ``command_reply`` is the one
exception in shape, since it is backed by the public registry of the
CommandRouter and honours command interests.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

import structlog

from blive.ingestion.ws_router import CommandRouter, Subscriber
from blive.models import ChatMessage, GiftNotice, OnlineRankList, RoomEntryNotice

logger = structlog.get_logger(__name__)

T = TypeVar("T")
Handler = Callable[[Any, T], None]


# ── Event arguments without a payload model ──────────────────────────


@dataclass(frozen=True)
class AuthReply:
    auth_reply: dict[str, Any]
    raw_data: bytes = field(repr=False)

    @property
    def ok(self) -> bool:
        return self.auth_reply.get("code") == 0


@dataclass(frozen=True)
class HeartbeatReply:
    """``heartbeat_reply`` is the room popularity value sent back by the server."""

    heartbeat_reply: int
    raw_data: bytes = field(repr=False)


@dataclass(frozen=True)
class CommandReply:
    cmd: str
    hit_cmd: str  # the command itself, "ALL" or "OTHERS"
    raw_data: dict[str, Any] = field(repr=False)


@dataclass(frozen=True)
class TransportStatus:
    """Used by both transport_error and transport_close."""

    message: str
    code: int


@dataclass(frozen=True)
class DecodeFailure:
    message: str
    error: Exception


# ── Observer list ────────────────────────────────────────────────────


class Event(Generic[T]):
    """Ordered multi-listener notification for one named event."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._handlers: list[Handler[T]] = []

    def __bool__(self) -> bool:
        return bool(self._handlers)

    def __len__(self) -> int:
        return len(self._handlers)

    def __repr__(self) -> str:
        return f"Event({self.name!r}, handlers={len(self._handlers)})"

    def subscribe(self, handler: Handler[T]) -> Handler[T]:
        """Add a handler. Returns it unchanged so this works as a decorator."""
        self._handlers.append(handler)
        return handler

    def unsubscribe(self, handler: Handler[T]) -> bool:
        """Remove the first registration of ``handler``."""
        try:
            self._handlers.remove(handler)
        except ValueError:
            return False
        return True

    def emit(self, sender: Any, args: T) -> None:
        # Handler failures propagate to the emitter
        for handler in tuple(self._handlers):
            handler(sender, args)


class EventBus:
    """One Event per business message kind, plus interest-aware command replies."""

    def __init__(self, router: CommandRouter | None = None) -> None:
        self.router = router if router is not None else CommandRouter()

        self.auth_reply: Event[AuthReply] = Event("auth_reply")
        self.heartbeat_reply: Event[HeartbeatReply] = Event("heartbeat_reply")
        self.chat_message: Event[ChatMessage] = Event("chat_message")
        self.room_entry: Event[RoomEntryNotice] = Event("room_entry")
        self.gift: Event[GiftNotice] = Event("gift")
        self.online_rank: Event[OnlineRankList] = Event("online_rank")
        self.transport_error: Event[TransportStatus] = Event("transport_error")
        self.transport_close: Event[TransportStatus] = Event("transport_close")
        self.decode_error: Event[DecodeFailure] = Event("decode_error")

        self._command_subscribers: list[tuple[Handler[CommandReply], Subscriber]] = []

    def subscribe_command(
        self,
        handler: Handler[CommandReply],
        *commands: str | Iterable[str],
        sender: Any = None,
    ) -> Handler[CommandReply]:
        """Receive raw command replies for ``commands``.

        Pass ``"ALL"`` to see everything, ``"OTHERS"`` to see only commands no
        one else claimed, or nothing at all to behave like ``"ALL"``.
        """
        owner = self if sender is None else sender

        def deliver(cmd: str, hit_cmd: str, payload: dict[str, Any]) -> None:
            handler(owner, CommandReply(cmd, hit_cmd, payload))

        subscriber = self.router.subscribe(deliver, *commands)
        self._command_subscribers.append((handler, subscriber))
        return handler

    def unsubscribe_command(self, handler: Handler[CommandReply]) -> bool:
        for i, (registered, subscriber) in enumerate(self._command_subscribers):
            if registered == handler:
                del self._command_subscribers[i]
                return self.router.unsubscribe(subscriber)
        return False

    def events(self) -> dict[str, Event[Any]]:
        return {name: value for name, value in vars(self).items() if isinstance(value, Event)}
