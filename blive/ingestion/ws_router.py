"""Routes incoming SMS envelopes to subscribers by command name.

Each dispatch makes two passes over one ordered registry:

1. Coverage pass, internal subscribers only: every subscriber whose interest
   names the concrete command is called, and the OR of their return values
   says whether the command was claimed.
2. Broadcast pass, public subscribers only: each subscriber is called at most
   once with the label it matched on (the command itself, ``ALL`` or
   ``OTHERS``). ``OTHERS``-only subscribers run last, and only when nothing
   claimed the command in either pass.

Subscriber exceptions are not caught here; a failing callback aborts the rest
of the pass.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

import structlog

from blive.ingestion.matcher import (
    ALL,
    OTHERS,
    CommandInterest,
    has_all,
    has_exact,
    has_others,
    make_interest,
)
from blive.models import Envelope

logger = structlog.get_logger(__name__)

# (concrete command, matched label, payload) -> result
RouterCallback = Callable[[str, str, dict[str, Any]], Any]

# Command → BLiveEvents handler method name, registered as internal subscribers
SMS_HANDLERS: dict[str, str] = {
    "DANMU_MSG": "_handle_danmu_msg",
    "INTERACT_WORD": "_handle_interact_word",
    "SEND_GIFT": "_handle_send_gift",
    "ONLINE_RANK_V2": "_handle_online_rank_v2",
}


@dataclass(frozen=True, eq=False)
class Subscriber:
    """A registered callback. Never edited after registration."""

    callback: RouterCallback
    interest: CommandInterest = None
    internal: bool = False

    def __post_init__(self) -> None:
        # An empty interest names nothing; treat it like no interest at all
        if not self.interest:
            object.__setattr__(self, "interest", None)


class CommandRouter:
    """Ordered subscriber registry with two-pass dispatch."""

    def __init__(self) -> None:
        # Replaced wholesale on every change so in-flight dispatches keep their snapshot
        self._subscribers: tuple[Subscriber, ...] = ()

    def __len__(self) -> int:
        return len(self._subscribers)

    # ── Registration ──────────────────────────────────────────────────

    def subscribe(
        self,
        callback: RouterCallback,
        *commands: str | Iterable[str],
        internal: bool = False,
    ) -> Subscriber:
        """Append a subscriber. No commands means it receives everything, labelled ALL."""
        subscriber = Subscriber(callback, make_interest(*commands), internal)
        self._subscribers = (*self._subscribers, subscriber)
        logger.debug(
            "router_subscribed",
            interest=sorted(subscriber.interest) if subscriber.interest else None,
            internal=internal,
        )
        return subscriber

    def unsubscribe(self, subscriber: Subscriber) -> bool:
        """Remove a subscriber. Returns False if it was not registered."""
        if subscriber not in self._subscribers:
            return False
        self._subscribers = tuple(s for s in self._subscribers if s is not subscriber)
        return True

    def subscribers(self, internal: bool | None = None) -> tuple[Subscriber, ...]:
        if internal is None:
            return self._subscribers
        return tuple(s for s in self._subscribers if s.internal is internal)

    # ── Dispatch ──────────────────────────────────────────────────────

    def claim(self, envelope: Envelope) -> bool:
        """Coverage pass. True if any internal subscriber claimed the command."""
        command = envelope.command
        hit = False
        for sub in self._subscribers:
            if not sub.internal or not has_exact(sub.interest, command):
                continue
            # no short-circuit: every matching handler runs
            hit = bool(sub.callback(command, command, envelope.payload)) or hit
        return hit

    def broadcast(self, envelope: Envelope, hit: bool = False) -> int:
        """Broadcast pass. Returns the number of callbacks invoked."""
        command = envelope.command
        payload = envelope.payload
        pending: list[Subscriber] = []
        invoked = 0

        for sub in self._subscribers:
            if sub.internal:
                continue
            if sub.interest is None:
                sub.callback(command, ALL, payload)
            elif has_exact(sub.interest, command):
                sub.callback(command, command, payload)
                hit = True
            elif has_all(sub.interest):
                sub.callback(command, ALL, payload)
            elif has_others(sub.interest):
                pending.append(sub)
                continue
            else:
                continue
            invoked += 1

        if hit:
            return invoked
        for sub in pending:
            sub.callback(command, OTHERS, payload)
            invoked += 1
        return invoked

    def dispatch(self, envelope: Envelope) -> bool:
        """Run both passes for one envelope. Returns whether the command was claimed."""
        claimed = self.claim(envelope)
        invoked = self.broadcast(envelope, claimed)
        logger.debug(
            "router_dispatched",
            command=envelope.command,
            hit=claimed,
            invoked=invoked,
        )
        return claimed
