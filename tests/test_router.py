"""Unit tests for command matching and two-pass router dispatch."""

from __future__ import annotations

from unittest.mock import MagicMock, call

import pytest
from structlog.testing import capture_logs

from blive.ingestion.matcher import ALL, OTHERS, has_all, has_exact, has_others, make_interest
from blive.ingestion.ws_router import CommandRouter, Subscriber
from blive.models import Envelope


def envelope(cmd: str, **fields) -> Envelope:
    return Envelope.from_raw({"cmd": cmd, **fields})


@pytest.fixture
def router() -> CommandRouter:
    return CommandRouter()


# ── Matcher ──────────────────────────────────────────────────────


class TestMatcher:
    def test_make_interest(self) -> None:
        assert make_interest("A", "B") == frozenset({"A", "B"})
        assert make_interest(["A", "B"], "C") == frozenset({"A", "B", "C"})

    def test_empty_interest_is_none(self) -> None:
        assert make_interest() is None
        assert make_interest([]) is None

    def test_exact_is_case_sensitive(self) -> None:
        interest = make_interest("DANMU_MSG")
        assert has_exact(interest, "DANMU_MSG")
        assert not has_exact(interest, "danmu_msg")
        assert not has_exact(interest, "DANMU_MSG:4:0:2:2:2:0")

    def test_wildcards(self) -> None:
        assert has_all(make_interest(ALL))
        assert not has_all(make_interest(OTHERS))
        assert has_others(make_interest(OTHERS, "X"))
        assert not has_others(make_interest("X"))

    def test_none_interest_matches_nothing_explicitly(self) -> None:
        assert not has_exact(None, "X")
        assert not has_all(None)
        assert not has_others(None)


# ── Broadcast pass ───────────────────────────────────────────────


class TestBroadcast:
    def test_exact_then_others_scenario(self, router: CommandRouter) -> None:
        s1, s2 = MagicMock(), MagicMock()
        router.subscribe(s1, "DANMU_MSG")
        router.subscribe(s2, OTHERS)

        danmu = envelope("DANMU_MSG")
        router.dispatch(danmu)
        s1.assert_called_once_with("DANMU_MSG", "DANMU_MSG", danmu.payload)
        s2.assert_not_called()

        s1.reset_mock()
        gift = envelope("GIFT")
        router.dispatch(gift)
        s1.assert_not_called()
        s2.assert_called_once_with("GIFT", OTHERS, gift.payload)

    def test_all_invoked_every_dispatch(self, router: CommandRouter) -> None:
        sub = MagicMock()
        router.subscribe(sub, ALL)
        for cmd in ("A", "B", "ALL"):
            router.dispatch(envelope(cmd))
        assert [c.args[:2] for c in sub.call_args_list] == [("A", ALL), ("B", ALL), ("ALL", ALL)]

    def test_no_interest_behaves_like_all(self, router: CommandRouter) -> None:
        sub = MagicMock()
        router.subscribe(sub)
        router.dispatch(envelope("X"))
        sub.assert_called_once()
        assert sub.call_args.args[:2] == ("X", ALL)

    def test_all_does_not_suppress_others(self, router: CommandRouter) -> None:
        watcher, fallback = MagicMock(), MagicMock()
        router.subscribe(watcher, ALL)
        router.subscribe(fallback, OTHERS)
        router.dispatch(envelope("X"))
        watcher.assert_called_once()
        fallback.assert_called_once()
        assert fallback.call_args.args[1] == OTHERS

    def test_exact_anywhere_suppresses_others(self, router: CommandRouter) -> None:
        fallback, exact = MagicMock(), MagicMock()
        router.subscribe(fallback, OTHERS)
        router.subscribe(exact, "X")
        router.dispatch(envelope("X"))
        fallback.assert_not_called()
        exact.assert_called_once()

    def test_exact_wins_over_all_and_others(self, router: CommandRouter) -> None:
        sub = MagicMock()
        router.subscribe(sub, "X", ALL, OTHERS)
        router.dispatch(envelope("X"))
        sub.assert_called_once()
        assert sub.call_args.args[1] == "X"

    def test_all_and_others_invoked_once(self, router: CommandRouter) -> None:
        sub = MagicMock()
        router.subscribe(sub, ALL, OTHERS)
        router.dispatch(envelope("X"))
        sub.assert_called_once()
        assert sub.call_args.args[1] == ALL

    def test_uninterested_not_invoked(self, router: CommandRouter) -> None:
        sub = MagicMock()
        router.subscribe(sub, "Y")
        router.dispatch(envelope("X"))
        sub.assert_not_called()

    def test_multiple_others(self, router: CommandRouter) -> None:
        a, b = MagicMock(), MagicMock()
        router.subscribe(a, OTHERS)
        router.subscribe(b, OTHERS, "Y")
        router.dispatch(envelope("X"))
        a.assert_called_once()
        b.assert_called_once()

    def test_registration_order_preserved(self, router: CommandRouter) -> None:
        order: list[str] = []
        router.subscribe(lambda *a: order.append("others"), OTHERS)
        router.subscribe(lambda *a: order.append("all"), ALL)
        router.subscribe(lambda *a: order.append("none"))
        router.subscribe(lambda *a: order.append("others2"), OTHERS)
        router.subscribe(lambda *a: order.append("skip"), "Y")
        router.dispatch(envelope("X"))
        # OTHERS subscribers run after the traversal, still in their relative order
        assert order == ["all", "none", "others", "others2"]

    def test_exact_and_all_order(self, router: CommandRouter) -> None:
        order: list[str] = []
        router.subscribe(lambda *a: order.append("all"), ALL)
        router.subscribe(lambda *a: order.append("exact"), "X")
        router.subscribe(lambda *a: order.append("none"))
        router.dispatch(envelope("X"))
        assert order == ["all", "exact", "none"]

    def test_broadcast_returns_invocation_count(self, router: CommandRouter) -> None:
        router.subscribe(MagicMock(), ALL)
        router.subscribe(MagicMock(), OTHERS)
        router.subscribe(MagicMock(), "Y")
        assert router.broadcast(envelope("X")) == 2
        assert router.broadcast(envelope("X"), hit=True) == 1

    def test_subscriber_failure_aborts_pass(self, router: CommandRouter) -> None:
        after = MagicMock()
        router.subscribe(MagicMock(side_effect=RuntimeError("boom")), ALL)
        router.subscribe(after, ALL)
        with pytest.raises(RuntimeError):
            router.dispatch(envelope("X"))
        after.assert_not_called()

    def test_dispatch_logs_command_and_hit(self, router: CommandRouter) -> None:
        router.subscribe(MagicMock(return_value=True), "X", internal=True)
        router.subscribe(MagicMock(), ALL)
        router.subscribe(MagicMock(), OTHERS)
        with capture_logs() as logs:
            router.dispatch(envelope("X"))
        assert {
            "event": "router_dispatched",
            "log_level": "debug",
            "command": "X",
            "hit": True,
            "invoked": 1,
        } in logs


# ── Coverage pass ────────────────────────────────────────────────


class TestCoverage:
    def test_claim_requires_exact_match(self, router: CommandRouter) -> None:
        handler = MagicMock(return_value=True)
        router.subscribe(handler, "X", internal=True)
        assert router.claim(envelope("Y")) is False
        handler.assert_not_called()
        assert router.claim(envelope("X")) is True

    def test_claim_ignores_wildcards(self, router: CommandRouter) -> None:
        all_handler = MagicMock(return_value=True)
        bare_handler = MagicMock(return_value=True)
        router.subscribe(all_handler, ALL, internal=True)
        router.subscribe(bare_handler, internal=True)
        assert router.claim(envelope("X")) is False
        all_handler.assert_not_called()
        bare_handler.assert_not_called()

    def test_claim_is_or_of_all_results(self, router: CommandRouter) -> None:
        first = MagicMock(return_value=True)
        second = MagicMock(return_value=False)
        router.subscribe(first, "X", internal=True)
        router.subscribe(second, "X", internal=True)
        assert router.claim(envelope("X")) is True
        # every matching handler runs even after a hit
        second.assert_called_once()

    def test_observe_without_claiming(self, router: CommandRouter) -> None:
        observer = MagicMock(return_value=False)
        fallback = MagicMock()
        router.subscribe(observer, "X", internal=True)
        router.subscribe(fallback, OTHERS)
        assert router.dispatch(envelope("X")) is False
        observer.assert_called_once()
        fallback.assert_called_once()

    def test_claim_suppresses_public_others(self, router: CommandRouter) -> None:
        router.subscribe(MagicMock(return_value=True), "X", internal=True)
        fallback = MagicMock()
        router.subscribe(fallback, OTHERS)
        assert router.dispatch(envelope("X")) is True
        fallback.assert_not_called()

    def test_internal_not_in_broadcast(self, router: CommandRouter) -> None:
        internal = MagicMock(return_value=False)
        router.subscribe(internal, "X", internal=True)
        router.dispatch(envelope("X"))
        internal.assert_called_once_with("X", "X", {"cmd": "X"})


# ── Registry ─────────────────────────────────────────────────────


class TestRegistry:
    def test_unsubscribe(self, router: CommandRouter) -> None:
        sub_cb = MagicMock()
        sub = router.subscribe(sub_cb, ALL)
        assert len(router) == 1
        assert router.unsubscribe(sub) is True
        assert router.unsubscribe(sub) is False
        router.dispatch(envelope("X"))
        sub_cb.assert_not_called()

    def test_same_callback_registered_twice(self, router: CommandRouter) -> None:
        cb = MagicMock()
        first = router.subscribe(cb, "X")
        router.subscribe(cb, "X")
        router.dispatch(envelope("X"))
        assert cb.call_count == 2
        router.unsubscribe(first)
        cb.reset_mock()
        router.dispatch(envelope("X"))
        cb.assert_called_once()

    def test_subscribers_by_visibility(self, router: CommandRouter) -> None:
        router.subscribe(MagicMock(), "X", internal=True)
        public = router.subscribe(MagicMock(), "X")
        assert router.subscribers(internal=False) == (public,)
        assert len(router.subscribers(internal=True)) == 1
        assert len(router.subscribers()) == 2

    def test_subscribe_during_dispatch_applies_next_time(self, router: CommandRouter) -> None:
        late = MagicMock()

        def register(*args) -> None:
            router.subscribe(late, ALL)

        router.subscribe(register, ALL)
        router.dispatch(envelope("X"))
        late.assert_not_called()
        router.dispatch(envelope("X"))
        assert late.call_args_list == [call("X", ALL, {"cmd": "X"})]

    def test_empty_interest_normalised(self) -> None:
        sub = Subscriber(MagicMock(), frozenset())
        assert sub.interest is None

    def test_empty_interest_behaves_like_all(self, router: CommandRouter) -> None:
        cb = MagicMock()
        router._subscribers = (Subscriber(cb, frozenset()),)
        router.dispatch(envelope("X"))
        cb.assert_called_once_with("X", ALL, {"cmd": "X"})
