"""Rich console formatting helpers for the blive CLI."""

from __future__ import annotations

from typing import Any

from rich.console import Console
from rich.table import Table
from rich.text import Text
from rich.theme import Theme

from blive.ingestion.events import CommandReply, DecodeFailure
from blive.models import ChatMessage, GiftNotice, OnlineRankList, RoomEntryNotice

# Shared theme for consistent styling across all CLI output.
BLIVE_THEME = Theme(
    {
        "label.exact": "bold green",
        "label.all": "cyan",
        "label.others": "bold yellow",
        "event": "bold cyan",
        "critical": "bold red",
        "header": "bold cyan",
        "muted": "dim",
    }
)

console = Console(theme=BLIVE_THEME)


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------

def format_label(cmd: str | None, label: str | None) -> Text:
    """Colour a router match label: exact command, ALL or OTHERS."""
    if label is None:
        return Text("--", style="dim")
    if label == "ALL":
        return Text(label, style="label.all")
    if label == "OTHERS":
        return Text(label, style="label.others")
    if label == cmd:
        return Text("exact", style="label.exact")
    return Text(label, style="dim")


def format_bytes(data: bytes) -> str:
    """Space-separated lowercase hex, or '(empty)'."""
    if not data:
        return "(empty)"
    return data.hex(" ")


def truncate(value: str, limit: int) -> str:
    if limit <= 0 or len(value) <= limit:
        return value
    return value[: max(limit - 1, 0)] + "…"


def summarize(args: Any) -> str:
    """One-line human summary of an event argument."""
    if isinstance(args, ChatMessage):
        return f"{args.user_name}({args.user_id}): {args.msg}"
    if isinstance(args, RoomEntryNotice):
        return f"{args.user_name}({args.user_id}) entered, privilege={args.privilege_type}"
    if isinstance(args, GiftNotice):
        text = f"{args.user_name}({args.user_id}) {args.gift.action or 'sent'} {args.gift.gift_name}"
        if args.blind_gift is not None:
            text += f" from {args.blind_gift.gift_name}"
        return text
    if isinstance(args, OnlineRankList):
        top = ", ".join(f"#{item.rank} {item.uname}" for item in args.items[:3])
        return f"{len(args.items)} ranked ({top})" if top else "empty rank list"
    if isinstance(args, CommandReply):
        return ", ".join(k for k in args.raw_data if k != "cmd") or "(no fields)"
    if isinstance(args, DecodeFailure):
        return args.message
    return str(args)


# ---------------------------------------------------------------------------
# Reusable table builders
# ---------------------------------------------------------------------------

def create_event_table(title: str = "Events") -> Table:
    """Build a Rich Table pre-configured for replayed event display."""
    table = Table(title=title, show_lines=False, pad_edge=True)
    table.add_column("Line", style="muted", justify="right")
    table.add_column("Event", style="event")
    table.add_column("Cmd", style="bold")
    table.add_column("Match", width=7)
    table.add_column("Summary", overflow="fold")
    return table
