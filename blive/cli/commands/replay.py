"""blive replay <file> -- Feed a JSONL capture of SMS messages through the router.

Each non-empty line is one command message as delivered by the live-room
transport. Named events (chat, room entry, gift, online rank) are always shown;
raw command replies are shown for the commands passed with --command, or for
unclaimed commands (OTHERS) when none are given.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import typer

from blive.cli.display import (
    console,
    create_event_table,
    format_label,
    summarize,
    truncate,
)
from blive.config import get_config
from blive.ingestion.events import CommandReply, DecodeFailure
from blive.ingestion.live_events import BLiveEvents


def replay_lines(
    lines: list[str],
    commands: list[str] | None = None,
    room_id: int = 0,
    raw_preview: int = 200,
) -> list[tuple[int, str, str | None, str | None, Any]]:
    """Replay captured lines. Returns (line, event, cmd, label, args) rows in delivery order."""
    live = BLiveEvents(room_id=room_id, raw_preview=raw_preview)
    rows: list[tuple[int, str, str | None, str | None, Any]] = []
    current = 0

    def record(name: str):
        def handler(sender: Any, args: Any) -> None:
            cmd = args.raw_data.get("cmd") if hasattr(args, "raw_data") else None
            rows.append((current, name, cmd, None, args))

        return handler

    for name in ("chat_message", "room_entry", "gift", "online_rank"):
        getattr(live, name).subscribe(record(name))

    def on_command(sender: Any, reply: CommandReply) -> None:
        rows.append((current, "command_reply", reply.cmd, reply.hit_cmd, reply))

    def on_decode_error(sender: Any, failure: DecodeFailure) -> None:
        rows.append((current, "decode_error", None, None, failure))

    live.subscribe_command(on_command, *(commands or ["OTHERS"]))
    live.decode_error.subscribe(on_decode_error)

    for current, line in enumerate(lines, start=1):
        if line.strip():
            live.on_sms_reply(line)
    return rows


def replay(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSONL capture file"),
    command: Optional[list[str]] = typer.Option(
        None, "--command", "-c", help="Show raw replies for this command (repeatable; ALL / OTHERS allowed)"
    ),
    limit: int = typer.Option(0, "--limit", "-n", help="Stop after N lines (0 = no limit)"),
) -> None:
    """Replay a capture and print every delivered event."""
    config = get_config()
    lines = file.read_text(encoding="utf-8").splitlines()
    if limit > 0:
        lines = lines[:limit]

    rows = replay_lines(
        lines,
        commands=command,
        room_id=config.replay.room_id,
        raw_preview=config.replay.raw_preview,
    )

    table = create_event_table(title=f"Replay: {file.name}")
    decode_errors = 0
    for line_no, name, cmd, label, args in rows:
        if name == "decode_error":
            decode_errors += 1
            name = f"[critical]{name}[/critical]"
        table.add_row(
            str(line_no),
            name,
            cmd or "--",
            format_label(cmd, label),
            truncate(summarize(args), config.replay.raw_preview),
        )

    console.print(table)
    console.print(
        f"[header]{len(lines)}[/header] lines, [header]{len(rows)}[/header] events, "
        f"[critical]{decode_errors}[/critical] decode errors"
    )
