"""blive extract <payload> <field> [inner] -- Pull a length-delimited field out of a binary blob.

The payload is given as hex (default) or base64, e.g. the ``dm_v2`` value of a
DANMU_MSG. With two field numbers the second is read from inside the first.
"""

from __future__ import annotations

import base64
import binascii
from typing import Optional

import typer

from blive.cli.display import console, format_bytes
from blive.ingestion.wire import DecodeError, extract_field, extract_nested


def _parse_payload(payload: str, encoding: str) -> bytes:
    try:
        if encoding == "base64":
            return base64.b64decode(payload, validate=True)
        return bytes.fromhex(payload)
    except (binascii.Error, ValueError) as e:
        raise typer.BadParameter(f"not valid {encoding}: {e}", param_hint="PAYLOAD") from e


def extract(
    payload: str = typer.Argument(..., help="Encoded binary buffer"),
    field: int = typer.Argument(..., min=1, help="Field number to extract"),
    inner: Optional[int] = typer.Argument(None, min=1, help="Field number inside FIELD"),
    encoding: str = typer.Option("hex", "--encoding", "-e", help="hex | base64"),
) -> None:
    """Print the raw bytes of the first matching field, as hex and UTF-8."""
    if encoding not in ("hex", "base64"):
        raise typer.BadParameter("must be 'hex' or 'base64'", param_hint="--encoding")
    buffer = _parse_payload(payload, encoding)

    try:
        if inner is None:
            value = extract_field(buffer, field)
        else:
            value = extract_nested(buffer, field, inner)
    except DecodeError as e:
        console.print(f"[critical]decode error:[/critical] {e}")
        raise typer.Exit(code=1)

    path = f"{field}" if inner is None else f"{field}.{inner}"
    console.print(f"[header]field {path}[/header] ({len(value)} bytes)")
    console.print(f"hex:  {format_bytes(value)}", highlight=False)
    try:
        console.print(f"utf8: {value.decode('utf-8')}", highlight=False, markup=False)
    except UnicodeDecodeError:
        console.print("utf8: [muted](not valid UTF-8)[/muted]")
