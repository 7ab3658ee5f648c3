"""blive CLI entry point.

Usage:
    python -m blive.cli.main [COMMAND] [OPTIONS]

Or via the installed console script:
    blive [COMMAND] [OPTIONS]
"""

from __future__ import annotations

import logging
import sys

import structlog
import typer

from blive.cli.commands import extract, replay
from blive.config import LoggingConfig, get_config

app = typer.Typer(
    name="blive",
    help="blive -- live-room command router and dm_v2 field extractor",
    no_args_is_help=True,
    add_completion=False,
    pretty_exceptions_enable=True,
)


def configure_logging(config: LoggingConfig) -> None:
    """Configure structlog for CLI processes. Logs go to stderr so tables stay clean."""
    renderer = (
        structlog.dev.ConsoleRenderer()
        if config.log_format == "console"
        else structlog.processors.JSONRenderer()
    )
    level = logging.getLevelNamesMapping().get(config.log_level.upper(), logging.INFO)
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(sys.stderr),
    )


@app.callback()
def main() -> None:
    configure_logging(get_config().logging)


# Register sub-commands from each module.
app.command(name="replay", help="Replay a JSONL capture through the router")(replay.replay)
app.command(name="extract", help="Extract a field from a protobuf-style blob")(extract.extract)


if __name__ == "__main__":
    app()
