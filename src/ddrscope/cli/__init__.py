"""ddrscope CLI - map and analyze FileMaker DDR exports.

Uses tyro for type-driven CLI generation from dataclasses.
"""

from __future__ import annotations

from typing import Annotated

import tyro

from ddrscope.cli.commands.analyze import Analyze, Orphans
from ddrscope.cli.commands.crossfile import Crossfile
from ddrscope.cli.commands.parse import Parse
from ddrscope.cli.commands.search import History, Search

# Type aliases for subcommand annotations
_Parse = Annotated[Parse, tyro.conf.subcommand("parse")]
_Analyze = Annotated[Analyze, tyro.conf.subcommand("analyze")]
_Orphans = Annotated[Orphans, tyro.conf.subcommand("orphans")]
_Crossfile = Annotated[Crossfile, tyro.conf.subcommand("crossfile")]
_Search = Annotated[Search, tyro.conf.subcommand("search")]
_History = Annotated[History, tyro.conf.subcommand("history")]

Command = _Parse | _Analyze | _Orphans | _Crossfile | _Search | _History


def main(args: list[str] | None = None) -> int:
    """Entry point for the CLI."""
    # configure structlog (respects DDRSCOPE_DEBUG env var)
    from ddrscope.logging_config import configure_logging

    configure_logging()

    try:
        cmd = tyro.cli(
            Command,
            prog="ddrscope",
            description="Map and analyze FileMaker Database Design Reports.",
            args=args,
        )
        return cmd.run()
    except SystemExit as e:
        return e.code if isinstance(e.code, int) else 1
    except KeyboardInterrupt:
        return 130
    except Exception as e:
        from ddrscope import console

        console.error(str(e))
        return 1
