#!/usr/bin/env python3

import argparse
import asyncio
import logging
import sys
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Final

import whenever
from loguru import logger

from clearcli import cmds
from clearcli.engine.config import ConfigStore
from clearcli.engine.errors import ClearCliError
from clearcli.engine.protocols import LedgerConnector
from clearcli.engine.session import ActionFailed
from clearcli.engine.settings import Settings

EXIT_OK: Final = 0
EXIT_ERROR: Final = 1

# Failures inside a session action are logged, never escalated to the exit status.
# Scripts that need to know must read the logs.
ACTION_FAILURE_EXIT_CODE: Final = EXIT_OK

LOG_LEVELS: Final = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR")


@dataclass(slots=True)
class ClearingHouseCmdlineApp:
    settings: Settings = field(default_factory=Settings.from_env)

    # ledger access; the Anchor client unless something else is injected
    connector: LedgerConnector | None = None

    store: ConfigStore = field(init=False)

    # Console log handler (set by setupLogging, used by setConsoleLogLevel)
    _console_handler_id: int = field(init=False, default=0)
    _console_sink: Any = field(init=False, default=None)

    def __post_init__(self) -> None:
        self.store = ConfigStore(self.settings.configDir)
        self.setupLogging()

    def setupLogging(self) -> None:
        # Each run gets its own log files under LOGDIR/YYYY/MM so every privileged
        # change leaves a record even when the console output is gone.
        now = whenever.ZonedDateTime.now("UTC")
        LOGDIR = self.settings.logDir / f"{now.year}" / f"{now.month:02}"
        LOGDIR.mkdir(exist_ok=True, parents=True)
        LOG_FILE_TEMPLATE = str(
            LOGDIR
            / f"clearcli-{now.year}{now.month:02}{now.day:02}T{now.hour:02}{now.minute:02}{now.second:02}Z"
        )

        # solana/anchorpy/httpx use stdlib logging; keep their chatter in its own file
        logging.basicConfig(
            level=logging.INFO,
            filename=LOG_FILE_TEMPLATE + "-rpc.log",
            format="%(asctime)s %(name)s %(message)s",
        )

        logger.remove()
        self._console_sink = sys.stderr
        self._console_handler_id = logger.add(
            self._console_sink, colorize=True, level=self.settings.logLevel
        )

        # TRACE so the raw command line is recorded in the file but not echoed to the console
        logger.add(sink=LOG_FILE_TEMPLATE + "-clearcli.log", level="TRACE", colorize=False)

        logger.debug("Logging session with prefix: {}", LOG_FILE_TEMPLATE)

    def setConsoleLogLevel(self, level: str) -> None:
        """Change the console log level at runtime.

        Removes the current console handler and re-adds it at the new level."""
        logger.remove(self._console_handler_id)
        self._console_handler_id = logger.add(self._console_sink, colorize=True, level=level)

    def ledger(self) -> LedgerConnector:
        if self.connector is None:
            from clearcli.engine.ledger import AnchorConnector

            self.connector = AnchorConnector(idlPath=self.settings.idlPath)

        return self.connector

    def parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            prog="clearcli", description="Clearing house administration"
        )
        parser.add_argument(
            "--loglevel",
            type=str.upper,
            choices=LOG_LEVELS,
            help=f"console log level (default {self.settings.logLevel})",
        )

        subparsers = parser.add_subparsers(dest="command", required=True)
        groups: dict[str, Any] = {}

        for name, op in sorted(cmds.COMMANDS.items()):
            target = subparsers
            leaf = name
            if " " in name:
                group, leaf = name.split(" ", 1)
                if group not in groups:
                    groupParser = subparsers.add_parser(group, help=f"manage the {group}")
                    groups[group] = groupParser.add_subparsers(dest="subcommand", required=True)

                target = groups[group]

            sub = target.add_parser(leaf, help=op.describe(), description=op.__doc__)
            sub.set_defaults(op=op, opname=name)

            for arg in op.argmap():
                sub.add_argument(arg.name, help=arg.desc)

            if op.sessionCommand:
                sub.add_argument("-e", "--env", help="environment e.g devnet, mainnet-beta")
                sub.add_argument("-k", "--keypair", help="Solana wallet")
                sub.add_argument("-u", "--url", help="rpc url e.g. https://api.devnet.solana.com")

        return parser

    async def runop(self, args: argparse.Namespace) -> int:
        op: type[cmds.IOp] = args.op

        try:
            # profile is read once here and handed to the command
            stored = self.store.load() if op.sessionCommand else None
            iop = op(
                args=args,
                store=self.store,
                connector=self.ledger() if op.sessionCommand else None,
                stored=stored,
            )
            result = await iop.run()
        except ClearCliError as e:
            logger.error("{}", e)
            return EXIT_ERROR
        except Exception:
            # remote failures while opening or releasing a session (rpc down, idl fetch, ...)
            logger.exception("{} failed: session could not be opened or released", args.opname)
            return EXIT_ERROR

        if isinstance(result, ActionFailed):
            logger.error("{} failed: {}", args.opname, result.error)
            return ACTION_FAILURE_EXIT_CODE

        return EXIT_OK

    def run(self, argv: Sequence[str] | None = None) -> int:
        argv = list(sys.argv[1:] if argv is None else argv)

        try:
            args = self.parser().parse_args(argv)
        except SystemExit as e:
            # argparse exits 2 on usage errors and 0 for --help
            return e.code if isinstance(e.code, int) else EXIT_ERROR

        if args.loglevel:
            self.setConsoleLogLevel(args.loglevel)

        logger.trace("clearcli {}", " ".join(argv))
        return asyncio.run(self.runop(args))


def main(argv: Sequence[str] | None = None) -> int:
    return ClearingHouseCmdlineApp().run(argv)


if __name__ == "__main__":
    raise SystemExit(main())
