"""Command base class and registry.

Each command is a dataclass subclass of IOp registered with @command. The app
builds one argparse subcommand per registered name from `argmap()` and calls
`run()` on a fresh instance.
"""
from __future__ import annotations

import argparse
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar

from clearcli.engine.config import CLIOverrides, EffectiveConfig, OperatorConfig, resolve_effective

if TYPE_CHECKING:
    from clearcli.engine.config import ConfigStore
    from clearcli.engine.protocols import LedgerConnector


@dataclass(slots=True, frozen=True)
class Arg:
    """One positional argument."""

    name: str
    desc: str = ""


COMMANDS: dict[str, type[IOp]] = {}


def command(names: list[str]) -> Callable[[type[IOp]], type[IOp]]:
    """Register a command class under each of `names`.

    A name with a space ("config set") becomes a nested subcommand.
    """

    def register(cls: type[IOp]) -> type[IOp]:
        for name in names:
            COMMANDS[name] = cls

        return cls

    return register


@dataclass
class IOp:
    """Base for one command invocation."""

    # does this command talk to the ledger (and so accept --env/--keypair/--url)?
    sessionCommand: ClassVar[bool] = False

    args: argparse.Namespace
    store: ConfigStore
    connector: LedgerConnector | None = None

    # operator profile as loaded once by the app (None if never initialized)
    stored: OperatorConfig | None = None

    @classmethod
    def argmap(cls) -> list[Arg]:
        return []

    @classmethod
    def describe(cls) -> str:
        return (cls.__doc__ or "").strip().splitlines()[0] if cls.__doc__ else ""

    @property
    def overrides(self) -> CLIOverrides:
        return CLIOverrides(
            env=getattr(self.args, "env", None),
            keypair=getattr(self.args, "keypair", None),
            url=getattr(self.args, "url", None),
        )

    def effective(self) -> EffectiveConfig:
        return resolve_effective(self.stored, self.overrides)

    def arg(self, name: str) -> Any:
        return getattr(self.args, name)

    async def run(self) -> Any:
        raise NotImplementedError
