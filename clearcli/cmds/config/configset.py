"""Command: config set

Category: Config
"""

from dataclasses import dataclass

from clearcli.cmds.base import Arg, IOp, command


@command(names=["config set"])
@dataclass
class IOpConfigSet(IOp):
    """Set one profile value."""

    @classmethod
    def argmap(cls):
        return [
            Arg("key", desc="the config key e.g. network, url, keypair"),
            Arg("value"),
        ]

    async def run(self):
        return self.store.set(self.arg("key"), self.arg("value"))
