"""Command: config init

Category: Config
"""

from dataclasses import dataclass

from clearcli.cmds.base import IOp, command


@command(names=["config init"])
@dataclass
class IOpConfigInit(IOp):
    """Write the default operator profile (replaces an existing one)."""

    async def run(self):
        return self.store.init()
