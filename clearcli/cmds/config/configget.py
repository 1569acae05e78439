"""Command: config get

Category: Config
"""

from dataclasses import dataclass

import orjson

from clearcli.cmds.base import IOp, command


@command(names=["config get"])
@dataclass
class IOpConfigGet(IOp):
    """Print the stored operator profile."""

    async def run(self):
        config = self.store.get()
        print(orjson.dumps(config.to_record(), option=orjson.OPT_INDENT_2).decode())
        return config
