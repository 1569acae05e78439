"""Command: repeg

Category: Admin
"""

from dataclasses import dataclass

from clearcli.cmds.base import Arg, IOp, command
from clearcli.engine.adjust import Repeg, apply_adjustment
from clearcli.engine.session import with_admin_session


@command(names=["repeg"])
@dataclass
class IOpRepeg(IOp):
    """Move a market's AMM peg multiplier to a new value."""

    sessionCommand = True

    @classmethod
    def argmap(cls):
        return [
            Arg("market", desc="The market to repeg"),
            Arg("peg", desc="New peg"),
        ]

    async def run(self):
        request = Repeg.build(self.arg("market"), self.arg("peg"))

        return await with_admin_session(
            self.effective(),
            lambda admin: apply_adjustment(admin, request),
            connector=self.connector,
        )
