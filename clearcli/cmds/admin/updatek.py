"""Command: update-k

Category: Admin
"""

from dataclasses import dataclass

from clearcli.cmds.base import Arg, IOp, command
from clearcli.engine.adjust import RescaleK, apply_adjustment
from clearcli.engine.session import with_admin_session


@command(names=["update-k"])
@dataclass
class IOpUpdateK(IOp):
    """Rescale a market's sqrt k by numerator/denominator.

    Examples:
        update-k 0 3 2      # deepen market 0 by 50%
        update-k 1 9 10     # shrink market 1 by 10%
    """

    sessionCommand = True

    @classmethod
    def argmap(cls):
        return [
            Arg("market", desc="The market to adjust k for"),
            Arg("numerator", desc="Numerator to multiply k by"),
            Arg("denominator", desc="Denominator to divide k by"),
        ]

    async def run(self):
        # validated before the session opens so bad input never subscribes anything
        request = RescaleK.build(
            self.arg("market"), self.arg("numerator"), self.arg("denominator")
        )

        return await with_admin_session(
            self.effective(),
            lambda admin: apply_adjustment(admin, request),
            connector=self.connector,
        )
