"""Command: initialize

Category: Admin
"""

from dataclasses import dataclass

from clearcli.cmds.base import Arg, IOp, command
from clearcli.engine.actions import initialize_exchange
from clearcli.engine.primitives import parse_bool
from clearcli.engine.session import with_admin_session


@command(names=["initialize"])
@dataclass
class IOpInitialize(IOp):
    """Create the clearing house global state for a collateral mint."""

    sessionCommand = True

    @classmethod
    def argmap(cls):
        return [
            Arg("collateral_mint", desc="The collateral mint"),
            Arg("admin_controls_prices", desc="Whether the admin should control prices"),
        ]

    async def run(self):
        from clearcli.engine.ledger import parse_pubkey

        mint = parse_pubkey("collateral mint", self.arg("collateral_mint"))
        adminControlsPrices = parse_bool("admin controls prices", self.arg("admin_controls_prices"))

        return await with_admin_session(
            self.effective(),
            lambda admin: initialize_exchange(admin, mint, adminControlsPrices),
            connector=self.connector,
        )
