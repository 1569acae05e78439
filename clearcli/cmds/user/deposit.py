"""Command: deposit

Category: User
"""

from dataclasses import dataclass

from clearcli.cmds.base import Arg, IOp, command
from clearcli.engine.actions import deposit_collateral, validate_amount
from clearcli.engine.session import with_user_session


@command(names=["deposit"])
@dataclass
class IOpDeposit(IOp):
    """Deposit collateral from the wallet's associated token account."""

    sessionCommand = True

    @classmethod
    def argmap(cls):
        return [Arg("amount", desc="The amount to deposit (collateral base units)")]

    async def run(self):
        from clearcli.engine.ledger import derive_associated_token_address

        amount = validate_amount(self.arg("amount"))

        return await with_user_session(
            self.effective(),
            lambda user: deposit_collateral(user, amount, derive_associated_token_address),
            connector=self.connector,
        )
