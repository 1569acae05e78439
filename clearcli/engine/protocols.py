"""Narrow protocols for the ledger service clearcli drives.

The session and adjustment layers only ever talk to these interfaces, so the
concrete Anchor client in engine.ledger can be swapped for test doubles.
"""
from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from clearcli.engine.primitives import MarketSnapshot

if TYPE_CHECKING:
    from clearcli.engine.config import EffectiveConfig


@runtime_checkable
class AdminClient(Protocol):
    """Privileged view of the clearing house: connection + signer + program."""

    @property
    def authority(self) -> Any: ...

    async def subscribe(self) -> None: ...
    async def unsubscribe(self) -> None: ...

    async def read_markets(self) -> Sequence[MarketSnapshot]: ...
    async def collateral_mint(self) -> Any: ...

    async def update_k(self, sqrt_k: int, market: int) -> str: ...
    async def repeg_amm_curve(self, peg: int, market: int) -> str: ...
    async def initialize(self, collateral_mint: Any, admin_controls_prices: bool) -> str: ...


@runtime_checkable
class UserClient(Protocol):
    """One user account inside the clearing house, owned by the admin signer."""

    @property
    def authority(self) -> Any: ...

    async def subscribe(self) -> None: ...
    async def unsubscribe(self) -> None: ...

    async def deposit_collateral(self, amount: int, token_account: Any) -> str: ...


@runtime_checkable
class LedgerConnector(Protocol):
    """Factory for clients; loading the signer happens here, before any session exists."""

    def admin_client(self, config: EffectiveConfig) -> AdminClient: ...
    def user_client(self, admin: AdminClient) -> UserClient: ...
