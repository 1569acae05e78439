"""Pass-through session actions: exchange initialization and collateral deposit."""
from __future__ import annotations

from collections.abc import Callable
from typing import Any

from loguru import logger

from clearcli.engine.errors import InvalidArgument
from clearcli.engine.primitives import QUOTE_PRECISION, fmtscaled, parse_int
from clearcli.engine.session import AdminSession, UserSession


def validate_amount(amount: str | int) -> int:
    value = parse_int("amount", amount)
    if value <= 0:
        raise InvalidArgument(f"amount must be positive (got {value})")

    return value


async def initialize_exchange(
    admin: AdminSession, collateral_mint: Any, admin_controls_prices: bool
) -> str:
    logger.info("collateralMint: {}", collateral_mint)
    logger.info("adminControlsPrices: {}", admin_controls_prices)

    logger.info("ClearingHouse initializing")
    signature = await admin.submit_initialize(collateral_mint, admin_controls_prices)
    logger.info("ClearingHouse initialized: {}", signature)
    return signature


async def deposit_collateral(
    user: UserSession, amount: int, derive: Callable[[Any, Any], Any]
) -> str:
    """Deposit from the authority's associated token account for the exchange collateral mint.

    `derive(mint, owner)` computes the associated token address.
    """
    logger.info("amount: {}", fmtscaled(amount, QUOTE_PRECISION))

    mint = await user.collateral_mint()
    tokenAccount = derive(mint, user.authority)
    logger.info("collateral account: {} (mint {})", tokenAccount, mint)

    signature = await user.submit_deposit(amount, tokenAccount)
    logger.info("Deposited collateral: {}", signature)
    return signature
