"""AMM curve parameter adjustments (k rescale and repeg).

Both adjustments read the market's current value fresh from chain, log it,
submit the new value, then read the market again so the operator sees the
before and after values of every privileged change. Requests are validated
on construction, before any session is opened.

All arithmetic is on Python ints. Nothing is ever converted to float.
"""
from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from loguru import logger

from clearcli.engine.errors import DivisionByZero, InvalidArgument, MarketNotFound
from clearcli.engine.primitives import (
    AMM_RESERVE_PRECISION,
    MAX_MARKETS,
    PEG_PRECISION,
    MarketIndex,
    MarketSnapshot,
    fmtscaled,
    parse_int,
)
from clearcli.engine.session import AdminSession


def rescale_sqrt_k(sqrt_k: int, numerator: int, denominator: int) -> int:
    """floor(sqrt_k * numerator / denominator), multiplying before dividing.

    Dividing first would truncate: rescale_sqrt_k(7, 3, 2) is 10, not 9.
    """
    if denominator == 0:
        raise DivisionByZero()

    return (sqrt_k * numerator) // denominator


def validate_market(market: int) -> MarketIndex:
    if market < 0:
        raise InvalidArgument(f"market must be a non-negative index (got {market})")

    if market >= MAX_MARKETS:
        raise MarketNotFound(market, MAX_MARKETS)

    return market


def market_at(markets: Sequence[MarketSnapshot], index: MarketIndex) -> MarketSnapshot:
    """Bounds-checked lookup into the fetched market list."""
    if not 0 <= index < len(markets):
        raise MarketNotFound(index, len(markets))

    market = markets[index]
    if not market.initialized:
        raise MarketNotFound(index, sum(1 for m in markets if m.initialized))

    return market


@dataclass(slots=True, frozen=True)
class RescaleK:
    market: MarketIndex
    numerator: int
    denominator: int

    @classmethod
    def build(cls, market: str | int, numerator: str | int, denominator: str | int) -> RescaleK:
        market = validate_market(parse_int("market", market))
        numerator = parse_int("numerator", numerator)
        denominator = parse_int("denominator", denominator)

        if denominator == 0:
            raise DivisionByZero()

        if numerator <= 0 or denominator < 0:
            raise InvalidArgument(
                f"numerator and denominator must be positive (got {numerator}/{denominator})"
            )

        return cls(market=market, numerator=numerator, denominator=denominator)


@dataclass(slots=True, frozen=True)
class Repeg:
    market: MarketIndex
    newPeg: int

    @classmethod
    def build(cls, market: str | int, peg: str | int) -> Repeg:
        market = validate_market(parse_int("market", market))
        peg = parse_int("peg", peg)
        if peg <= 0:
            raise InvalidArgument(f"peg must be positive (got {peg})")

        return cls(market=market, newPeg=peg)


type AdjustmentRequest = RescaleK | Repeg


@dataclass(slots=True, frozen=True)
class AdjustmentOutcome:
    request: AdjustmentRequest
    before: int
    requested: int
    after: int
    signature: str


async def apply_adjustment(admin: AdminSession, request: AdjustmentRequest) -> AdjustmentOutcome:
    logger.info("market: {}", request.market)
    current = market_at(await admin.read_market_state(), request.market)

    match request:
        case RescaleK(market=market, numerator=numerator, denominator=denominator):
            logger.info("numerator: {}", numerator)
            logger.info("denominator: {}", denominator)

            before = current.amm.sqrt_k
            logger.info("Current sqrt k: {}", fmtscaled(before, AMM_RESERVE_PRECISION))

            requested = rescale_sqrt_k(before, numerator, denominator)
            logger.info("New sqrt k: {}", fmtscaled(requested, AMM_RESERVE_PRECISION))

            logger.info("Updating K")
            signature = await admin.submit_rescale_k(requested, market)
            logger.info("Updated K: {}", signature)

            after = market_at(await admin.read_market_state(), market).amm.sqrt_k
            logger.info("Market {} sqrt k now: {}", market, fmtscaled(after, AMM_RESERVE_PRECISION))
        case Repeg(market=market, newPeg=requested):
            before = current.amm.peg_multiplier
            logger.info("Current peg: {}", fmtscaled(before, PEG_PRECISION))
            logger.info("New peg: {}", fmtscaled(requested, PEG_PRECISION))

            logger.info("Updating peg")
            signature = await admin.submit_repeg(requested, market)
            logger.info("Updated peg: {}", signature)

            after = market_at(await admin.read_market_state(), market).amm.peg_multiplier
            logger.info("Market {} peg now: {}", market, fmtscaled(after, PEG_PRECISION))
        case _:
            raise InvalidArgument(f"Unknown adjustment request: {request!r}")

    if after != requested:
        logger.warning(
            "Market {} reads {} after submit, expected {}", request.market, after, requested
        )

    return AdjustmentOutcome(
        request=request, before=before, requested=requested, after=after, signature=signature
    )
