"""Pure types, constants, and argument parsing: no external dependencies beyond stdlib."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Final

from clearcli.engine.errors import InvalidArgument, UnsupportedNetwork

# Clearing house program deployed on each network.
# Same values the exchange's own SDK config ships with.
CLEARING_HOUSE_PROGRAM_IDS: Final = {
    "devnet": "AsW7LnXB9UA1uec9wi9MctYTgTz7YH9snhxd16GsFaGX",
    "mainnet-beta": "dammHkt7jmytvbS3nHTxQNEcP59aE57nxwV21YdqEDN",
}

NETWORKS: Final = tuple(CLEARING_HOUSE_PROGRAM_IDS)

DEFAULT_NETWORK: Final = "devnet"
DEFAULT_RPC_URL: Final = "https://api.devnet.solana.com"

# The markets account is a fixed-size array on chain; no index past this can ever exist.
MAX_MARKETS: Final = 64

# On-chain fixed-point scales, only used to print human readable audit lines.
PEG_PRECISION: Final = 10**3
AMM_RESERVE_PRECISION: Final = 10**13
QUOTE_PRECISION: Final = 10**6

type MarketIndex = int


@dataclass(slots=True, frozen=True)
class CurveParameters:
    """Depth and price offset of one market's AMM curve, as unbounded ints."""

    sqrt_k: int
    peg_multiplier: int


@dataclass(slots=True, frozen=True)
class MarketSnapshot:
    index: MarketIndex
    initialized: bool
    amm: CurveParameters


def validate_network(network: str) -> str:
    if network not in CLEARING_HOUSE_PROGRAM_IDS:
        raise UnsupportedNetwork(network, NETWORKS)

    return network


def parse_int(name: str, value: str | int) -> int:
    """Parse an operator-supplied integer without ever going through float.

    Accepts underscores as digit separators (1_000_000) like Python literals do.
    """
    if isinstance(value, int):
        return value

    try:
        return int(value.strip())
    except ValueError:
        raise InvalidArgument(f"{name} must be an integer (got {value!r})") from None


def parse_bool(name: str, value: str | bool) -> bool:
    if isinstance(value, bool):
        return value

    match value.strip().lower():
        case "true" | "1" | "yes" | "y":
            return True
        case "false" | "0" | "no" | "n":
            return False

    raise InvalidArgument(f"{name} must be true or false (got {value!r})")


def fmtscaled(value: int, precision: int) -> str:
    """Render a fixed-point integer next to its scaled decimal form for log lines."""
    return f"{value} ({Decimal(value) / Decimal(precision)})"
