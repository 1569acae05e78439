"""Shared test fixtures for clearcli test suite.

FakeAdminClient / FakeUserClient / FakeConnector stand in for the Anchor
ledger client so sessions and commands run headless. Every fake appends to
one shared call log so tests can assert the exact order of remote calls.
"""

import dataclasses
from io import StringIO
from typing import Any

import pytest
from loguru import logger
from solders.pubkey import Pubkey

from clearcli.engine.config import ConfigStore, EffectiveConfig, OperatorConfig
from clearcli.engine.errors import KeypairLoadError
from clearcli.engine.primitives import CurveParameters, MarketSnapshot
from clearcli.engine.settings import Settings

AUTHORITY = Pubkey(bytes([7] * 32))
COLLATERAL_MINT = Pubkey.from_string("EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v")


def make_markets(*amms: tuple[int, int], uninitialized: int = 0) -> list[MarketSnapshot]:
    """Test helper: initialized markets from (sqrt_k, peg) pairs, then empty slots."""
    markets = [
        MarketSnapshot(index=i, initialized=True, amm=CurveParameters(sqrt_k=k, peg_multiplier=p))
        for i, (k, p) in enumerate(amms)
    ]
    markets += [
        MarketSnapshot(
            index=len(markets) + i, initialized=False, amm=CurveParameters(sqrt_k=0, peg_multiplier=0)
        )
        for i in range(uninitialized)
    ]
    return markets


class FakeAdminClient:
    """Test double for the clearing house admin client.

    Submitted k/peg updates are applied to the canned markets so a read after
    submit sees the new value, like the real program would.
    """

    def __init__(self, calls: list, markets: list[MarketSnapshot] | None = None):
        self.calls = calls
        self.markets = list(markets or [])
        self.authority = AUTHORITY
        self.mint = COLLATERAL_MINT

        # failure injection
        self.failSubscribe: Exception | None = None
        self.failUnsubscribe: Exception | None = None
        self.failSubmit: Exception | None = None
        self.ignoreSubmits = False

    async def subscribe(self) -> None:
        self.calls.append("adminSubscribe")
        if self.failSubscribe:
            raise self.failSubscribe

    async def unsubscribe(self) -> None:
        self.calls.append("adminUnsubscribe")
        if self.failUnsubscribe:
            raise self.failUnsubscribe

    async def read_markets(self) -> list[MarketSnapshot]:
        self.calls.append("readMarkets")
        return list(self.markets)

    async def collateral_mint(self) -> Pubkey:
        return self.mint

    def _apply(self, market: int, **change: int) -> None:
        if self.ignoreSubmits:
            return

        current = self.markets[market]
        self.markets[market] = dataclasses.replace(
            current, amm=dataclasses.replace(current.amm, **change)
        )

    async def update_k(self, sqrt_k: int, market: int) -> str:
        self.calls.append(("updateK", sqrt_k, market))
        if self.failSubmit:
            raise self.failSubmit

        self._apply(market, sqrt_k=sqrt_k)
        return "sig-update-k"

    async def repeg_amm_curve(self, peg: int, market: int) -> str:
        self.calls.append(("repeg", peg, market))
        if self.failSubmit:
            raise self.failSubmit

        self._apply(market, peg_multiplier=peg)
        return "sig-repeg"

    async def initialize(self, collateral_mint: Any, admin_controls_prices: bool) -> str:
        self.calls.append(("initialize", collateral_mint, admin_controls_prices))
        if self.failSubmit:
            raise self.failSubmit

        return "sig-initialize"


class FakeUserClient:
    def __init__(self, calls: list, admin: FakeAdminClient):
        self.calls = calls
        self.admin = admin
        self.authority = admin.authority
        self.failSubscribe: Exception | None = None
        self.failUnsubscribe: Exception | None = None

    async def subscribe(self) -> None:
        self.calls.append("userSubscribe")
        if self.failSubscribe:
            raise self.failSubscribe

    async def unsubscribe(self) -> None:
        self.calls.append("userUnsubscribe")
        if self.failUnsubscribe:
            raise self.failUnsubscribe

    async def deposit_collateral(self, amount: int, token_account: Any) -> str:
        self.calls.append(("deposit", amount, token_account))
        return "sig-deposit"


class FakeConnector:
    """Test double for LedgerConnector; records the configs it was asked to connect with."""

    def __init__(self, admin: FakeAdminClient, user: FakeUserClient):
        self.admin = admin
        self.user = user
        self.configs: list[EffectiveConfig] = []
        self.keypairError: KeypairLoadError | None = None

    def admin_client(self, config: EffectiveConfig) -> FakeAdminClient:
        self.configs.append(config)
        if self.keypairError:
            raise self.keypairError

        return self.admin

    def user_client(self, admin: FakeAdminClient) -> FakeUserClient:
        assert admin is self.admin
        return self.user


# ── Fixtures ──


@pytest.fixture
def calls() -> list:
    return []


@pytest.fixture
def markets() -> list[MarketSnapshot]:
    # sqrt_k values are AMM_RESERVE_PRECISION scaled; pegs are PEG_PRECISION scaled
    return make_markets((1_000_000, 40_000), (7, 150_000), (31_622_776_601_683_793, 2_000), uninitialized=2)


@pytest.fixture
def admin_client(calls, markets) -> FakeAdminClient:
    return FakeAdminClient(calls, markets)


@pytest.fixture
def user_client(calls, admin_client) -> FakeUserClient:
    return FakeUserClient(calls, admin_client)


@pytest.fixture
def connector(admin_client, user_client) -> FakeConnector:
    return FakeConnector(admin_client, user_client)


@pytest.fixture
def effective() -> EffectiveConfig:
    return EffectiveConfig(
        network="devnet", url="https://api.devnet.solana.com", keypair="/tmp/clearcli-test-id.json"
    )


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(configDir=tmp_path / "config", logDir=tmp_path / "logs", logLevel="INFO")


@pytest.fixture
def store(settings) -> ConfigStore:
    return ConfigStore(settings.configDir)


@pytest.fixture
def stored_devnet(store) -> OperatorConfig:
    """A written profile pointing at devnet."""
    store.init()
    return store.set("keypair", "/tmp/clearcli-test-id.json")


@pytest.fixture
def log_capture():
    """Capture loguru output for assertion. Yields a StringIO buffer."""
    buf = StringIO()
    handler_id = logger.add(buf, format="{level} {message}", level="TRACE")
    yield buf
    logger.remove(handler_id)
