"""Anchor client for the clearing house program.

Wallet helpers (load_signer, derive_associated_token_address, parse_pubkey)
are plain functions. AnchorConnector builds AnchorAdminClient and
AnchorUserClient, which satisfy the protocols in engine.protocols.

Only what the commands need is mapped: state/markets/user account reads and
the initialize, update_k, repeg_amm_curve and deposit_collateral instructions.
"""
from __future__ import annotations

import os
import pathlib
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Final

import orjson
from anchorpy import Context, Idl, Program, Provider, Wallet
from anchorpy.error import AccountDoesNotExistError
from loguru import logger
from solana.rpc.async_api import AsyncClient
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.system_program import ID as SYS_PROGRAM_ID
from solders.sysvar import RENT
from spl.token.constants import TOKEN_PROGRAM_ID
from spl.token.instructions import get_associated_token_address

from clearcli.engine.config import EffectiveConfig
from clearcli.engine.errors import (
    ClearCliError,
    InvalidArgument,
    KeypairLoadError,
    LifecycleViolation,
)
from clearcli.engine.primitives import (
    CLEARING_HOUSE_PROGRAM_IDS,
    CurveParameters,
    MarketSnapshot,
)

SECRET_KEY_LENGTH: Final = 64

STATE_SEED: Final = b"clearing_house"
USER_SEED: Final = b"user"
COLLATERAL_VAULT_SEED: Final = b"collateral_vault"
INSURANCE_VAULT_SEED: Final = b"insurance_vault"

# history ring-buffer accounts created by initialize_history, in instruction order
HISTORY_ACCOUNTS: Final = (
    ("deposit_history", "DepositHistory"),
    ("funding_rate_history", "FundingRateHistory"),
    ("funding_payment_history", "FundingPaymentHistory"),
    ("trade_history", "TradeHistory"),
    ("liquidation_history", "LiquidationHistory"),
    ("curve_history", "CurveHistory"),
)


# ── wallet helpers ──────────────────────────────────────────────────


def load_signer(path: str | os.PathLike) -> Keypair:
    """Load a solana-keygen style keypair file (JSON array of 64 byte values)."""
    if not str(path):
        raise KeypairLoadError(path, "keypair path is empty")

    path = pathlib.Path(path).expanduser()
    try:
        raw = path.read_bytes()
    except FileNotFoundError:
        raise KeypairLoadError(path, "file does not exist") from None
    except OSError as e:
        raise KeypairLoadError(path, e.strerror or str(e)) from e

    try:
        data = orjson.loads(raw)
    except orjson.JSONDecodeError as e:
        raise KeypairLoadError(path, f"not valid JSON ({e})") from e

    if (
        not isinstance(data, list)
        or len(data) != SECRET_KEY_LENGTH
        or not all(isinstance(b, int) and 0 <= b <= 255 for b in data)
    ):
        raise KeypairLoadError(path, f"expected a JSON array of {SECRET_KEY_LENGTH} byte values")

    try:
        keypair = Keypair.from_bytes(bytes(data))
    except ValueError as e:
        raise KeypairLoadError(path, f"invalid secret key ({e})") from e

    logger.info("wallet public key: {}", keypair.pubkey())
    return keypair


def parse_pubkey(name: str, value: str) -> Pubkey:
    try:
        return Pubkey.from_string(value)
    except ValueError:
        raise InvalidArgument(f"{name} is not a valid public key: {value!r}") from None


def derive_associated_token_address(mint: Pubkey, owner: Pubkey) -> Pubkey:
    return get_associated_token_address(owner, mint)


def program_id_for(network: str) -> Pubkey:
    return Pubkey.from_string(CLEARING_HOUSE_PROGRAM_IDS[network])


def pda(seeds: Sequence[bytes], programId: Pubkey) -> tuple[Pubkey, int]:
    return Pubkey.find_program_address(list(seeds), programId)


# ── clients ─────────────────────────────────────────────────────────


@dataclass(slots=True)
class AnchorAdminClient:
    url: str
    wallet: Wallet
    programId: Pubkey
    idlPath: pathlib.Path | None = None

    connection: AsyncClient | None = None
    program: Program | None = None

    # None until subscribed, and also when the exchange was never initialized
    state: Any = None

    @property
    def authority(self) -> Pubkey:
        return self.wallet.public_key

    @property
    def statePublicKey(self) -> Pubkey:
        return pda([STATE_SEED], self.programId)[0]

    def requireProgram(self) -> Program:
        if self.program is None:
            raise LifecycleViolation("ClearingHouse client used before subscribe")

        return self.program

    async def loadProgram(self, provider: Provider) -> Program:
        if self.idlPath:
            idl = Idl.from_json(self.idlPath.read_text())
            return Program(idl, self.programId, provider)

        return await Program.at(self.programId, provider)

    async def subscribe(self) -> None:
        self.connection = AsyncClient(self.url)
        try:
            self.program = await self.loadProgram(Provider(self.connection, self.wallet))

            try:
                self.state = await self.fetchState()
            except AccountDoesNotExistError:
                logger.warning(
                    "No clearing house state at {} (not initialized yet)", self.statePublicKey
                )
                self.state = None
        except BaseException:
            # never reached SUBSCRIBED, so no unsubscribe will close this for us
            connection, self.connection, self.program = self.connection, None, None
            await connection.close()
            raise

    async def unsubscribe(self) -> None:
        program, self.program = self.program, None
        connection, self.connection = self.connection, None
        self.state = None

        if program is not None:
            await program.close()
        elif connection is not None:
            await connection.close()

    async def fetchState(self) -> Any:
        return await self.requireProgram().account["State"].fetch(self.statePublicKey)

    async def requireState(self) -> Any:
        """Fresh state account; fails if the exchange was never initialized."""
        try:
            self.state = await self.fetchState()
        except AccountDoesNotExistError:
            raise ClearCliError(
                f"Clearing house state {self.statePublicKey} does not exist. Run `initialize` first."
            ) from None

        return self.state

    async def fetchMarkets(self) -> Any:
        state = await self.requireState()
        return await self.requireProgram().account["Markets"].fetch(state.markets)

    async def read_markets(self) -> list[MarketSnapshot]:
        markets = await self.fetchMarkets()
        return [
            MarketSnapshot(
                index=i,
                initialized=bool(m.initialized),
                amm=CurveParameters(
                    sqrt_k=int(m.amm.sqrt_k), peg_multiplier=int(m.amm.peg_multiplier)
                ),
            )
            for i, m in enumerate(markets.markets)
        ]

    async def collateral_mint(self) -> Pubkey:
        return (await self.requireState()).collateral_mint

    async def curveContext(self, market: int) -> Context:
        state = await self.requireState()
        markets = await self.requireProgram().account["Markets"].fetch(state.markets)
        return Context(
            accounts={
                "state": self.statePublicKey,
                "admin": self.authority,
                "oracle": markets.markets[market].amm.oracle,
                "markets": state.markets,
                "curve_history": state.curve_history,
            }
        )

    async def update_k(self, sqrt_k: int, market: int) -> str:
        ctx = await self.curveContext(market)
        return str(await self.requireProgram().rpc["update_k"](sqrt_k, market, ctx=ctx))

    async def repeg_amm_curve(self, peg: int, market: int) -> str:
        ctx = await self.curveContext(market)
        return str(await self.requireProgram().rpc["repeg_amm_curve"](peg, market, ctx=ctx))

    async def initialize(self, collateral_mint: Pubkey, admin_controls_prices: bool) -> str:
        program = self.requireProgram()

        state, stateNonce = pda([STATE_SEED], self.programId)
        collateralVault, collateralVaultNonce = pda([COLLATERAL_VAULT_SEED], self.programId)
        collateralVaultAuthority = pda([bytes(collateralVault)], self.programId)[0]
        insuranceVault, insuranceVaultNonce = pda([INSURANCE_VAULT_SEED], self.programId)
        insuranceVaultAuthority = pda([bytes(insuranceVault)], self.programId)[0]

        markets = Keypair()
        signature = await program.rpc["initialize"](
            stateNonce,
            collateralVaultNonce,
            insuranceVaultNonce,
            admin_controls_prices,
            ctx=Context(
                accounts={
                    "admin": self.authority,
                    "state": state,
                    "collateral_mint": collateral_mint,
                    "collateral_vault": collateralVault,
                    "collateral_vault_authority": collateralVaultAuthority,
                    "insurance_vault": insuranceVault,
                    "insurance_vault_authority": insuranceVaultAuthority,
                    "markets": markets.pubkey(),
                    "rent": RENT,
                    "system_program": SYS_PROGRAM_ID,
                    "token_program": TOKEN_PROGRAM_ID,
                },
                pre_instructions=[await program.account["Markets"].create_instruction(markets)],
                signers=[markets],
            ),
        )
        logger.info("initialize tx: {}", signature)

        histories = {name: Keypair() for name, _ in HISTORY_ACCOUNTS}
        historySignature = await program.rpc["initialize_history"](
            ctx=Context(
                accounts={"admin": self.authority, "state": state}
                | {name: kp.pubkey() for name, kp in histories.items()},
                pre_instructions=[
                    await program.account[account].create_instruction(histories[name])
                    for name, account in HISTORY_ACCOUNTS
                ],
                signers=list(histories.values()),
            )
        )
        logger.info("initialize_history tx: {}", historySignature)

        return str(signature)


@dataclass(slots=True)
class AnchorUserClient:
    admin: AnchorAdminClient
    user: Any = None

    @property
    def authority(self) -> Pubkey:
        return self.admin.authority

    @property
    def userPublicKey(self) -> Pubkey:
        return pda([USER_SEED, bytes(self.authority)], self.admin.programId)[0]

    async def subscribe(self) -> None:
        program = self.admin.requireProgram()
        try:
            self.user = await program.account["User"].fetch(self.userPublicKey)
        except AccountDoesNotExistError:
            raise ClearCliError(
                f"No clearing house user account for {self.authority} ({self.userPublicKey})"
            ) from None

    async def unsubscribe(self) -> None:
        self.user = None

    async def deposit_collateral(self, amount: int, token_account: Pubkey) -> str:
        program = self.admin.requireProgram()
        state = await self.admin.requireState()
        signature = await program.rpc["deposit_collateral"](
            amount,
            ctx=Context(
                accounts={
                    "state": self.admin.statePublicKey,
                    "user": self.userPublicKey,
                    "authority": self.authority,
                    "collateral_vault": state.collateral_vault,
                    "user_collateral_account": token_account,
                    "token_program": TOKEN_PROGRAM_ID,
                    "markets": state.markets,
                    "user_positions": self.user.positions,
                    "funding_payment_history": state.funding_payment_history,
                    "deposit_history": state.deposit_history,
                }
            ),
        )
        return str(signature)


@dataclass(slots=True)
class AnchorConnector:
    idlPath: pathlib.Path | None = None

    def admin_client(self, config: EffectiveConfig) -> AnchorAdminClient:
        keypair = load_signer(config.keypair)
        programId = program_id_for(config.network)
        logger.info("clearing house program: {}", programId)

        return AnchorAdminClient(
            url=config.url, wallet=Wallet(keypair), programId=programId, idlPath=self.idlPath
        )

    def user_client(self, admin: AnchorAdminClient) -> AnchorUserClient:
        return AnchorUserClient(admin=admin)
