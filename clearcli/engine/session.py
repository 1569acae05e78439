"""Subscription lifecycle for admin and user sessions.

Every privileged command runs inside a session: subscribe, run the action,
unsubscribe. Release always happens, innermost first, even when the action
raises. Action failures are logged and handed back as an ActionFailed result;
lifecycle failures (a subscribe or unsubscribe that itself fails) propagate.
"""
from __future__ import annotations

import enum
import weakref
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, ClassVar

from loguru import logger

from clearcli.engine.errors import ActionFailure, LifecycleViolation
from clearcli.engine.primitives import MarketSnapshot
from clearcli.engine.protocols import AdminClient, LedgerConnector, UserClient

if TYPE_CHECKING:
    from clearcli.engine.config import EffectiveConfig


class SessionState(enum.Enum):
    UNSUBSCRIBED = "unsubscribed"
    SUBSCRIBED = "subscribed"


@dataclass(slots=True, weakref_slot=True, eq=False)
class Session:
    """Two-state subscription: UNSUBSCRIBED -> SUBSCRIBED -> UNSUBSCRIBED.

    Any other transition is a programming error and raises LifecycleViolation
    before the remote client is touched.
    """

    label: ClassVar[str] = "Session"

    client: Any
    state: SessionState = SessionState.UNSUBSCRIBED

    @property
    def subscribed(self) -> bool:
        return self.state is SessionState.SUBSCRIBED

    def checkSubscribe(self) -> None:
        if self.subscribed:
            raise LifecycleViolation(f"{self.label} is already subscribed")

    def checkUnsubscribe(self) -> None:
        if not self.subscribed:
            raise LifecycleViolation(f"{self.label} is not subscribed")

    def requireSubscribed(self) -> None:
        if not self.subscribed:
            raise LifecycleViolation(f"{self.label} must be subscribed before use")

    async def subscribe(self) -> None:
        self.checkSubscribe()
        logger.info("{} subscribing", self.label)
        await self.client.subscribe()
        self.state = SessionState.SUBSCRIBED
        logger.info("{} subscribed", self.label)

    async def unsubscribe(self) -> None:
        self.checkUnsubscribe()
        logger.info("{} unsubscribing", self.label)
        await self.client.unsubscribe()
        self.state = SessionState.UNSUBSCRIBED
        logger.info("{} unsubscribed", self.label)

    def detach(self) -> None:
        """Forget a session whose release failed so outer sessions can still release."""


@dataclass(slots=True, weakref_slot=True, eq=False)
class AdminSession(Session):
    label: ClassVar[str] = "ClearingHouse"

    client: AdminClient
    children: list[UserSession] = field(default_factory=list)

    def checkUnsubscribe(self) -> None:
        Session.checkUnsubscribe(self)
        if live := [child for child in self.children if child.subscribed]:
            raise LifecycleViolation(
                f"{self.label} cannot unsubscribe while {len(live)} user session(s) are subscribed"
            )

    @property
    def authority(self) -> Any:
        return self.client.authority

    async def read_market_state(self) -> Sequence[MarketSnapshot]:
        """Fetch the ordered market list from chain (never a cached copy)."""
        self.requireSubscribed()
        return await self.client.read_markets()

    async def collateral_mint(self) -> Any:
        self.requireSubscribed()
        return await self.client.collateral_mint()

    async def submit_rescale_k(self, new_sqrt_k: int, market: int) -> str:
        self.requireSubscribed()
        return await self.client.update_k(new_sqrt_k, market)

    async def submit_repeg(self, new_peg: int, market: int) -> str:
        self.requireSubscribed()
        return await self.client.repeg_amm_curve(new_peg, market)

    async def submit_initialize(self, collateral_mint: Any, admin_controls_prices: bool) -> str:
        self.requireSubscribed()
        return await self.client.initialize(collateral_mint, admin_controls_prices)


@dataclass(slots=True, weakref_slot=True, eq=False)
class UserSession(Session):
    """User session nested inside an AdminSession.

    Only a weak reference to the parent is kept: the admin session owns the
    user session, never the other way around.
    """

    label: ClassVar[str] = "User"

    client: UserClient
    parentRef: weakref.ReferenceType[AdminSession] | None = None

    @classmethod
    def inside(cls, parent: AdminSession, client: UserClient) -> UserSession:
        session = cls(client=client, parentRef=weakref.ref(parent))
        parent.children.append(session)
        return session

    @property
    def parent(self) -> AdminSession:
        parent = self.parentRef() if self.parentRef else None
        if parent is None:
            raise LifecycleViolation("User session has no live admin session")

        return parent

    def checkSubscribe(self) -> None:
        Session.checkSubscribe(self)
        if not self.parent.subscribed:
            raise LifecycleViolation(
                f"{self.label} cannot subscribe while {self.parent.label} is unsubscribed"
            )

    def detach(self) -> None:
        parent = self.parentRef() if self.parentRef else None
        if parent is not None and self in parent.children:
            parent.children.remove(self)

    @property
    def authority(self) -> Any:
        return self.client.authority

    async def collateral_mint(self) -> Any:
        return await self.parent.collateral_mint()

    async def submit_deposit(self, amount: int, token_address: Any) -> str:
        self.requireSubscribed()
        return await self.client.deposit_collateral(amount, token_address)


# ── results ─────────────────────────────────────────────────────────


@dataclass(slots=True, frozen=True)
class Ok[T]:
    value: T


@dataclass(slots=True, frozen=True)
class ActionFailed:
    error: ActionFailure


type SessionResult[T] = Ok[T] | ActionFailed


async def run_action[S: Session, T](
    action: Callable[[S], Awaitable[T]], session: S
) -> SessionResult[T]:
    """Run `action` and convert any Exception it raises into ActionFailed.

    Only Exception is absorbed; cancellation and KeyboardInterrupt keep unwinding.
    """
    try:
        value = await action(session)
    except Exception as e:
        logger.opt(exception=e).error("Action failed inside {} session: {}", session.label, e)
        failure = ActionFailure(e)
        failure.__cause__ = e
        return ActionFailed(failure)

    return Ok(value)


# ── resource manager ────────────────────────────────────────────────


@dataclass(slots=True)
class SessionManager:
    """Stack of acquired sessions, released innermost first."""

    stack: list[Session] = field(default_factory=list)

    async def acquire[S: Session](self, session: S) -> S:
        await session.subscribe()
        self.stack.append(session)
        return session

    async def release_all(self) -> None:
        """Unsubscribe every held session, innermost first.

        A failed release does not stop the unwind: the failed session is
        dropped, the outer sessions are still released, and the first error is
        re-raised once the stack is empty.
        """
        first: BaseException | None = None
        while self.stack:
            session = self.stack.pop()
            try:
                await session.unsubscribe()
            except BaseException as e:
                logger.opt(exception=e).error(
                    "Release of {} failed; still releasing: {}",
                    session.label,
                    ", ".join(s.label for s in reversed(self.stack)) or "nothing",
                )
                session.detach()
                if first is None:
                    first = e

        if first is not None:
            raise first

    async def __aenter__(self) -> SessionManager:
        return self

    async def __aexit__(self, *exc) -> None:
        await self.release_all()


async def with_admin_session[T](
    config: EffectiveConfig,
    action: Callable[[AdminSession], Awaitable[T]],
    *,
    connector: LedgerConnector,
) -> SessionResult[T]:
    admin = AdminSession(client=connector.admin_client(config))

    async with SessionManager() as sessions:
        await sessions.acquire(admin)
        return await run_action(action, admin)


async def with_user_session[T](
    config: EffectiveConfig,
    action: Callable[[UserSession], Awaitable[T]],
    *,
    connector: LedgerConnector,
) -> SessionResult[T]:
    admin = AdminSession(client=connector.admin_client(config))

    async with SessionManager() as sessions:
        await sessions.acquire(admin)
        user = UserSession.inside(admin, connector.user_client(admin.client))
        await sessions.acquire(user)
        return await run_action(action, user)
