"""clearcli engine layer: config, sessions and curve math with no CLI dependency.

Modules
-------
errors
    Operator-facing exception taxonomy.
    - ``ClearCliError``: base; anything reaching the process boundary exits non-zero
    - ``ConfigMissing``, ``ConfigCorrupt``, ``InvalidKey``, ``MissingSetting``, ``UnsupportedNetwork``
    - ``KeypairLoadError``, ``LifecycleViolation``
    - ``InvalidArgument``, ``DivisionByZero``, ``MarketNotFound``: raised before any session opens
    - ``ActionFailure``: wraps whatever a session action raised; never propagates

primitives
    Pure types, constants, and parsing (stdlib-only).
    - ``CLEARING_HOUSE_PROGRAM_IDS``, ``NETWORKS``, ``MAX_MARKETS``, precision constants
    - ``CurveParameters``, ``MarketSnapshot``
    - ``parse_int``, ``parse_bool``, ``validate_network``, ``fmtscaled``

settings
    ``Settings``: CLEARCLI_* process settings from the environment and ``.env.clearcli``.

config
    Operator profile on disk and effective-setting resolution.
    - ``OperatorConfig``, ``CLIOverrides``, ``EffectiveConfig``
    - ``ConfigStore``: ``init()``, ``get()``, ``load()``, ``set(key, value)``
    - ``resolve_effective``: command line value beats stored value, else ``MissingSetting``

protocols
    ``AdminClient``, ``UserClient``, ``LedgerConnector``: what the core needs from the ledger.

session
    Subscription lifecycle.
    - ``AdminSession``, ``UserSession``: guarded two-state machines
    - ``SessionManager``: release stack, innermost first
    - ``with_admin_session``, ``with_user_session``: acquire, run, always release
    - ``Ok`` / ``ActionFailed``: the ``SessionResult`` of an action

adjust
    Curve parameter adjustments.
    - ``rescale_sqrt_k``: floor(sqrt_k * numerator / denominator), multiply first
    - ``RescaleK``, ``Repeg``: validated requests
    - ``market_at``: bounds-checked market lookup
    - ``apply_adjustment``: read, log, submit, read back

actions
    ``initialize_exchange``, ``deposit_collateral``: pass-through session actions.

ledger
    Anchor/solana client satisfying the protocols, plus ``load_signer``,
    ``parse_pubkey`` and ``derive_associated_token_address``.
"""

# Convenience re-exports for common usage:
# from clearcli.engine import ConfigStore, with_admin_session, rescale_sqrt_k
from clearcli.engine.adjust import Repeg, RescaleK, apply_adjustment, market_at, rescale_sqrt_k
from clearcli.engine.config import CLIOverrides, ConfigStore, OperatorConfig, resolve_effective
from clearcli.engine.session import (
    ActionFailed,
    AdminSession,
    Ok,
    SessionManager,
    UserSession,
    with_admin_session,
    with_user_session,
)

__all__ = [
    "Repeg",
    "RescaleK",
    "apply_adjustment",
    "market_at",
    "rescale_sqrt_k",
    "CLIOverrides",
    "ConfigStore",
    "OperatorConfig",
    "resolve_effective",
    "ActionFailed",
    "AdminSession",
    "Ok",
    "SessionManager",
    "UserSession",
    "with_admin_session",
    "with_user_session",
]
