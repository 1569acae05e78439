"""Error taxonomy for clearcli.

Everything deriving from ClearCliError that reaches the process boundary
terminates the command with a non-zero exit status. ActionFailure is the
exception: it never leaves a session wrapper, it is logged and reported as
an ActionFailed result instead.
"""
from __future__ import annotations


class ClearCliError(Exception):
    """Base class for all operator-facing failures."""


# ── configuration ───────────────────────────────────────────────────


class ConfigMissing(ClearCliError):
    def __init__(self, path) -> None:
        self.path = path
        super().__init__(
            f"clearcli config does not exist at {path}. Run `clearcli config init` first."
        )


class ConfigCorrupt(ClearCliError):
    def __init__(self, path, reason: str) -> None:
        self.path = path
        super().__init__(f"clearcli config at {path} is unreadable: {reason}")


class InvalidKey(ClearCliError):
    def __init__(self, key: str, allowed) -> None:
        self.key = key
        super().__init__(f"Key must be one of {', '.join(allowed)} (got {key!r})")


class MissingSetting(ClearCliError):
    def __init__(self, field: str, flag: str) -> None:
        self.field = field
        super().__init__(
            f"No {field} configured. Pass {flag} or run `clearcli config set {field} <value>`."
        )


class UnsupportedNetwork(ClearCliError):
    def __init__(self, network: str, known) -> None:
        self.network = network
        super().__init__(f"Unknown network {network!r}. Known networks: {', '.join(known)}")


class KeypairLoadError(ClearCliError):
    def __init__(self, path, reason: str) -> None:
        self.path = path
        super().__init__(f"Failed to load keypair from {path}: {reason}")


# ── input validation ────────────────────────────────────────────────


class InvalidArgument(ClearCliError):
    pass


class DivisionByZero(ClearCliError):
    def __init__(self) -> None:
        super().__init__("denominator must not be zero")


class MarketNotFound(ClearCliError):
    def __init__(self, index: int, available: int) -> None:
        self.index = index
        self.available = available
        super().__init__(f"Market {index} not found ({available} markets available)")


# ── sessions ────────────────────────────────────────────────────────


class LifecycleViolation(ClearCliError):
    pass


class ActionFailure(ClearCliError):
    """Wraps whatever a session-wrapped action raised."""

    def __init__(self, original: BaseException) -> None:
        self.original = original
        super().__init__(f"{type(original).__name__}: {original}")
