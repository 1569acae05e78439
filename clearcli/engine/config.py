"""Operator profile storage and effective-setting resolution.

The profile is a single JSON record on disk. Nothing here is global: the CLI
loads the profile once and passes the resulting value into every command.
"""
from __future__ import annotations

import dataclasses
import os
import pathlib
import tempfile
from dataclasses import dataclass
from typing import Any, Final

import orjson
from loguru import logger

from clearcli.engine.errors import (
    ConfigCorrupt,
    ConfigMissing,
    InvalidKey,
    MissingSetting,
)
from clearcli.engine.primitives import DEFAULT_NETWORK, DEFAULT_RPC_URL, validate_network

CONFIG_VERSION: Final = 1
CONFIG_FILENAME: Final = "config.json"

SETTABLE_KEYS: Final = ("network", "url", "keypair")

# `env` is what the command line flag is called, so accept it as a key too
KEY_ALIASES: Final = {"env": "network"}


def default_keypair_path() -> str:
    return str(pathlib.Path.home() / ".config" / "solana" / "id.json")


@dataclass(slots=True, frozen=True)
class OperatorConfig:
    network: str | None = None
    url: str | None = None
    keypair: str | None = None
    version: int = CONFIG_VERSION

    @classmethod
    def defaults(cls) -> OperatorConfig:
        return cls(network=DEFAULT_NETWORK, url=DEFAULT_RPC_URL, keypair=default_keypair_path())

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> OperatorConfig:
        """Build from a decoded file record.

        Records written before versioning existed have no `version` and store
        the network under `env`.
        """
        network = record.get("network", record.get("env"))
        return cls(
            network=network,
            url=record.get("url"),
            keypair=record.get("keypair"),
            version=int(record.get("version", CONFIG_VERSION)),
        )

    def to_record(self) -> dict[str, Any]:
        return dict(
            version=self.version, network=self.network, url=self.url, keypair=self.keypair
        )

    def with_value(self, key: str, value: str) -> OperatorConfig:
        key = KEY_ALIASES.get(key, key)
        if key not in SETTABLE_KEYS:
            raise InvalidKey(key, SETTABLE_KEYS)

        if key == "network":
            validate_network(value)

        return dataclasses.replace(self, **{key: value})


@dataclass(slots=True, frozen=True)
class CLIOverrides:
    """Values given on the command line; None means not given."""

    env: str | None = None
    keypair: str | None = None
    url: str | None = None


@dataclass(slots=True, frozen=True)
class EffectiveConfig:
    network: str
    url: str
    keypair: str


def resolve_effective(stored: OperatorConfig | None, overrides: CLIOverrides) -> EffectiveConfig:
    """Apply precedence: command line value, then stored value, else fail."""
    stored = stored or OperatorConfig(network=None, url=None, keypair=None)

    def pick(field: str, override: str | None, flag: str) -> str:
        if override:
            return override

        if value := getattr(stored, field):
            return value

        raise MissingSetting(field, flag)

    network = validate_network(pick("network", overrides.env, "--env"))
    url = pick("url", overrides.url, "--url")
    keypair = pick("keypair", overrides.keypair, "--keypair")

    logger.info("network: {}", network)
    logger.info("url: {}", url)

    return EffectiveConfig(network=network, url=url, keypair=str(pathlib.Path(keypair).expanduser()))


@dataclass(slots=True)
class ConfigStore:
    """JSON file backed operator profile at <configDir>/config.json."""

    configDir: pathlib.Path

    @property
    def path(self) -> pathlib.Path:
        return self.configDir / CONFIG_FILENAME

    def init(self) -> OperatorConfig:
        """Write the default profile, replacing anything already there."""
        config = OperatorConfig.defaults()
        self._write(config)
        logger.info("Wrote default config to {}", self.path)
        return config

    def get(self) -> OperatorConfig:
        if (config := self.load()) is None:
            raise ConfigMissing(self.path)

        return config

    def load(self) -> OperatorConfig | None:
        """Return the stored profile, or None if no profile was ever written."""
        try:
            raw = self.path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise ConfigCorrupt(self.path, e.strerror or str(e)) from e

        try:
            record = orjson.loads(raw)
        except orjson.JSONDecodeError as e:
            raise ConfigCorrupt(self.path, f"invalid JSON ({e})") from e

        if not isinstance(record, dict):
            raise ConfigCorrupt(self.path, "expected a JSON object")

        try:
            return OperatorConfig.from_record(record)
        except (TypeError, ValueError) as e:
            raise ConfigCorrupt(self.path, f"bad version field ({e})") from e

    def set(self, key: str, value: str) -> OperatorConfig:
        # validate the key before touching the file so bad keys never need a config
        canonical = KEY_ALIASES.get(key, key)
        if canonical not in SETTABLE_KEYS:
            raise InvalidKey(key, SETTABLE_KEYS)

        config = self.get().with_value(canonical, value)
        self._write(config)
        logger.info("Set {} = {}", canonical, value)
        return config

    def _write(self, config: OperatorConfig) -> None:
        self.configDir.mkdir(parents=True, exist_ok=True)

        # replace atomically so a crash mid-write never leaves half a profile behind
        fd, tmp = tempfile.mkstemp(dir=self.configDir, prefix=".config-", suffix=".json")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(orjson.dumps(config.to_record(), option=orjson.OPT_INDENT_2))

            os.replace(tmp, self.path)
        except BaseException:
            pathlib.Path(tmp).unlink(missing_ok=True)
            raise
