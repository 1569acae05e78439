"""Process-level settings from CLEARCLI_* environment variables.

These only control where clearcli keeps its files and how loudly it logs.
The operator profile (network, url, keypair) lives in the config store and is
threaded through commands explicitly.
"""
from __future__ import annotations

import os
import pathlib
from collections.abc import Mapping
from dataclasses import dataclass, field

from dotenv import dotenv_values

ENV_FILE = ".env.clearcli"


def environment(envfile: str | os.PathLike = ENV_FILE) -> dict[str, str]:
    """Merge the optional dotenv file with the live environment (live environment wins)."""
    return {**dotenv_values(envfile), **os.environ}  # type: ignore


@dataclass(slots=True, frozen=True)
class Settings:
    configDir: pathlib.Path = field(
        default_factory=lambda: pathlib.Path.home() / ".config" / "clearcli"
    )
    logDir: pathlib.Path = pathlib.Path("runlogs")
    logLevel: str = "INFO"

    # local Anchor IDL to use instead of fetching the program IDL from chain
    idlPath: pathlib.Path | None = None

    @classmethod
    def from_env(cls, env: Mapping[str, str | None] | None = None) -> Settings:
        env = environment() if env is None else env
        defaults = cls()

        configDir = env.get("CLEARCLI_CONFIG_DIR")
        logDir = env.get("CLEARCLI_LOGDIR")
        idl = env.get("CLEARCLI_IDL")

        return cls(
            configDir=pathlib.Path(configDir).expanduser() if configDir else defaults.configDir,
            logDir=pathlib.Path(logDir) if logDir else defaults.logDir,
            logLevel=(env.get("CLEARCLI_LOGLEVEL") or defaults.logLevel).upper(),
            idlPath=pathlib.Path(idl).expanduser() if idl else None,
        )
