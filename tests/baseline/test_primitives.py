"""Tests for clearcli.engine.primitives and clearcli.engine.settings."""

import pathlib

import pytest

from clearcli.engine.errors import InvalidArgument, UnsupportedNetwork
from clearcli.engine.primitives import (
    CLEARING_HOUSE_PROGRAM_IDS,
    fmtscaled,
    parse_bool,
    parse_int,
    validate_network,
)
from clearcli.engine.settings import Settings


class TestParseInt:
    def test_plain(self):
        assert parse_int("x", "42") == 42

    def test_underscores(self):
        assert parse_int("x", "1_000_000") == 1_000_000

    def test_whitespace(self):
        assert parse_int("x", " 7 ") == 7

    def test_beyond_u128(self):
        big = str(2**200 + 1)
        assert parse_int("x", big) == 2**200 + 1

    def test_int_passthrough(self):
        assert parse_int("x", 5) == 5

    @pytest.mark.parametrize("value", ["1.5", "1e6", "", "0x10", "ten"])
    def test_rejects(self, value):
        with pytest.raises(InvalidArgument, match="x must be an integer"):
            parse_int("x", value)


class TestParseBool:
    @pytest.mark.parametrize("value", ["true", "TRUE", "1", "yes", "y"])
    def test_true(self, value):
        assert parse_bool("flag", value) is True

    @pytest.mark.parametrize("value", ["false", "False", "0", "no", "n"])
    def test_false(self, value):
        assert parse_bool("flag", value) is False

    def test_rejects(self):
        with pytest.raises(InvalidArgument, match="flag must be true or false"):
            parse_bool("flag", "maybe")


class TestNetworks:
    def test_known(self):
        for network in CLEARING_HOUSE_PROGRAM_IDS:
            assert validate_network(network) == network

    def test_unknown(self):
        with pytest.raises(UnsupportedNetwork, match="devnet, mainnet-beta"):
            validate_network("testnet")


class TestFmtScaled:
    def test_peg(self):
        assert fmtscaled(40_123, 1_000) == "40123 (40.123)"

    def test_exact_for_big_values(self):
        # no float anywhere, so every digit survives
        assert fmtscaled(123456789012345678901234567, 10**13) == (
            "123456789012345678901234567 (12345678901234.5678901234567)"
        )


class TestSettings:
    def test_defaults(self):
        settings = Settings.from_env({})
        assert settings.configDir == pathlib.Path.home() / ".config" / "clearcli"
        assert settings.logDir == pathlib.Path("runlogs")
        assert settings.logLevel == "INFO"
        assert settings.idlPath is None

    def test_overrides(self, tmp_path):
        settings = Settings.from_env(
            {
                "CLEARCLI_CONFIG_DIR": str(tmp_path / "cfg"),
                "CLEARCLI_LOGDIR": str(tmp_path / "logs"),
                "CLEARCLI_LOGLEVEL": "debug",
                "CLEARCLI_IDL": str(tmp_path / "clearing_house.json"),
            }
        )
        assert settings.configDir == tmp_path / "cfg"
        assert settings.logDir == tmp_path / "logs"
        assert settings.logLevel == "DEBUG"
        assert settings.idlPath == tmp_path / "clearing_house.json"

    def test_reads_dotenv_file(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("CLEARCLI_LOGLEVEL", raising=False)
        (tmp_path / ".env.clearcli").write_text("CLEARCLI_LOGLEVEL=warning\n")

        assert Settings.from_env().logLevel == "WARNING"

    def test_environment_beats_dotenv_file(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("CLEARCLI_LOGLEVEL", "error")
        (tmp_path / ".env.clearcli").write_text("CLEARCLI_LOGLEVEL=warning\n")

        assert Settings.from_env().logLevel == "ERROR"
