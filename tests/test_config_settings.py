import logging

import pytest
import structlog
from pydantic import ValidationError

from forgecast.config import Settings
from forgecast.logging_config import add_chain_name, setup_logging


def test_defaults():
    settings = Settings(_env_file=None)

    assert settings.similarity_threshold == 0.1
    assert settings.legacy is False
    assert settings.receipt_timeout_seconds == 300


def test_rpc_url_aliases(monkeypatch):
    """RPC endpoint can come from the fork-url style variables."""

    monkeypatch.delenv("RPC_URL", raising=False)
    monkeypatch.delenv("ETH_RPC_URL", raising=False)
    monkeypatch.setenv("FORK_URL", "http://localhost:8545")

    settings = Settings(_env_file=None)

    assert settings.rpc_url == "http://localhost:8545"
    assert settings.has_rpc_url


def test_threshold_from_environment(monkeypatch):
    monkeypatch.setenv("SIMILARITY_THRESHOLD", "0.25")
    monkeypatch.setenv("LEGACY", "true")

    settings = Settings(_env_file=None)

    assert settings.similarity_threshold == 0.25
    assert settings.legacy is True


def test_threshold_must_be_positive(monkeypatch):
    monkeypatch.setenv("SIMILARITY_THRESHOLD", "0")

    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_setup_logging_sets_root_level():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    try:
        setup_logging("DEBUG")

        assert root.level == logging.DEBUG
        assert logging.getLogger("httpx").level == logging.WARNING
    finally:
        root.handlers[:] = handlers
        root.setLevel(level)
        structlog.reset_defaults()


def test_bound_chain_id_gets_a_chain_name():
    assert add_chain_name(None, "info", {"event": "x", "chain_id": 56})["chain"] == "bsc"
    assert add_chain_name(None, "info", {"event": "x", "chain_id": 7777})["chain"] == "chain-7777"
    assert add_chain_name(None, "info", {"event": "x", "chain_id": 1, "chain": "custom"})["chain"] == "custom"
    assert "chain" not in add_chain_name(None, "info", {"event": "x"})
