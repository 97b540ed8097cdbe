"""Tests for env-driven configuration."""

from __future__ import annotations

from pathlib import Path

import pytest

from certforge.config import CertforgeConfig
from certforge.core.arc19 import ARC19_TEMPLATE_URL


class TestCertforgeConfig:
    def test_defaults(self):
        config = CertforgeConfig()
        assert config.environment == "development"
        assert config.log_level == "INFO"
        assert config.confirmation_max_rounds == 10
        assert config.confirmation_timeout_seconds == 120.0
        assert config.template_url == ARC19_TEMPLATE_URL
        assert config.store_path == Path(".certforge/blocks")

    def test_is_production(self):
        assert CertforgeConfig().is_production is False
        assert CertforgeConfig(environment="production").is_production is True

    def test_env_overrides(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("CERTFORGE_IPFS_GATEWAY", "gw.example")
        monkeypatch.setenv("CERTFORGE_CONFIRMATION_MAX_ROUNDS", "25")
        config = CertforgeConfig()
        assert config.ipfs_gateway == "gw.example"
        assert config.confirmation_max_rounds == 25

    def test_flow_options(self):
        options = CertforgeConfig(explorer_url="https://x.example", confirmation_max_rounds=3).flow_options()
        assert options.explorer_url == "https://x.example"
        assert options.confirmation_max_rounds == 3
        assert options.template_url == ARC19_TEMPLATE_URL

    def test_rejects_zero_rounds(self):
        with pytest.raises(ValueError):
            CertforgeConfig(confirmation_max_rounds=0)
