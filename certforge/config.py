"""Runtime configuration, env-driven.

Reads from a .env file and CERTFORGE_* environment variables via
pydantic-settings.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from certforge.core.arc19 import ARC19_TEMPLATE_URL
from certforge.models.flow import FlowOptions


class CertforgeConfig(BaseSettings):
    """Process-wide settings with environment variable overrides.

    Examples
    --------
    Override via environment::

        export CERTFORGE_LOG_LEVEL=DEBUG
        export CERTFORGE_IPFS_GATEWAY=gateway.pinata.cloud
        export CERTFORGE_CONFIRMATION_MAX_ROUNDS=20
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="CERTFORGE_",
        env_file_encoding="utf-8",
    )

    # Runtime environment
    environment: str = "development"
    log_level: str = "INFO"

    # Content addressing
    template_url: str = ARC19_TEMPLATE_URL
    ipfs_gateway: str | None = None
    store_path: Path = Path(".certforge/blocks")

    # Ledger
    explorer_url: str = ""
    confirmation_max_rounds: int = Field(default=10, ge=1)
    confirmation_timeout_seconds: float | None = 120.0

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def flow_options(self) -> FlowOptions:
        """Build orchestrator options from these settings."""
        return FlowOptions(
            template_url=self.template_url,
            ipfs_gateway=self.ipfs_gateway,
            explorer_url=self.explorer_url,
            confirmation_max_rounds=self.confirmation_max_rounds,
            confirmation_timeout_seconds=self.confirmation_timeout_seconds,
        )


# Module-level singleton; import as `from certforge.config import config`
config = CertforgeConfig()
