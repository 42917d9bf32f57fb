"""Runtime configuration — env-driven defaults for the CLI.

Reads from a .env file and RELEASESEAL_* environment variables.  The release
core never reads this module; every class there takes explicit parameters,
and the CLI builds them from ``config``.
"""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from releaseseal.bridge.crypto_bridge import SigningConfig
from releaseseal.bridge.vault import DEFAULT_VAULT_CONFIG, VaultConfig
from releaseseal.models.types import DigestKind


class ReleaseConfig(BaseSettings):
    """Release configuration with environment variable overrides.

    Examples
    --------
    Override via environment::

        export RELEASESEAL_LOG_LEVEL=DEBUG
        export RELEASESEAL_BRANCH=main
        export RELEASESEAL_DIGEST_KINDS='["sha256","sha512"]'

    Or via .env file::

        RELEASESEAL_STORAGE_DIR=dist/release
        RELEASESEAL_GITHUB_API_ENDPOINT=https://github.example.com/api/v3
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="RELEASESEAL_",
        env_file_encoding="utf-8",
    )

    # Logging
    log_level: str = "INFO"

    # Release defaults
    storage_dir: Path = Path("release")
    branch: str = "master"
    major: int = 1
    digest_kinds: list[DigestKind] = [DigestKind.SHA256, DigestKind.SHA512]

    # Identity sources
    github_api_endpoint: str = "https://api.github.com"
    lookup_timeout_seconds: float = 10.0

    # Signing and key storage
    signing_hash: str = "sha256"
    signing_key_size: int = 3072
    vault_opslimit: int | None = None  # None -> libsodium "sensitive" cost
    vault_memlimit: int | None = None

    @property
    def signing_config(self) -> SigningConfig:
        return SigningConfig(hash=self.signing_hash, key_size=self.signing_key_size)

    @property
    def vault_config(self) -> VaultConfig:
        return VaultConfig(
            opslimit=self.vault_opslimit or DEFAULT_VAULT_CONFIG.opslimit,
            memlimit=self.vault_memlimit or DEFAULT_VAULT_CONFIG.memlimit,
        )


# Module-level singleton — import as `from releaseseal.config import config`
config = ReleaseConfig()
