"""Config file."""
from __future__ import annotations

import os
from pathlib import Path
from urllib.parse import quote_plus

from eth_utils import is_hex_address, to_normalized_address
from pydantic import BaseModel, Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from sandwich_scanner.app.domain.models import ExchangeKind

# Largest value a BIGINT block column can hold.
MAX_BLOCK_NUMBER = 2**63 - 1


class Settings(BaseSettings):
    """Application settings."""

    # PROJECT
    project_name: str = Field("sandwich-scanner", alias="PROJECT_NAME")

    # DATABASE
    postgres_user: str = Field(..., alias="POSTGRES_USER")
    postgres_password: SecretStr = Field(..., alias="POSTGRES_PASSWORD")
    postgres_server: str = Field(..., alias="POSTGRES_SERVER")
    postgres_port: int = Field(..., alias="POSTGRES_PORT")
    postgres_db: str = Field(..., alias="POSTGRES_DB")
    database_url: str | None = Field(None, alias="DATABASE_URL")

    # CHAINS
    chains_config_path: Path = Field(Path("chains.json"), alias="CHAINS_CONFIG_PATH")

    @model_validator(mode="after")
    def assemble_db_url(self) -> "Settings":
        if not self.database_url:
            user = quote_plus(self.postgres_user)
            password = quote_plus(self.postgres_password.get_secret_value())
            host = self.postgres_server
            port = self.postgres_port
            db = self.postgres_db

            self.database_url = f"postgresql+asyncpg://{user}:{password}@{host}:{port}/{db}"

        return self

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        populate_by_name=True,
        extra="ignore",
    )


class ExchangeConfig(BaseModel):
    kind: ExchangeKind
    name: str


class ScanParams(BaseModel):
    """
    Adaptive chunking parameters for the scanner.

    - initial_chunk_size: blocks fetched by the first request of a job
    - max_chunk_size: upper clamp for every later chunk
    - target_events_per_chunk: event volume the chunk sizing aims for
    - max_window: widest block window one query may cover
    """

    initial_chunk_size: int = 100
    max_chunk_size: int = 10_000
    target_events_per_chunk: int = 300
    max_window: int = 100_000

    @model_validator(mode="after")
    def check_bounds(self) -> "ScanParams":
        for name in ("initial_chunk_size", "max_chunk_size", "target_events_per_chunk", "max_window"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")
        if self.initial_chunk_size > self.max_chunk_size:
            raise ValueError("initial_chunk_size must be <= max_chunk_size")
        if self.max_window > MAX_BLOCK_NUMBER:
            raise ValueError("max_window exceeds the representable block range")
        return self


class ChainConfig(BaseModel):
    """Static configuration of one supported chain."""

    name: str
    rpc_url: str
    data_aggregator_address: str
    native_decimals: int = 18
    exchanges: dict[str, ExchangeConfig] = Field(default_factory=dict)
    scan: ScanParams = Field(default_factory=ScanParams)

    @field_validator("exchanges")
    @classmethod
    def normalize_factory_addresses(cls, v: dict[str, ExchangeConfig]) -> dict[str, ExchangeConfig]:
        return {to_normalized_address(address): exchange for address, exchange in v.items()}

    def exchange_for(self, factory_address: str) -> ExchangeConfig | None:
        if not is_hex_address(factory_address):
            return None
        return self.exchanges.get(to_normalized_address(factory_address))


class ChainRegistry(BaseModel):
    """
    Supported chains keyed by lower-case chain id (e.g. "ethereum").

    Loaded once at process start and handed to every component that needs it.
    """

    chains: dict[str, ChainConfig]

    @field_validator("chains")
    @classmethod
    def lower_chain_ids(cls, v: dict[str, ChainConfig]) -> dict[str, ChainConfig]:
        return {chain_id.lower(): chain for chain_id, chain in v.items()}

    def get(self, chain_id: str) -> ChainConfig | None:
        return self.chains.get(chain_id.lower())

    @classmethod
    def from_json(cls, raw: str) -> "ChainRegistry":
        # ${VAR} placeholders keep RPC urls and keys out of the file
        return cls.model_validate_json(f'{{"chains": {os.path.expandvars(raw)}}}')

    @classmethod
    def from_file(cls, path: Path) -> "ChainRegistry":
        if not path.exists():
            raise FileNotFoundError(f"Chains config not found: {path}")
        return cls.from_json(path.read_text(encoding="utf-8"))


def load_settings() -> Settings:
    return Settings()  # type: ignore[call-arg]
