"""
Configuration management for Impel.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# GAS native token contract hash on Neo N3
GAS_TOKEN_HASH = "0xd2a4cff31913016155e38e474a2c06d08be276cf"


class Config(BaseSettings):
    """Application configuration."""

    model_config = SettingsConfigDict(env_prefix="IMPEL_", env_file=".env", extra="ignore")

    # Logging
    log_level: str = Field(default="INFO", description="Log level name")
    log_to_file: bool = Field(default=False, description="Write JSON logs to a file")
    logs_dir: Path = Field(default=Path("logs"), description="Directory for log files")

    # Contract
    gas_token_hash: str = Field(default=GAS_TOKEN_HASH, description="Script hash of the accepted payment token")
    address_version: int = Field(default=0x35, ge=0, le=255, description="Tag byte prepended before base58 encoding")

    @field_validator("gas_token_hash")
    @classmethod
    def _check_hash(cls, v: str) -> str:
        raw = v[2:] if v.startswith("0x") else v
        if len(raw) != 40:
            raise ValueError("gas_token_hash must be 20 bytes of hex")
        bytes.fromhex(raw)
        return v.lower()

    @property
    def gas_token_script_hash(self) -> bytes:
        return bytes.fromhex(self.gas_token_hash.removeprefix("0x"))


class DatabaseConfig(BaseSettings):
    """Storage backend configuration."""

    model_config = SettingsConfigDict(env_prefix="IMPEL_DB_", env_file=".env", extra="ignore")

    storage_backend: Literal["memory", "json", "mongodb"] = Field(default="json", description="Backend kind")
    storage_path: Path = Field(default=Path("data/impel.json"), description="File used by the json backend")

    mongodb_url: str = Field(default="mongodb://localhost:27017", description="MongoDB connection string")
    database_name: str = Field(default="impel", description="MongoDB database name")
    storage_collection: str = Field(default="contract_storage", description="Collection holding storage entries")
    connection_timeout: int = Field(default=5, description="Server selection timeout in seconds")
    use_transactions: bool = Field(default=False, description="Commit through a MongoDB session transaction")


@lru_cache()
def get_config() -> Config:
    """Get the application configuration."""
    return Config()


@lru_cache()
def get_db_config() -> DatabaseConfig:
    """Get the database configuration."""
    return DatabaseConfig()


def setup_directories(config: Optional[Config] = None, db_config: Optional[DatabaseConfig] = None):
    """Create the directories the configured logging and storage need."""
    config = config or get_config()
    db_config = db_config or get_db_config()

    if config.log_to_file:
        config.logs_dir.mkdir(parents=True, exist_ok=True)
    if db_config.storage_backend == "json":
        db_config.storage_path.parent.mkdir(parents=True, exist_ok=True)
