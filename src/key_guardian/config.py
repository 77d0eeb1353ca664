"""Configuration loading utilities for key-guardian."""
from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .paths import project_config_path, runtime_config_dir


class KeyManagerConfig(BaseModel):
    thread_safe: bool = Field(
        default=True,
        description="Serialize every key store access behind a lock",
    )
    rsa_key_size: int = Field(default=2048, ge=2048, description="Default RSA modulus size in bits")
    rsa_public_exponent: int = Field(default=65537, description="Default RSA public exponent")
    default_use: str = Field(default="sig", description="`use` member stamped on generated keys")

    @field_validator("rsa_public_exponent")
    @classmethod
    def _validate_exponent(cls, value: int) -> int:
        if value not in (3, 65537):
            raise ValueError("RSA public exponent must be 3 or 65537")
        return value


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO", description="Logging verbosity level")

    def normalized_level(self) -> str:
        return self.level.upper()


class AppConfig(BaseModel):
    key_manager: KeyManagerConfig = Field(default_factory=KeyManagerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


DEFAULT_CONFIG = AppConfig()


def config_search_paths(explicit: Optional[Path] = None) -> Iterable[Path]:
    if explicit:
        yield explicit
    yield project_config_path()
    yield runtime_config_dir() / "config.yaml"


def load_config(path: Optional[Path] = None) -> AppConfig:
    for candidate in config_search_paths(path):
        if candidate.is_file():
            with candidate.open("r", encoding="utf-8") as handle:
                data = yaml.safe_load(handle) or {}
            try:
                return AppConfig.model_validate(data)
            except ValidationError as exc:
                raise ValueError(f"Invalid configuration in {candidate}: {exc}") from exc
    return DEFAULT_CONFIG.model_copy(deep=True)


def dump_default_config(target: Path) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    with target.open("w", encoding="utf-8") as handle:
        yaml.safe_dump(DEFAULT_CONFIG.model_dump(mode="json"), handle, sort_keys=False)


__all__ = [
    "AppConfig",
    "DEFAULT_CONFIG",
    "KeyManagerConfig",
    "LoggingConfig",
    "config_search_paths",
    "dump_default_config",
    "load_config",
]
