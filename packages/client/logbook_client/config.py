"""
Configuration loading and validation.

Loads client configuration from a YAML file. The API token is resolved from
an environment variable and is never stored in the config file.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field


class ApiConfig(BaseModel):
    url: str = "http://localhost:8000"
    verify_tls: bool = True
    request_timeout_seconds: int = 30
    token_env: str = "LOGBOOK_TOKEN"

    @property
    def token(self) -> str | None:
        return os.environ.get(self.token_env)


class StateConfig(BaseModel):
    db_path: str = "./data/logbook_client.db"


class LoggingConfig(BaseModel):
    level: str = "warning"
    format: Literal["json", "text"] = "text"


class ClientConfig(BaseModel):
    api: ApiConfig = Field(default_factory=ApiConfig)
    state: StateConfig = Field(default_factory=StateConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_config(path: str | Path) -> ClientConfig:
    """Load and validate client configuration from a YAML file."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path) as f:
        raw = yaml.safe_load(f) or {}

    return ClientConfig.model_validate(raw)
