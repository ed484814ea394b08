from __future__ import annotations

import os
from typing import Literal, Optional

import yaml
from pydantic import BaseModel

from .constants import DEFAULT_SLIPPAGE_PERCENT


class QuoteConfig(BaseModel):
    """Configuration for the quoting API."""

    base_url: str = "https://li.quest/v1"
    timeout: float = 30.0
    integrator: Optional[str] = None


class RpcConfig(BaseModel):
    """Configuration for read-only chain calls."""

    backend: Literal["http", "inmemory"] = "http"
    url: str = "https://ethereum-rpc.publicnode.com"
    timeout: float = 15.0


class LookupConfig(BaseModel):
    """Best-effort auxiliary lookups."""

    reverse_name_url: str = "https://api.ensideas.com/ens/resolve"
    timeout: float = 5.0


class SurecastConfig(BaseModel):
    """Top-level configuration model."""

    quote: QuoteConfig = QuoteConfig()
    rpc: RpcConfig = RpcConfig()
    lookups: LookupConfig = LookupConfig()
    database_url: Optional[str] = None
    slippage: float = DEFAULT_SLIPPAGE_PERCENT
    default_chain: int = 1


def load_config(path: Optional[str] = None) -> SurecastConfig:
    """Load configuration from YAML file.

    Args:
        path: Optional path to config file. Falls back to SURECAST_CONFIG env
            variable or 'config.yaml' in the current directory.
    """

    config_path = path or os.getenv("SURECAST_CONFIG", "config.yaml")
    if os.path.exists(config_path):
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        config = SurecastConfig(**data)
    else:
        config = SurecastConfig()

    env_db_url = os.getenv("SURECAST_DATABASE_URL")
    if env_db_url:
        config.database_url = env_db_url
    env_rpc_url = os.getenv("SURECAST_RPC_URL")
    if env_rpc_url:
        config.rpc.url = env_rpc_url
    env_quote_url = os.getenv("SURECAST_QUOTE_URL")
    if env_quote_url:
        config.quote.base_url = env_quote_url
    return config
