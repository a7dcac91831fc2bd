"""Settings for building the host resolver configuration provider.

Brief:
  Settings come from an optional YAML file and are then overridden by
  environment variables:

    - UNIXRESOLVER_RESOLV_CONF: primary file ("" disables it)
    - UNIXRESOLVER_RESOLVER_DIR: override directory ("" disables it)
    - UNIXRESOLVER_ADDRESS_ORDER: random | round_robin | failover
    - UNIXRESOLVER_LOG_LEVEL: logging level name

  Keys may sit at the root of the YAML mapping or under a ``resolver:``
  section; a ``logging:`` mapping is passed to init_logging unchanged.

Example YAML:
  resolver:
    resolv_conf: /etc/resolv.conf
    resolver_dir: /etc/resolver
    address_order: round_robin
  logging:
    level: debug
"""

from __future__ import annotations

import os
from typing import Any, Dict, Mapping, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from ..addresses import ADDRESS_ORDERS, ORDER_RANDOM
from ..errors import ResolverConfigError

ENV_PREFIX = "UNIXRESOLVER_"


class ResolverSettings(BaseModel):
    """Brief: Typed settings for the resolver configuration provider.

    Inputs:
      - resolv_conf: Primary resolv.conf path, or None to skip it.
      - resolver_dir: Per-domain override directory, or None to skip it.
      - address_order: Address source ordering strategy.
      - logging: Mapping passed to init_logging.

    Outputs:
      - ResolverSettings instance with normalized field types.
    """

    resolv_conf: Optional[str] = "/etc/resolv.conf"
    resolver_dir: Optional[str] = "/etc/resolver"
    address_order: str = ORDER_RANDOM
    logging: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("address_order")
    @classmethod
    def _check_order(cls, value: str) -> str:
        order = str(value).strip().lower()
        if order not in ADDRESS_ORDERS:
            raise ValueError(f"address_order must be one of {', '.join(ADDRESS_ORDERS)}")
        return order

    @field_validator("resolv_conf", "resolver_dir")
    @classmethod
    def _empty_is_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not str(value).strip():
            return None
        return str(value).strip()


def _env_overrides(environ: Mapping[str, str]) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    for key in ("resolv_conf", "resolver_dir", "address_order"):
        env_key = ENV_PREFIX + key.upper()
        if env_key in environ:
            overrides[key] = environ[env_key]
    return overrides


def load_settings(
    path: Optional[str] = None,
    *,
    environ: Optional[Mapping[str, str]] = None,
) -> ResolverSettings:
    """Brief: Load ResolverSettings from YAML and the environment.

    Inputs:
      - path: Optional YAML file path.
      - environ: Environment mapping (defaults to os.environ).

    Outputs:
      - ResolverSettings

    Raises:
      - ResolverConfigError: when the YAML root or a section is not a
        mapping, or when a value fails validation.
      - OSError: when ``path`` cannot be read.

    Example:
      >>> load_settings(environ={"UNIXRESOLVER_ADDRESS_ORDER": "failover"}).address_order
      'failover'
    """
    raw: Dict[str, Any] = {}
    if path is not None:
        with open(path, "r") as f:
            loaded = yaml.safe_load(f) or {}
        if not isinstance(loaded, dict):
            raise ResolverConfigError("Configuration root must be a mapping")
        section = loaded.get("resolver", loaded)
        if not isinstance(section, dict):
            raise ResolverConfigError("config.resolver must be a mapping when present")
        raw = {k: v for k, v in section.items() if k in ResolverSettings.model_fields}
        logging_cfg = loaded.get("logging", section.get("logging"))
        if logging_cfg is not None:
            if not isinstance(logging_cfg, dict):
                raise ResolverConfigError("config.logging must be a mapping when present")
            raw["logging"] = dict(logging_cfg)

    env = os.environ if environ is None else environ
    raw.update(_env_overrides(env))
    log_level = env.get(ENV_PREFIX + "LOG_LEVEL")
    if log_level:
        raw["logging"] = {**raw.get("logging", {}), "level": log_level}

    try:
        return ResolverSettings(**raw)
    except ValidationError as exc:
        raise ResolverConfigError(f"Invalid resolver settings: {exc}") from exc
