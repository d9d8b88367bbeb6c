"""
Engine configuration.

Defaults can be overridden from a YAML file and then from ``STAKESWAP_*``
environment variables:

    STAKESWAP_FEE_BPS              swap fee in basis points (0..9999)
    STAKESWAP_MAX_PRICE_AGE        max feed age in seconds (unset/0 = no staleness check)
    STAKESWAP_OPERATOR             operator account id
    STAKESWAP_INITIAL_REWARD_RATE  reward units per second at ledger creation
    STAKESWAP_LOG_LEVEL            logging level name
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Mapping, Optional, Union

import yaml

from ..core.types import MAX_AMOUNT

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _env_int(name: str, default: int, *, lo: int, hi: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return int(default)
    try:
        v = int(raw.strip())
    except ValueError:
        return int(default)
    if v < lo:
        return int(lo)
    if v > hi:
        return int(hi)
    return int(v)


def _env_str(name: str, default: str) -> str:
    raw = os.environ.get(name)
    if raw is None:
        return default
    v = raw.strip()
    return v if v else default


@dataclass(frozen=True)
class EngineConfig:
    fee_bps: int = 30
    # None disables the staleness check on price feeds.
    max_price_age_seconds: Optional[int] = None
    operator: str = "operator"
    initial_reward_rate: int = 0
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if not isinstance(self.fee_bps, int) or isinstance(self.fee_bps, bool) or not (0 <= self.fee_bps < 10_000):
            raise ValueError(f"fee_bps must be in [0, 10000): {self.fee_bps!r}")
        age = self.max_price_age_seconds
        if age is not None and (not isinstance(age, int) or isinstance(age, bool) or age <= 0):
            raise ValueError(f"max_price_age_seconds must be a positive int or None: {age!r}")
        if not isinstance(self.operator, str) or not self.operator:
            raise ValueError("operator must be a non-empty string")
        rate = self.initial_reward_rate
        if not isinstance(rate, int) or isinstance(rate, bool) or not (0 <= rate <= MAX_AMOUNT):
            raise ValueError(f"initial_reward_rate must be in [0, MAX_AMOUNT]: {rate!r}")
        if self.log_level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {sorted(_LOG_LEVELS)}: {self.log_level!r}")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "EngineConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"unknown config keys: {unknown}")
        kwargs = dict(data)
        if "log_level" in kwargs and isinstance(kwargs["log_level"], str):
            kwargs["log_level"] = kwargs["log_level"].upper()
        return cls(**kwargs)

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "EngineConfig":
        obj = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
        if obj is None:
            return cls()
        if not isinstance(obj, Mapping):
            raise TypeError("config YAML must be a mapping")
        section = obj.get("stakeswap", obj)
        if not isinstance(section, Mapping):
            raise TypeError("'stakeswap' config section must be a mapping")
        return cls.from_mapping(section)

    @classmethod
    def from_env(cls, base: Optional["EngineConfig"] = None) -> "EngineConfig":
        cfg = base or cls()
        max_age = _env_int("STAKESWAP_MAX_PRICE_AGE", cfg.max_price_age_seconds or 0, lo=0, hi=10**9)
        level = _env_str("STAKESWAP_LOG_LEVEL", cfg.log_level).upper()
        return replace(
            cfg,
            fee_bps=_env_int("STAKESWAP_FEE_BPS", cfg.fee_bps, lo=0, hi=9_999),
            max_price_age_seconds=max_age or None,
            operator=_env_str("STAKESWAP_OPERATOR", cfg.operator),
            initial_reward_rate=_env_int("STAKESWAP_INITIAL_REWARD_RATE", cfg.initial_reward_rate, lo=0, hi=MAX_AMOUNT),
            log_level=level if level in _LOG_LEVELS else cfg.log_level,
        )

    @classmethod
    def load(cls, path: Optional[Union[str, Path]] = None) -> "EngineConfig":
        """YAML file (if given) overridden by the environment."""
        base = cls.from_yaml(path) if path is not None else cls()
        return cls.from_env(base)
