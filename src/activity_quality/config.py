from dataclasses import dataclass, fields
from typing import Any, Dict

import yaml

from .errors import ConfigurationError


@dataclass
class Config:
    """Configuration object loaded from YAML."""
    data: Dict[str, Any]
    filtering: Dict[str, Any]
    partition: Dict[str, Any]
    models: Dict[str, Any]
    validation: Dict[str, Any]
    output: Dict[str, Any]

    @classmethod
    def from_yaml(cls, path: str) -> "Config":
        try:
            with open(path, "r") as f:
                cfg = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigurationError(f"Cannot read config {path}: {exc}") from exc
        return cls.from_dict(cfg or {})

    @classmethod
    def from_dict(cls, cfg: Dict[str, Any]) -> "Config":
        expected = [f.name for f in fields(cls)]
        missing = [name for name in expected if name not in cfg]
        if missing:
            raise ConfigurationError(f"Config is missing section(s): {missing}")
        unknown = sorted(set(cfg) - set(expected))
        if unknown:
            raise ConfigurationError(f"Unknown config section(s): {unknown}")
        return cls(**{name: dict(cfg[name] or {}) for name in expected})
