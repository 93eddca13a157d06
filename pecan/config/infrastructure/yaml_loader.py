"""YAML config loader — parses, interpolates env vars, validates, emits events."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from pecan.config.domain.config import PecanConfig
from pecan.config.domain.observer import ConfigObserver
from pecan.config.infrastructure.env_interpolation import interpolate, missing_vars
from pecan.config.infrastructure.errors import (
    ConfigLoadError,
    ConfigValidationError,
    MissingEnvVarsError,
)

DEFAULT_CONFIG_PATH = Path("~/.pecan/config.yaml")


class YamlConfigLoader:
    """Loads, interpolates, validates, and returns a PecanConfig from YAML."""

    def __init__(self, observer: ConfigObserver) -> None:
        self._observer = observer

    def load(self, path: Path) -> PecanConfig:
        """
        Load and validate the config at path.

        Raises:
            ConfigLoadError: if the file is missing or is not valid YAML.
            MissingEnvVarsError: if any ${ENV_VAR} references are unset.
            ConfigValidationError: if the schema is violated or default_model
                names a model that is not configured.
        """
        path = path.expanduser()
        raw = _parse_yaml(path=path)
        missing = missing_vars(raw)
        if missing:
            raise MissingEnvVarsError(missing)
        cfg = _build_config(raw=interpolate(raw))
        _check_default_model(cfg=cfg)
        if not cfg.tools.require_approval:
            self._observer.config_approval_disabled_warning()
        self._observer.config_loaded(
            path=str(path),
            default_model=cfg.default_model,
            model_count=len(cfg.models),
        )
        return cfg

    def load_or_create(self, path: Path) -> PecanConfig:
        """Load path, first writing the default configuration if it is absent."""
        resolved = path.expanduser()
        if not resolved.exists():
            write_config(path=resolved, config=PecanConfig.default())
            self._observer.config_created(path=str(resolved))
        return self.load(path=resolved)


def write_config(path: Path, config: PecanConfig) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    data = config.model_dump(mode="json", exclude_none=True)
    path.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")


def _parse_yaml(path: Path) -> Any:
    try:
        with path.open("r", encoding="utf-8") as fh:
            raw = yaml.safe_load(fh)
    except FileNotFoundError as exc:
        raise ConfigLoadError(path=path) from exc
    except yaml.YAMLError as exc:
        raise ConfigLoadError(path=path, reason=f"invalid YAML ({exc})") from exc
    if not isinstance(raw, dict):
        raise ConfigLoadError(path=path, reason="top level must be a mapping")
    return raw


def _build_config(raw: Any) -> PecanConfig:
    try:
        return PecanConfig.model_validate(raw)
    except ValidationError as exc:
        raise ConfigValidationError(str(exc)) from exc


def _check_default_model(cfg: PecanConfig) -> None:
    if cfg.default_model not in cfg.models:
        known = ", ".join(sorted(cfg.models))
        raise ConfigValidationError(
            f"default_model '{cfg.default_model}' is not one of the configured"
            f" models ({known})"
        )
