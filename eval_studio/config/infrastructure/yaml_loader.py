"""YAML config loader: parse, interpolate env vars, validate, emit events."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from eval_studio.config.domain.config import StudioConfig
from eval_studio.config.domain.observer import ConfigObserver
from eval_studio.config.infrastructure.env_interpolation import (
    expand_env_vars,
    find_missing_env_vars,
)
from eval_studio.config.infrastructure.errors import (
    ConfigLoadError,
    ConfigValidationError,
    MissingEnvVarsError,
)


class YamlConfigLoader:
    """Loads a StudioConfig from a YAML file."""

    def __init__(self, observer: ConfigObserver) -> None:
        self._observer = observer

    def load(self, path: Path) -> StudioConfig:
        """
        Load, interpolate, validate, and return a StudioConfig.

        Raises:
            ConfigLoadError: if the file cannot be read or is not valid YAML.
            MissingEnvVarsError: if any ${ENV_VAR} references are unset.
            ConfigValidationError: if the schema is violated.
        """
        raw = _parse_yaml(path=path)
        missing = find_missing_env_vars(raw)
        if missing:
            raise MissingEnvVarsError(missing)
        cfg = _build_config(expanded=expand_env_vars(raw))
        if cfg.api.token and cfg.api.base_url.startswith("http://"):
            self._observer.config_plaintext_token_warning(base_url=cfg.api.base_url)
        self._observer.config_loaded(path=str(path), base_url=cfg.api.base_url)
        return cfg


def _parse_yaml(path: Path) -> Any:
    try:
        with path.open("r", encoding="utf-8") as fh:
            return yaml.safe_load(fh)
    except OSError as exc:
        raise ConfigLoadError(path, exc.strerror or str(exc)) from exc
    except UnicodeDecodeError as exc:
        raise ConfigLoadError(path, f"not UTF-8 text: {exc.reason}") from exc
    except yaml.YAMLError as exc:
        raise ConfigLoadError(path, f"invalid YAML: {exc}") from exc


def _build_config(expanded: Any) -> StudioConfig:
    try:
        return StudioConfig.model_validate(expanded)
    except ValidationError as exc:
        raise ConfigValidationError(str(exc)) from exc
