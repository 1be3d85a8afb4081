"""Static dispatch configuration, optionally overridden from YAML."""

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ocentry.errors import ConfigError
from ocentry.logging import get_logger

logger = get_logger(__name__)

CONFIG_ENV_VAR = 'OCENTRY_CONFIG'

# Usage text of the upstream --validate flag; the normalizer keys on it.
UPSTREAM_VALIDATE_MARKER = 'Must be one of: strict (or true), warn, ignore (or false)'


class DispatchConfig(BaseModel):
    """Settings consulted while resolving and dispatching an invocation."""

    model_config = ConfigDict(extra='forbid', frozen=True)

    product_name: str = 'OpenShift'
    plugin_filename_prefixes: tuple[str, ...] = ('oc', 'kubectl')
    reroot_prefixes: tuple[str, ...] = ('kubectl',)
    validate_marker: str = UPSTREAM_VALIDATE_MARKER
    completion_timeout: float = Field(default=5.0, gt=0)

    @field_validator('plugin_filename_prefixes', 'reroot_prefixes')
    @classmethod
    def validate_prefixes(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        """Reject empty prefixes and prefixes that already carry the separator."""
        for prefix in v:
            if not prefix.strip():
                msg = 'prefix cannot be empty'
                raise ValueError(msg)
            if prefix.endswith('-'):
                msg = f'prefix "{prefix}" must not end with "-"'
                raise ValueError(msg)
        return v


def _load_yaml_config(config_path: Path) -> dict[str, Any]:
    if not config_path.exists():
        msg = f'configuration file not found: {config_path}'
        raise ConfigError(msg)

    logger.debug('loading_config', config=str(config_path))
    try:
        with config_path.open() as fh:
            data = yaml.safe_load(fh) or {}
    except yaml.YAMLError as exc:
        msg = f'failed to parse YAML: {exc}'
        raise ConfigError(msg) from exc

    if not isinstance(data, dict):
        msg = f'configuration root must be a mapping in {config_path}'
        raise ConfigError(msg)

    return data


def load_config(config_path: Path) -> DispatchConfig:
    """Load dispatch configuration from YAML."""
    config_data = _load_yaml_config(config_path)

    try:
        return DispatchConfig.model_validate(config_data)
    except ValidationError as exc:
        logger.exception('config_validation_failed', errors=exc.errors())
        msg = f'invalid dispatch configuration in {config_path}'
        raise ConfigError(msg) from exc


def config_from_env(environ: Mapping[str, str] | None = None) -> DispatchConfig:
    """Return the configuration named by OCENTRY_CONFIG, or the defaults."""
    environ = os.environ if environ is None else environ
    raw_path = environ.get(CONFIG_ENV_VAR, '').strip()
    if not raw_path:
        return DispatchConfig()
    return load_config(Path(raw_path).expanduser())


__all__ = [
    'CONFIG_ENV_VAR',
    'UPSTREAM_VALIDATE_MARKER',
    'DispatchConfig',
    'config_from_env',
    'load_config',
]
