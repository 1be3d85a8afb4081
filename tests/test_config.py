from pathlib import Path
from textwrap import dedent

import pytest
from pydantic import ValidationError

from ocentry.config import CONFIG_ENV_VAR, UPSTREAM_VALIDATE_MARKER, DispatchConfig, config_from_env, load_config
from ocentry.errors import ConfigError


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    return tmp_path / 'ocentry.yaml'


def write_config(path: Path, content: str) -> None:
    path.write_text(dedent(content).lstrip())


def test_defaults() -> None:
    config = DispatchConfig()
    assert config.plugin_filename_prefixes == ('oc', 'kubectl')
    assert config.reroot_prefixes == ('kubectl',)
    assert config.validate_marker == UPSTREAM_VALIDATE_MARKER
    assert config.product_name == 'OpenShift'
    assert config.completion_timeout > 0


def test_load_config_overrides(config_path: Path) -> None:
    write_config(
        config_path,
        """
        product_name: OKD
        plugin_filename_prefixes: [oc]
        completion_timeout: 1.5
        """,
    )

    config = load_config(config_path)

    assert config.product_name == 'OKD'
    assert config.plugin_filename_prefixes == ('oc',)
    assert config.reroot_prefixes == ('kubectl',)
    assert config.completion_timeout == 1.5


def test_load_config_rejects_unknown_keys(config_path: Path) -> None:
    write_config(config_path, 'unexpected: 1\n')
    with pytest.raises(ConfigError, match='invalid dispatch configuration'):
        load_config(config_path)


def test_load_config_rejects_invalid_yaml(config_path: Path) -> None:
    write_config(config_path, 'product_name: [unclosed\n')
    with pytest.raises(ConfigError, match='failed to parse YAML'):
        load_config(config_path)


def test_load_config_missing_file(config_path: Path) -> None:
    with pytest.raises(ConfigError, match='not found'):
        load_config(config_path)


@pytest.mark.parametrize('prefix', ['', 'oc-'])
def test_prefix_validation(prefix: str) -> None:
    with pytest.raises(ValidationError):
        DispatchConfig(plugin_filename_prefixes=(prefix,))


def test_config_is_frozen() -> None:
    config = DispatchConfig()
    with pytest.raises(ValidationError):
        config.product_name = 'other'


def test_config_from_env(config_path: Path) -> None:
    write_config(config_path, 'product_name: OKD\n')

    assert config_from_env({}) == DispatchConfig()
    assert config_from_env({CONFIG_ENV_VAR: str(config_path)}).product_name == 'OKD'
