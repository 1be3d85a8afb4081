"""Read just enough of kubeconfig files to serve shell completion."""

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from ocentry.errors import ConfigError
from ocentry.logging import get_logger

logger = get_logger(__name__)

RECOMMENDED_HOME_FILE = Path('.kube') / 'config'


class KubeConfig(BaseModel):
    """Named contexts, clusters and users merged from one or more files."""

    current_context: str = ''
    contexts: dict[str, dict[str, Any]] = Field(default_factory=dict)
    clusters: dict[str, dict[str, Any]] = Field(default_factory=dict)
    users: dict[str, dict[str, Any]] = Field(default_factory=dict)

    def context(self, name: str | None = None) -> dict[str, Any]:
        return self.contexts.get(name or self.current_context, {})


def kubeconfig_paths(explicit: str | None, environ: Mapping[str, str]) -> list[Path]:
    """Files to read, following the usual precedence.

    An explicit ``--kubeconfig`` wins, then the KUBECONFIG path list, then
    ``~/.kube/config``.
    """
    if explicit:
        return [Path(explicit).expanduser()]

    env_value = environ.get('KUBECONFIG', '')
    if env_value.strip():
        paths: list[Path] = []
        for entry in env_value.split(os.pathsep):
            if entry.strip() and Path(entry) not in paths:
                paths.append(Path(entry))
        return paths

    home = environ.get('HOME') or str(Path.home())
    return [Path(home) / RECOMMENDED_HOME_FILE]


def _named_entries(raw: Any, key: str) -> list[tuple[str, dict[str, Any]]]:
    entries: list[tuple[str, dict[str, Any]]] = []
    if not isinstance(raw, list):
        return entries
    for item in raw:
        if not isinstance(item, dict) or not item.get('name'):
            continue
        body = item.get(key) or {}
        entries.append((str(item['name']), body if isinstance(body, dict) else {}))
    return entries


def _read_file(path: Path) -> dict[str, Any]:
    try:
        with path.open() as fh:
            data = yaml.safe_load(fh) or {}
    except yaml.YAMLError as exc:
        msg = f'failed to parse kubeconfig {path}: {exc}'
        raise ConfigError(msg) from exc
    if not isinstance(data, dict):
        msg = f'kubeconfig root must be a mapping in {path}'
        raise ConfigError(msg)
    return data


def load_kubeconfig(paths: list[Path]) -> KubeConfig:
    """Merge kubeconfig files; the first file to define a name wins.

    Missing files are skipped. Malformed files raise ConfigError.
    """
    merged = KubeConfig()
    for path in paths:
        if not path.is_file():
            logger.debug('kubeconfig_missing', path=str(path))
            continue
        data = _read_file(path)
        if not merged.current_context and data.get('current-context'):
            merged.current_context = str(data['current-context'])
        for section, key in (('contexts', 'context'), ('clusters', 'cluster'), ('users', 'user')):
            target = getattr(merged, section)
            for name, body in _named_entries(data.get(section), key):
                target.setdefault(name, body)
    return merged
