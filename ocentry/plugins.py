"""Discover external plugin executables on PATH and hand the process over to them."""

import os
import subprocess
import sys
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import NoReturn

from pydantic import BaseModel, Field

from ocentry.errors import PluginError, UnknownCommandError
from ocentry.logging import get_logger
from ocentry.models import ExecExternal
from ocentry.tree import CommandTree

logger = get_logger(__name__)

# Arguments that the engine answers itself; they never name a plugin.
RESERVED_VERBS = frozenset({'help', '__complete', '__completeNoDesc'})

DEFAULT_PATHEXT = '.COM;.EXE;.BAT;.CMD'


def is_windows() -> bool:
    return os.name == 'nt'


def path_directories(environ: Mapping[str, str]) -> list[Path]:
    """Split PATH into directories, keeping order and dropping blanks and repeats."""
    seen: set[str] = set()
    directories: list[Path] = []
    for entry in environ.get('PATH', '').split(os.pathsep):
        if not entry.strip() or entry in seen:
            continue
        seen.add(entry)
        directories.append(Path(entry))
    return directories


def executable_suffixes(environ: Mapping[str, str], *, windows: bool | None = None) -> list[str]:
    """Suffixes appended to a bare name when searching PATH.

    POSIX uses the name as is. Windows only runs files with a PATHEXT extension.
    """
    windows = is_windows() if windows is None else windows
    if not windows:
        return ['']
    raw = environ.get('PATHEXT', '') or DEFAULT_PATHEXT
    return [ext.lower() for ext in raw.split(';') if ext]


def is_executable(path: Path, *, windows: bool | None = None, suffixes: Iterable[str] | None = None) -> bool:
    """Whether ``path`` is a file the platform would run.

    On Windows that is decided by the extension, checked against ``suffixes``
    (the default PATHEXT when omitted).
    """
    windows = is_windows() if windows is None else windows
    try:
        if not path.is_file():
            return False
    except OSError:
        return False
    if windows:
        allowed = executable_suffixes({}, windows=True) if suffixes is None else [ext.lower() for ext in suffixes]
        return path.suffix.lower() in allowed
    return os.access(path, os.X_OK)


class PluginHandler:
    """Looks up prefixed plugin executables on PATH.

    Every lookup tries each configured prefix in order, and for each prefix
    scans the PATH directories in order.
    """

    def __init__(
        self,
        prefixes: Iterable[str],
        environ: Mapping[str, str] | None = None,
        *,
        windows: bool | None = None,
    ) -> None:
        self.prefixes = tuple(prefixes)
        self.environ = dict(os.environ if environ is None else environ)
        self.windows = is_windows() if windows is None else windows

    def candidates(self, filename: str) -> list[str]:
        return [f'{prefix}-{filename}' for prefix in self.prefixes]

    def look_path(self, name: str) -> str | None:
        """Return the first executable called ``name`` on PATH."""
        suffixes = executable_suffixes(self.environ, windows=self.windows)
        for directory in path_directories(self.environ):
            for suffix in suffixes:
                candidate = directory / f'{name}{suffix}'
                if is_executable(candidate, windows=self.windows, suffixes=suffixes):
                    return str(candidate)
        return None

    def lookup(self, filename: str) -> str | None:
        for candidate in self.candidates(filename):
            path = self.look_path(candidate)
            logger.debug('plugin_lookup', candidate=candidate, found=path is not None)
            if path is not None:
                return path
        return None


def plugin_arguments(cmd_args: list[str]) -> list[str]:
    """The leading run of non-flag arguments, with ``-`` written as ``_``.

    Plugin file names use ``-`` only to separate verbs, so a verb that itself
    contains a hyphen is spelled with an underscore on disk.
    """
    words: list[str] = []
    for arg in cmd_args:
        if arg.startswith('-'):
            break
        words.append(arg.replace('-', '_'))
    return words


def candidate_names(cmd_args: list[str], prefixes: Iterable[str]) -> list[str]:
    """Every file name a lookup would try, in the order it tries them."""
    prefixes = tuple(prefixes)
    words = plugin_arguments(cmd_args)
    names: list[str] = []
    for length in range(len(words), 0, -1):
        joined = '-'.join(words[:length])
        names.extend(f'{prefix}-{joined}' for prefix in prefixes)
    return names


def handle_plugin_command(
    handler: PluginHandler,
    cmd_args: list[str],
    environ: Mapping[str, str],
) -> ExecExternal | None:
    """Find the plugin serving the longest leading verb sequence of ``cmd_args``.

    Returns the handoff to perform, or None when no plugin matches. Raises
    PluginError when ``cmd_args`` starts with a flag, since the plugin name
    has to come first.
    """
    remaining = plugin_arguments(cmd_args)
    if cmd_args and not remaining:
        msg = f'flags cannot be placed before plugin name: {cmd_args[0]}'
        raise PluginError(msg)
    while remaining:
        found = handler.lookup('-'.join(remaining))
        if found is not None:
            plugin_argv = cmd_args[len(remaining):]
            logger.info('plugin_found', path=found, _verbose_args=plugin_argv)
            return ExecExternal(path=found, argv=(found, *plugin_argv), env=dict(environ))
        remaining = remaining[:-1]
    return None


def find_external_plugin(
    tree: CommandTree,
    cmd_args: list[str],
    handler: PluginHandler,
    environ: Mapping[str, str],
) -> ExecExternal | None:
    """Look for a plugin only when no built-in command matches ``cmd_args``."""
    if not cmd_args:
        return None

    try:
        tree.find(cmd_args)
    except UnknownCommandError as exc:
        verb = exc.verb
    else:
        return None

    if verb in RESERVED_VERBS:
        return None
    return handle_plugin_command(handler, cmd_args, environ)


def exec_plugin(outcome: ExecExternal) -> NoReturn:
    """Replace the current process with the plugin.

    Where the platform cannot replace a process image, the plugin runs as a
    child and its exit status becomes ours.
    """
    logger.debug('exec_plugin', path=outcome.path, _verbose_argv=list(outcome.argv))
    sys.stdout.flush()
    sys.stderr.flush()
    if is_windows():
        try:
            completed = subprocess.run(  # noqa: S603 - plugin found on the user's PATH
                list(outcome.argv),
                env=outcome.env,
                check=False,
            )
        except OSError as exc:
            sys.stderr.write(f'error: {exc}\n')
            sys.exit(1)
        sys.exit(completed.returncode)

    try:
        os.execve(outcome.path, list(outcome.argv), outcome.env)
    except OSError as exc:
        sys.stderr.write(f'error: {exc}\n')
        sys.exit(1)


class PluginListing(BaseModel):
    """Result of scanning PATH for every installed plugin."""

    plugins: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)


def _has_valid_prefix(filename: str, prefixes: Iterable[str]) -> bool:
    return any(filename.startswith(f'{prefix}-') for prefix in prefixes)


def _strip_prefix(filename: str, prefixes: Iterable[str]) -> str:
    for prefix in prefixes:
        if filename.startswith(f'{prefix}-'):
            return filename[len(prefix) + 1:]
    return filename


def _overwrites_builtin(tree: CommandTree, plugin_name: str) -> str | None:
    segments = [segment.replace('_', '-') for segment in plugin_name.split('-')]
    try:
        path, _ = tree.find(segments)
    except UnknownCommandError:
        return None
    if len(path) > 1 and tree.node(path[-1]).name == segments[-1]:
        return tree.command_path(path)
    return None


def list_plugins(
    tree: CommandTree,
    prefixes: Iterable[str],
    environ: Mapping[str, str],
    *,
    name_only: bool = False,
    windows: bool | None = None,
) -> PluginListing:
    """Scan every PATH directory for files carrying a plugin prefix."""
    prefixes = tuple(prefixes)
    windows = is_windows() if windows is None else windows
    suffixes = executable_suffixes(environ, windows=windows)
    listing = PluginListing()
    seen: dict[str, str] = {}

    for directory in path_directories(environ):
        try:
            entries = sorted(directory.iterdir())
        except OSError as exc:
            listing.errors.append(f'Unable to read directory "{directory}" from your PATH: {exc}. Skipping...')
            continue

        for entry in entries:
            try:
                if entry.is_dir():
                    continue
            except OSError:
                continue
            if not _has_valid_prefix(entry.name, prefixes):
                continue

            listing.plugins.append(entry.name if name_only else str(entry))

            stem = entry.name
            if windows:
                stem = os.path.splitext(stem)[0]
            if stem in seen:
                listing.warnings.append(f'{entry} is overshadowed by a similarly named plugin: {seen[stem]}')
            else:
                seen[stem] = str(entry)
            if not is_executable(entry, windows=windows, suffixes=suffixes):
                listing.warnings.append(f'{entry} identified as a plugin, but it is not executable')
            builtin = _overwrites_builtin(tree, _strip_prefix(stem, prefixes))
            if builtin is not None:
                listing.warnings.append(f'{entry} overwrites existing command: "{builtin}"')

    logger.debug('plugins_listed', count=len(listing.plugins), warnings=len(listing.warnings))
    return listing
