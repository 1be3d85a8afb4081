"""Pick the command tree to present from the name this binary was invoked as.

The same executable is installed under several names. ``kubectl``,
``openshift-deploy`` and ``openshift-recycle`` each get their own tree; any
other name gets the default ``oc`` tree, re-rooted when the name is a
``kubectl-`` plugin name that resolves to one of its subcommands.
"""

import os
from collections.abc import Callable, Mapping
from pathlib import PurePosixPath, PureWindowsPath

from ocentry.cli.commands import build_deployer_tree, build_kubectl_tree, build_oc_tree, build_recycle_tree
from ocentry.completion import register_completion_func_for_global_flags
from ocentry.config import DispatchConfig
from ocentry.engine import Engine
from ocentry.errors import PluginError
from ocentry.help import acts_as_root
from ocentry.logging import get_logger
from ocentry.models import ExecExternal, Handled, IOStreams, Outcome
from ocentry.normalize import change_shared_flag_defaults
from ocentry.plugins import PluginHandler, find_external_plugin, is_windows
from ocentry.reroot import reroot_for_plugin
from ocentry.tree import CommandTree

logger = get_logger(__name__)

TreeBuilder = Callable[[DispatchConfig, Mapping[str, str]], CommandTree]

DEFAULT_NAME = 'oc'

STANDALONE_BUILDERS: dict[str, TreeBuilder] = {
    'kubectl': build_kubectl_tree,
    'openshift-deploy': lambda _config, environ: build_deployer_tree(environ),
    'openshift-recycle': lambda _config, _environ: build_recycle_tree(),
}

# Roots without external plugin support.
NO_PLUGIN_ROOTS = frozenset({'openshift-deploy', 'openshift-recycle'})


def normalize_basename(argv0: str, *, windows: bool | None = None) -> str:
    """The invoked file name; Windows names are case-folded and lose ``.exe``."""
    windows = is_windows() if windows is None else windows
    if not windows:
        return PurePosixPath(argv0).name
    basename = PureWindowsPath(argv0).name.lower()
    return basename.removesuffix('.exe')


def new_oc_command(config: DispatchConfig, environ: Mapping[str, str]) -> CommandTree:
    """Build the ``oc`` tree with shared defaults and completion callbacks applied."""
    tree = build_oc_tree(config, environ)
    change_shared_flag_defaults(tree, marker=config.validate_marker)
    register_completion_func_for_global_flags(tree)
    return tree


def command_for(
    basename: str,
    *,
    config: DispatchConfig | None = None,
    environ: Mapping[str, str] | None = None,
) -> CommandTree:
    """Return the command tree to run for ``basename``."""
    config = config or DispatchConfig()
    environ = dict(os.environ if environ is None else environ)

    builder = STANDALONE_BUILDERS.get(basename)
    if builder is not None:
        logger.debug('selected_standalone_tree', basename=basename)
        return acts_as_root(builder(config, environ))

    tree = new_oc_command(config, environ)
    rerooted = reroot_for_plugin(tree, basename, config.reroot_prefixes)
    if rerooted is not None:
        tree = rerooted
    return acts_as_root(tree)


def new_default_command(
    basename: str,
    args: list[str],
    *,
    config: DispatchConfig | None = None,
    environ: Mapping[str, str] | None = None,
) -> CommandTree | ExecExternal:
    """Resolve the tree for ``basename`` and give external plugins their turn.

    An ``ExecExternal`` is returned when ``args`` name no built-in command
    but a plugin executable on PATH serves them. Raises PluginError when an
    unknown verb follows leading flags.
    """
    config = config or DispatchConfig()
    environ = dict(os.environ if environ is None else environ)
    tree = command_for(basename, config=config, environ=environ)
    if basename in NO_PLUGIN_ROOTS:
        return tree

    handler = PluginHandler(config.plugin_filename_prefixes, environ)
    outcome = find_external_plugin(tree, args, handler, environ)
    return tree if outcome is None else outcome


def dispatch(
    argv: list[str],
    *,
    streams: IOStreams | None = None,
    environ: Mapping[str, str] | None = None,
    config: DispatchConfig | None = None,
) -> Outcome:
    """Run a full invocation; ``argv[0]`` selects the tree."""
    config = config or DispatchConfig()
    environ = dict(os.environ if environ is None else environ)
    basename = normalize_basename(argv[0] if argv else DEFAULT_NAME) or DEFAULT_NAME
    args = list(argv[1:])

    try:
        resolved = new_default_command(basename, args, config=config, environ=environ)
    except PluginError as exc:
        logger.debug('plugin_arguments_rejected', error=str(exc))
        (streams or IOStreams.system()).stderr.write(f'error: {exc}\n')
        return Handled(exit_code=1)
    if isinstance(resolved, ExecExternal):
        return resolved
    return Engine(resolved, streams=streams, environ=environ, config=config).execute(args)
