"""The default ``oc`` command tree."""

from collections.abc import Mapping

from ocentry.cli.commands import experimental, manifest, options, plugin, version
from ocentry.cli.commands.globalflags import kube_config_flags, warnings_as_errors_flag
from ocentry.config import DispatchConfig
from ocentry.models import Command, FlagSet
from ocentry.tree import CommandTree

CLI_LONG = """{product} Client

This client helps you develop, build, deploy, and run your applications on any
OpenShift or Kubernetes cluster. It also includes the administrative
commands for managing a cluster under the 'adm' subcommand."""


def build_oc_tree(config: DispatchConfig, environ: Mapping[str, str]) -> CommandTree:  # noqa: ARG001
    """Assemble the oc root and its built-in subcommands.

    Shared flag defaults and completion callbacks are applied by the
    resolver, not here.
    """
    tree = CommandTree.from_root(
        Command(
            name='oc',
            short=f'Command line tools for managing applications on {config.product_name}',
            long=CLI_LONG.format(product=config.product_name),
            persistent_flags=FlagSet([warnings_as_errors_flag(), *kube_config_flags()]),
        ),
    )
    manifest.register(tree)
    version.register(tree)
    plugin.register(tree)
    options.register(tree)
    experimental.register(tree)
    return tree
