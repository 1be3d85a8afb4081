"""The embedded ``kubectl`` command tree."""

from collections.abc import Mapping

from ocentry.cli.commands import manifest, options, plugin, version
from ocentry.cli.commands.globalflags import kube_config_flags
from ocentry.config import DispatchConfig
from ocentry.models import Command, FlagSet
from ocentry.tree import CommandTree

KUBECTL_LONG = """kubectl controls the Kubernetes cluster manager.

Find more information at: https://kubernetes.io/docs/reference/kubectl/"""


def build_kubectl_tree(config: DispatchConfig, environ: Mapping[str, str]) -> CommandTree:  # noqa: ARG001
    tree = CommandTree.from_root(
        Command(
            name='kubectl',
            short='kubectl controls the Kubernetes cluster manager',
            long=KUBECTL_LONG,
            persistent_flags=FlagSet(kube_config_flags()),
        ),
    )
    manifest.register(tree)
    version.register(tree)
    plugin.register(tree)
    options.register(tree)
    return tree
