"""Builders for every command tree this binary can present."""

from ocentry.cli.commands.deployer import build_deployer_tree
from ocentry.cli.commands.kubectl import build_kubectl_tree
from ocentry.cli.commands.oc import build_oc_tree
from ocentry.cli.commands.recycle import build_recycle_tree

__all__ = ['build_deployer_tree', 'build_kubectl_tree', 'build_oc_tree', 'build_recycle_tree']
