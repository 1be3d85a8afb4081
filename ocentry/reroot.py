"""Expose a subtree of the default command tree as a standalone plugin binary.

A binary installed as ``kubectl-rollout`` or ``kubectl-set-env`` is picked up
by kubectl's plugin mechanism, which invokes it with the remaining arguments.
When that binary is this one, the basename names a path into the tree and the
command at the end of that path has to behave like the top-level command.
The execution engine always starts at the root of the tree it is given, so a
new root is synthesized that borrows the target's identity and children.
"""

from collections.abc import Iterable

from ocentry.logging import get_logger
from ocentry.models import Command, FlagSet
from ocentry.tree import CommandTree

logger = get_logger(__name__)

SEPARATOR = '-'


def plugin_path_segments(basename: str, prefixes: Iterable[str]) -> list[str] | None:
    """Split a plugin-style basename into command path segments.

    Returns None when the basename does not start with ``<prefix>-``.
    Underscores stand in for hyphens inside a segment, since hyphens
    separate the segments themselves.
    """
    for prefix in prefixes:
        marker = f'{prefix}{SEPARATOR}'
        if basename.startswith(marker):
            remainder = basename[len(marker):]
            return [segment.replace('_', '-') for segment in remainder.split(SEPARATOR)]
    return None


def resolve_path(tree: CommandTree, segments: list[str]) -> tuple[int, ...] | None:
    """Greedily match segments against child names, exact match only.

    The walk stops at the first segment without a matching child; trailing
    segments are ignored. Returns None when not even the first segment matches.
    """
    path: tuple[int, ...] = (tree.root,)
    for segment in segments:
        child = tree.find_child(path[-1], segment, aliases=False)
        if child is None:
            break
        path = (*path, child)
    if len(path) == 1:
        return None
    return path


def synthesize_root(tree: CommandTree, path: tuple[int, ...]) -> Command:
    """Build a root that behaves like the command at the end of ``path``."""
    root = tree.root_node
    target = tree.node(path[-1])
    inherited = tree.inherited_flags(path)

    flags = FlagSet()
    flags.add_flag_set(root.flags)
    flags.add_flag_set(root.persistent_flags)
    flags.add_flag_set(inherited)
    flags.add_flag_set(target.flags)
    flags.add_flag_set(target.persistent_flags)

    # Grandchildren keep seeing the global flags they had under the full tree.
    persistent_flags = FlagSet()
    persistent_flags.add_flag_set(root.persistent_flags)
    persistent_flags.add_flag_set(inherited)
    persistent_flags.add_flag_set(target.persistent_flags)

    return Command(
        name=target.name,
        short=target.short,
        long=target.long,
        example=target.example,
        run=target.run,
        flags=flags,
        persistent_flags=persistent_flags,
        children=target.children,
    )


def reroot_for_plugin(
    tree: CommandTree,
    basename: str,
    prefixes: Iterable[str] = ('kubectl',),
) -> CommandTree | None:
    """Return ``tree`` re-rooted at the subtree named by a plugin basename.

    Returns None when the basename is not plugin-style or names no command;
    callers then keep using the unmodified tree.
    """
    segments = plugin_path_segments(basename, prefixes)
    if segments is None:
        return None

    path = resolve_path(tree, segments)
    if path is None:
        logger.debug('plugin_basename_unresolved', basename=basename, segments=segments)
        return None

    logger.debug(
        'plugin_basename_resolved',
        basename=basename,
        command=tree.command_path(path),
        _verbose_ignored_segments=segments[len(path) - 1:],
    )
    return tree.with_root(synthesize_root(tree, path))
