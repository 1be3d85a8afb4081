"""plugin subcommand group: inspect installed plugins."""

from ocentry.errors import CommandError
from ocentry.models import Command, Flag, FlagSet, Invocation
from ocentry.plugins import list_plugins
from ocentry.tree import CommandTree

PLUGIN_LONG = """Provides utilities for interacting with plugins.

Plugins provide extended functionality that is not part of the major command-line distribution.
Any executable on your PATH whose name starts with one of the plugin prefixes followed by
a dash is a plugin; "oc-foo-bar" is run as "oc foo bar"."""


def _run_list(invocation: Invocation) -> int:
    listing = list_plugins(
        invocation.tree,
        invocation.config.plugin_filename_prefixes,
        invocation.environ,
        name_only=bool(invocation.flag_value('name-only')),
    )
    out = invocation.streams.stdout
    err = invocation.streams.stderr

    for message in listing.errors:
        err.write(f'{message}\n')
    if listing.plugins:
        out.write('The following compatible plugins are available:\n\n')
        for plugin in listing.plugins:
            out.write(f'{plugin}\n')
    for warning in listing.warnings:
        err.write(f'  - warning: {warning}\n')

    if not listing.plugins:
        msg = 'unable to find any plugins in your PATH'
        raise CommandError(msg)
    if len(listing.warnings) == 1:
        msg = 'one plugin warning was found'
        raise CommandError(msg)
    if listing.warnings:
        msg = f'{len(listing.warnings)} plugin warnings were found'
        raise CommandError(msg)
    return 0


def register(tree: CommandTree, parent: int | None = None) -> int:
    """Register the plugin group and its list subcommand."""
    group = tree.add(
        Command(
            name='plugin',
            short='Provides utilities for interacting with plugins',
            long=PLUGIN_LONG,
        ),
        parent,
    )
    tree.add(
        Command(
            name='list',
            short='List all visible plugin executables on a user\'s PATH',
            example='  # List all available plugins\n  oc plugin list',
            flags=FlagSet([
                Flag.boolean(
                    'name-only',
                    usage='If true, display only the binary name of each plugin, rather than its full path',
                ),
            ]),
            run=_run_list,
        ),
        group,
    )
    return group
