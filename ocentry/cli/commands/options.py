"""options subcommand: list the flags every command accepts."""

from ocentry.help import columns, flag_line
from ocentry.models import Command, Invocation
from ocentry.tree import CommandTree


def _run(invocation: Invocation) -> int:
    root = invocation.tree.root_node
    flags = [flag for flag in root.persistent_flags if not flag.hidden]
    out = invocation.streams.stdout
    out.write('The following options can be passed to any command:\n\n')
    if flags:
        out.write('\n'.join(columns([flag_line(flag) for flag in flags])) + '\n')
    return 0


def register(tree: CommandTree, parent: int | None = None) -> int:
    """Register the options subcommand."""
    return tree.add(
        Command(
            name='options',
            short='Print the list of flags inherited by all commands',
            run=_run,
        ),
        parent,
    )
