"""version subcommand."""

import json

import yaml

from ocentry import __version__
from ocentry.errors import CommandError
from ocentry.models import Command, Flag, FlagSet, Invocation
from ocentry.tree import CommandTree


def _run(invocation: Invocation) -> int:
    output = invocation.flag_value('output') or ''
    info = {'clientVersion': {'gitVersion': __version__}}
    out = invocation.streams.stdout
    if output == 'json':
        out.write(json.dumps(info, indent=2) + '\n')
    elif output == 'yaml':
        out.write(yaml.safe_dump(info, default_flow_style=False))
    elif output:
        msg = f'--output must be \'yaml\' or \'json\', got "{output}"'
        raise CommandError(msg)
    else:
        out.write(f'Client Version: {__version__}\n')
    return 0


def register(tree: CommandTree, parent: int | None = None) -> int:
    """Register the version subcommand."""
    return tree.add(
        Command(
            name='version',
            short='Print the client version information',
            long='Print the client version information for the current context.',
            flags=FlagSet([Flag.string('output', shorthand='o', usage="One of 'yaml' or 'json'.")]),
            run=_run,
        ),
        parent,
    )
