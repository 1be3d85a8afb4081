"""Hidden parent for experimental commands."""

from ocentry.models import Command
from ocentry.tree import CommandTree


def register(tree: CommandTree, parent: int | None = None) -> int:
    return tree.add(
        Command(
            name='ex',
            short='Experimental commands under active development',
            long='These commands are under active development and may change without notice.',
            hidden=True,
        ),
        parent,
    )
