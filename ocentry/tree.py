"""Arena-backed command tree.

Commands are stored in a flat list and refer to their children by index.
Parents are never stored; they are recovered from the path walked from the
root, so a synthesized root can adopt existing children without touching
the nodes themselves.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Callable, Iterator
from typing import Any

from ocentry.errors import UnknownCommandError
from ocentry.models import Command, FlagSet

CompletionFunc = Callable[..., Any]

# Answered by every command without being declared.
HELP_FLAGS = frozenset({'-h', '--help'})


class CommandTree:
    """A rooted command hierarchy built once per process."""

    def __init__(
        self,
        nodes: list[Command] | None = None,
        root: int = 0,
        completion_funcs: dict[str, CompletionFunc] | None = None,
    ) -> None:
        self._nodes: list[Command] = list(nodes or [])
        self.root = root
        self.completion_funcs: dict[str, CompletionFunc] = dict(completion_funcs or {})

    @classmethod
    def from_root(cls, command: Command) -> CommandTree:
        """Start a new tree whose root is ``command``."""
        tree = cls()
        tree.add(command)
        return tree

    def add(self, command: Command, parent: int | None = None) -> int:
        """Append a node and attach it under ``parent`` (the root if omitted).

        The first node added to an empty tree becomes the root.
        """
        if command.children:
            msg = 'children must be attached through CommandTree.add'
            raise ValueError(msg)
        index = len(self._nodes)
        self._nodes.append(command)
        if index == 0:
            self.root = 0
            return index

        parent = self.root if parent is None else parent
        owner = self._nodes[parent]
        self._nodes[parent] = owner.model_copy(update={'children': (*owner.children, index)})
        return index

    def replace(self, index: int, command: Command) -> None:
        """Swap the node stored at ``index``; used while the tree is being assembled."""
        self._nodes[index] = command

    def node(self, index: int) -> Command:
        return self._nodes[index]

    @property
    def root_node(self) -> Command:
        return self._nodes[self.root]

    def children(self, index: int) -> list[Command]:
        return [self._nodes[child] for child in self._nodes[index].children]

    def find_child(self, index: int, name: str, *, aliases: bool = True) -> int | None:
        """Return the index of the child of ``index`` that exactly matches ``name``."""
        for child in self._nodes[index].children:
            if self._nodes[child].matches(name, aliases=aliases):
                return child
        return None

    def walk(self) -> Iterator[int]:
        """Yield every node reachable from the root exactly once, breadth first."""
        seen: set[int] = set()
        queue = deque([self.root])
        while queue:
            index = queue.popleft()
            if index in seen:
                continue
            seen.add(index)
            yield index
            queue.extend(self._nodes[index].children)

    def command_path(self, path: tuple[int, ...]) -> str:
        return ' '.join(self._nodes[index].name for index in path)

    def inherited_flags(self, path: tuple[int, ...]) -> FlagSet:
        """Persistent flags of every ancestor on ``path``; the nearest ancestor wins."""
        inherited = FlagSet()
        for index in reversed(path[:-1]):
            inherited.add_missing(self._nodes[index].persistent_flags)
        return inherited

    def flags_for(self, path: tuple[int, ...]) -> FlagSet:
        """All flags that apply to the last command on ``path``.

        Flags the command declares itself take precedence over inherited ones.
        """
        command = self._nodes[path[-1]]
        flags = FlagSet()
        flags.add_flag_set(command.flags)
        flags.add_missing(command.persistent_flags)
        flags.add_missing(self.inherited_flags(path))
        return flags

    def find(self, args: list[str]) -> tuple[tuple[int, ...], list[str]]:
        """Walk ``args`` from the root and return the matched path and leftover args.

        Flags are skipped, together with their values when the flag takes one.
        Raises UnknownCommandError when the walk never leaves a root that has
        subcommands while non-flag arguments remain.
        """
        path: tuple[int, ...] = (self.root,)
        remaining = list(args)
        while True:
            positions = word_positions(remaining, self.flags_for(path))
            if not positions:
                break
            child = self.find_child(path[-1], remaining[positions[0]])
            if child is None:
                break
            del remaining[positions[0]]
            path = (*path, child)

        if len(path) == 1 and self.root_node.children:
            words = strip_flags(remaining, self.flags_for(path))
            if words:
                raise UnknownCommandError(words[0], self.root_node.name)
        return path, remaining

    def with_root(self, command: Command) -> CommandTree:
        """Return a new tree sharing every node and rooted at ``command``.

        ``command`` may already list children by index; this tree is not modified.
        """
        nodes = [*self._nodes, command]
        return CommandTree(nodes, root=len(nodes) - 1, completion_funcs=self.completion_funcs)

    def __len__(self) -> int:
        return len(self._nodes)


def word_positions(args: list[str], flags: FlagSet) -> list[int]:
    """Return the indices of the non-flag words of ``args``.

    ``--`` ends processing. A flag given without ``=`` consumes the next
    argument unless it is a known boolean flag.
    """
    positions: list[int] = []
    index = 0
    while index < len(args):
        arg = args[index]
        index += 1
        if arg == '--':
            break
        if arg in HELP_FLAGS:
            continue
        if arg.startswith('--') and '=' not in arg:
            flag = flags.lookup(arg[2:])
            if flag is None or flag.kind != 'bool':
                index += 1
        elif arg.startswith('-') and not arg.startswith('--') and '=' not in arg and len(arg) == 2:  # noqa: PLR2004
            flag = flags.lookup_shorthand(arg[1])
            if flag is None or flag.kind != 'bool':
                index += 1
        elif arg and not arg.startswith('-'):
            positions.append(index - 1)
    return positions


def strip_flags(args: list[str], flags: FlagSet) -> list[str]:
    """Return the non-flag words of ``args``."""
    return [args[index] for index in word_positions(args, flags)]
