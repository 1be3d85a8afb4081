"""Default help formatting for commands that do not bring their own."""

from typing import TextIO

from ocentry.models import Command, Flag
from ocentry.tree import CommandTree


def flag_line(flag: Flag) -> tuple[str, str]:
    names = f'-{flag.shorthand}, --{flag.name}' if flag.shorthand else f'    --{flag.name}'
    if flag.kind != 'bool':
        names = f'{names}=\'{flag.default}\''
    return names, flag.usage


def columns(rows: list[tuple[str, str]], indent: int = 4) -> list[str]:
    width = max(len(left) for left, _ in rows)
    return [f'{" " * indent}{left.ljust(width)}  {right}'.rstrip() for left, right in rows]


def _usage_line(tree: CommandTree, path: tuple[int, ...], command: Command) -> str:
    command_path = tree.command_path(path)
    if command.children and not command.runnable:
        return f'{command_path} [command] [flags]'
    if command.children:
        return f'{command_path} [flags] [command]'
    return f'{command_path} [flags]'


def render_help(tree: CommandTree, path: tuple[int, ...], out: TextIO) -> None:
    """Write help for the command at the end of ``path``.

    Global flags inherited from the root are listed by the ``options``
    command rather than repeated on every page.
    """
    command = tree.node(path[-1])
    lines: list[str] = [command.long.strip() or command.short]

    if command.example.strip():
        lines += ['', 'Examples:', command.example.rstrip()]

    visible = [child for child in tree.children(path[-1]) if not child.hidden]
    if visible:
        lines += ['', 'Available Commands:']
        lines += columns([(child.name, child.short) for child in visible], indent=2)

    local = [flag for flag in (*command.flags, *command.persistent_flags) if not flag.hidden]
    if local:
        lines += ['', 'Options:']
        lines += columns([flag_line(flag) for flag in local])

    lines += ['', 'Usage:', f'  {_usage_line(tree, path, command)}']

    root_name = tree.root_node.name
    if visible:
        lines += ['', f'Use "{tree.command_path(path)} <command> --help" for more information about a given command.']
    if tree.find_child(tree.root, 'options') is not None:
        lines.append(f'Use "{root_name} options" for a list of global command-line options (applies to all commands).')

    out.write('\n'.join(lines) + '\n')


def acts_as_root(tree: CommandTree) -> CommandTree:
    """Attach the default help formatter to the root when it has none."""
    root = tree.root_node
    if root.help_func is None:
        tree.replace(tree.root, root.model_copy(update={'help_func': render_help}))
    return tree
