"""Run a command tree against an argument vector."""

import argparse
import os
from collections.abc import Mapping

from ocentry.completion import COMPLETE_NO_DESC_REQUEST, COMPLETE_REQUEST, complete
from ocentry.config import DispatchConfig
from ocentry.errors import CommandError, FlagError, UnknownCommandError
from ocentry.help import render_help
from ocentry.logging import get_logger
from ocentry.models import FlagSet, Handled, HelpFunc, Invocation, IOStreams
from ocentry.tree import CommandTree, strip_flags
from ocentry.warnings_handler import WarningHandler, warnings_as_errors_message

logger = get_logger(__name__)

WARNINGS_AS_ERRORS_FLAG = 'warnings-as-errors'

_HELP_DEST = '__help__'
_ARGS_DEST = '__args__'


class FlagParser(argparse.ArgumentParser):
    """ArgumentParser that raises instead of exiting."""

    def error(self, message: str) -> None:  # type: ignore[override]
        raise FlagError(message)


def build_flag_parser(prog: str, flags: FlagSet) -> FlagParser:
    """Build a parser accepting ``flags`` plus free positional arguments.

    Values are collected as raw strings; Flag.set converts them afterwards.
    """
    parser = FlagParser(prog=prog, add_help=False, allow_abbrev=False, conflict_handler='resolve')
    parser.add_argument('-h', '--help', dest=_HELP_DEST, action='store_true', default=argparse.SUPPRESS)
    for flag in flags:
        if flag.name == 'help':
            continue
        option_strings = [f'--{flag.name}']
        if flag.shorthand and flag.shorthand != 'h':
            option_strings.insert(0, f'-{flag.shorthand}')
        if flag.kind == 'bool':
            parser.add_argument(
                *option_strings,
                dest=flag.name,
                action='store_const',
                const='true',
                default=argparse.SUPPRESS,
            )
        else:
            parser.add_argument(*option_strings, dest=flag.name, default=argparse.SUPPRESS)
    parser.add_argument(_ARGS_DEST, nargs='*')
    return parser


def _split_explicit_bools(args: list[str], flags: FlagSet) -> tuple[list[str], dict[str, str]]:
    """Pull ``--flag=value`` forms of boolean flags out of ``args``.

    argparse cannot give a value to a presence-only option, so these are
    applied directly.
    """
    remaining: list[str] = []
    explicit: dict[str, str] = {}
    for position, arg in enumerate(args):
        if arg == '--':
            remaining.extend(args[position:])
            break
        if arg.startswith('-') and '=' in arg:
            name, _, value = arg.lstrip('-').partition('=')
            flag = flags.lookup(name) if arg.startswith('--') else flags.lookup_shorthand(name)
            if flag is not None and flag.kind == 'bool':
                explicit[flag.name] = value
                continue
        remaining.append(arg)
    return remaining, explicit


def parse_flags(prog: str, args: list[str], flags: FlagSet) -> tuple[list[str], bool]:
    """Parse ``args`` into ``flags`` and return the positionals and whether help was asked for."""
    args, explicit = _split_explicit_bools(args, flags)
    parser = build_flag_parser(prog, flags)
    namespace = vars(parser.parse_intermixed_args(args))

    wants_help = bool(namespace.pop(_HELP_DEST, False))
    positional = list(namespace.pop(_ARGS_DEST, []) or [])
    for name, raw in namespace.items():
        flags.lookup(name).set(raw)  # type: ignore[union-attr]
    for name, raw in explicit.items():
        flags.lookup(name).set(raw)  # type: ignore[union-attr]
    return positional, wants_help


def _help_func_for(tree: CommandTree, path: tuple[int, ...]) -> HelpFunc:
    for index in reversed(path):
        help_func = tree.node(index).help_func
        if help_func is not None:
            return help_func
    return render_help


class Engine:
    """Executes commands from one tree for a single invocation."""

    def __init__(
        self,
        tree: CommandTree,
        *,
        streams: IOStreams | None = None,
        environ: Mapping[str, str] | None = None,
        config: DispatchConfig | None = None,
    ) -> None:
        self.tree = tree
        self.streams = streams or IOStreams.system()
        self.environ = dict(os.environ if environ is None else environ)
        self.config = config or DispatchConfig()
        self.warnings = WarningHandler(self.streams.stderr, deduplicate=True)

    def invocation(self, path: tuple[int, ...], args: list[str], flags: FlagSet) -> Invocation:
        return Invocation(
            tree=self.tree,
            path=path,
            args=args,
            flags=flags,
            streams=self.streams,
            config=self.config,
            warnings=self.warnings,
            environ=self.environ,
        )

    def _fail(self, message: str, exit_code: int = 1) -> Handled:
        self.streams.stderr.write(f'error: {message}\n')
        return Handled(exit_code=exit_code)

    def _help(self, path: tuple[int, ...]) -> Handled:
        _help_func_for(self.tree, path)(self.tree, path, self.streams.stdout)
        return Handled(exit_code=0)

    def _help_topic(self, topic: list[str]) -> Handled:
        try:
            path, _ = self.tree.find(topic)
        except UnknownCommandError:
            self.streams.stdout.write(f'Unknown help topic {topic!r}\n')
            path = (self.tree.root,)
        return self._help(path)

    def execute(self, args: list[str]) -> Handled:
        root = self.tree.root_node
        if args and args[0] in (COMPLETE_REQUEST, COMPLETE_NO_DESC_REQUEST):
            exit_code = complete(self.tree, args[1:], self.streams.stdout, self.invocation)
            return Handled(exit_code=exit_code)

        # The implicit help verb exists only on roots that have subcommands;
        # elsewhere "help" is an ordinary positional argument.
        words = strip_flags(args, self.tree.flags_for((self.tree.root,)))
        if (
            root.children
            and words
            and words[0] == 'help'
            and self.tree.find_child(self.tree.root, 'help') is None
        ):
            return self._help_topic(words[1:])

        try:
            path, remaining = self.tree.find(args)
        except UnknownCommandError as exc:
            logger.debug('command_not_found', verb=exc.verb, root=root.name)
            return self._fail(str(exc))

        command = self.tree.node(path[-1])
        flags = self.tree.flags_for(path)
        try:
            positional, wants_help = parse_flags(self.tree.command_path(path), remaining, flags)
        except FlagError as exc:
            self.streams.stderr.write(f"error: {exc}\nSee '{self.tree.command_path(path)} --help' for usage.\n")
            return Handled(exit_code=1)

        if wants_help or not command.runnable:
            return self._help(path)

        invocation = self.invocation(path, positional, flags)
        logger.debug(
            'running_command',
            command=invocation.command_path,
            _verbose_args=positional,
        )
        try:
            exit_code = command.run(invocation) or 0  # type: ignore[misc]
        except CommandError as exc:
            return self._fail(str(exc), exc.exit_code)

        if exit_code != 0:
            return Handled(exit_code=exit_code)
        return self._check_warnings(flags)

    def _check_warnings(self, flags: FlagSet) -> Handled:
        """Turn accumulated server warnings into a failure under --warnings-as-errors."""
        flag = flags.lookup(WARNINGS_AS_ERRORS_FLAG)
        if flag is None or flag.value is not True:
            return Handled(exit_code=0)
        message = warnings_as_errors_message(self.warnings.count)
        if message is None:
            return Handled(exit_code=0)
        return self._fail(message)


def execute(
    tree: CommandTree,
    args: list[str],
    *,
    streams: IOStreams | None = None,
    environ: Mapping[str, str] | None = None,
    config: DispatchConfig | None = None,
) -> Handled:
    """Run ``args`` against ``tree`` in this process."""
    return Engine(tree, streams=streams, environ=environ, config=config).execute(args)
