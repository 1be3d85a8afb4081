"""Tests for the execution engine and warnings-as-errors handling."""

import io

import pytest

from ocentry.cli.commands.globalflags import warnings_as_errors_flag
from ocentry.engine import Engine, execute, parse_flags
from ocentry.errors import CommandError, FlagError
from ocentry.models import Command, Flag, FlagSet, Invocation, IOStreams
from ocentry.tree import CommandTree
from ocentry.warnings_handler import WarningHandler, warnings_as_errors_message


def warning_tree(messages: list[str], exit_code: int = 0) -> CommandTree:
    def _run(invocation: Invocation) -> int:
        for message in messages:
            invocation.warnings.warn(message)
        invocation.streams.stdout.write('done\n')
        return exit_code

    tree = CommandTree.from_root(
        Command(
            name='oc',
            persistent_flags=FlagSet([warnings_as_errors_flag(), Flag.string('namespace', shorthand='n')]),
        ),
    )
    tree.add(Command(name='get', run=_run))
    return tree


class TestWarningHandler:
    """Tests for WarningHandler."""

    def test_deduplicates_and_counts_written(self) -> None:
        out = io.StringIO()
        handler = WarningHandler(out, deduplicate=True)
        handler.warn('a')
        handler.warn('a')
        handler.warn('b')
        assert handler.count == 2
        assert out.getvalue() == 'Warning: a\nWarning: b\n'

    def test_without_deduplication(self) -> None:
        handler = WarningHandler(io.StringIO(), deduplicate=False)
        handler.warn('a')
        handler.warn('a')
        assert handler.count == 2

    @pytest.mark.parametrize(
        ('count', 'expected'),
        [(0, None), (1, '1 warning received'), (2, '2 warnings received'), (7, '7 warnings received')],
    )
    def test_message(self, count: int, expected: str | None) -> None:
        assert warnings_as_errors_message(count) == expected


class TestWarningsAsErrors:
    """Tests for the post-run warnings check."""

    def test_no_warnings_exit_zero(self, streams: IOStreams) -> None:
        result = execute(warning_tree([]), ['get', '--warnings-as-errors'], streams=streams)
        assert result.exit_code == 0
        assert streams.stderr.getvalue() == ''

    def test_one_warning(self, streams: IOStreams) -> None:
        result = execute(warning_tree(['deprecated']), ['get', '--warnings-as-errors'], streams=streams)
        assert result.exit_code == 1
        assert streams.stderr.getvalue() == 'Warning: deprecated\nerror: 1 warning received\n'
        assert streams.stdout.getvalue() == 'done\n'

    def test_two_warnings(self, streams: IOStreams) -> None:
        result = execute(warning_tree(['a', 'b', 'a']), ['--warnings-as-errors', 'get'], streams=streams)
        assert result.exit_code == 1
        assert streams.stderr.getvalue().endswith('error: 2 warnings received\n')

    def test_flag_off_warnings_only_printed(self, streams: IOStreams) -> None:
        result = execute(warning_tree(['a']), ['get'], streams=streams)
        assert result.exit_code == 0
        assert streams.stderr.getvalue() == 'Warning: a\n'

    def test_explicit_false(self, streams: IOStreams) -> None:
        result = execute(warning_tree(['a']), ['get', '--warnings-as-errors=false'], streams=streams)
        assert result.exit_code == 0

    def test_failed_command_keeps_its_exit_code(self, streams: IOStreams) -> None:
        result = execute(warning_tree(['a'], exit_code=3), ['get', '--warnings-as-errors'], streams=streams)
        assert result.exit_code == 3
        assert 'warning received' not in streams.stderr.getvalue()

    def test_fresh_handler_per_engine(self, streams: IOStreams) -> None:
        tree = warning_tree(['a'])
        Engine(tree, streams=streams).execute(['get'])
        engine = Engine(tree, streams=streams)
        assert engine.warnings.count == 0


class TestExecute:
    """Tests for Engine.execute."""

    def test_unknown_command(self, streams: IOStreams) -> None:
        result = execute(warning_tree([]), ['foo', 'bar'], streams=streams)
        assert result.exit_code == 1
        assert streams.stderr.getvalue() == 'error: unknown command "foo" for "oc"\n'

    def test_non_runnable_root_prints_help(self, streams: IOStreams) -> None:
        result = execute(warning_tree([]), [], streams=streams)
        assert result.exit_code == 0
        assert 'Available Commands:' in streams.stdout.getvalue()

    def test_help_flag(self, streams: IOStreams) -> None:
        result = execute(warning_tree([]), ['get', '--help'], streams=streams)
        assert result.exit_code == 0
        assert 'oc get [flags]' in streams.stdout.getvalue()
        assert 'done' not in streams.stdout.getvalue()

    def test_help_verb(self, streams: IOStreams) -> None:
        result = execute(warning_tree([]), ['help', 'get'], streams=streams)
        assert result.exit_code == 0
        assert 'oc get [flags]' in streams.stdout.getvalue()

    def test_help_is_an_argument_for_leaf_roots(self, streams: IOStreams) -> None:
        def _echo(invocation: Invocation) -> int:
            invocation.streams.stdout.write(f'{invocation.args}\n')
            return 0

        tree = CommandTree.from_root(Command(name='openshift-recycle', run=_echo))

        result = execute(tree, ['help'], streams=streams)

        assert result.exit_code == 0
        assert streams.stdout.getvalue() == "['help']\n"

    def test_bad_flag(self, streams: IOStreams) -> None:
        result = execute(warning_tree([]), ['get', '--nope'], streams=streams)
        assert result.exit_code == 1
        assert "See 'oc get --help' for usage." in streams.stderr.getvalue()

    def test_command_error(self, streams: IOStreams) -> None:
        def _fail(invocation: Invocation) -> int:
            msg = 'boom'
            raise CommandError(msg)

        tree = CommandTree.from_root(Command(name='oc'))
        tree.add(Command(name='fail', run=_fail))

        result = execute(tree, ['fail'], streams=streams)

        assert result.exit_code == 1
        assert streams.stderr.getvalue() == 'error: boom\n'

    def test_invocation_sees_flags_and_args(self, streams: IOStreams) -> None:
        seen: dict[str, object] = {}

        def _run(invocation: Invocation) -> int:
            seen['args'] = invocation.args
            seen['namespace'] = invocation.flag_value('namespace')
            seen['changed'] = invocation.flag_changed('namespace')
            seen['path'] = invocation.command_path
            return 0

        tree = warning_tree([])
        tree.add(Command(name='describe', run=_run))

        execute(tree, ['-n', 'prod', 'describe', 'pod/x'], streams=streams, environ={'A': '1'})

        assert seen == {'args': ['pod/x'], 'namespace': 'prod', 'changed': True, 'path': 'oc describe'}


class TestParseFlags:
    """Tests for parse_flags."""

    def test_intermixed_positionals(self) -> None:
        flags = FlagSet([Flag.string('output', shorthand='o'), Flag.boolean('all', shorthand='A')])
        positional, wants_help = parse_flags('oc get', ['pods', '-o', 'wide', 'x', '-A'], flags)
        assert positional == ['pods', 'x']
        assert wants_help is False
        assert flags.lookup('output').value == 'wide'
        assert flags.lookup('all').value is True

    def test_equals_form(self) -> None:
        flags = FlagSet([Flag.integer('v', shorthand='v')])
        parse_flags('oc', ['--v=4'], flags)
        assert flags.lookup('v').value == 4

    def test_invalid_bool_value(self) -> None:
        flags = FlagSet([Flag.boolean('all')])
        with pytest.raises(FlagError):
            parse_flags('oc', ['--all=maybe'], flags)

    def test_unknown_flag(self) -> None:
        with pytest.raises(FlagError):
            parse_flags('oc', ['--nope'], FlagSet())
