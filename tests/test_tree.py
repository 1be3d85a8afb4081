"""Tests for the arena command tree and its flag handling."""

from dataclasses import dataclass

import pytest

from ocentry.errors import FlagError, UnknownCommandError
from ocentry.models import Command, Flag, FlagSet, parse_bool
from ocentry.tree import CommandTree, strip_flags, word_positions


def sample_tree() -> CommandTree:
    tree = CommandTree.from_root(
        Command(
            name='oc',
            persistent_flags=FlagSet([
                Flag.string('namespace', shorthand='n'),
                Flag.boolean('insecure-skip-tls-verify'),
            ]),
        ),
    )
    set_cmd = tree.add(
        Command(name='set', aliases=('s',), persistent_flags=FlagSet([Flag.boolean('local')])),
    )
    tree.add(Command(name='env', flags=FlagSet([Flag.string('from')]), run=lambda inv: 0), set_cmd)
    tree.add(Command(name='image', run=lambda inv: 0), set_cmd)
    tree.add(Command(name='version', run=lambda inv: 0))
    return tree


class TestParseBool:
    """Tests for parse_bool."""

    @pytest.mark.parametrize('raw', ['1', 't', 'true', 'TRUE', 'True'])
    def test_true_words(self, raw: str) -> None:
        assert parse_bool(raw) is True

    @pytest.mark.parametrize('raw', ['0', 'f', 'false', 'FALSE'])
    def test_false_words(self, raw: str) -> None:
        assert parse_bool(raw) is False

    def test_rejects_other_words(self) -> None:
        with pytest.raises(FlagError, match='invalid boolean value'):
            parse_bool('yes')


class TestFlag:
    """Tests for Flag conversion and state."""

    def test_set_marks_changed(self) -> None:
        flag = Flag.integer('v')
        flag.set('4')
        assert flag.value == 4
        assert flag.changed is True

    def test_reset_restores_default(self) -> None:
        flag = Flag.string('output', default='wide')
        flag.set('json')
        flag.reset()
        assert flag.value == 'wide'
        assert flag.changed is False

    def test_integer_rejects_text(self) -> None:
        with pytest.raises(FlagError, match='not an integer'):
            Flag.integer('v').set('loud')

    def test_shorthand_must_be_one_character(self) -> None:
        with pytest.raises(ValueError, match='exactly one character'):
            Flag.string('namespace', shorthand='ns')


class TestFlagSet:
    """Tests for FlagSet merging."""

    def test_add_flag_set_later_wins(self) -> None:
        first = FlagSet([Flag.string('output', usage='first')])
        first.add_flag_set(FlagSet([Flag.string('output', usage='second')]))
        assert first.lookup('output').usage == 'second'

    def test_add_missing_keeps_existing(self) -> None:
        first = FlagSet([Flag.string('output', usage='first')])
        first.add_missing(FlagSet([Flag.string('output', usage='second'), Flag.boolean('quiet')]))
        assert first.lookup('output').usage == 'first'
        assert first.names() == ['output', 'quiet']

    def test_lookup_shorthand(self) -> None:
        flags = FlagSet([Flag.string('namespace', shorthand='n')])
        assert flags.lookup_shorthand('n').name == 'namespace'
        assert flags.lookup_shorthand('x') is None


class TestCommandTree:
    """Tests for CommandTree structure."""

    def test_add_links_children_in_order(self) -> None:
        tree = sample_tree()
        assert [child.name for child in tree.children(tree.root)] == ['set', 'version']

    def test_add_rejects_prelinked_children(self) -> None:
        tree = sample_tree()
        with pytest.raises(ValueError, match='children'):
            tree.add(Command(name='bad', children=(1,)))

    def test_walk_visits_each_node_once(self) -> None:
        tree = sample_tree()
        assert sorted(tree.walk()) == list(range(len(tree)))

    def test_walk_tolerates_shared_children(self) -> None:
        tree = sample_tree()
        set_cmd = tree.find_child(tree.root, 'set')
        view = tree.with_root(Command(name='view', children=tree.node(set_cmd).children))
        names = [view.node(index).name for index in view.walk()]
        assert names == ['view', 'env', 'image']

    def test_find_child_aliases(self) -> None:
        tree = sample_tree()
        assert tree.find_child(tree.root, 's') is not None
        assert tree.find_child(tree.root, 's', aliases=False) is None

    def test_inherited_flags_nearest_ancestor_wins(self) -> None:
        tree = sample_tree()
        path, _ = tree.find(['set', 'env'])
        inherited = tree.inherited_flags(path)
        assert set(inherited.names()) == {'namespace', 'insecure-skip-tls-verify', 'local'}

    def test_flags_for_includes_own_and_inherited(self) -> None:
        tree = sample_tree()
        path, _ = tree.find(['set', 'env'])
        assert set(tree.flags_for(path).names()) == {'from', 'local', 'namespace', 'insecure-skip-tls-verify'}

    def test_with_root_leaves_original_untouched(self) -> None:
        tree = sample_tree()
        view = tree.with_root(Command(name='view'))
        assert tree.root_node.name == 'oc'
        assert view.root_node.name == 'view'
        assert len(view) == len(tree) + 1


@dataclass
class FindCase:
    args: list[str]
    command: str
    remaining: list[str]


class TestFind:
    """Tests for CommandTree.find."""

    @pytest.mark.parametrize(
        'case',
        [
            FindCase(['set', 'env', 'dc/app'], 'oc set env', ['dc/app']),
            FindCase(['-n', 'set', 'set', 'env'], 'oc set env', ['-n', 'set']),
            FindCase(['--insecure-skip-tls-verify', 'version'], 'oc version', ['--insecure-skip-tls-verify']),
            FindCase(['--namespace=prod', 'version'], 'oc version', ['--namespace=prod']),
            FindCase(['s', 'image'], 'oc set image', []),
            FindCase(['set', 'unknown'], 'oc set', ['unknown']),
            FindCase([], 'oc', []),
        ],
        ids=['leaf', 'flag-value-named-like-command', 'bool-flag', 'equals-form', 'alias', 'stops-at-miss', 'empty'],
    )
    def test_find(self, case: FindCase) -> None:
        tree = sample_tree()
        path, remaining = tree.find(case.args)
        assert tree.command_path(path) == case.command
        assert remaining == case.remaining

    def test_unknown_root_verb_raises(self) -> None:
        tree = sample_tree()
        with pytest.raises(UnknownCommandError) as excinfo:
            tree.find(['-n', 'prod', 'foo', 'bar'])
        assert excinfo.value.verb == 'foo'
        assert str(excinfo.value) == 'unknown command "foo" for "oc"'

    def test_double_dash_stops_matching(self) -> None:
        tree = sample_tree()
        path, remaining = tree.find(['--', 'version'])
        assert path == (tree.root,)
        assert remaining == ['--', 'version']

    def test_leaf_root_accepts_arguments(self) -> None:
        tree = CommandTree.from_root(Command(name='openshift-recycle', run=lambda inv: 0))
        path, remaining = tree.find(['/scrub'])
        assert path == (tree.root,)
        assert remaining == ['/scrub']


class TestWordPositions:
    """Tests for word_positions and strip_flags."""

    def test_unknown_long_flag_consumes_value(self) -> None:
        assert word_positions(['--unknown', 'value', 'word'], FlagSet()) == [2]

    def test_short_bool_does_not_consume(self) -> None:
        flags = FlagSet([Flag.boolean('all', shorthand='A')])
        assert strip_flags(['-A', 'pods'], flags) == ['pods']
