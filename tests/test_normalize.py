"""Tests for the shared --validate default override."""

from ocentry.config import UPSTREAM_VALIDATE_MARKER
from ocentry.models import Command, Flag, FlagSet
from ocentry.normalize import change_shared_flag_defaults
from ocentry.tree import CommandTree


def upstream_validate(default: str = 'strict') -> Flag:
    return Flag.string('validate', default=default, usage=f'{UPSTREAM_VALIDATE_MARKER}. More text.')


class TestChangeSharedFlagDefaults:
    """Tests for change_shared_flag_defaults."""

    def test_overrides_upstream_validate_everywhere(self) -> None:
        tree = CommandTree.from_root(Command(name='oc'))
        create = tree.add(Command(name='create', flags=FlagSet([upstream_validate()])))
        tree.add(Command(name='route', persistent_flags=FlagSet([upstream_validate('true')])), create)

        assert change_shared_flag_defaults(tree) == 2

        for index in tree.walk():
            command = tree.node(index)
            for flags in (command.flags, command.persistent_flags):
                flag = flags.lookup('validate')
                if flag is not None:
                    assert flag.default == 'ignore'
                    assert flag.value == 'ignore'
                    assert flag.changed is False

    def test_leaves_other_validate_flags_alone(self) -> None:
        tree = CommandTree.from_root(Command(name='oc'))
        tree.add(Command(name='process', flags=FlagSet([Flag.boolean('validate', usage='Validate templates')])))

        assert change_shared_flag_defaults(tree) == 0
        process = tree.children(tree.root)[0]
        assert process.flags.lookup('validate').default is False

    def test_idempotent(self) -> None:
        tree = CommandTree.from_root(Command(name='oc'))
        tree.add(Command(name='apply', flags=FlagSet([upstream_validate()])))

        change_shared_flag_defaults(tree)
        change_shared_flag_defaults(tree)

        flag = tree.children(tree.root)[0].flags.lookup('validate')
        assert flag.default == 'ignore'
        assert flag.changed is False

    def test_user_value_wins_after_normalization(self) -> None:
        tree = CommandTree.from_root(Command(name='oc'))
        tree.add(Command(name='apply', flags=FlagSet([upstream_validate()])))
        change_shared_flag_defaults(tree)

        flag = tree.children(tree.root)[0].flags.lookup('validate')
        flag.set('strict')
        assert flag.value == 'strict'
        assert flag.changed is True
