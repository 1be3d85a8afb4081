"""Pydantic models for commands, flags and dispatch outcomes."""

from __future__ import annotations

import os
import sys
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal, TextIO

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ocentry.errors import FlagError

if TYPE_CHECKING:
    from ocentry.config import DispatchConfig
    from ocentry.tree import CommandTree
    from ocentry.warnings_handler import WarningHandler

FlagKind = Literal['string', 'bool', 'int']
FlagValue = str | bool | int

_TRUE_WORDS = frozenset({'1', 't', 'true'})
_FALSE_WORDS = frozenset({'0', 'f', 'false'})


def parse_bool(raw: str) -> bool:
    """Parse a boolean flag value the way the upstream flag library does."""
    word = raw.strip().lower()
    if word in _TRUE_WORDS:
        return True
    if word in _FALSE_WORDS:
        return False
    msg = f'invalid boolean value "{raw}"'
    raise FlagError(msg)


class Flag(BaseModel):
    """A single command-line flag and its current state."""

    name: str
    shorthand: str | None = None
    kind: FlagKind = 'string'
    usage: str = ''
    default: FlagValue = ''
    value: FlagValue = ''
    changed: bool = False
    hidden: bool = False

    @field_validator('shorthand')
    @classmethod
    def validate_shorthand(cls, v: str | None) -> str | None:
        """Shorthands are a single character."""
        if v is not None and len(v) != 1:
            msg = f'shorthand "{v}" must be exactly one character'
            raise ValueError(msg)
        return v

    @classmethod
    def string(cls, name: str, default: str = '', usage: str = '', **kwargs: Any) -> Flag:
        return cls(name=name, kind='string', default=default, value=default, usage=usage, **kwargs)

    @classmethod
    def boolean(cls, name: str, default: bool = False, usage: str = '', **kwargs: Any) -> Flag:
        return cls(name=name, kind='bool', default=default, value=default, usage=usage, **kwargs)

    @classmethod
    def integer(cls, name: str, default: int = 0, usage: str = '', **kwargs: Any) -> Flag:
        return cls(name=name, kind='int', default=default, value=default, usage=usage, **kwargs)

    def convert(self, raw: str) -> FlagValue:
        """Convert raw command-line text to this flag's value type."""
        if self.kind == 'bool':
            return parse_bool(raw)
        if self.kind == 'int':
            try:
                return int(raw, 10)
            except ValueError as exc:
                msg = f'invalid argument "{raw}" for "--{self.name}" flag: not an integer'
                raise FlagError(msg) from exc
        return raw

    def set(self, raw: str) -> None:
        """Store a user-supplied value and mark the flag as changed."""
        self.value = self.convert(raw)
        self.changed = True

    def reset(self) -> None:
        """Return to the default value as if the user never set the flag."""
        self.value = self.default
        self.changed = False


class FlagSet:
    """Ordered collection of flags keyed by name."""

    def __init__(self, flags: Iterator[Flag] | list[Flag] | tuple[Flag, ...] = ()) -> None:
        self._flags: dict[str, Flag] = {}
        for flag in flags:
            self.add(flag)

    def add(self, flag: Flag) -> Flag:
        """Add a flag, replacing any flag already declared under the same name."""
        self._flags[flag.name] = flag
        return flag

    def add_flag_set(self, other: FlagSet) -> None:
        """Merge another set into this one; the other set wins on name collision."""
        for flag in other:
            self.add(flag)

    def add_missing(self, other: FlagSet) -> None:
        """Merge another set, keeping flags this set already declares."""
        for flag in other:
            if flag.name not in self._flags:
                self.add(flag)

    def lookup(self, name: str) -> Flag | None:
        return self._flags.get(name)

    def lookup_shorthand(self, shorthand: str) -> Flag | None:
        for flag in self._flags.values():
            if flag.shorthand == shorthand:
                return flag
        return None

    def names(self) -> list[str]:
        return list(self._flags)

    def copy(self) -> FlagSet:
        """Shallow copy: the new set shares the Flag objects."""
        return FlagSet(list(self._flags.values()))

    def __iter__(self) -> Iterator[Flag]:
        return iter(list(self._flags.values()))

    def __len__(self) -> int:
        return len(self._flags)

    def __contains__(self, name: object) -> bool:
        return name in self._flags

    def __repr__(self) -> str:
        return f'FlagSet({self.names()!r})'


RunFunc = Callable[..., int | None]
HelpFunc = Callable[..., None]


class Command(BaseModel):
    """A node of the command tree.

    Children are arena indices into the owning CommandTree, so the same node
    may be reachable from more than one root without being copied.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    aliases: tuple[str, ...] = ()
    short: str = ''
    long: str = ''
    example: str = ''
    flags: FlagSet = Field(default_factory=FlagSet)
    persistent_flags: FlagSet = Field(default_factory=FlagSet)
    children: tuple[int, ...] = ()
    run: RunFunc | None = None
    help_func: HelpFunc | None = None
    hidden: bool = False

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Validate that name is a single non-empty word."""
        if not v.strip() or any(ch.isspace() for ch in v):
            msg = f'invalid command name "{v}"'
            raise ValueError(msg)
        return v

    @property
    def runnable(self) -> bool:
        return self.run is not None

    def matches(self, name: str, *, aliases: bool = True) -> bool:
        """Exact-match this command against a path segment."""
        return name == self.name or (aliases and name in self.aliases)


class Handled(BaseModel):
    """The invocation ran in this process and should exit with exit_code."""

    model_config = ConfigDict(frozen=True)

    kind: Literal['handled'] = 'handled'
    exit_code: int = 0


class ExecExternal(BaseModel):
    """Hand the process over to an external plugin; never returns on success."""

    model_config = ConfigDict(frozen=True)

    kind: Literal['exec'] = 'exec'
    path: str
    argv: tuple[str, ...]
    env: dict[str, str] = Field(default_factory=dict)


Outcome = Handled | ExecExternal


@dataclass
class IOStreams:
    """Standard streams handed to every command."""

    stdin: TextIO
    stdout: TextIO
    stderr: TextIO

    @classmethod
    def system(cls) -> IOStreams:
        return cls(stdin=sys.stdin, stdout=sys.stdout, stderr=sys.stderr)


@dataclass
class Invocation:
    """Everything a running command may consult, scoped to one invocation."""

    tree: CommandTree
    path: tuple[int, ...]
    args: list[str]
    flags: FlagSet
    streams: IOStreams
    config: DispatchConfig
    warnings: WarningHandler
    environ: Mapping[str, str] = field(default_factory=lambda: dict(os.environ))

    @property
    def command(self) -> Command:
        return self.tree.node(self.path[-1])

    @property
    def command_path(self) -> str:
        return self.tree.command_path(self.path)

    def flag_value(self, name: str, default: FlagValue | None = None) -> FlagValue | None:
        flag = self.flags.lookup(name)
        if flag is None:
            return default
        return flag.value

    def flag_changed(self, name: str) -> bool:
        flag = self.flags.lookup(name)
        return flag is not None and flag.changed
