"""Exception types raised while resolving and running commands."""


class OcentryError(RuntimeError):
    """Base class for ocentry failures."""


class CommandError(OcentryError):
    """Raised by a command whose run behavior failed.

    The engine reports it as ``error: <message>`` and exits with status 1.
    """

    def __init__(self, message: str, exit_code: int = 1) -> None:
        super().__init__(message)
        self.exit_code = exit_code


class UnknownCommandError(OcentryError):
    """Raised when the root has subcommands and none matches the leading argument."""

    def __init__(self, verb: str, root: str) -> None:
        super().__init__(f'unknown command "{verb}" for "{root}"')
        self.verb = verb
        self.root = root


class FlagError(OcentryError):
    """Raised when a flag value cannot be parsed for its kind."""


class ConfigError(OcentryError):
    """Raised when the dispatch configuration file is invalid."""


class CompletionRegistrationError(OcentryError):
    """Raised when a completion callback targets a flag the command lacks."""


class PluginError(OcentryError):
    """Raised when arguments meant for an external plugin are malformed."""


__all__ = [
    'CommandError',
    'CompletionRegistrationError',
    'ConfigError',
    'FlagError',
    'OcentryError',
    'PluginError',
    'UnknownCommandError',
]
