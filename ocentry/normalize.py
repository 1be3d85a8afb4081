"""Override inherited flag defaults we disagree with across the whole tree."""

from ocentry.config import UPSTREAM_VALIDATE_MARKER
from ocentry.logging import get_logger
from ocentry.models import Command, Flag
from ocentry.tree import CommandTree

logger = get_logger(__name__)

VALIDATE_FLAG = 'validate'
VALIDATE_DEFAULT = 'ignore'


def _upstream_validate_flag(command: Command, marker: str) -> Flag | None:
    # Only flags the command declares itself; inherited copies are handled
    # when their declaring command is visited.
    for flag_set in (command.flags, command.persistent_flags):
        flag = flag_set.lookup(VALIDATE_FLAG)
        if flag is not None and marker in flag.usage:
            return flag
    return None


def change_shared_flag_defaults(
    tree: CommandTree,
    *,
    marker: str = UPSTREAM_VALIDATE_MARKER,
) -> int:
    """Default the upstream ``--validate`` flag to ``ignore`` on every command.

    The flag is reset so it reads as untouched; a value the user supplies
    afterwards still takes precedence. Running this twice changes nothing.

    Returns:
        The number of flags normalized.
    """
    normalized = 0
    for index in tree.walk():
        command = tree.node(index)
        flag = _upstream_validate_flag(command, marker)
        if flag is None:
            continue
        flag.default = VALIDATE_DEFAULT
        flag.value = VALIDATE_DEFAULT
        flag.changed = False
        normalized += 1
        logger.debug('normalized_validate_flag', command=command.name)
    return normalized
