"""openshift-recycle: empty a volume directory so it can be reused."""

import shutil
from pathlib import Path

from ocentry.errors import CommandError
from ocentry.logging import get_logger
from ocentry.models import Command, Invocation
from ocentry.tree import CommandTree

logger = get_logger(__name__)


def recycle_directory(directory: Path) -> int:
    """Remove every entry inside ``directory`` and leave the directory itself.

    Returns:
        The number of top-level entries removed.
    """
    removed = 0
    for entry in sorted(directory.iterdir()):
        if entry.is_symlink() or not entry.is_dir():
            entry.unlink()
        else:
            shutil.rmtree(entry)
        logger.debug('recycled_entry', path=str(entry))
        removed += 1
    return removed


def _run(invocation: Invocation) -> int:
    if len(invocation.args) != 1:
        msg = 'recycle requires exactly one argument: the directory to scrub'
        raise CommandError(msg)

    directory = Path(invocation.args[0])
    if not directory.is_dir():
        msg = f'"{directory}" is not a directory'
        raise CommandError(msg)

    try:
        removed = recycle_directory(directory)
    except OSError as exc:
        msg = f'failed to recycle {directory}: {exc}'
        raise CommandError(msg) from exc
    logger.info('recycled_directory', path=str(directory), removed=removed)
    return 0


def build_recycle_tree() -> CommandTree:
    return CommandTree.from_root(
        Command(
            name='openshift-recycle',
            short='Recycle a volume',
            long='Recycle a volume by removing every file and directory inside it.',
            example='  # Scrub a volume before reuse\n  openshift-recycle /scrub',
            run=_run,
        ),
    )
