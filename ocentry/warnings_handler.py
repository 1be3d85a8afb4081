"""Per-invocation handler for warnings received from the server."""

from typing import TextIO

from ocentry.logging import get_logger

logger = get_logger(__name__)


class WarningHandler:
    """Write server warnings to a stream, optionally deduplicated, and count them.

    Only warnings that were actually written are counted, so a repeated
    warning under deduplication does not raise the count.
    """

    def __init__(self, out: TextIO, *, deduplicate: bool = True) -> None:
        self._out = out
        self._deduplicate = deduplicate
        self._seen: set[str] = set()
        self._count = 0

    def warn(self, message: str) -> None:
        if self._deduplicate:
            if message in self._seen:
                logger.debug('duplicate_warning_suppressed', _debug_message=message)
                return
            self._seen.add(message)
        self._out.write(f'Warning: {message}\n')
        self._count += 1

    @property
    def count(self) -> int:
        return self._count


def warnings_as_errors_message(count: int) -> str | None:
    """Return the final error for ``count`` accumulated warnings, if any."""
    if count <= 0:
        return None
    if count == 1:
        return f'{count} warning received'
    return f'{count} warnings received'
