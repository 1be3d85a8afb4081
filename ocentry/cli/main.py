"""Console entry point shared by every installed name of the binary."""

import sys

from ocentry.config import config_from_env
from ocentry.errors import ConfigError
from ocentry.logging import configure_logging, get_logger
from ocentry.models import ExecExternal
from ocentry.plugins import exec_plugin
from ocentry.resolver import dispatch

logger = get_logger(__name__)


def verbosity_from_args(args: list[str]) -> int:
    """Read the global ``--v`` level before any tree is built.

    Logging has to be configured before resolution so tree assembly and
    plugin lookup can log. Unparseable values count as 0; the flag parser
    reports them later.
    """
    value = ''
    for position, arg in enumerate(args):
        if arg == '--':
            break
        if arg in ('-v', '--v') and position + 1 < len(args):
            value = args[position + 1]
        elif arg.startswith(('-v=', '--v=')):
            value = arg.partition('=')[2]
    try:
        return int(value or 0)
    except ValueError:
        return 0


def main(argv: list[str] | None = None) -> None:
    """Main entry point for oc, kubectl, openshift-deploy and openshift-recycle."""
    argv = list(sys.argv if argv is None else argv)
    configure_logging(verbosity=verbosity_from_args(argv[1:]))

    try:
        config = config_from_env()
    except ConfigError as exc:
        sys.stderr.write(f'error: {exc}\n')
        sys.exit(1)

    try:
        outcome = dispatch(argv, config=config)
    except Exception as e:
        logger.exception('unexpected_error', error=str(e))
        sys.stderr.write(f'Error: {e}\n')
        sys.exit(1)

    if isinstance(outcome, ExecExternal):
        exec_plugin(outcome)
    sys.exit(outcome.exit_code)


if __name__ == '__main__':
    main()
