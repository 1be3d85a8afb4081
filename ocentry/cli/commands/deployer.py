"""openshift-deploy: the standalone deployment runner root."""

from collections.abc import Mapping

from ocentry.errors import CommandError
from ocentry.models import Command, Flag, FlagSet, Invocation
from ocentry.tree import CommandTree

DEPLOYMENT_NAME_ENV = 'OPENSHIFT_DEPLOYMENT_NAME'
DEPLOYMENT_NAMESPACE_ENV = 'OPENSHIFT_DEPLOYMENT_NAMESPACE'

DEPLOYER_LONG = """Perform a deployment

This command launches a deployment as described by a deployment configuration. It accepts the
deployment name and namespace from the environment, as set by the platform inside a deployer pod.
"""


def _run(invocation: Invocation) -> int:
    missing = [name for name in ('deployment', 'namespace') if not invocation.flag_value(name)]
    if missing:
        flags = ' and '.join(f'--{name}' for name in missing)
        msg = f'{flags} must be provided'
        raise CommandError(msg)

    msg = (
        f'unable to deploy {invocation.flag_value("namespace")}/{invocation.flag_value("deployment")}: '
        'no connection to the API server is available in this client'
    )
    raise CommandError(msg)


def build_deployer_tree(environ: Mapping[str, str]) -> CommandTree:
    """Build the openshift-deploy root; flag defaults are read from ``environ``."""
    return CommandTree.from_root(
        Command(
            name='openshift-deploy',
            short='Run a deployment',
            long=DEPLOYER_LONG,
            flags=FlagSet([
                Flag.string(
                    'deployment',
                    default=environ.get(DEPLOYMENT_NAME_ENV, ''),
                    usage='The deployment name to start',
                ),
                Flag.string(
                    'namespace',
                    default=environ.get(DEPLOYMENT_NAMESPACE_ENV, ''),
                    usage='The deployment namespace',
                ),
            ]),
            run=_run,
        ),
    )
