"""Flags every kube-facing root declares as persistent."""

from ocentry.models import Flag


def kube_config_flags() -> list[Flag]:
    """Fresh connection flags; each tree gets its own Flag objects."""
    return [
        Flag.string('kubeconfig', usage='Path to the kubeconfig file to use for CLI requests.'),
        Flag.string(
            'namespace',
            shorthand='n',
            usage='If present, the namespace scope for this CLI request',
        ),
        Flag.string('context', usage='The name of the kubeconfig context to use'),
        Flag.string('cluster', usage='The name of the kubeconfig cluster to use'),
        Flag.string('user', usage='The name of the kubeconfig user to use'),
        Flag.string(
            'server',
            shorthand='s',
            usage='The address and port of the Kubernetes API server',
        ),
        Flag.string('token', usage='Bearer token for authentication to the API server'),
        Flag.string(
            'certificate-authority',
            usage='Path to a cert file for the certificate authority',
        ),
        Flag.boolean(
            'insecure-skip-tls-verify',
            usage=(
                "If true, the server's certificate will not be checked for validity. "
                'This will make your HTTPS connections insecure'
            ),
        ),
        Flag.string(
            'request-timeout',
            default='0',
            usage=(
                'The length of time to wait before giving up on a single server request. '
                'Non-zero values should contain a corresponding time unit (e.g. 1s, 2m, 3h). '
                'A value of zero means don\'t timeout requests.'
            ),
        ),
        Flag.boolean('match-server-version', usage='Require server version to match client version'),
        Flag.integer('v', shorthand='v', usage='number for the log level verbosity'),
    ]


def warnings_as_errors_flag() -> Flag:
    return Flag.boolean(
        'warnings-as-errors',
        usage='Treat warnings received from the server as errors and exit with a non-zero exit code',
    )
