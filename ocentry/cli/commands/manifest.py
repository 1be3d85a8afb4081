"""create, apply and replace: commands that send manifests to the server.

Only ``--dry-run=client`` is served locally; everything else needs a server
connection, which belongs to the API client rather than this package.
"""

from collections.abc import Iterator
from pathlib import Path
from typing import Any

import yaml

from ocentry.config import UPSTREAM_VALIDATE_MARKER
from ocentry.errors import CommandError
from ocentry.models import Command, Flag, FlagSet, Invocation, RunFunc
from ocentry.tree import CommandTree

VALIDATE_USAGE = (
    f'{UPSTREAM_VALIDATE_MARKER}. "true" or "strict" will use a schema to validate the input and '
    'fail the request if invalid. "warn" will warn about unknown or duplicate fields without '
    'blocking the request. "false" or "ignore" will not perform any schema validation, silently '
    'dropping any unknown or duplicate fields.'
)

KNOWN_TOP_LEVEL_FIELDS = frozenset({
    'apiVersion',
    'kind',
    'metadata',
    'spec',
    'status',
    'data',
    'stringData',
    'binaryData',
    'type',
    'immutable',
    'items',
    'rules',
    'subjects',
    'roleRef',
    'secrets',
    'imagePullSecrets',
    'automountServiceAccountToken',
    'webhooks',
    'parameters',
    'objects',
    'labels',
    'message',
})

VERBS = {
    'create': ('Create a resource from a file or from stdin', 'created'),
    'apply': ('Apply a configuration to a resource by file name or stdin', 'created'),
    'replace': ('Replace a resource by file name or stdin', 'replaced'),
}


def validation_mode(raw: str) -> str:
    """Normalize a --validate value to strict, warn or ignore."""
    value = raw.strip().lower()
    if value in {'true', 'strict'}:
        return 'strict'
    if value == 'warn':
        return 'warn'
    if value in {'false', 'ignore'}:
        return 'ignore'
    msg = f'invalid - validate option "{raw}"; {UPSTREAM_VALIDATE_MARKER}'
    raise CommandError(msg)


def _read_documents(filename: str, invocation: Invocation) -> Iterator[dict[str, Any]]:
    try:
        if filename == '-':
            text = invocation.streams.stdin.read()
        else:
            text = Path(filename).read_text()
    except OSError as exc:
        msg = f'the path "{filename}" cannot be read: {exc}'
        raise CommandError(msg) from exc

    try:
        for document in yaml.safe_load_all(text):
            if document is None:
                continue
            if not isinstance(document, dict):
                msg = f'error parsing {filename}: object is not a mapping'
                raise CommandError(msg)
            yield document
    except yaml.YAMLError as exc:
        msg = f'error parsing {filename}: {exc}'
        raise CommandError(msg) from exc


def _check_fields(document: dict[str, Any], mode: str, invocation: Invocation) -> None:
    unknown = sorted(set(document) - KNOWN_TOP_LEVEL_FIELDS)
    if not unknown or mode == 'ignore':
        return
    name = (document.get('metadata') or {}).get('name', '')
    details = ', '.join(f'unknown field "{field}"' for field in unknown)
    if mode == 'strict':
        msg = f'error validating "{name}": {details}'
        raise CommandError(msg)
    invocation.warnings.warn(details)


def _make_run(verb: str, past_tense: str) -> RunFunc:
    def _run(invocation: Invocation) -> int:
        filename = str(invocation.flag_value('filename') or '')
        if not filename:
            msg = 'must specify -f'
            raise CommandError(msg)
        mode = validation_mode(str(invocation.flag_value('validate')))

        if invocation.flag_value('dry-run') != 'client':
            msg = f'{verb} requires a connection to the server; use --dry-run=client to preview locally'
            raise CommandError(msg)

        out = invocation.streams.stdout
        for document in _read_documents(filename, invocation):
            kind = document.get('kind')
            name = (document.get('metadata') or {}).get('name')
            if not kind or not name:
                msg = f'error validating "{filename}": apiVersion, kind and metadata.name are required'
                raise CommandError(msg)
            _check_fields(document, mode, invocation)
            out.write(f'{str(kind).lower()}/{name} {past_tense} (dry run)\n')
        return 0

    _run.__name__ = f'run_{verb}'
    return _run


def manifest_flags(verb: str) -> list[Flag]:
    return [
        Flag.string(
            'filename',
            shorthand='f',
            usage=f'The file that contains the configuration to {verb}; "-" reads stdin.',
        ),
        Flag.string(
            'dry-run',
            default='none',
            usage='Must be "none", "server", or "client". If client strategy, only print the object that would be sent.',
        ),
        Flag.string('validate', default='strict', usage=VALIDATE_USAGE),
    ]


def register(tree: CommandTree, parent: int | None = None) -> list[int]:
    """Register create, apply and replace."""
    registered = []
    for verb, (short, past_tense) in VERBS.items():
        registered.append(
            tree.add(
                Command(
                    name=verb,
                    short=short,
                    example=f'  # Preview the objects in pod.yaml\n  oc {verb} -f pod.yaml --dry-run=client',
                    flags=FlagSet(manifest_flags(verb)),
                    run=_make_run(verb, past_tense),
                ),
                parent,
            ),
        )
    return registered


__all__ = ['VALIDATE_USAGE', 'manifest_flags', 'register', 'validation_mode']
