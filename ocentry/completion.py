"""Dynamic shell completion for flag values and subcommands.

Shells call the binary as ``<name> __complete <args...> <partial>`` on every
keystroke and read back one candidate per line followed by ``:<directive>``.
Callbacks keep no state between calls, and anything that touches the network
is bounded by ``completion_timeout`` so a dead cluster cannot hang the shell.
"""

import base64
import contextlib
import enum
import json
import ssl
import threading
import urllib.request
from collections.abc import Callable
from concurrent.futures import Future
from typing import Any, TextIO

from ocentry.errors import CompletionRegistrationError, FlagError
from ocentry.kubeconfig import KubeConfig, kubeconfig_paths, load_kubeconfig
from ocentry.logging import get_logger
from ocentry.models import FlagSet, Invocation
from ocentry.tree import CommandTree, word_positions

logger = get_logger(__name__)

COMPLETE_REQUEST = '__complete'
COMPLETE_NO_DESC_REQUEST = '__completeNoDesc'


class ShellCompDirective(enum.IntFlag):
    """Hints for the shell about what to do with the returned candidates."""

    DEFAULT = 0
    ERROR = 1
    NO_SPACE = 2
    NO_FILE_COMP = 4
    FILTER_FILE_EXT = 8
    FILTER_DIRS = 16
    KEEP_ORDER = 32


CompletionResult = tuple[list[str], ShellCompDirective]
CompletionFunc = Callable[[Invocation, str], CompletionResult]
InvocationFactory = Callable[[tuple[int, ...], list[str], FlagSet], Invocation]


def _load_invocation_kubeconfig(invocation: Invocation) -> KubeConfig:
    explicit = invocation.flag_value('kubeconfig') or None
    return load_kubeconfig(kubeconfig_paths(str(explicit) if explicit else None, invocation.environ))


def _filter(names: list[str], to_complete: str) -> list[str]:
    return sorted(name for name in names if name.startswith(to_complete))


def _config_names(invocation: Invocation, section: str, to_complete: str) -> list[str]:
    try:
        config = _load_invocation_kubeconfig(invocation)
    except Exception as exc:  # noqa: BLE001 - completion must never fail the shell
        logger.debug('kubeconfig_unreadable', error=str(exc))
        return []
    return _filter(list(getattr(config, section)), to_complete)


def list_contexts_in_config(invocation: Invocation, to_complete: str) -> list[str]:
    return _config_names(invocation, 'contexts', to_complete)


def list_clusters_in_config(invocation: Invocation, to_complete: str) -> list[str]:
    return _config_names(invocation, 'clusters', to_complete)


def list_users_in_config(invocation: Invocation, to_complete: str) -> list[str]:
    return _config_names(invocation, 'users', to_complete)


def _ssl_context(invocation: Invocation, cluster: dict[str, Any], user: dict[str, Any]) -> ssl.SSLContext:
    insecure = invocation.flag_value('insecure-skip-tls-verify') or cluster.get('insecure-skip-tls-verify')
    if insecure:
        context = ssl.create_default_context()
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
        return context

    ca_file = invocation.flag_value('certificate-authority') or cluster.get('certificate-authority')
    ca_data = cluster.get('certificate-authority-data')
    if ca_file:
        context = ssl.create_default_context(cafile=str(ca_file))
    elif ca_data:
        context = ssl.create_default_context(cadata=base64.b64decode(ca_data).decode())
    else:
        context = ssl.create_default_context()

    if user.get('client-certificate') and user.get('client-key'):
        context.load_cert_chain(user['client-certificate'], user['client-key'])
    return context


def query_namespaces(invocation: Invocation, timeout: float) -> list[str]:
    """List namespace names from the current cluster.

    Raises whatever the transport raises; callers decide how to degrade.
    """
    config = _load_invocation_kubeconfig(invocation)
    context = config.context(str(invocation.flag_value('context') or '') or None)
    cluster = config.clusters.get(str(invocation.flag_value('cluster') or '') or context.get('cluster', ''), {})
    user = config.users.get(str(invocation.flag_value('user') or '') or context.get('user', ''), {})

    server = invocation.flag_value('server') or cluster.get('server')
    if not server:
        return []
    token = invocation.flag_value('token') or user.get('token')

    headers = {'Accept': 'application/json'}
    if token:
        headers['Authorization'] = f'Bearer {token}'
    request = urllib.request.Request(f'{str(server).rstrip("/")}/api/v1/namespaces', headers=headers, method='GET')
    ssl_context = _ssl_context(invocation, cluster, user)
    with urllib.request.urlopen(request, timeout=timeout, context=ssl_context) as response:  # noqa: S310 - server from kubeconfig
        payload = json.load(response)

    names: list[str] = []
    for item in payload.get('items', []):
        name = (item.get('metadata') or {}).get('name')
        if name:
            names.append(str(name))
    return names


def query_namespaces_with_deadline(invocation: Invocation, timeout: float) -> list[str]:
    """Run query_namespaces on a daemon thread and give up after ``timeout`` seconds overall.

    The urlopen timeout only bounds each blocking socket operation, so a server
    that trickles bytes could otherwise hold the shell indefinitely. On timeout
    the worker is abandoned; being a daemon it does not delay process exit.
    Raises TimeoutError when the deadline passes.
    """
    future: Future[list[str]] = Future()

    def _worker() -> None:
        if not future.set_running_or_notify_cancel():
            return
        try:
            future.set_result(query_namespaces(invocation, timeout))
        except Exception as exc:  # noqa: BLE001 - re-raised in the waiting caller
            future.set_exception(exc)

    threading.Thread(target=_worker, name='namespace-query', daemon=True).start()
    return future.result(timeout=timeout)


def complete_namespaces(invocation: Invocation, to_complete: str) -> CompletionResult:
    try:
        names = query_namespaces_with_deadline(invocation, invocation.config.completion_timeout)
    except Exception as exc:  # noqa: BLE001 - completion must never fail the shell
        logger.debug('namespace_query_failed', error=str(exc))
        names = []
    return _filter(names, to_complete), ShellCompDirective.NO_FILE_COMP


def complete_contexts(invocation: Invocation, to_complete: str) -> CompletionResult:
    return list_contexts_in_config(invocation, to_complete), ShellCompDirective.NO_FILE_COMP


def complete_clusters(invocation: Invocation, to_complete: str) -> CompletionResult:
    return list_clusters_in_config(invocation, to_complete), ShellCompDirective.NO_FILE_COMP


def complete_users(invocation: Invocation, to_complete: str) -> CompletionResult:
    return list_users_in_config(invocation, to_complete), ShellCompDirective.NO_FILE_COMP


GLOBAL_FLAG_COMPLETIONS: dict[str, CompletionFunc] = {
    'namespace': complete_namespaces,
    'context': complete_contexts,
    'cluster': complete_clusters,
    'user': complete_users,
}


def register_flag_completion_func(tree: CommandTree, flag_name: str, func: CompletionFunc) -> None:
    """Attach ``func`` as the value completer for a flag declared on the root."""
    root = tree.root_node
    if flag_name not in root.flags and flag_name not in root.persistent_flags:
        msg = f'flag "{flag_name}" does not exist on command "{root.name}"'
        raise CompletionRegistrationError(msg)
    if flag_name in tree.completion_funcs:
        msg = f'flag "{flag_name}" already registered'
        raise CompletionRegistrationError(msg)
    tree.completion_funcs[flag_name] = func


def register_completion_func_for_global_flags(tree: CommandTree) -> None:
    for flag_name, func in GLOBAL_FLAG_COMPLETIONS.items():
        register_flag_completion_func(tree, flag_name, func)


def _scan_flag_values(args: list[str], flags: FlagSet) -> None:
    """Best-effort flag assignment from partially typed arguments."""
    index = 0
    while index < len(args):
        arg = args[index]
        index += 1
        if arg == '--' or not arg.startswith('-') or arg == '-':
            continue
        name, has_value, value = arg.lstrip('-').partition('=')
        flag = flags.lookup(name) if arg.startswith('--') else flags.lookup_shorthand(name)
        if flag is None:
            continue
        if not has_value:
            if flag.kind == 'bool':
                value = 'true'
            elif index < len(args):
                value = args[index]
                index += 1
            else:
                continue
        with contextlib.suppress(FlagError):
            flag.set(value)


def _flag_being_completed(
    typed: list[str],
    to_complete: str,
    flags: FlagSet,
) -> tuple[str, str, str] | None:
    """Return (flag name, partial value, candidate prefix) when a flag value is being typed."""
    if to_complete.startswith('--') and '=' in to_complete:
        name, _, partial = to_complete[2:].partition('=')
        flag = flags.lookup(name)
        if flag is not None and flag.kind != 'bool':
            return flag.name, partial, f'--{name}='
        return None

    if not typed:
        return None
    last = typed[-1]
    if last.startswith('--') and '=' not in last:
        flag = flags.lookup(last[2:])
    elif last.startswith('-') and len(last) == 2:  # noqa: PLR2004
        flag = flags.lookup_shorthand(last[1])
    else:
        return None
    if flag is None or flag.kind == 'bool':
        return None
    return flag.name, to_complete, ''


def complete(
    tree: CommandTree,
    args: list[str],
    out: TextIO,
    make_invocation: InvocationFactory,
) -> int:
    """Answer one ``__complete`` request."""
    typed, to_complete = (args[:-1], args[-1]) if args else ([], '')
    try:
        path, remaining = tree.find(typed)
    except Exception as exc:  # noqa: BLE001 - completion must never fail the shell
        logger.debug('completion_command_not_found', error=str(exc))
        out.write(f':{int(ShellCompDirective.ERROR)}\n')
        return 0

    flags = tree.flags_for(path)
    being_completed = _flag_being_completed(remaining, to_complete, flags)
    _scan_flag_values(remaining, flags)

    candidates: list[str]
    if being_completed is not None:
        flag_name, partial, prefix = being_completed
        func = tree.completion_funcs.get(flag_name)
        if func is None:
            candidates, directive = [], ShellCompDirective.DEFAULT
        else:
            positional = [remaining[i] for i in word_positions(remaining, flags)]
            try:
                candidates, directive = func(make_invocation(path, positional, flags), partial)
            except Exception as exc:  # noqa: BLE001 - completion must never fail the shell
                logger.debug('completion_callback_failed', flag=flag_name, error=str(exc))
                candidates, directive = [], ShellCompDirective.NO_FILE_COMP
            candidates = [f'{prefix}{candidate}' for candidate in candidates]
    elif to_complete.startswith('-'):
        candidates = sorted(
            f'--{flag.name}' for flag in flags if not flag.hidden and f'--{flag.name}'.startswith(to_complete)
        )
        directive = ShellCompDirective.NO_FILE_COMP
    else:
        command = tree.node(path[-1])
        candidates = [
            child.name for child in tree.children(path[-1]) if not child.hidden and child.name.startswith(to_complete)
        ]
        directive = ShellCompDirective.NO_FILE_COMP if command.children else ShellCompDirective.DEFAULT

    for candidate in candidates:
        out.write(f'{candidate}\n')
    out.write(f':{int(directive)}\n')
    return 0
