import logging

import structlog
import yaml
from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax
from structlog.types import FilteringBoundLogger
from structlog.typing import EventDict

# Diagnostics go to stderr so command output on stdout stays machine readable.
console = Console(stderr=True)

# Type alias for our logger
Logger = FilteringBoundLogger

HIDDEN_PREFIXES = ('_verbose_', '_debug_', '_perf_')


def format_context_yaml(event_dict: EventDict, indent: int = 2) -> str:
    """Format the context dictionary as YAML.

    Args:
        event_dict: The context dictionary to format.
        indent: The number of spaces to use for indentation.

    Returns:
        The formatted YAML string.
    """
    if not event_dict:
        return ''
    context_yaml = yaml.safe_dump(
        event_dict,
        sort_keys=True,
        default_flow_style=False,
    )
    pad = ' ' * indent
    return '\n'.join(f'{pad}{line}' for line in context_yaml.splitlines())


def filter_context_by_prefix(event_dict: EventDict) -> EventDict:
    """Drop keys that are only meant for verbose output."""
    return {key: value for key, value in event_dict.items() if not key.startswith(HIDDEN_PREFIXES)}


def strip_prefixes_from_keys(event_dict: EventDict) -> EventDict:
    """Remove the visibility prefixes so verbose output reads naturally."""
    stripped: EventDict = {}
    for key, value in event_dict.items():
        for prefix in HIDDEN_PREFIXES:
            if key.startswith(prefix):
                key = key[len(prefix):]
                break
        stripped[key] = value
    return stripped


def is_verbose() -> bool:
    """Check whether the root logger is at debug level."""
    return logging.getLogger().level <= logging.DEBUG


def cli_renderer(
    _logger: Logger,
    method_name: str,
    event_dict: EventDict,
) -> str:
    """Render log messages for CLI output using rich formatting.

    Args:
        _logger: The logger instance.
        method_name: The logging method name (e.g., 'info', 'error').
        event_dict: The event dictionary containing log data.

    Returns:
        str: An empty string, as structlog expects a string return but output is printed.
    """
    level = method_name.upper()
    event_msg = str(event_dict.pop('event', ''))
    for key in ('timestamp', 'level', 'log_level', 'exc_info'):
        event_dict.pop(key, None)

    if is_verbose():
        event_dict = strip_prefixes_from_keys(event_dict)
    else:
        event_dict = filter_context_by_prefix(event_dict)

    context_yaml = format_context_yaml(event_dict)

    level_styles = {
        'INFO': 'blue',
        'WARNING': 'yellow',
        'ERROR': 'red',
        'DEBUG': 'magenta',
        'CRITICAL': 'white on red',
    }
    style = level_styles.get(level, 'bold cyan')
    console.print(f'[bold {style}][{level}][/bold {style}] [{style}]{escape(event_msg)}[/{style}]')

    if context_yaml:
        syntax = Syntax(
            context_yaml,
            'yaml',
            theme='github-dark',
            background_color='default',
            line_numbers=False,
        )
        console.print(syntax)
    return ''  # structlog expects a string return, but we already printed


def level_for_verbosity(verbosity: int) -> int:
    """Map the global ``--v`` level onto a stdlib logging level."""
    if verbosity >= 4:  # noqa: PLR2004 - klog convention for debug output
        return logging.DEBUG
    if verbosity >= 1:
        return logging.INFO
    return logging.WARNING


def configure_logging(*, verbosity: int = 0) -> None:
    """Configure structlog for ocentry.

    Args:
        verbosity: Value of the global ``--v`` flag; 4 and above enables debug output.
    """
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.TimeStamper(fmt='ISO', utc=False),
            structlog.stdlib.add_log_level,
            cli_renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )
    root = logging.getLogger()
    # Output is printed by cli_renderer; the empty record it returns goes nowhere.
    if not root.handlers:
        root.addHandler(logging.NullHandler())
    root.setLevel(level_for_verbosity(verbosity))


def get_logger(name: str) -> Logger:
    """Get a structured logger instance.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)
