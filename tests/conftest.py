import io
import stat
from collections.abc import Callable
from pathlib import Path

import pytest
from pydantic import BaseModel

from ocentry.config import DispatchConfig
from ocentry.logging import configure_logging
from ocentry.models import IOStreams, Outcome
from ocentry.resolver import dispatch


@pytest.fixture(autouse=True)
def _structlog_to_stderr() -> None:
    """Route log output through the CLI renderer so stdout assertions stay clean."""
    configure_logging()


class Result(BaseModel):
    outcome: Outcome
    stdout: str
    stderr: str

    @property
    def exit_code(self) -> int:
        return getattr(self.outcome, 'exit_code', 0)


def make_streams(stdin: str = '') -> IOStreams:
    return IOStreams(stdin=io.StringIO(stdin), stdout=io.StringIO(), stderr=io.StringIO())


def make_plugin(directory: Path, name: str, *, executable: bool = True) -> Path:
    """Create a shell-script plugin in ``directory``."""
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / name
    path.write_text('#!/bin/sh\necho plugin "$@"\n')
    mode = path.stat().st_mode
    if executable:
        path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    else:
        path.chmod(mode & ~(stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH))
    return path


RunCli = Callable[..., Result]


@pytest.fixture
def environ(tmp_path: Path) -> dict[str, str]:
    """An isolated environment: empty PATH entries and a home without kubeconfig."""
    home = tmp_path / 'home'
    home.mkdir()
    return {'PATH': str(tmp_path / 'empty-bin'), 'HOME': str(home)}


@pytest.fixture
def run_cli(environ: dict[str, str]) -> RunCli:
    def _run(
        argv: list[str],
        *,
        stdin: str = '',
        env: dict[str, str] | None = None,
        config: DispatchConfig | None = None,
    ) -> Result:
        streams = make_streams(stdin)
        outcome = dispatch(argv, streams=streams, environ=env or environ, config=config)
        return Result(
            outcome=outcome,
            stdout=streams.stdout.getvalue(),
            stderr=streams.stderr.getvalue(),
        )

    return _run


@pytest.fixture
def write_plugin() -> Callable[..., Path]:
    return make_plugin


@pytest.fixture
def streams() -> IOStreams:
    return make_streams()
