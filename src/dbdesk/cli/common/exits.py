"""Process exits for dbdesk commands.

Every command ends through one of these helpers so the exit code tells
scripts what happened: 0 success, 1 a remote or runtime failure (including
a commit with failed changes), 2 bad input such as an unknown table or a
malformed `--pk`.
"""

from enum import IntEnum
from typing import NoReturn

import typer

from dbdesk.cli.common.output import out
from dbdesk.core.commit import CommitResult


class ExitCode(IntEnum):
    OK = 0
    FAILURE = 1
    USAGE = 2


def ok_exit(msg: str | None = None) -> NoReturn:
    if msg:
        out.info(msg)
    raise typer.Exit(ExitCode.OK)


def die(msg: str, code: int = ExitCode.FAILURE) -> NoReturn:
    """Print an error and stop."""
    out.error(msg)
    raise typer.Exit(code)


def usage_error(msg: str) -> NoReturn:
    """Reject user input that cannot be acted on."""
    die(msg, ExitCode.USAGE)


def warn_exit(msg: str, code: int = ExitCode.OK) -> NoReturn:
    out.warn(msg)
    raise typer.Exit(code)


def exit_from_exc(exc: Exception, *, message: str, code: int = ExitCode.FAILURE) -> NoReturn:
    """Print `message` and stop, keeping `exc` as the cause."""
    out.error(message)
    raise typer.Exit(code) from exc


def exit_for_commit(result: CommitResult) -> None:
    """Stop with FAILURE when any change of a commit did not apply."""
    if result.failed:
        raise typer.Exit(ExitCode.FAILURE)
