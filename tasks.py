"""Invoke tasks for day-to-day solrsync development.

Every task shells out to `uv` so the virtual environment defined by
pyproject.toml is used for tests, linting and type checks alike.
"""

from __future__ import annotations

import shlex
from collections.abc import Sequence

from invoke import Collection, Context, task


def _uv(ctx: Context, *args: str, echo: bool = True) -> None:
    """Run `uv` with ``args``, quoting each argument.

    Args:
        ctx: Invoke execution context.
        *args: Arguments placed after the `uv` executable.
        echo: Whether to echo the command before running it.
    """
    ctx.run(shlex.join(("uv", *args)), echo=echo, pty=True)


@task(help={"dev": "Install the dev extra (pytest, respx, ruff, mypy)."})
def sync(ctx: Context, dev: bool = True) -> None:
    """Create or refresh the project virtual environment."""
    args: list[str] = ["sync"]
    if dev:
        args.extend(["--extra", "dev"])
    _uv(ctx, *args)


@task(
    help={
        "k": "pytest -k expression for test selection.",
        "path": "Test file or directory (defaults to tests/).",
        "options": "Extra flags forwarded verbatim to pytest.",
    }
)
def tests(ctx: Context, k: str = "", path: str = "tests", options: str = "") -> None:
    """Run the pytest suite.

    Solr is never contacted; HTTP traffic is mocked with respx.
    """
    args: list[str] = ["run", "pytest"]
    if k:
        args.extend(["-k", k])
    if options:
        args.extend(shlex.split(options))
    args.append(path)
    _uv(ctx, *args)


@task(help={"fix": "Apply Ruff auto-fixes.", "check_format": "Also run `ruff format --check`."})
def lint(ctx: Context, fix: bool = False, check_format: bool = False) -> None:
    """Lint sources and tests with Ruff."""
    targets: Sequence[str] = ("src", "tests", "tasks.py")
    if check_format:
        _uv(ctx, "run", "ruff", "format", "--check", *targets)
    args = ["run", "ruff", "check", *targets]
    if fix:
        args.append("--fix")
    _uv(ctx, *args)


@task
def mypy(ctx: Context) -> None:
    """Type-check the solrsync package."""
    _uv(ctx, "run", "mypy", "src/solrsync")


@task(
    help={
        "image": "Solr container image.",
        "port": "Host port mapped to Solr (matches connection.port).",
    }
)
def solr(ctx: Context, image: str = "solr:9", port: int = 8982) -> None:
    """Start a throwaway Solr core for manual checks against `solrsync ping`."""
    command = [
        "docker", "run", "--rm", "-d",
        "--name", "solrsync-dev",
        "-p", f"{port}:8983",
        image, "solr-precreate", "solrsync",
    ]  # fmt: skip
    ctx.run(shlex.join(command), echo=True)
    print(f"Point connection.path at solr/solrsync and connection.port at {port}.")


@task
def ci(ctx: Context) -> None:
    """Run formatting, lint, type and test checks in CI order."""
    ctx.invoke(lint, check_format=True)
    ctx.invoke(mypy)
    ctx.invoke(tests)


namespace = Collection(sync, tests, lint, mypy, solr, ci)
