"""Decorators for CLI commands."""

import os
from functools import wraps
from typing import Callable, TypeVar

import typer

from ..config import ConfigError
from ..operations import OperationError
from .output import out

R = TypeVar("R")


def handle_errors(func: Callable[..., R]) -> Callable[..., R]:
    """Decorator that turns fatal errors into a message and exit status 1."""
    @wraps(func)
    def wrapper(*args: object, **kwargs: object) -> R:
        try:
            return func(*args, **kwargs)
        except (OperationError, ConfigError) as e:
            out.error(str(e))
            raise typer.Exit(1)
    return wrapper


def require_root(func: Callable[..., R]) -> Callable[..., R]:
    """Decorator that refuses to run unless the effective UID is 0."""
    @wraps(func)
    def wrapper(*args: object, **kwargs: object) -> R:
        if os.geteuid() != 0:
            out.error("Please run this script as root. Exiting.")
            out.hint("Run: [bold]sudo vdsm-lxc setup[/bold]")
            raise typer.Exit(1)
        return func(*args, **kwargs)
    return wrapper
