import sys

import click

from sambadmin.config.settings import load_config
from sambadmin.errors import SambadminError


def build_service(ctx: click.Context):
    """Create a :class:`SambaService` from the ``--config`` given to the main group."""
    from sambadmin.service import SambaService

    try:
        config = load_config(ctx.obj.get("config_path"))
    except (OSError, ValueError) as e:
        fail("loading configuration", e)
    return SambaService(config=config)


def fail(action: str, error: Exception):
    """Report ``error`` on stderr and exit with status 1."""
    click.echo(f"Error {action}: {error}", err=True)
    sys.exit(1)


def run(action: str, fn, *args, **kwargs):
    """Call ``fn``, turning sambadmin errors into a CLI failure."""
    try:
        return fn(*args, **kwargs)
    except SambadminError as e:
        fail(action, e)
