import logging
import os

import click

from sambadmin.cli.shares import shares
from sambadmin.cli.smbconf import smbconf
from sambadmin.cli.users import users

DEFAULT_CONFIG_PATH = "~/.config/sambadmin/config.yaml"


@click.group()
@click.option("--config", "config_path", help="Path to the configuration file.")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx, config_path, verbose):
    """Sambadmin CLI"""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


main.add_command(shares)
main.add_command(users)
main.add_command(smbconf)


@main.command()
@click.argument("path", default=DEFAULT_CONFIG_PATH)
@click.option("--force", is_flag=True, help="Overwrite an existing file.")
def init(path, force):
    """Write a default configuration file."""
    from sambadmin.config.settings import write_default_config

    path = os.path.expanduser(path)
    if os.path.exists(path) and not force:
        raise click.ClickException(f"{path} already exists, use --force to overwrite it.")
    try:
        write_default_config(path)
    except OSError as e:
        raise click.FileError(path, hint=str(e))
    click.echo(f"Configuration written to {path}.")


@main.command()
def version():
    """Show the sambadmin version."""
    from sambadmin.version import get_version

    click.echo(get_version())
