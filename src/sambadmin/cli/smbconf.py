import click
import yaml

from sambadmin.cli import utils

SECTIONS = ("global", "homes")


@click.group()
def smbconf():
    """Inspect and edit smb.conf."""
    pass


@smbconf.command(name="show")
@click.pass_context
def show_settings(ctx):
    """Show the [global] and [homes] settings."""
    with utils.build_service(ctx) as service:
        settings = utils.run("reading settings", service.get_settings)
    click.echo(yaml.safe_dump(settings.model_dump(by_alias=True), default_flow_style=False, sort_keys=False), nl=False)


@smbconf.command(name="set")
@click.argument("section", type=click.Choice(SECTIONS))
@click.argument("assignments", nargs=-1, required=True)
@click.pass_context
def set_settings(ctx, section, assignments):
    """Change existing keys of SECTION, given as field=value."""
    from sambadmin.smbconf.models import GlobalSettings, HomesSettings

    model = GlobalSettings if section == "global" else HomesSettings
    values = {}
    for assignment in assignments:
        field, sep, value = assignment.partition("=")
        field = field.strip().replace("-", "_")
        if not sep or field not in model.model_fields:
            raise click.BadParameter(f"'{assignment}' is not a known {section} setting.", param_hint="assignments")
        values[field] = value.strip()

    settings = model(**values)
    with utils.build_service(ctx) as service:
        if section == "global":
            changed = utils.run("updating settings", service.update_settings, settings, None)
        else:
            changed = utils.run("updating settings", service.update_settings, None, settings)
    click.echo(f"{changed} setting(s) changed.")


@smbconf.command(name="raw")
@click.pass_context
def show_raw(ctx):
    """Print the whole configuration file."""
    with utils.build_service(ctx) as service:
        config_file = utils.run("reading configuration", service.get_raw_config)
    click.echo(config_file.content, nl=False)


@smbconf.command(name="apply")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def apply_raw(ctx, path):
    """Replace the configuration file with PATH if testparm accepts it."""
    with open(path, "r", encoding="utf-8", newline="") as f:
        content = f.read()
    with utils.build_service(ctx) as service:
        utils.run("applying configuration", service.replace_raw_config, content)
    click.echo("Configuration applied.")
