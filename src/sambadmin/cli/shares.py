import click

from sambadmin.cli import utils


def _print_share(share):
    click.echo(f"ID: {share.id}")
    click.echo(f"  Owner: {share.owner}")
    click.echo(f"  Path: {share.path}")
    click.echo(f"  Shared with: {', '.join(share.shared_with)}")
    click.echo(f"  Read Only: {share.read_only}")
    if share.comment:
        click.echo(f"  Comment: {share.comment}")


@click.group()
def shares():
    """Manage user shares."""
    pass


@shares.command(name="list")
@click.option("--owner", help="Only shares owned by this user.")
@click.option("--search", help="Filter by owner, id or comment.")
@click.pass_context
def list_shares(ctx, owner, search):
    """List shares."""
    with utils.build_service(ctx) as service:
        items = utils.run("listing shares", service.list_shares, owner, search)
    if not items:
        click.echo("No shares found.")
        return

    for share in items:
        _print_share(share)
        click.echo("-" * 20)


@shares.command(name="show")
@click.argument("share_id")
@click.pass_context
def show_share(ctx, share_id):
    """Show one share."""
    with utils.build_service(ctx) as service:
        share = utils.run("reading share", service.get_share, share_id)
    _print_share(share)


@shares.command(name="create")
@click.argument("owner")
@click.option("--with", "shared_with", multiple=True, required=True, help="User to share with (repeatable).")
@click.option("--name", help="Custom share name; a timestamp is used otherwise.")
@click.option("--subdir", default="", help="Subdirectory of the owner's home to share.")
@click.option("--readonly", is_flag=True, help="Share read only.")
@click.option("--comment", default="", help="Share comment.")
@click.pass_context
def create_share(ctx, owner, shared_with, name, subdir, readonly, comment):
    """Share part of OWNER's home directory with other users."""
    from sambadmin.shares.models import ShareCreate

    request = ShareCreate(
        owner=owner,
        name=name,
        shared_with=list(shared_with),
        sub_path=subdir,
        read_only=readonly,
        comment=comment,
    )
    with utils.build_service(ctx) as service:
        share_id = utils.run("creating share", service.create_share, request)
    click.echo(f"Share '{share_id}' created.")


@shares.command(name="update")
@click.argument("share_id")
@click.option("--with", "shared_with", multiple=True, required=True, help="User to share with (repeatable).")
@click.option("--subdir", default="", help="Subdirectory of the owner's home to share.")
@click.option("--readonly", is_flag=True, help="Share read only.")
@click.option("--comment", default="", help="Share comment.")
@click.option("--as-user", help="Act as this user; only their own shares can be changed.")
@click.pass_context
def update_share(ctx, share_id, shared_with, subdir, readonly, comment, as_user):
    """Rewrite a share."""
    from sambadmin.shares.models import ShareUpdate

    request = ShareUpdate(shared_with=list(shared_with), sub_path=subdir, read_only=readonly, comment=comment)
    with utils.build_service(ctx) as service:
        utils.run("updating share", service.update_share, share_id, request, as_user)
    click.echo(f"Share '{share_id}' updated.")


@shares.command(name="delete")
@click.argument("share_id")
@click.option("--as-user", help="Act as this user; only their own shares can be deleted.")
@click.pass_context
def delete_share(ctx, share_id, as_user):
    """Delete a share. The directory itself is kept."""
    with utils.build_service(ctx) as service:
        utils.run("deleting share", service.delete_share, share_id, as_user)
    click.echo(f"Share '{share_id}' deleted.")
