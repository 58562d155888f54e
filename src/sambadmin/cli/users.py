import click

from sambadmin.cli import utils


@click.group()
def users():
    """Manage Samba accounts."""
    pass


@users.command(name="list")
@click.option("--search", help="Filter by username.")
@click.pass_context
def list_users(ctx, search):
    """List accounts."""
    with utils.build_service(ctx) as service:
        accounts = utils.run("listing users", service.list_accounts, search)
    if not accounts:
        click.echo("No users found.")
        return
    for account in accounts:
        click.echo(f"{account.username}\t{account.home_dir}")


@users.command(name="create")
@click.argument("username")
@click.password_option(help="Password of the new account.")
@click.pass_context
def create_user(ctx, username, password):
    """Create an account with its home directory."""
    with utils.build_service(ctx) as service:
        account = utils.run("creating user", service.provision_account, username, password)
    click.echo(f"User '{account.username}' created with home {account.home_dir}.")


@users.command(name="delete")
@click.argument("username")
@click.option("--keep-home", is_flag=True, help="Keep the home directory on disk.")
@click.confirmation_option(prompt="This removes the account and its shares. Continue?")
@click.pass_context
def delete_user(ctx, username, keep_home):
    """Delete an account and remove it from every share."""
    with utils.build_service(ctx) as service:
        plan = utils.run("deleting user", service.deprovision_account, username, not keep_home)
    for share_id in plan.delete:
        click.echo(f"Share '{share_id}' deleted.")
    for share_id in plan.update:
        click.echo(f"Share '{share_id}' updated.")
    click.echo(f"User '{username}' deleted.")


@users.command(name="passwd")
@click.argument("username")
@click.option("--old-password", help="Current password; changes it as the user instead of as admin.")
@click.password_option("--password", help="New password.")
@click.pass_context
def change_password(ctx, username, old_password, password):
    """Change the password of an account."""
    with utils.build_service(ctx) as service:
        if old_password is not None:
            utils.run("changing password", service.change_own_password, username, old_password, password)
        else:
            utils.run("changing password", service.change_password, username, password)
    click.echo(f"Password of '{username}' changed.")


@users.command(name="orphans")
@click.pass_context
def list_orphans(ctx):
    """List home directories that belong to no account."""
    with utils.build_service(ctx) as service:
        orphans = utils.run("listing orphaned directories", service.list_orphaned_directories)
    if not orphans:
        click.echo("No orphaned directories found.")
        return
    for orphan in orphans:
        click.echo(f"{orphan.name}\t{orphan.path}\t{orphan.size}")


@users.command(name="delete-orphan")
@click.argument("name")
@click.confirmation_option(prompt="This deletes the directory and everything in it. Continue?")
@click.pass_context
def delete_orphan(ctx, name):
    """Delete an orphaned home directory."""
    with utils.build_service(ctx) as service:
        utils.run("deleting orphaned directory", service.delete_orphaned_directory, name)
    click.echo(f"Directory '{name}' deleted.")
