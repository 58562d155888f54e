import logging
import os
from typing import Callable, List, Optional, Tuple

from sambadmin import validation
from sambadmin.accounts.models import Account, OrphanedDirectory
from sambadmin.context import AppContext
from sambadmin.errors import (
    ConflictError,
    FileOperationError,
    NotFoundError,
    SambadminError,
    UnauthorizedError,
    ValidationError,
)
from sambadmin.shares.manager import ShareManager
from sambadmin.shares.models import UserRemovalPlan

logger = logging.getLogger(__name__)

HOME_DIRECTORY_MODE = 0o770


class AccountManager:
    """Account lifecycle across the home directory, Unix user and Samba passdb."""

    def __init__(self, context: AppContext, shares: Optional[ShareManager] = None):
        self.context = context
        self.shares = shares or ShareManager(context)

    @property
    def port(self):
        return self.context.port

    @property
    def home_root(self) -> str:
        return self.context.config.home_dir

    def home_dir(self, username: str) -> str:
        return os.path.join(self.home_root, username)

    def list_accounts(self, search: Optional[str] = None) -> List[Account]:
        needle = search.lower() if search else None
        accounts = []
        for username in self.port.list_accounts():
            if needle and needle not in username.lower():
                continue
            accounts.append(Account(username=username, home_dir=self.home_dir(username)))
        return accounts

    def account_exists(self, username: str) -> bool:
        """Cached existence check, for callers that ask on every request."""
        if not validation.is_valid_account_name(username):
            return False
        return self.context.account_cache.get_or_compute(
            username, lambda: self.port.account_exists(username)
        )

    def provision(self, username: str, password: str) -> Account:
        """Create home directory, account, credential and enable it, or nothing at all.

        A failing step undoes the completed ones in reverse order; the
        original error is re-raised.
        """
        validation.require_account_name(username)
        if not password:
            raise ValidationError("Password must not be empty.")

        home = self.home_dir(username)
        undo: List[Tuple[str, Callable[[], None]]] = []
        try:
            existed = os.path.isdir(home)
            self.port.create_directory(home, mode=HOME_DIRECTORY_MODE)
            if not existed:
                undo.append(("remove home directory", lambda: self.port.remove_directory(home)))

            self.port.create_account(username, home)
            undo.append(("remove account", lambda: self.port.remove_account(username)))

            self.port.set_account_credential(username, password, new_account=True)
            self.port.enable_account(username)
        except SambadminError as e:
            logger.warning(f"Provisioning {username} failed, rolling back: {e}")
            self._rollback(username, undo)
            raise
        finally:
            self.context.account_cache.invalidate(username)

        logger.info(f"Provisioned account {username} with home {home}")
        return Account(username=username, home_dir=home)

    def _rollback(self, username: str, undo: List[Tuple[str, Callable[[], None]]]) -> None:
        for description, step in reversed(undo):
            try:
                step()
            except SambadminError as e:
                logger.error(f"Rollback for {username}: could not {description}: {e}")

    def deprovision(self, username: str, delete_home_dir: bool = True) -> UserRemovalPlan:
        """Remove ``username`` from every share, then the account, then optionally its home.

        Share cleanup happens first, against a single snapshot of the file; if
        it fails the account is left untouched.
        """
        validation.require_account_name(username)

        document = self.shares.read_document()
        plan = self.shares.plan_user_removal(document, username)
        if self.shares.apply_removal_plan(document, plan):
            self.port.reload_service()

        try:
            self.port.remove_account(username)
        finally:
            self.context.account_cache.invalidate(username)

        if delete_home_dir:
            self.port.remove_directory(self.home_dir(username))

        self.port.reload_service()
        logger.info(f"Deprovisioned account {username} (home removed: {delete_home_dir})")
        return plan

    def change_password(self, username: str, password: str) -> None:
        validation.require_account_name(username)
        if not password:
            raise ValidationError("Password must not be empty.")
        if not self.port.account_exists(username):
            raise NotFoundError(f"User '{username}' does not exist.")
        self.port.set_account_credential(username, password)
        logger.info(f"Changed password of {username}")

    def change_own_password(self, username: str, old_password: str, new_password: str) -> None:
        validation.require_account_name(username)
        if not self.port.verify_credential(username, old_password):
            raise UnauthorizedError("Invalid old password.")
        self.change_password(username, new_password)

    def list_orphaned_directories(self) -> List[OrphanedDirectory]:
        """Directories under the home root that no account claims."""
        accounts = set(self.port.list_accounts())
        try:
            entries = sorted(os.scandir(self.home_root), key=lambda entry: entry.name)
        except OSError as e:
            raise FileOperationError(f"Failed to list {self.home_root}: {e}", self.home_root) from e

        orphans = []
        for entry in entries:
            if not entry.is_dir(follow_symlinks=False) or entry.name in accounts:
                continue
            orphans.append(OrphanedDirectory(name=entry.name, path=entry.path, size=_directory_size(entry.path)))
        return orphans

    def delete_orphaned_directory(self, name: str) -> None:
        if not name or name in (".", "..") or "/" in name or "\\" in name:
            raise ValidationError(f"Invalid directory name: '{name}'.")
        if name in self.port.list_accounts():
            raise ConflictError(f"Cannot delete directory: user '{name}' still exists.")

        path = self.home_dir(name)
        if not os.path.isdir(path) or os.path.islink(path):
            raise NotFoundError(f"Directory '{name}' not found.")
        self.port.remove_directory(path)
        logger.info(f"Deleted orphaned directory {path}")


def _directory_size(path: str) -> int:
    total = 0
    for root, _, files in os.walk(path):
        for name in files:
            try:
                stat = os.lstat(os.path.join(root, name))
            except OSError:
                continue
            total += stat.st_size
    return total
