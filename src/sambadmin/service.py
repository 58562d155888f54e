import logging
from typing import Any, Callable, List, Optional

from sambadmin.accounts.manager import AccountManager
from sambadmin.accounts.models import Account, OrphanedDirectory
from sambadmin.config.settings import Config
from sambadmin.context import AppContext, build_context
from sambadmin.queue.guard import ReadWriteLock
from sambadmin.queue.worker import TaskQueue
from sambadmin.shares.manager import ShareManager
from sambadmin.shares.models import ShareCreate, ShareRecord, ShareUpdate, UserRemovalPlan
from sambadmin.smbconf.manager import SettingsManager
from sambadmin.smbconf.models import ConfigFile, GlobalSettings, HomesSettings, SambaSettings

logger = logging.getLogger(__name__)


class SambaService:
    """Entry point used by the CLI and by any embedding application.

    Every mutation runs on the task queue's worker thread under the write
    lock; reads take the read lock on the calling thread.
    """

    def __init__(self, context: Optional[AppContext] = None, config: Optional[Config] = None):
        self.context = context or build_context(config)
        self.queue = TaskQueue(maxsize=self.context.config.queue_size)
        self.lock = ReadWriteLock()
        self.shares = ShareManager(self.context)
        self.settings = SettingsManager(self.context)
        self.accounts = AccountManager(self.context, shares=self.shares)

    def _read(self, fn: Callable, *args, **kwargs) -> Any:
        with self.lock.read_locked():
            return fn(*args, **kwargs)

    def _locked(self, fn: Callable, *args, **kwargs) -> Any:
        with self.lock.write_locked():
            return fn(*args, **kwargs)

    def _write(self, fn: Callable, *args, **kwargs) -> Any:
        return self.queue.submit_sync(self._locked, fn, *args, **kwargs)

    # accounts

    def list_accounts(self, search: Optional[str] = None) -> List[Account]:
        return self._read(self.accounts.list_accounts, search)

    def account_exists(self, username: str) -> bool:
        return self.accounts.account_exists(username)

    def provision_account(self, username: str, password: str) -> Account:
        return self._write(self.accounts.provision, username, password)

    def deprovision_account(self, username: str, delete_home_dir: bool = True) -> UserRemovalPlan:
        return self._write(self.accounts.deprovision, username, delete_home_dir)

    def change_password(self, username: str, password: str) -> None:
        self._write(self.accounts.change_password, username, password)

    def change_own_password(self, username: str, old_password: str, new_password: str) -> None:
        self._write(self.accounts.change_own_password, username, old_password, new_password)

    def list_orphaned_directories(self) -> List[OrphanedDirectory]:
        return self._read(self.accounts.list_orphaned_directories)

    def delete_orphaned_directory(self, name: str) -> None:
        self._write(self.accounts.delete_orphaned_directory, name)

    # shares

    def list_shares(self, owner: Optional[str] = None, search: Optional[str] = None) -> List[ShareRecord]:
        return self._read(self.shares.list_shares, owner, search)

    def get_share(self, share_id: str) -> ShareRecord:
        return self._read(self.shares.get_share, share_id)

    def create_share(self, request: ShareCreate) -> str:
        return self._write(self.shares.create_share, request)

    def update_share(self, share_id: str, request: ShareUpdate, acting_user: Optional[str] = None) -> ShareRecord:
        return self._write(self.shares.update_share, share_id, request, acting_user)

    def delete_share(self, share_id: str, acting_user: Optional[str] = None) -> None:
        self._write(self.shares.delete_share, share_id, acting_user)

    # smb.conf

    def get_settings(self) -> SambaSettings:
        return self._read(self.settings.get_settings)

    def update_settings(
        self,
        global_: Optional[GlobalSettings] = None,
        homes: Optional[HomesSettings] = None,
    ) -> int:
        return self._write(self.settings.update_settings, global_, homes)

    def get_raw_config(self) -> ConfigFile:
        return self._read(self.settings.get_raw)

    def replace_raw_config(self, content: str) -> None:
        self._write(self.settings.replace_raw, content)

    def close(self) -> None:
        self.queue.shutdown()
        logger.debug("Samba service closed")

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
