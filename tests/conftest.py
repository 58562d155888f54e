import os
import shutil
from datetime import datetime

import pytest

from sambadmin.accounts.cache import TTLCache
from sambadmin.config.settings import Config
from sambadmin.context import AppContext
from sambadmin.system.commands import CommandResult
from sambadmin.system.port import ExternalProcessPort

SAMPLE_SMB_CONF = """# Samba configuration
[global]
   workgroup = WORKGROUP
   server string = %h server
   security = user
   passdb backend = tdbsam
   map to guest = Bad User

[homes]
   comment = Home Directories
   browseable = no
   writable = yes
   valid users = %S
   create mask = 0700
   directory mask = 0700

[printers]
   comment = All Printers
   path = /var/spool/samba
"""

FIXED_NOW = datetime(2024, 5, 17, 9, 30, 15)


class FakePort(ExternalProcessPort):
    """In-memory port; directories are real so filesystem checks still work."""

    def __init__(self):
        self.calls = []
        self.accounts = {}
        self.failures = {}
        self.validate_result = CommandResult(tool="testparm", args=[], returncode=0)
        self.reload_ok = True

    def _call(self, name, *args):
        self.calls.append((name,) + args)
        error = self.failures.get(name)
        if error is not None:
            raise error

    def call_names(self):
        return [call[0] for call in self.calls]

    def create_directory(self, path, owner="root", group="root", mode=0o770):
        self._call("create_directory", path)
        os.makedirs(path, exist_ok=True)

    def remove_directory(self, path):
        self._call("remove_directory", path)
        shutil.rmtree(path, ignore_errors=True)

    def create_account(self, username, home_dir):
        self._call("create_account", username, home_dir)
        self.accounts[username] = None

    def set_account_credential(self, username, secret, new_account=False):
        self._call("set_account_credential", username, new_account)
        self.accounts[username] = secret

    def enable_account(self, username):
        self._call("enable_account", username)

    def remove_account(self, username):
        self._call("remove_account", username)
        self.accounts.pop(username, None)

    def validate_config(self, path):
        self.calls.append(("validate_config", path))
        return self.validate_result

    def reload_service(self):
        self.calls.append(("reload_service",))
        return self.reload_ok

    def list_accounts(self):
        self.calls.append(("list_accounts",))
        return sorted(self.accounts)

    def account_exists(self, username):
        self.calls.append(("account_exists", username))
        return username in self.accounts

    def verify_credential(self, username, secret):
        self.calls.append(("verify_credential", username))
        return self.accounts.get(username) == secret


@pytest.fixture
def home_root(tmp_path):
    path = tmp_path / "home"
    path.mkdir()
    return path


@pytest.fixture
def smb_conf(tmp_path):
    path = tmp_path / "smb.conf"
    path.write_text(SAMPLE_SMB_CONF)
    return path


@pytest.fixture
def port():
    return FakePort()


@pytest.fixture
def config(home_root, smb_conf):
    return Config(home_dir=str(home_root), samba_config_path=str(smb_conf))


@pytest.fixture
def context(config, port):
    return AppContext(config=config, port=port, clock=lambda: FIXED_NOW, account_cache=TTLCache(ttl=60))


@pytest.fixture
def make_home(home_root):
    def _make(*usernames):
        for username in usernames:
            (home_root / username).mkdir(exist_ok=True)
    return _make
