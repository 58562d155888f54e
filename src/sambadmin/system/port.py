import logging
import os
import shutil
from abc import ABC, abstractmethod
from typing import Callable, List, Optional

from sambadmin.errors import ExternalToolError, FileOperationError
from sambadmin.system.commands import CommandResult, run_external

logger = logging.getLogger(__name__)

NOLOGIN_SHELL = "/usr/sbin/nologin"


class ExternalProcessPort(ABC):
    """Every side effect outside the config file goes through this seam.

    Methods raise :class:`ExternalToolError` or :class:`FileOperationError`
    on failure, except ``validate_config`` (returns the result) and
    ``reload_service`` (best effort, returns whether it worked).
    """

    @abstractmethod
    def create_directory(self, path: str, owner: str = "root", group: str = "root", mode: int = 0o770):
        pass

    @abstractmethod
    def remove_directory(self, path: str):
        pass

    @abstractmethod
    def create_account(self, username: str, home_dir: str):
        pass

    @abstractmethod
    def set_account_credential(self, username: str, secret: str, new_account: bool = False):
        pass

    @abstractmethod
    def enable_account(self, username: str):
        pass

    @abstractmethod
    def remove_account(self, username: str):
        pass

    @abstractmethod
    def validate_config(self, path: str) -> CommandResult:
        pass

    @abstractmethod
    def reload_service(self) -> bool:
        pass

    @abstractmethod
    def list_accounts(self) -> List[str]:
        pass

    @abstractmethod
    def account_exists(self, username: str) -> bool:
        pass

    @abstractmethod
    def verify_credential(self, username: str, secret: str) -> bool:
        pass


class SambaToolsPort(ExternalProcessPort):
    """Drives the real Samba and shadow-utils binaries."""

    def __init__(
        self,
        use_extrausers: bool = True,
        timeout: Optional[float] = None,
        runner: Callable[..., CommandResult] = run_external,
    ):
        self.use_extrausers = use_extrausers
        self.timeout = timeout
        self.runner = runner

    def _run(self, tool: str, *args: str, input_text: Optional[str] = None, env=None) -> CommandResult:
        return self.runner(tool, list(args), input_text=input_text, timeout=self.timeout, env=env)

    def _extrausers(self) -> List[str]:
        return ["--extrausers"] if self.use_extrausers else []

    def create_directory(self, path: str, owner: str = "root", group: str = "root", mode: int = 0o770):
        try:
            os.makedirs(path, mode=mode, exist_ok=True)
        except OSError as e:
            raise FileOperationError(f"Failed to create directory {path}: {e}", path) from e
        self._run("chown", "-R", f"{owner}:{group}", path).check()
        self._run("chmod", "-R", format(mode, "o"), path).check()

    def remove_directory(self, path: str):
        try:
            shutil.rmtree(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            raise FileOperationError(f"Failed to delete directory {path}: {e}", path) from e

    def create_account(self, username: str, home_dir: str):
        self._run(
            "useradd",
            *self._extrausers(),
            "--no-create-home",
            "--shell", NOLOGIN_SHELL,
            "--home-dir", home_dir,
            "--badname",
            username,
        ).check()

    def set_account_credential(self, username: str, secret: str, new_account: bool = False):
        # smbpasswd -s reads the new password and its confirmation from stdin
        flags = ["-a", "-s"] if new_account else ["-s"]
        self._run("smbpasswd", *flags, username, input_text=f"{secret}\n{secret}\n").check()

    def enable_account(self, username: str):
        self._run("smbpasswd", "-e", username).check()

    def remove_account(self, username: str):
        """Remove the Samba entry, then the Unix user; both are always attempted."""
        failure: Optional[ExternalToolError] = None
        for tool, args in (
            ("smbpasswd", ["-x", username]),
            ("userdel", [*self._extrausers(), username]),
        ):
            try:
                self._run(tool, *args).check()
            except ExternalToolError as e:
                logger.warning(f"Removing account {username}: {e}")
                if failure is None:
                    failure = e
        if failure is not None:
            raise failure

    def validate_config(self, path: str) -> CommandResult:
        return self._run("testparm", "-s", path)

    def reload_service(self) -> bool:
        result = self._run("smbcontrol", "smbd", "reload-config")
        if not result.ok:
            logger.warning(f"Samba reload skipped: {result.output or 'exit ' + str(result.returncode)}")
        return result.ok

    def list_accounts(self) -> List[str]:
        result = self._run("pdbedit", "-L").check()
        accounts = []
        for line in result.stdout.splitlines():
            line = line.strip()
            if not line:
                continue
            accounts.append(line.split(":", 1)[0])
        return accounts

    def account_exists(self, username: str) -> bool:
        return self._run("pdbedit", "-L", "-u", username).ok

    def verify_credential(self, username: str, secret: str) -> bool:
        # PASSWD keeps the secret off the command line; empty stdin stops any prompt
        return self._run("smbclient", "-L", "localhost", "-U", username, input_text="", env={"PASSWD": secret}).ok
