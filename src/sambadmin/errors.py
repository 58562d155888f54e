from typing import List, Optional, Sequence


class SambadminError(Exception):
    """Base class for every error surfaced to callers of sambadmin."""


class ValidationError(SambadminError, ValueError):
    """Malformed user input: username, share name, share id or subpath."""


class NotFoundError(SambadminError):
    """The targeted share, account or directory does not exist."""


class ConflictError(SambadminError):
    """The requested identity is already taken."""


class ForbiddenError(SambadminError):
    """The caller does not own the record it is trying to change."""


class UnauthorizedError(SambadminError):
    """The supplied credential was rejected."""


class QueueShutdownError(SambadminError):
    """The task queue no longer accepts or runs work."""


class FileOperationError(SambadminError):
    """Reading or writing a file or directory failed."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class ExternalToolError(SambadminError):
    """An external tool exited with a non-zero status."""

    def __init__(self, tool: str, args: Sequence[str], returncode: int, output: str):
        self.tool = tool
        self.args_list: List[str] = list(args)
        self.returncode = returncode
        self.output = output
        detail = output.strip() or "no output"
        super().__init__(f"{tool} failed (exit {returncode}): {detail}")


class ConfigValidationError(SambadminError):
    """A raw configuration rewrite was rejected by the syntax checker.

    ``reverted`` tells whether the previous file content was restored.
    """

    def __init__(self, message: str, output: str = "", reverted: bool = True):
        super().__init__(message)
        self.output = output
        self.reverted = reverted
