import logging
import os
import subprocess
from typing import Dict, List, Optional, Sequence

from pydantic import BaseModel

from sambadmin.errors import ExternalToolError

logger = logging.getLogger(__name__)

EXIT_NOT_FOUND = 127
EXIT_TIMEOUT = 124


class CommandResult(BaseModel):
    tool: str
    args: List[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        """Combined diagnostic text, stderr first."""
        return "\n".join(part.strip() for part in (self.stderr, self.stdout) if part.strip())

    def check(self) -> "CommandResult":
        if not self.ok:
            raise ExternalToolError(self.tool, self.args, self.returncode, self.output)
        return self


def run_external(
    tool: str,
    args: Sequence[str] = (),
    input_text: Optional[str] = None,
    timeout: Optional[float] = None,
    env: Optional[Dict[str, str]] = None,
) -> CommandResult:
    """Run ``tool`` with ``args`` and capture its outcome.

    ``input_text`` is written to the process' stdin and never logged.
    A missing binary or a timeout is reported as a result, not raised.
    """
    command = [tool, *args]
    logger.debug(f"Running {' '.join(command)}")
    full_env = None
    if env:
        full_env = dict(os.environ)
        full_env.update(env)
    try:
        completed = subprocess.run(
            command,
            input=input_text,
            capture_output=True,
            text=True,
            timeout=timeout,
            env=full_env,
        )
    except FileNotFoundError as e:
        return CommandResult(tool=tool, args=list(args), returncode=EXIT_NOT_FOUND, stderr=str(e))
    except subprocess.TimeoutExpired as e:
        stdout = e.stdout if isinstance(e.stdout, str) else ""
        stderr = e.stderr if isinstance(e.stderr, str) else ""
        message = f"timed out after {timeout}s"
        return CommandResult(
            tool=tool,
            args=list(args),
            returncode=EXIT_TIMEOUT,
            stdout=stdout,
            stderr=f"{stderr}\n{message}" if stderr else message,
        )

    return CommandResult(
        tool=tool,
        args=list(args),
        returncode=completed.returncode,
        stdout=completed.stdout or "",
        stderr=completed.stderr or "",
    )
