"""Subprocess helpers for driving PowerShell.

Scripts are passed with -EncodedCommand so quoting never depends on the
shell that launches PowerShell.
"""

import base64
import logging
import shutil
import subprocess
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Captured outcome of a finished process.

    Attributes:
        stdout: Decoded standard output.
        stderr: Decoded standard error.
        returncode: Process exit status.
    """

    stdout: str
    stderr: str
    returncode: int

    @property
    def success(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        """Stripped stderr followed by stripped stdout, for error messages."""
        return "\n".join(part for part in (self.stderr.strip(), self.stdout.strip()) if part)


def encode_script(script: str) -> str:
    """Encode a script for -EncodedCommand (Base64 of its UTF-16LE bytes)."""
    return base64.b64encode(script.encode("utf-16-le")).decode("ascii")


def run_command(args: list[str], *, timeout: float | None = 60.0) -> CommandResult:
    """Run a process to completion and capture its output.

    A non-zero exit is not an error here; callers look at
    CommandResult.success. Undecodable bytes in the output are replaced,
    since remote error text may arrive in the host's OEM code page.

    Raises:
        subprocess.TimeoutExpired: If the process outlives the timeout.
        FileNotFoundError: If the executable does not exist.
    """
    logger.debug("Running %s (timeout %ss)", args[0], timeout)
    completed = subprocess.run(
        args,
        capture_output=True,
        text=True,
        encoding="utf-8",
        errors="replace",
        check=False,
        timeout=timeout,
    )
    return CommandResult(completed.stdout or "", completed.stderr or "", completed.returncode)


def command_exists(name: str) -> bool:
    """Check if a command exists in the system PATH."""
    return shutil.which(name) is not None
