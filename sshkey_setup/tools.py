"""
Thin wrapper around subprocess for the external tools sshkey-setup drives.

Every invocation returns a ToolResult that the caller checks explicitly.
A missing executable is reported as return code 127 instead of raising.
"""

import logging
import subprocess
from dataclasses import dataclass
from typing import Callable, Mapping, Optional, Sequence


logger = logging.getLogger(__name__)

COMMAND_NOT_FOUND = 127


@dataclass
class ToolResult:
    """
    Outcome of one external tool invocation.

    Attributes:
        command: The argv that was run
        returncode: Process exit status (127 when the executable is missing)
        stdout: Captured standard output
        stderr: Captured standard error
    """
    command: Sequence[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def diagnostic(self) -> str:
        """Best human-readable explanation of what the tool said."""
        text = (self.stderr or "").strip() or (self.stdout or "").strip()
        if text:
            return text
        return f"{self.command[0]} exited with status {self.returncode}"


# Same call signature as run_tool(command, env=None, input_text=None, capture=True)
ToolRunner = Callable[..., ToolResult]


def run_tool(
    command: Sequence[str],
    env: Optional[Mapping[str, str]] = None,
    input_text: Optional[str] = None,
    capture: bool = True,
) -> ToolResult:
    """
    Run an external tool once and capture its output.

    Args:
        command: argv to execute
        env: Full environment for the child (default: inherit)
        input_text: Text fed on stdin; when None, stdin is inherited so the
            tool can prompt the user itself
        capture: When False, stdout and stderr go to /dev/null. Needed for
            tools that leave a background child holding the output pipes
            (xclip keeps serving the selection after it exits)

    Returns:
        ToolResult describing the run
    """
    command = list(command)
    logger.debug(f"Running: {' '.join(command)}")
    try:
        completed = subprocess.run(
            command,
            env=dict(env) if env is not None else None,
            input=input_text,
            stdout=subprocess.PIPE if capture else subprocess.DEVNULL,
            stderr=subprocess.PIPE if capture else subprocess.DEVNULL,
            text=True,
        )
    except FileNotFoundError:
        logger.debug(f"Executable not found: {command[0]}")
        return ToolResult(
            command=command,
            returncode=COMMAND_NOT_FOUND,
            stderr=f"{command[0]}: command not found",
        )

    result = ToolResult(
        command=command,
        returncode=completed.returncode,
        stdout=completed.stdout or "",
        stderr=completed.stderr or "",
    )
    logger.debug(f"{command[0]} exited with status {result.returncode}")
    return result
