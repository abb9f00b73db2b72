"""Best-effort clipboard copy through whichever clipboard tool is installed."""

import logging
import shutil
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

from sshkey_setup.tools import ToolResult, ToolRunner, run_tool


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClipboardBackend:
    """A clipboard tool that reads the text to copy from stdin."""
    name: str
    command: Tuple[str, ...]

    @property
    def executable(self) -> str:
        return self.command[0]


# Probed in order; the first one found on PATH wins
DEFAULT_BACKENDS: List[ClipboardBackend] = [
    ClipboardBackend("pbcopy", ("pbcopy",)),
    ClipboardBackend("xclip", ("xclip", "-selection", "clipboard")),
]


def detect_backend(
    backends: Optional[Sequence[ClipboardBackend]] = None,
    which: Callable[[str], Optional[str]] = shutil.which,
) -> Optional[ClipboardBackend]:
    """Return the first backend whose executable is installed, or None."""
    for backend in (DEFAULT_BACKENDS if backends is None else backends):
        if which(backend.executable):
            logger.debug(f"Clipboard backend: {backend.name}")
            return backend
    logger.debug("No clipboard backend found")
    return None


def copy_text(
    backend: ClipboardBackend,
    text: str,
    runner: ToolRunner = run_tool,
) -> ToolResult:
    """Feed text to the backend on stdin. The caller checks result.ok."""
    return runner(list(backend.command), input_text=text, capture=False)
