"""
sshkey-setup - one-shot SSH key setup for a developer workstation.

Generates an RSA 4096 keypair labeled with an email identity, registers it
with ssh-agent and copies the public key to the clipboard.
"""

__version__ = "1.0.0"

from .errors import (
    SetupError,
    MissingIdentityError,
    KeyDirectoryError,
    KeyExistsError,
    KeyGenerationError,
    KeyFileError,
    AgentError,
)
from .tools import ToolResult, run_tool
from .keygen import ExistingKeyPolicy, KeyPaths
from .agent import AgentHandle
from .clipboard import ClipboardBackend, DEFAULT_BACKENDS
from .workflow import SetupReport, run_setup


__all__ = [
    "__version__",
    # Workflow
    "run_setup",
    "SetupReport",
    # Building blocks
    "ToolResult",
    "run_tool",
    "ExistingKeyPolicy",
    "KeyPaths",
    "AgentHandle",
    "ClipboardBackend",
    "DEFAULT_BACKENDS",
    # Exceptions
    "SetupError",
    "MissingIdentityError",
    "KeyDirectoryError",
    "KeyExistsError",
    "KeyGenerationError",
    "KeyFileError",
    "AgentError",
]
